"""
Shared module for common utilities used by the REST API and the CLI.

STRUCTURE:
- shared.security: bearer JWT verification, role checks
  - auth.py: sign_jwt, verify_jwt, current_user_context

- shared.infrastructure: database and runtime plumbing
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: X-Request-ID middleware and logging filter
  - cache/read_cache.py: Redis list cache with generation invalidation

- shared.config: configuration
  - settings.py: environment config (pydantic-settings)
  - logging.py: structured logging
  - constants.py: roles, statuses, enums

- shared.utils: utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: form field checks, search sanitization

IMPORT EXAMPLES:
    from shared.security.auth import current_user_context
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import Roles, EntityStatus
    from shared.utils.exceptions import NotFoundError, ForbiddenError
"""
