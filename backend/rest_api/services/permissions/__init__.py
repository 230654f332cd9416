"""
Permission context and school/branch scoping.

Usage:
    from rest_api.services.permissions import PermissionContext

    ctx = PermissionContext(user)
    ctx.require_config_write()
    rows = service.list_all(ctx.company_id, ctx.scope, filters)
"""

from .context import (
    PermissionContext,
    Scope,
    UNRESTRICTED,
    require_schools_in_scope,
    require_branches_in_scope,
)

__all__ = [
    "PermissionContext",
    "Scope",
    "UNRESTRICTED",
    "require_schools_in_scope",
    "require_branches_in_scope",
]
