"""
Utilities module: Exceptions, validators.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    FormValidationError,
)
from shared.utils.validators import (
    escape_like_pattern,
    sanitize_search_term,
    is_valid_email,
    is_valid_phone,
    is_valid_url,
)

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "FormValidationError",
    # validators
    "escape_like_pattern",
    "sanitize_search_term",
    "is_valid_email",
    "is_valid_phone",
    "is_valid_url",
]
