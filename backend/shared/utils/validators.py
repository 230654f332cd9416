"""
Shared validators for form input and search sanitization.

The field checks return True/False so the wizard step validators can build
their own field -> message maps.
"""

import re

from shared.config.constants import Limits

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
URL_PATTERN = re.compile(r"^https?://.+")

MIN_PHONE_DIGITS = 10
MAX_URL_LENGTH = 2048


def is_blank(value) -> bool:
    """None, empty string or whitespace-only string."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value.strip()))


def is_valid_phone(value: str) -> bool:
    """Digits, spaces, dashes and parentheses, optional leading +, at least 10 digits."""
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        return False
    return len(re.sub(r"\D", "", value)) >= MIN_PHONE_DIGITS


def is_valid_url(value: str) -> bool:
    value = value.strip()
    return len(value) <= MAX_URL_LENGTH and bool(URL_PATTERN.match(value))


def escape_like_pattern(value: str) -> str:
    """
    Escape special characters in LIKE patterns.

    SQL LIKE uses % and _ as wildcards. Escape them so a user search for
    "50%" matches the literal text instead of scanning everything.
    Use with `escape="\\\\"` on the SQLAlchemy `ilike()` call.
    """
    if not value:
        return value

    # Escape the escape character first, then the wildcards
    value = value.replace("\\", "\\\\")
    value = value.replace("%", "\\%")
    value = value.replace("_", "\\_")
    return value


def sanitize_search_term(term: str | None, max_length: int = Limits.MAX_SEARCH_LENGTH) -> str:
    """
    Sanitize search term for safe use in queries.

    Trims whitespace, truncates to max_length and strips control characters.
    """
    if not term:
        return ""

    term = term.strip()
    if len(term) > max_length:
        term = term[:max_length]

    return re.sub(r"[\x00-\x1f\x7f-\x9f]", "", term)


def parse_int(value) -> int | None:
    """Lenient integer parse for form values that may arrive as strings."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None
