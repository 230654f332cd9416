"""
Shared dependencies and helpers for admin routers.

This module provides common imports, dependencies, and utility functions
used across all admin sub-routers.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context as current_user
from rest_api.services.permissions import PermissionContext


# =============================================================================
# Role-based Dependencies
# =============================================================================


def get_permission_context(user: dict = Depends(current_user)) -> PermissionContext:
    """Dependency that requires any administration role."""
    ctx = PermissionContext(user)
    ctx.require_any_role()
    return ctx


def require_config_write(
    ctx: PermissionContext = Depends(get_permission_context),
) -> PermissionContext:
    """Dependency for configuration writes (BRANCH_ADMIN is read-only)."""
    ctx.require_config_write()
    return ctx


def require_unscoped(
    ctx: PermissionContext = Depends(get_permission_context),
) -> PermissionContext:
    """Dependency for tenant-wide writes (schools, company)."""
    ctx.require_unscoped()
    return ctx


def require_system_admin(
    ctx: PermissionContext = Depends(get_permission_context),
) -> PermissionContext:
    ctx.require_system_admin()
    return ctx


# =============================================================================
# Common Utility Functions
# =============================================================================


def split_values(values: list[str] | None) -> list[str] | None:
    """
    Accept both repeated (?status=a&status=b) and comma separated
    (?status=a,b) query parameters.
    """
    if not values:
        return None
    result = [part.strip() for value in values for part in value.split(",") if part.strip()]
    return result or None


def build_filters(**filters: Any) -> dict[str, Any]:
    """Drop unset filters so they don't take part in the cache key."""
    return {name: value for name, value in filters.items() if value is not None}


# =============================================================================
# Re-exports for convenience
# =============================================================================

__all__ = [
    # FastAPI
    "APIRouter",
    "Depends",
    "Query",
    "status",
    # SQLAlchemy
    "Session",
    # Database
    "get_db",
    # Auth
    "current_user",
    "PermissionContext",
    # Role dependencies
    "get_permission_context",
    "require_config_write",
    "require_unscoped",
    "require_system_admin",
    # Utility functions
    "split_values",
    "build_filters",
]
