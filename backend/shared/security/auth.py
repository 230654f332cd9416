"""
Authentication and authorization utilities.

Tokens are issued by the identity provider; this service verifies the bearer
JWT on each request and reads the tenant and scope claims from it.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Header

from shared.config.settings import (
    JWT_SECRET,
    JWT_ISSUER,
    JWT_AUDIENCE,
    settings,
)
from shared.utils.exceptions import AuthenticationError


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """
    Sign an access token with the given claims.

    Used by the test-suite and by local tooling; production tokens come
    from the identity provider with the same claim layout:
    sub, company_id, roles, school_ids, branch_ids, email.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        AuthenticationError: If token is invalid, expired, or lacks the tenant claims.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as e:
        # The actual error is logged, the client gets a generic message
        raise AuthenticationError("Invalid token", error=str(e))

    if not payload.get("sub"):
        raise AuthenticationError("Invalid token: missing subject claim")

    if not isinstance(payload.get("company_id"), str) or not payload["company_id"]:
        raise AuthenticationError("Invalid token: missing company_id claim")

    for claim in ("roles", "school_ids", "branch_ids"):
        value = payload.setdefault(claim, [])
        if not isinstance(value, list):
            raise AuthenticationError(f"Invalid token: malformed {claim} claim")

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        AuthenticationError: If header is missing or malformed.
    """
    if not authorization:
        raise AuthenticationError("Missing Authorization header")
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid Authorization header format. Expected: Bearer <token>")
    return authorization.split(" ", 1)[1].strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from JWT.

    Usage:
        @router.get("/departments")
        def list_departments(user: dict = Depends(current_user_context)):
            company_id = user["company_id"]
            ...

    Returns:
        Dict with: sub, company_id, roles, school_ids, branch_ids, email
    """
    token = get_bearer_token(authorization)
    return verify_jwt(token)
