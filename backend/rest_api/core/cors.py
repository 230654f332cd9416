"""
CORS configuration for the admin dashboard.

Origins come from ALLOWED_ORIGINS (comma-separated); without it only the
local dashboard dev servers are allowed.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings
from shared.infrastructure.correlation import REQUEST_ID_HEADER


# Methods used by the admin routers (PUT: wizard submit for an existing entity)
ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

ALLOWED_HEADERS = ["Authorization", "Content-Type", REQUEST_ID_HEADER]


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=[REQUEST_ID_HEADER],
        max_age=settings.cors_max_age_seconds,
    )
