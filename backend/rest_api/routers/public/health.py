"""
Health check endpoints for the REST API.
Provides basic and detailed health status of the service and its dependencies.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from shared.config.settings import settings
from shared.infrastructure.cache.read_cache import get_read_cache
from shared.infrastructure.db import SessionLocal


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    """
    Basic health check endpoint.
    Returns service status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }


@router.get("/health/detailed")
def detailed_health_check():
    """
    Detailed health check that verifies database and Redis connectivity and reports
    read cache statistics.

    Returns 503 Service Unavailable if the database is down. Redis being down
    only degrades the read cache, so it is reported without failing the check.
    """
    checks = {
        "service": "rest-api",
        "environment": settings.environment,
        "dependencies": {},
        "read_cache": get_read_cache().get_stats(),
    }

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        checks["dependencies"]["database"] = {"status": "healthy"}
    except Exception as e:
        checks["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}

    if get_read_cache().ping():
        checks["dependencies"]["redis"] = {"status": "healthy"}
    else:
        checks["dependencies"]["redis"] = {"status": "unhealthy"}

    all_healthy = checks["dependencies"]["database"]["status"] == "healthy"
    checks["status"] = "healthy" if all_healthy else "degraded"

    if not all_healthy:
        return JSONResponse(content=checks, status_code=503)
    return checks
