"""
Startup and shutdown of the REST API.

Startup refuses insecure production settings, creates missing tables outside
production and reports whether the read cache can reach Redis. Shutdown
closes the Redis pool.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.infrastructure.db import engine
from shared.config.settings import settings
from shared.config.logging import setup_logging, rest_api_logger as logger
from shared.infrastructure.cache import get_read_cache
from shared.infrastructure.redis import close_redis_sync_client
from rest_api.models import Base


def check_configuration() -> None:
    """Log every configuration problem; in production any problem aborts startup."""
    problems = settings.validate_production_secrets()
    for problem in problems:
        logger.error("Configuration error", error=problem)
    if problems and settings.environment == "production":
        raise RuntimeError(f"Refusing to start: {'; '.join(problems)}")


def ensure_schema() -> None:
    # Production schemas are managed outside the app
    if settings.environment == "production":
        return
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified", tables=len(Base.metadata.tables))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    check_configuration()
    logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)
    ensure_schema()

    if not get_read_cache().ping():
        logger.warning("Redis unreachable, list reads will go to the database")

    yield

    logger.info("Shutting down REST API", read_cache=get_read_cache().get_stats())
    close_redis_sync_client()
