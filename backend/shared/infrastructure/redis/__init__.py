"""
Redis connection pool and key helpers.
"""

from shared.infrastructure.redis.pool import (
    close_redis_sync_client,
    get_redis_sync_client,
)

__all__ = [
    "close_redis_sync_client",
    "get_redis_sync_client",
]
