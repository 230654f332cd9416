"""
Cache package: Redis-backed read cache for list endpoints.
"""

from shared.infrastructure.cache.read_cache import (
    ReadCache,
    get_read_cache,
    make_key,
)

__all__ = [
    "ReadCache",
    "get_read_cache",
    "make_key",
]
