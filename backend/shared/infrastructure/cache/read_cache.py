"""
Redis-backed read cache for list endpoints.

Every (namespace, tenant) pair has a generation counter in Redis. A write
bumps the counter; list entries are stored under the generation that was
current when their load started, so a write that commits while a read is
still loading leaves that read's entry unreachable. Entries expire after
`read_cache_ttl_seconds`.

Values are stored as JSON through a pydantic TypeAdapter, so every hit
returns fresh objects.

If Redis is unavailable the cache is bypassed and the loader queries the
database directly.
"""

from __future__ import annotations

import hashlib
import json
import threading
from typing import Any, Callable, TypeVar

import redis
from pydantic import TypeAdapter

from shared.config.settings import settings
from shared.config.logging import get_logger
from shared.infrastructure.redis.constants import get_generation_key, get_list_cache_key
from shared.infrastructure.redis.pool import get_redis_sync_client

logger = get_logger(__name__)

T = TypeVar("T")


def make_key(**parts: Any) -> str:
    """
    Build an order-independent key from filter parameters.

    Lists and sets are sorted so `school_ids=[a, b]` and `[b, a]` share an entry.
    Tuples keep their order.
    """
    normalized = {}
    for name, value in parts.items():
        if isinstance(value, (list, set, frozenset)):
            value = sorted(str(v) for v in value)
        normalized[name] = value
    return json.dumps(normalized, sort_keys=True, default=str, separators=(",", ":"))


def _digest(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()[:32]


class ReadCache:
    """List cache with per-namespace, per-tenant generation invalidation."""

    def __init__(
        self,
        client_factory: Callable[[], redis.Redis] = get_redis_sync_client,
        ttl_seconds: int = 120,
    ):
        self._client_factory = client_factory
        self._ttl = ttl_seconds

        # Metrics
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._errors = 0

    def _count(self, stat: str) -> None:
        with self._stats_lock:
            setattr(self, stat, getattr(self, stat) + 1)

    def generation(self, client: redis.Redis, namespace: str, tenant_id: str) -> int:
        raw = client.get(get_generation_key(namespace, tenant_id))
        return int(raw) if raw else 0

    def get_or_load(
        self,
        namespace: str,
        tenant_id: str,
        key: str,
        loader: Callable[[], T],
        adapter: TypeAdapter[T],
    ) -> T:
        """Return the cached value or call `loader` and cache its result."""
        digest = _digest(key)

        try:
            client = self._client_factory()
            # Snapshot before loading: a concurrent invalidate moves readers
            # to the next generation and this entry is never read.
            generation = self.generation(client, namespace, tenant_id)
            cached = client.get(get_list_cache_key(namespace, tenant_id, generation, digest))
        except redis.RedisError as e:
            self._count("_errors")
            logger.warning(
                "Redis read cache error, falling back to DB",
                error=str(e),
                namespace=namespace,
                company_id=tenant_id,
            )
            return loader()

        if cached is not None:
            self._count("_hits")
            logger.debug("Read cache HIT", namespace=namespace, company_id=tenant_id)
            return adapter.validate_json(cached)

        self._count("_misses")
        value = loader()

        try:
            client.setex(
                get_list_cache_key(namespace, tenant_id, generation, digest),
                self._ttl,
                adapter.dump_json(value),
            )
        except redis.RedisError as e:
            self._count("_errors")
            logger.warning(
                "Failed to store read cache entry",
                error=str(e),
                namespace=namespace,
                company_id=tenant_id,
            )
        return value

    def invalidate(self, namespace: str, tenant_id: str) -> bool:
        """
        Mark every entry of `namespace` for this tenant as stale.

        Returns False when Redis could not be reached; entries then live
        until their TTL.
        """
        try:
            self._client_factory().incr(get_generation_key(namespace, tenant_id))
        except redis.RedisError as e:
            self._count("_errors")
            logger.warning(
                "Failed to invalidate read cache",
                error=str(e),
                namespace=namespace,
                company_id=tenant_id,
            )
            return False
        logger.debug("Read cache invalidated", namespace=namespace, company_id=tenant_id)
        return True

    def ping(self) -> bool:
        try:
            return bool(self._client_factory().ping())
        except redis.RedisError as e:
            self._count("_errors")
            logger.warning("Redis ping failed", error=str(e))
            return False

    def get_stats(self) -> dict:
        """Get cache statistics."""
        with self._stats_lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "errors": self._errors,
                "ttl_seconds": self._ttl,
            }


# =============================================================================
# Singleton instance
# =============================================================================

_read_cache: ReadCache | None = None
_read_cache_lock = threading.Lock()


def get_read_cache() -> ReadCache:
    """Get or create the read cache singleton."""
    global _read_cache
    if _read_cache is None:
        with _read_cache_lock:
            if _read_cache is None:
                _read_cache = ReadCache(ttl_seconds=settings.read_cache_ttl_seconds)
    return _read_cache
