"""
Redis key prefixes for the list read cache.
"""

PREFIX_CACHE_LIST = "cache:list:"
PREFIX_CACHE_GENERATION = "cache:gen:"


def get_generation_key(namespace: str, tenant_id: str) -> str:
    """Counter bumped on every write to `namespace` for the tenant."""
    return f"{PREFIX_CACHE_GENERATION}{namespace}:tenant:{tenant_id}"


def get_list_cache_key(namespace: str, tenant_id: str, generation: int, digest: str) -> str:
    """List entry stored under the generation that was current when it was loaded."""
    return f"{PREFIX_CACHE_LIST}{namespace}:tenant:{tenant_id}:gen:{generation}:{digest}"
