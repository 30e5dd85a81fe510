"""Query cache used at the service boundary (never inside pricing/aggregation)."""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from bfood.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_PREFIX = "bfood"
CACHE_TTL_DEFAULT = 300


class QueryCache:
    """Key/value cache with invalidation by key and by key prefix.

    Values must be JSON-serialisable. Subclasses implement the four storage
    primitives; ``get_or_set`` is shared.
    """

    async def get(self, key: str) -> Any | None:
        raise NotImplementedError

    async def set(self, key: str, value: Any, ttl: int = CACHE_TTL_DEFAULT) -> None:
        raise NotImplementedError

    async def invalidate(self, key: str) -> None:
        raise NotImplementedError

    async def invalidate_prefix(self, prefix: str) -> int:
        raise NotImplementedError

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
        ttl: int = CACHE_TTL_DEFAULT,
    ) -> T:
        """Return cached value if present, otherwise compute via factory, cache, and return."""
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await factory()
        await self.set(key, value, ttl=ttl)
        return value


class RedisQueryCache(QueryCache):
    """Redis-backed cache; all keys are namespaced under ``bfood:``."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self._redis = redis_client

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(settings.redis_url, decode_responses=True)
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{CACHE_PREFIX}:{key}"

    async def get(self, key: str) -> Any | None:
        client = await self._get_redis()
        raw = await client.get(self._make_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int = CACHE_TTL_DEFAULT) -> None:
        client = await self._get_redis()
        await client.set(self._make_key(key), json.dumps(value, default=str), ex=ttl)

    async def invalidate(self, key: str) -> None:
        client = await self._get_redis()
        await client.delete(self._make_key(key))

    async def invalidate_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``. Returns the number deleted."""
        client = await self._get_redis()
        deleted_count = 0
        async for cache_key in client.scan_iter(match=f"{self._make_key(prefix)}*", count=100):
            await client.delete(cache_key)
            deleted_count += 1
        return deleted_count


class InMemoryQueryCache(QueryCache):
    """Process-local cache for development and tests. TTLs are not enforced."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._store.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int = CACHE_TTL_DEFAULT) -> None:
        self._store[key] = json.dumps(value, default=str)

    async def invalidate(self, key: str) -> None:
        self._store.pop(key, None)

    async def invalidate_prefix(self, prefix: str) -> int:
        doomed = [k for k in self._store if k.startswith(prefix)]
        for k in doomed:
            del self._store[k]
        return len(doomed)


_cache: QueryCache | None = None


def get_cache() -> QueryCache:
    """FastAPI dependency returning the process-wide cache selected by settings."""
    global _cache
    if _cache is None:
        if settings.cache_backend == "memory":
            _cache = InMemoryQueryCache()
        else:
            _cache = RedisQueryCache()
        logger.info("Query cache backend: %s", settings.cache_backend)
    return _cache
