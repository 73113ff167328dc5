"""
Caching utilities: Redis-backed or pass-through cached server methods.
"""

from typing import Any, Callable, Dict, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings

# Global Redis client
_redis_client: Optional[aioredis.Redis] = None


async def get_redis_client() -> aioredis.Redis:
    """
    Get or create Redis client.

    Returns:
        Redis client instance
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=False,
        )
    return _redis_client


async def close_redis_client():
    """Close Redis client connection."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


class RedisCacheBackend:
    """
    Cached values live in Redis under ``KEY_PREFIX``.

    Values are stored as raw bytes. Redis being unavailable degrades to
    recomputing: read and write failures are logged and treated as misses.
    """

    KEY_PREFIX = "publish:"

    def __init__(self):
        self._client: Optional[aioredis.Redis] = None

    async def _get_client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = await get_redis_client()
        return self._client

    async def get(self, key: str) -> Optional[bytes]:
        try:
            client = await self._get_client()
            return await client.get(self.KEY_PREFIX + key)
        except RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        try:
            client = await self._get_client()
            await client.set(self.KEY_PREFIX + key, value, ex=ttl or None)
            return True
        except RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            client = await self._get_client()
            await client.delete(self.KEY_PREFIX + key)
            return True
        except RedisError as e:
            # A stale entry outlives its record until the TTL runs out
            logger.error(f"Cache invalidation failed for {key}: {e}")
            return False


class NullCacheBackend:
    """Pass-through storage used when caching is disabled: every lookup misses."""

    async def get(self, key: str) -> Optional[Any]:
        return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        return False

    async def delete(self, key: str) -> bool:
        return True


class CacheMethod:
    """
    A named server method whose results may be cached.

    Subclasses set ``name`` and implement ``compute``. ``run`` returns the
    cached value or computes, stores and returns a fresh one; ``drop``
    invalidates an entry. Both behave the same whether the backend is Redis or
    the pass-through one, so callers never branch on whether caching is on.

    Each computation opens its own session from ``session_factory`` so that
    several ``run`` calls may be awaited concurrently.
    """

    name: str = ""

    def __init__(
        self,
        backend,
        session_factory: Callable[[], AsyncSession],
        ttl: Optional[int] = None,
    ):
        self.backend = backend
        self.session_factory = session_factory
        self.ttl = ttl if ttl is not None else settings.CACHE_TTL_SECONDS

    def key_for(self, key: Any) -> str:
        return f"{self.name}:{key}"

    async def compute(self, db: AsyncSession, key: Any) -> Any:
        raise NotImplementedError

    async def run(self, key: Any) -> Any:
        cache_key = self.key_for(key)

        cached_value = await self.backend.get(cache_key)
        if cached_value is not None:
            logger.debug(f"Cache hit for key: {cache_key}")
            return cached_value

        logger.debug(f"Cache miss for key: {cache_key}")
        async with self.session_factory() as db:
            value = await self.compute(db, key)
        await self.backend.set(cache_key, value, ttl=self.ttl)
        return value

    async def drop(self, key: Any) -> None:
        await self.backend.delete(self.key_for(key))


class CacheRegistry:
    """Cached methods by name, built once at startup."""

    def __init__(self, methods: Dict[str, CacheMethod]):
        self._methods = dict(methods)

    def __getitem__(self, name: str) -> CacheMethod:
        return self._methods[name]

    def __contains__(self, name: str) -> bool:
        return name in self._methods

    def names(self):
        return sorted(self._methods)


def build_backend(enabled: bool):
    """Select the cache backend for the process."""
    if enabled:
        logger.info("Server method caching enabled (Redis)")
        return RedisCacheBackend()
    logger.info("Server method caching disabled, using pass-through cache")
    return NullCacheBackend()
