from __future__ import annotations

from typing import Optional

from redis import asyncio as aioredis

from cartfinder.core.config import get_settings

_settings = get_settings()


class CacheClient:
    """A thin async Redis wrapper; fails loudly if Redis is unavailable."""

    def __init__(self, url: Optional[str] = None) -> None:
        self._redis = aioredis.from_url(str(url or _settings.redis_url), decode_responses=True)

    async def hset(self, key: str, field: str, value: str) -> None:
        await self._redis.hset(key, field, value)

    async def hgetall(self, key: str) -> dict[str, str]:
        return await self._redis.hgetall(key) or {}

    async def hdel(self, key: str, field: str) -> bool:
        return bool(await self._redis.hdel(key, field))

    async def ping(self) -> bool:
        return await self._redis.ping()


_cache = CacheClient()


async def get_redis_client() -> CacheClient:
    """Returns the shared Redis client for saved carts and health checks."""
    return _cache


__all__ = ["CacheClient", "get_redis_client"]
