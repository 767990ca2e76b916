"""
Redis caching service for read endpoints.

CACHING STRATEGY
================

What we cache:
  - Event listings (paginated):       events:list:page=..&limit=..&upcoming=..&status=..
  - Event detail:                     event:{id}
  - Active merchandise per event:     event:{id}:merchandise:active
  - Registration statistics:          event:{id}:registration:stats
  - Admin dashboard aggregates:       admin:dashboard:stats

Invalidation strategy:
  - Every mutation maps to a fixed list of keys and key patterns
    (see cache_invalidation.py); eviction runs after the mutation succeeds
  - Pattern deletes use SCAN, never KEYS
  - TTL-based expiry as safety net (5 minutes by default)

Failure policy:
  - Cache errors are logged and swallowed; a broken cache is a miss
  - Reads and invalidations are not coordinated, so a read racing an
    invalidation may briefly serve the previous value until TTL expiry
"""

import json
from typing import Any, Optional

import redis.asyncio as redis

from alumni_api.core.config import get_settings
from alumni_api.core.logging import get_logger
from alumni_api.core.metrics import record_cache_operation
from alumni_api.infrastructure.redis_client import get_redis
from alumni_api.services.interfaces.cache import CacheBackend

logger = get_logger(__name__)
settings = get_settings()


class RedisCache(CacheBackend):
    def __init__(self, client: redis.Redis, default_ttl: int = settings.REDIS_CACHE_TTL):
        self.client = client
        self.default_ttl = default_ttl

    async def get(self, key: str) -> Optional[Any]:
        try:
            data = await self.client.get(key)
            record_cache_operation("get", hit=data is not None)
            if data:
                logger.debug("cache_hit", key=key)
                return json.loads(data)
            logger.debug("cache_miss", key=key)
        except Exception as e:
            logger.error("cache_get_error", key=key, error=str(e))
        return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = ttl or self.default_ttl
        try:
            await self.client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug("cache_set", key=key, ttl=ttl)
        except Exception as e:
            logger.error("cache_set_error", key=key, error=str(e))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return await self.client.delete(*keys)
        except Exception as e:
            logger.error("cache_delete_error", keys=list(keys), error=str(e))
            return 0

    async def delete_pattern(self, pattern: str) -> int:
        deleted = 0
        try:
            async for key in self.client.scan_iter(match=pattern, count=100):
                deleted += await self.client.delete(key)
        except Exception as e:
            logger.error("cache_pattern_delete_error", pattern=pattern, error=str(e))
        return deleted


class NullCache(CacheBackend):
    """Used when Redis is disabled or unreachable."""

    async def get(self, key: str) -> Optional[Any]:
        return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        return None

    async def delete(self, *keys: str) -> int:
        return 0

    async def delete_pattern(self, pattern: str) -> int:
        return 0


async def get_cache() -> CacheBackend:
    """FastAPI dependency: the cache backend for this request."""
    client = await get_redis()
    if client is None:
        return NullCache()
    return RedisCache(client)


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        keyspace = await client.info("keyspace")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            "keys": keyspace,
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
