"""
Redis caching layer for derived connection sets
"""
import redis.asyncio as redis
from typing import Any, Optional, Set
import json
import logging

from ..config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis cache for mutual connection sets, invalidated on every swipe"""

    def __init__(self):
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Connect to Redis"""
        if not settings.REDIS_ENABLED:
            logger.info("Redis caching is disabled")
            return

        try:
            self.redis = await redis.from_url(
                f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}",
                password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {e}. Continuing without cache.")
            self.redis = None

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.redis:
            await self.redis.close()
            logger.info("Disconnected from Redis")

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        if not self.redis:
            return None

        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.error(f"Error getting cache key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 300):
        """Set value in cache with TTL"""
        if not self.redis:
            return

        try:
            await self.redis.setex(key, ttl, json.dumps(value))
        except Exception as e:
            logger.error(f"Error setting cache key {key}: {e}")

    async def delete(self, *keys: str):
        """Delete keys from cache"""
        if not self.redis or not keys:
            return

        try:
            await self.redis.delete(*keys)
        except Exception as e:
            logger.error(f"Error deleting cache keys {keys}: {e}")

    def _mutual_key(self, fid: int) -> str:
        """Generate cache key for a user's mutual connections"""
        return f"matchmaking:mutual:{fid}"

    def _version_key(self, fid: int) -> str:
        """Generate cache key for the write counter of a user's connections"""
        return f"matchmaking:mutual:version:{fid}"

    async def get_mutual_connections(self, fid: int) -> Optional[Set[int]]:
        """Get cached mutual connections; None on miss"""
        cached = await self.get(self._mutual_key(fid))
        if cached is None:
            return None
        return {int(other) for other in cached}

    async def mutual_version(self, fid: int) -> Optional[int]:
        """Current write counter for fid; None when the cache is unavailable"""
        if not self.redis:
            return None

        try:
            value = await self.redis.get(self._version_key(fid))
            return int(value or 0)
        except Exception as e:
            logger.error(f"Error reading cache version for {fid}: {e}")
            return None

    async def set_mutual_connections(self, fid: int, connections: Set[int], version: int):
        """
        Cache mutual connections computed after reading `version`

        If a swipe bumped the counter meanwhile the entry is dropped again,
        so a slow reader never leaves a pre-swipe set behind.
        """
        key = self._mutual_key(fid)
        await self.set(key, sorted(connections), settings.CACHE_TTL_MUTUAL_CONNECTIONS)
        if await self.mutual_version(fid) != version:
            await self.delete(key)

    async def invalidate_pair(self, fid: int, other_fid: int):
        """Drop cached connection sets of both participants of a swipe"""
        if self.redis:
            try:
                await self.redis.incr(self._version_key(fid))
                await self.redis.incr(self._version_key(other_fid))
            except Exception as e:
                logger.error(f"Error bumping cache versions for {fid}, {other_fid}: {e}")
        await self.delete(self._mutual_key(fid), self._mutual_key(other_fid))


# Global cache instance
cache = RedisCache()


async def get_cache() -> RedisCache:
    """Dependency for getting cache instance"""
    return cache
