"""
Redis-backed counters used for per-user rate limiting.
Every operation degrades to a no-op when Redis is not connected.
"""
from typing import Optional
from . import core
import logging

logger = logging.getLogger(__name__)

class CacheManager:
    """Thin async wrapper over the shared Redis client"""

    def __init__(self):
        self.default_ttl = 3600  # 1 hour default TTL

    def _make_key(self, key: str, prefix: str = "") -> str:
        """Generate cache key with prefix"""
        if prefix:
            return f"{prefix}:{key}"
        return key

    async def incr_window(self, key: str, ttl: int = None, prefix: str = "") -> Optional[int]:
        """Increment a counter that lives for ``ttl`` seconds from its first hit.

        The key is created with its expiry and incremented in one MULTI block,
        so the counter can never exist without a TTL.
        """
        if not core.REDIS:
            return None

        cache_key = self._make_key(key, prefix)
        ttl = ttl or self.default_ttl

        try:
            async with core.REDIS.pipeline(transaction=True) as pipe:
                pipe.set(cache_key, 0, ex=ttl, nx=True)
                pipe.incr(cache_key)
                _, count = await pipe.execute()
            return int(count)
        except Exception as e:
            logger.error(f"Cache increment failed for key {cache_key}: {str(e)}")
            return None

cache = CacheManager()

async def check_rate_limit(user_id: int, action: str, limit: int = 100, window: int = 3600) -> bool:
    """Check if user is within rate limit"""
    key = f"rate_limit:{user_id}:{action}"

    count = await cache.incr_window(key, window, "rate")
    if count is None:
        return True
    return count <= limit
