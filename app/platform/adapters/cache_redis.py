import json
import logging
from typing import Any
from redis.asyncio import from_url as redis_from_url
from app.platform.ports.cache import CachePort
from app.core.config import settings

log = logging.getLogger("cache.redis")

class RedisCache(CachePort):
    def __init__(self, prefix: str = "growth:"):
        if not settings.REDIS_URL:
            raise RuntimeError("REDIS_URL not configured")
        self.redis = redis_from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        self.prefix = prefix
        self.default_ttl = settings.CACHE_TTL_SECONDS

    async def get(self, key: str) -> Any | None:
        data = await self.redis.get(self.prefix + key)
        if data is None:
            log.debug(f"[REDIS CACHE] MISS {key}")
            return None
        return json.loads(data)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        await self.redis.setex(self.prefix + key, int(ttl), json.dumps(value))

    async def invalidate(self, key: str) -> None:
        await self.redis.delete(self.prefix + key)
