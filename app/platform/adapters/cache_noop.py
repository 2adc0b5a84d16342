from typing import Any
from app.platform.ports.cache import CachePort

class NoopCache(CachePort):
    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        return None

    async def invalidate(self, key: str) -> None:
        return None
