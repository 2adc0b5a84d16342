import time
from typing import Any, Callable
from app.platform.ports.cache import CachePort

class MemoryCache(CachePort):
    """Dict-backed cache with per-key TTL. Meant to live for one sync run."""

    def __init__(self, default_ttl_seconds: int = 300, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl_seconds
        self.clock = clock
        self._data: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str) -> Any | None:
        hit = self._data.get(key)
        if hit is None:
            return None
        expires_at, value = hit
        if expires_at <= self.clock():
            self._data.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        self._data[key] = (self.clock() + ttl, value)

    async def invalidate(self, key: str) -> None:
        self._data.pop(key, None)
