from typing import Any, Protocol, runtime_checkable

@runtime_checkable
class CachePort(Protocol):
    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None: ...
    async def invalidate(self, key: str) -> None: ...
