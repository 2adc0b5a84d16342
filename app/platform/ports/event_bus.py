from typing import Protocol, runtime_checkable

@runtime_checkable
class EventBusPort(Protocol):
    """Outbound notifications such as `growth.sync.completed`. Fire and forget."""
    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None: ...
