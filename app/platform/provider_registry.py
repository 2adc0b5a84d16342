from app.core.config import settings
from app.platform.ports.event_bus import EventBusPort
from app.platform.adapters.bus_noop import NoopEventBus
from app.platform.adapters.bus_redis import RedisEventBus
from app.platform.ports.cache import CachePort
from app.platform.adapters.cache_noop import NoopCache
from app.platform.adapters.cache_memory import MemoryCache
from app.platform.adapters.cache_redis import RedisCache

class ProviderRegistry:
    _event_bus: EventBusPort | None = None
    _shared_cache: CachePort | None = None

    @classmethod
    def event_bus(cls) -> EventBusPort:
        if cls._event_bus is None:
            prov = (settings.EVENT_BUS_PROVIDER or "noop").lower()
            if prov == "redis":
                cls._event_bus = RedisEventBus()
            else:
                cls._event_bus = NoopEventBus()
        return cls._event_bus

    @classmethod
    def cache(cls) -> CachePort:
        """Cache for one sync run. Memory caches are never shared between runs."""
        prov = (settings.CACHE_PROVIDER or "memory").lower()
        if prov == "memory":
            return MemoryCache(default_ttl_seconds=settings.CACHE_TTL_SECONDS)
        if cls._shared_cache is None:
            cls._shared_cache = RedisCache() if prov == "redis" else NoopCache()
        return cls._shared_cache

    @classmethod
    def reset(cls) -> None:
        cls._event_bus = None
        cls._shared_cache = None

registry = ProviderRegistry()
