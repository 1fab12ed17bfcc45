"""Cache factory.

Provides get_cache() / set_cache() to swap implementations:
- MemoryCache for development and testing
- RedisCache when MARKETPLACE_REDIS_URL is configured
"""

from marketplace.cache.memory_adapter import MemoryCache
from marketplace.cache.port import Cache
from marketplace.config import get_settings

_current_cache: Cache | None = None


def get_cache() -> Cache:
    """Return the current cache. Defaults to Redis when configured, else memory."""
    global _current_cache
    if _current_cache is None:
        settings = get_settings()
        if settings.redis_url:
            from marketplace.cache.redis_adapter import RedisCache

            _current_cache = RedisCache(settings.redis_url)
        else:
            _current_cache = MemoryCache()
    return _current_cache


def set_cache(cache: Cache) -> None:
    """Override the active cache (useful for tests)."""
    global _current_cache
    _current_cache = cache


def reset_cache() -> None:
    """Reset to default cache."""
    global _current_cache
    _current_cache = None
