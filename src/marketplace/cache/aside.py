"""Cache-aside helpers: read-through on queries, invalidate after writes.

The cache is never authoritative. Every failure is logged as a warning and
falls through to the store (reads) or is skipped (invalidation); a request
never fails because of the cache. Values are stored as JSON, so a hit and a
fresh load return the same shape.

Each key carries a generation counter that ``invalidate`` bumps before it
deletes the entry. A read stores what it loaded only if the generation is
unchanged since before the load, so a write that lands while a reader is
loading is not overwritten by the reader's older snapshot.
"""

import json
from collections.abc import Callable
from typing import Any

import structlog

from marketplace.cache import get_cache
from marketplace.cache.keys import CacheKey
from marketplace.cache.port import Cache, CacheError

logger = structlog.get_logger(__name__)

# Outlives any entry TTL, so a bump stays visible to slow readers.
GENERATION_TTL = 3600


def to_cacheable(value: Any) -> Any:
    """Normalize a read model into plain JSON types (datetimes become strings)."""
    return json.loads(json.dumps(value, default=str))


def generation_key(rendered: str) -> str:
    return f"{rendered}:generation"


def _generation(cache: Cache, rendered: str) -> bytes:
    return cache.get(generation_key(rendered)) or b"0"


def read_through(key: CacheKey, loader: Callable[[], Any], ttl: int) -> Any:
    """Return the cached value for ``key``, loading and storing it on a miss."""
    cache = get_cache()
    rendered = key.render()

    try:
        cached = cache.get(rendered)
    except CacheError as exc:
        logger.warning("cache_read_failed", key=rendered, error=str(exc))
        cached = None

    if cached is not None:
        try:
            return json.loads(cached)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=rendered)

    try:
        before = _generation(cache, rendered)
    except CacheError as exc:
        logger.warning("cache_read_failed", key=generation_key(rendered), error=str(exc))
        before = None

    value = to_cacheable(loader())

    # Without a generation to compare against, storing could resurrect stale data.
    if before is None:
        return value

    try:
        if _generation(cache, rendered) != before:
            logger.info("cache_write_skipped", key=rendered, reason="invalidated during load")
            return value
        cache.set(rendered, json.dumps(value).encode("utf-8"), ttl)
    except CacheError as exc:
        logger.warning("cache_write_failed", key=rendered, error=str(exc))

    return value


def invalidate(*keys: CacheKey) -> None:
    """Bump each key's generation, then delete it.

    Failures are logged and the remaining keys still attempted.
    """
    cache = get_cache()
    for key in keys:
        rendered = key.render()
        try:
            cache.incr(generation_key(rendered), GENERATION_TTL)
        except CacheError as exc:
            logger.warning("cache_generation_bump_failed", key=rendered, error=str(exc))
        try:
            cache.delete(rendered)
        except CacheError as exc:
            logger.warning("cache_invalidate_failed", key=rendered, error=str(exc))
