"""In-process cache with TTL expiry, for development and testing.

Can be configured to fail, so tests can show that cache errors fall through
to the stores instead of failing the request.
"""

import threading
import time

from marketplace.cache.port import Cache, CacheError


class MemoryCache(Cache):
    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float]] = {}
        self._lock = threading.Lock()
        self.should_fail: bool = False

    def configure(self, should_fail: bool) -> None:
        """Configure cache behavior at runtime."""
        self.should_fail = should_fail

    def _check(self, method: str, key: str) -> None:
        if self.should_fail:
            raise CacheError(f"cache unavailable during {method} of {key}")

    def _live(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    def get(self, key: str) -> bytes | None:
        self._check("get", key)
        with self._lock:
            return self._live(key)

    def set(self, key: str, value: bytes, ttl: int) -> None:
        self._check("set", key)
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        self._check("delete", key)
        with self._lock:
            self._entries.pop(key, None)

    def incr(self, key: str, ttl: int) -> int:
        self._check("incr", key)
        with self._lock:
            current = self._live(key)
            value = int(current) + 1 if current is not None else 1
            self._entries[key] = (str(value).encode("utf-8"), self._clock() + ttl)
            return value

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)
