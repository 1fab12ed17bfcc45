import pytest

from marketplace.cache.memory_adapter import MemoryCache
from marketplace.cache.port import CacheError


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestMemoryCache:
    def test_set_and_get(self):
        cache = MemoryCache()
        cache.set("k", b"v", ttl=60)
        assert cache.get("k") == b"v"

    def test_miss(self):
        assert MemoryCache().get("missing") is None

    def test_entry_expires(self):
        clock = _Clock()
        cache = MemoryCache(clock=clock)
        cache.set("k", b"v", ttl=60)

        clock.now += 59
        assert cache.get("k") == b"v"
        clock.now += 1
        assert cache.get("k") is None
        assert cache.keys() == []

    def test_delete_missing_key(self):
        cache = MemoryCache()
        cache.delete("missing")
        assert cache.keys() == []

    def test_configured_failure(self):
        cache = MemoryCache()
        cache.configure(should_fail=True)
        with pytest.raises(CacheError):
            cache.get("k")

    def test_incr_counts_from_one(self):
        cache = MemoryCache()
        assert cache.incr("k", ttl=60) == 1
        assert cache.incr("k", ttl=60) == 2
        assert cache.get("k") == b"2"

    def test_incr_restarts_after_expiry(self):
        clock = _Clock()
        cache = MemoryCache(clock=clock)
        cache.incr("k", ttl=60)
        clock.now += 60
        assert cache.incr("k", ttl=60) == 1

    def test_reads_leave_no_trace(self):
        cache = MemoryCache()
        for _ in range(100):
            cache.get("k")
        assert vars(cache).keys() == {"_clock", "_entries", "_lock", "should_fail"}
