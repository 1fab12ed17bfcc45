import json
from datetime import UTC, datetime

import pytest
import redis

from marketplace.cache import get_cache, keys, reset_cache
from marketplace.cache.aside import invalidate, read_through
from marketplace.cache.memory_adapter import MemoryCache
from marketplace.cache.port import CacheError
from marketplace.cache.redis_adapter import RedisCache

KEY = keys.buyer_order_list("buyer-1")


class TestReadThrough:
    def test_miss_loads_and_stores(self, cache):
        loads = []

        def loader():
            loads.append(1)
            return [{"order_id": "ord-1"}]

        assert read_through(KEY, loader, ttl=60) == [{"order_id": "ord-1"}]
        assert read_through(KEY, loader, ttl=60) == [{"order_id": "ord-1"}]
        assert len(loads) == 1

    def test_hit_and_fresh_load_have_same_shape(self, cache):
        created = datetime(2024, 5, 1, tzinfo=UTC)
        fresh = read_through(KEY, lambda: {"created_at": created}, ttl=60)
        cached = read_through(KEY, lambda: {"created_at": created}, ttl=60)
        assert fresh == cached
        assert isinstance(fresh["created_at"], str)

    def test_cache_failure_falls_through(self, cache):
        cache.configure(should_fail=True)
        assert read_through(KEY, lambda: {"order_id": "ord-1"}, ttl=60) == {"order_id": "ord-1"}

    def test_corrupt_entry_reloaded(self, cache):
        cache.set(KEY.render(), b"{not json", ttl=60)
        assert read_through(KEY, lambda: {"order_id": "ord-1"}, ttl=60) == {"order_id": "ord-1"}
        assert json.loads(cache.get(KEY.render())) == {"order_id": "ord-1"}


class TestInvalidationDuringLoad:
    def test_value_loaded_before_a_write_is_not_stored(self, cache):
        def loader():
            snapshot = {"status": "PENDING"}
            invalidate(KEY)
            return snapshot

        assert read_through(KEY, loader, ttl=60) == {"status": "PENDING"}
        assert cache.get(KEY.render()) is None

        assert read_through(KEY, lambda: {"status": "PROCESSED"}, ttl=60) == {"status": "PROCESSED"}
        assert read_through(KEY, lambda: {"status": "stale"}, ttl=60) == {"status": "PROCESSED"}

    def test_invalidating_another_key_does_not_block_the_store(self, cache):
        def loader():
            invalidate(keys.seller_order_list("seller-a"))
            return []

        read_through(KEY, loader, ttl=60)
        assert cache.get(KEY.render()) == b"[]"

    def test_unreadable_generation_skips_the_store(self, cache):
        class _GenerationDown(MemoryCache):
            def get(self, key):
                if key.endswith(":generation"):
                    raise CacheError("generation unavailable")
                return super().get(key)

        from marketplace.cache import set_cache

        flaky = _GenerationDown()
        set_cache(flaky)
        assert read_through(KEY, lambda: {"order_id": "ord-1"}, ttl=60) == {"order_id": "ord-1"}
        assert flaky.get(KEY.render()) is None


class TestInvalidate:
    def test_deletes_every_key(self, cache):
        other = keys.seller_order_list("seller-a")
        cache.set(KEY.render(), b"[]", ttl=60)
        cache.set(other.render(), b"[]", ttl=60)

        invalidate(KEY, other)

        assert cache.get(KEY.render()) is None
        assert cache.get(other.render()) is None

    def test_failure_is_not_raised(self, cache):
        cache.set(KEY.render(), b"[]", ttl=60)
        cache.configure(should_fail=True)
        invalidate(KEY)
        assert cache.methods[-2:] == ["incr", "delete"]


class TestCacheRegistry:
    def test_memory_by_default(self):
        reset_cache()
        assert isinstance(get_cache(), MemoryCache)

    def test_redis_when_configured(self, monkeypatch):
        from marketplace.config import get_settings

        monkeypatch.setenv("MARKETPLACE_REDIS_URL", "redis://localhost:6379/0")
        get_settings.cache_clear()
        reset_cache()
        assert isinstance(get_cache(), RedisCache)


class TestRedisCache:
    class _DownClient:
        def get(self, key):
            raise redis.ConnectionError("connection refused")

        def set(self, key, value, ex=None):
            raise redis.TimeoutError("timed out")

        def delete(self, key):
            raise redis.ConnectionError("connection refused")

        def pipeline(self):
            return TestRedisCache._DownPipeline()

    class _DownPipeline:
        def incr(self, key):
            return self

        def expire(self, key, ttl):
            return self

        def execute(self):
            raise redis.ConnectionError("connection refused")

    @pytest.fixture()
    def redis_cache(self):
        cache = RedisCache("redis://localhost:6379/0")
        cache._client = self._DownClient()
        return cache

    def test_errors_wrapped(self, redis_cache):
        with pytest.raises(CacheError):
            redis_cache.get("k")
        with pytest.raises(CacheError):
            redis_cache.set("k", b"v", 60)
        with pytest.raises(CacheError):
            redis_cache.delete("k")
        with pytest.raises(CacheError):
            redis_cache.incr("k:generation", 60)

    def test_unreachable_redis_falls_through(self, redis_cache):
        from marketplace.cache import set_cache

        set_cache(redis_cache)
        assert read_through(KEY, lambda: {"order_id": "ord-1"}, ttl=60) == {"order_id": "ord-1"}
