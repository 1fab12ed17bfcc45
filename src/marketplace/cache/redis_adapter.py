"""Redis-backed cache adapter.

Socket and connect timeouts are bounded so a slow cache degrades into a miss
rather than a stalled request. Redis errors are wrapped as ``CacheError``.
"""

import redis

from marketplace.cache.port import Cache, CacheError


class RedisCache(Cache):
    def __init__(self, url: str, timeout: float = 2.0) -> None:
        self._client = redis.Redis.from_url(
            url,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )

    def get(self, key: str) -> bytes | None:
        try:
            return self._client.get(key)
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc

    def set(self, key: str, value: bytes, ttl: int) -> None:
        try:
            self._client.set(key, value, ex=ttl)
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc

    def incr(self, key: str, ttl: int) -> int:
        try:
            pipe = self._client.pipeline()
            pipe.incr(key)
            pipe.expire(key, ttl)
            value, _ = pipe.execute()
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc
        return int(value)
