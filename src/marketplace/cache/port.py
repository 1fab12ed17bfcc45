"""Abstract port for the key-value cache used by order and report reads."""

from abc import ABC, abstractmethod


class CacheError(Exception):
    """The cache backend failed. Callers treat this as a miss, never as fatal."""


class Cache(ABC):
    """Byte-oriented key-value store with per-entry TTL."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the stored value, or None on a miss."""

    @abstractmethod
    def set(self, key: str, value: bytes, ttl: int) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; deleting a missing key is not an error."""

    @abstractmethod
    def incr(self, key: str, ttl: int) -> int:
        """Atomically add one to the counter at ``key`` and (re)arm its TTL."""
