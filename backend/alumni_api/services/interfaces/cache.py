"""
Cache backend interface.
Lets the services evict and read cache entries without knowing about Redis.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheBackend(ABC):
    """
    Interface for the read cache.

    Implementations:
    - RedisCache: redis.asyncio client, JSON values, SCAN-based pattern delete
    - NullCache: caching disabled; every read misses, every write is a no-op

    Implementations never raise on backend failures; a broken cache degrades
    to a miss.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value or None on miss."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a JSON-serializable value."""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete exact keys. Returns the number deleted."""

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number deleted."""
