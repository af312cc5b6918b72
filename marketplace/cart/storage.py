"""Durable key-value storage for the cart snapshot."""
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

from marketplace.db import get_redis, StorageKeys

__all__ = ["PersistentStore", "RedisStore", "InMemoryStore", "StorageKeys"]


@runtime_checkable
class PersistentStore(Protocol):
    """Async string key-value store. `set` may raise on storage failure."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class RedisStore:
    """PersistentStore over the Upstash Redis REST client."""

    def __init__(self, redis=None):
        self._redis = redis  # Lazy initialization

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        value = await self.redis.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    async def set(self, key: str, value: str) -> None:
        # No TTL: the cart outlives the session
        await self.redis.set(key, value)


class InMemoryStore:
    """Dict-backed PersistentStore; keeps every write for inspection."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self.writes: List[Tuple[str, str]] = []

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value
        self.writes.append((key, value))
