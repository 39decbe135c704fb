"""Key/value cache backends with TTL.

Both backends store strings. The retrieval layer caches formatted context
blocks; the session store caches JSON-serialised session state.
"""

import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import structlog
from redis import asyncio as aioredis

logger = structlog.get_logger()


class CacheBackend(Protocol):
    """Protocol for the cache collaborator. TTL expiry is best-effort."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class MemoryCache:
    """In-process cache with TTL expiry.

    Used when no Redis URL is configured, and in tests. ``clock`` can be
    swapped to simulate the passage of time. Expired entries are dropped
    when read, and writes sweep the whole table at most once per
    ``sweep_interval`` seconds so keys that are never read again still go.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval
        self._entries: Dict[str, Tuple[str, Optional[float]]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self.purge_expired()
        expires_at = now + ttl_seconds if ttl_seconds else None
        self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [
            key
            for key, (_, expires_at) in self._entries.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug("Expired cache entries purged", count=len(expired), remaining=len(self._entries))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache:
    """Cache backed by Redis (``redis.asyncio``)."""

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        """Create a cache from a ``redis://`` URL with string decoding."""
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Optional[str]:
        value = await self._client.get(key)
        if value is None:
            return None
        return value if isinstance(value, str) else value.decode()

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        if ttl_seconds:
            await self._client.set(key, value, ex=ttl_seconds)
        else:
            await self._client.set(key, value)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()
        logger.debug("Redis cache closed")
