"""Base cache interface and in-memory implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

K = TypeVar("K")  # Key type
V = TypeVar("V")  # Value type


@dataclass
class CacheEntry(Generic[V]):
    """Cache entry with value and metadata."""

    value: V
    fetched_at: float
    ttl_seconds: float

    # Hey future me, an entry is valid while (now - fetched_at) < ttl. Strictly less: at
    # EXACTLY ttl seconds it's stale. `now` comes from the owning cache's clock so tests can
    # move time forward without sleeping.
    def is_expired(self, now: float) -> bool:
        """Check if cache entry is expired."""
        return now - self.fetched_at >= self.ttl_seconds


class BaseCache(ABC, Generic[K, V]):
    """Base cache interface for all cache implementations."""

    @abstractmethod
    async def get(self, key: K) -> V | None:
        """Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V, ttl_seconds: float | None = None) -> None:
        """Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Time to live in seconds, cache default when omitted
        """
        pass

    @abstractmethod
    async def delete(self, key: K) -> bool:
        """Delete value from cache.

        Args:
            key: Cache key

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Clear all entries from cache."""
        pass

    @abstractmethod
    async def exists(self, key: K) -> bool:
        """Check if key exists in cache.

        Args:
            key: Cache key

        Returns:
            True if key exists and not expired
        """
        pass


class InMemoryCache(BaseCache[K, V]):
    """In-memory cache implementation using dictionary.

    Process-local only: restart = empty cache, and several workers each get
    their own copy. There is no background sweeper - stale entries just sit
    there until the next get() for that key drops them.
    """

    # Listen up future me, one instance per CONCERN (collections, checkpoints, release
    # details), all created in the lifespan and shared via app.state. The default TTL is set
    # per instance so callers don't have to repeat it on every set().
    def __init__(
        self,
        default_ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize in-memory cache.

        Args:
            default_ttl_seconds: TTL used when set() gets none
            clock: Time source (monotonic, injectable for tests)
        """
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._cache: dict[K, CacheEntry[V]] = {}
        self._lock = asyncio.Lock()

    # Yo, get() deletes an expired entry when it finds one, so it has a side effect. Returns
    # None for both "not found" and "found but expired" - caller can't tell the difference.
    async def get(self, key: K) -> V | None:
        """Get value from cache."""
        async with self._lock:
            entry = self._cache.get(key)
            if not entry:
                return None

            if entry.is_expired(self._clock()):
                del self._cache[key]
                return None

            return entry.value

    # Hey, set() ALWAYS overwrites existing key without warning! fetched_at is NOW, so
    # re-setting a key also restarts its TTL.
    async def set(self, key: K, value: V, ttl_seconds: float | None = None) -> None:
        """Set value in cache."""
        async with self._lock:
            self._cache[key] = CacheEntry(
                value=value,
                fetched_at=self._clock(),
                ttl_seconds=(
                    ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
                ),
            )

    async def delete(self, key: K) -> bool:
        """Delete value from cache."""
        async with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    async def clear(self) -> None:
        """Clear all entries from cache."""
        async with self._lock:
            self._cache.clear()

    async def exists(self, key: K) -> bool:
        """Check if key exists in cache."""
        value = await self.get(key)
        return value is not None

    # Listen up, get_stats() is NOT locked and SYNCHRONOUS - it's for health checks only.
    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        now = self._clock()
        total_entries = len(self._cache)
        expired_entries = sum(
            1 for entry in self._cache.values() if entry.is_expired(now)
        )

        return {
            "total_entries": total_entries,
            "active_entries": total_entries - expired_entries,
            "expired_entries": expired_entries,
        }
