"""Tests for the in-memory TTL cache."""

import pytest

from cratescope.application.cache import CacheEntry, InMemoryCache


@pytest.fixture
def cache(fake_clock) -> InMemoryCache[str, str]:
    """Cache with a 10s default TTL on the fake clock."""
    return InMemoryCache(default_ttl_seconds=10, clock=fake_clock)


class TestCacheEntry:
    """Test CacheEntry expiry."""

    def test_valid_before_ttl(self) -> None:
        """Entry is valid while age < ttl."""
        entry = CacheEntry(value="x", fetched_at=100.0, ttl_seconds=10)

        assert entry.is_expired(109.9) is False

    def test_expired_at_exactly_ttl(self) -> None:
        """Age == ttl already counts as stale."""
        entry = CacheEntry(value="x", fetched_at=100.0, ttl_seconds=10)

        assert entry.is_expired(110.0) is True


class TestInMemoryCache:
    """Test InMemoryCache."""

    async def test_set_and_get(self, cache: InMemoryCache[str, str]) -> None:
        """Stored values come back."""
        await cache.set("user", "value")

        assert await cache.get("user") == "value"
        assert await cache.exists("user") is True

    async def test_missing_key(self, cache: InMemoryCache[str, str]) -> None:
        """Unknown keys return None."""
        assert await cache.get("nope") is None
        assert await cache.exists("nope") is False

    async def test_default_ttl_expiry(self, cache: InMemoryCache[str, str], fake_clock) -> None:
        """Entries vanish once the default TTL elapsed."""
        await cache.set("user", "value")
        fake_clock.now = 9.0
        assert await cache.get("user") == "value"

        fake_clock.now = 10.0
        assert await cache.get("user") is None

    async def test_per_entry_ttl(self, cache: InMemoryCache[str, str], fake_clock) -> None:
        """An explicit ttl_seconds overrides the default."""
        await cache.set("short", "value", ttl_seconds=2)
        fake_clock.now = 3.0

        assert await cache.get("short") is None

    async def test_set_overwrites_and_restarts_ttl(
        self, cache: InMemoryCache[str, str], fake_clock
    ) -> None:
        """Re-setting a key replaces the value and its fetched_at."""
        await cache.set("user", "old")
        fake_clock.now = 8.0
        await cache.set("user", "new")
        fake_clock.now = 15.0

        assert await cache.get("user") == "new"

    async def test_delete(self, cache: InMemoryCache[str, str]) -> None:
        """delete() reports whether something was removed."""
        await cache.set("user", "value")

        assert await cache.delete("user") is True
        assert await cache.delete("user") is False
        assert await cache.get("user") is None

    async def test_clear(self, cache: InMemoryCache[str, str]) -> None:
        """clear() empties everything."""
        await cache.set("a", "1")
        await cache.set("b", "2")

        await cache.clear()

        assert cache.get_stats()["total_entries"] == 0

    async def test_get_stats(self, cache: InMemoryCache[str, str], fake_clock) -> None:
        """Expired entries are counted until a get() drops them."""
        await cache.set("fresh", "1", ttl_seconds=100)
        await cache.set("stale", "2", ttl_seconds=1)
        fake_clock.now = 5.0

        stats = cache.get_stats()

        assert stats == {"total_entries": 2, "active_entries": 1, "expired_entries": 1}

        await cache.get("stale")
        assert cache.get_stats()["total_entries"] == 1
