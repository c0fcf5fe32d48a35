"""Caching layer - process-local caches for reducing Discogs API calls."""

from cratescope.application.cache.base_cache import BaseCache, CacheEntry, InMemoryCache

__all__ = [
    "BaseCache",
    "CacheEntry",
    "InMemoryCache",
]
