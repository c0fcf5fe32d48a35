"""Application services."""

from cratescope.application.services.collection_service import CollectionService
from cratescope.application.services.discogs_auth_service import DiscogsAuthService
from cratescope.application.services.search_service import (
    SearchFilters,
    SearchOutcome,
    SearchResult,
    SearchService,
    SeededRandom,
)
from cratescope.application.services.stats_service import StatsAggregator

__all__ = [
    "CollectionService",
    "DiscogsAuthService",
    "SearchFilters",
    "SearchOutcome",
    "SearchResult",
    "SearchService",
    "SeededRandom",
    "StatsAggregator",
]
