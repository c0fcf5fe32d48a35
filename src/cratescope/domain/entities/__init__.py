"""Domain entities."""

from cratescope.domain.entities.collection import (
    CollectionItem,
    CollectionStats,
    CommunityCounts,
    EnrichmentCheckpoint,
    EnrichmentProgress,
    EnrichmentState,
    rarity_score,
)

__all__ = [
    "CollectionItem",
    "CollectionStats",
    "CommunityCounts",
    "EnrichmentCheckpoint",
    "EnrichmentProgress",
    "EnrichmentState",
    "rarity_score",
]
