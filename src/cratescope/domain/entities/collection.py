"""Collection entities: releases with community counts and derived statistics."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def rarity_score(have: int, want: int) -> float:
    """Want/have ratio. Treated as 0 when nobody has the release."""
    return want / have if have > 0 else 0.0


@dataclass(frozen=True)
class CommunityCounts:
    """Community have/want counts for one release. Shared through the detail cache."""

    have: int = 0
    want: int = 0

    @property
    def rarity_score(self) -> float:
        """Want/have ratio for these counts."""
        return rarity_score(self.have, self.want)

    @classmethod
    def from_release(cls, release: dict[str, Any]) -> "CommunityCounts":
        """Extract counts from a Discogs /releases/{id} payload."""
        community = release.get("community") or {}
        return cls(
            have=int(community.get("have") or 0),
            want=int(community.get("want") or 0),
        )


@dataclass
class CollectionItem:
    """One release in a user's collection.

    Hey future me - have_count/want_count/rarity_score start at 0 and get filled
    in by the enrichment batches. ALWAYS go through apply_counts() so the rarity
    invariant (want/have, or 0 when have == 0) can't drift. Zero counts are
    ambiguous on purpose: "nobody has/wants it" and "detail fetch failed" look
    identical here.
    """

    id: str
    title: str
    artist: str
    year: str
    formats: list[str] = field(default_factory=list)
    cover_image: str = ""
    have_count: int = 0
    want_count: int = 0
    rarity_score: float = 0.0

    def apply_counts(self, counts: CommunityCounts) -> None:
        """Update counts in place and recompute the rarity score."""
        self.have_count = counts.have
        self.want_count = counts.want
        self.rarity_score = counts.rarity_score

    @property
    def collectibility(self) -> int:
        """Favours releases that are both widely owned and widely wanted."""
        return self.have_count * self.want_count

    @classmethod
    def from_collection_release(cls, release: dict[str, Any]) -> "CollectionItem":
        """Build an item from one entry of the collection releases listing."""
        info = release.get("basic_information") or {}
        artists = info.get("artists") or []
        year = info.get("year")
        release_id = release.get("id")
        if release_id is None:
            release_id = info.get("id")
        return cls(
            id=str(release_id) if release_id is not None else "",
            title=info.get("title") or "Unknown",
            artist=(artists[0].get("name") if artists else None) or "Unknown",
            year=str(year) if year else "",
            formats=[f.get("name", "") for f in info.get("formats") or []],
            cover_image=info.get("cover_image") or "",
        )


@dataclass
class CollectionStats:
    """Derived statistics over a list of collection items. Never persisted."""

    total_releases: int = 0
    average_rarity_score: float = 0.0
    rarest_items: list[CollectionItem] = field(default_factory=list)
    most_common_items: list[CollectionItem] = field(default_factory=list)
    fewest_haves: list[CollectionItem] = field(default_factory=list)
    most_wanted: list[CollectionItem] = field(default_factory=list)
    most_collectible: list[CollectionItem] = field(default_factory=list)


class EnrichmentState(str, Enum):
    """Lifecycle of one collection fetch."""

    NOT_STARTED = "not_started"
    FETCHING_BULK_LIST = "fetching_bulk_list"
    ENRICHING_BATCHES = "enriching_batches"
    PARTIALLY_FAILED = "partially_failed"
    COMPLETE = "complete"


@dataclass
class EnrichmentProgress:
    """Snapshot of where a collection fetch currently is."""

    state: EnrichmentState = EnrichmentState.NOT_STARTED
    batch_index: int = 0
    batch_count: int = 0
    failed_batches: int = 0


@dataclass
class EnrichmentCheckpoint:
    """Partial progress saved after each batch.

    items holds the whole converted listing; the first `completed` of them
    already carry their community counts.
    """

    items: list[CollectionItem]
    completed: int = 0
