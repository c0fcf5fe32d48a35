"""Collection endpoints: enriched collection, stats and single-release counts."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from cratescope.api.dependencies import (
    get_collection_service,
    get_settings,
    get_stats_aggregator,
)
from cratescope.application.services import CollectionService, StatsAggregator
from cratescope.config import Settings
from cratescope.domain.entities import EnrichmentState

logger = logging.getLogger(__name__)

router = APIRouter()


class CollectionItemModel(BaseModel):
    """One enriched release."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    artist: str
    year: str
    formats: list[str] = Field(default_factory=list)
    cover_image: str = ""
    have_count: int = 0
    want_count: int = 0
    rarity_score: float = Field(default=0.0, description="want / have, 0 if have == 0")


class CollectionStatsModel(BaseModel):
    """Top-N breakdowns over the collection."""

    model_config = ConfigDict(from_attributes=True)

    total_releases: int = 0
    average_rarity_score: float = 0.0
    rarest_items: list[CollectionItemModel] = Field(default_factory=list)
    most_common_items: list[CollectionItemModel] = Field(default_factory=list)
    fewest_haves: list[CollectionItemModel] = Field(default_factory=list)
    most_wanted: list[CollectionItemModel] = Field(default_factory=list)
    most_collectible: list[CollectionItemModel] = Field(default_factory=list)


class CollectionResponse(BaseModel):
    """Collection plus stats."""

    releases: list[CollectionItemModel]
    stats: CollectionStatsModel
    limited_results: bool = Field(
        description="True when the item cap was hit and older releases were left out"
    )


class EnrichmentProgressModel(BaseModel):
    """Where a collection fetch currently is."""

    model_config = ConfigDict(from_attributes=True)

    state: EnrichmentState
    batch_index: int
    batch_count: int
    failed_batches: int


class CommunityModel(BaseModel):
    """Community counts block."""

    have: int
    want: int


class ReleaseCommunityResponse(BaseModel):
    """Community data for one release."""

    id: str
    community: CommunityModel
    rarity_score: float


def _require_username(username: str | None) -> str:
    if not username or not username.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Username is required"
        )
    return username.strip()


# Hey future me - the auth check (401) happens in the dependency chain BEFORE this body runs,
# so a missing cookie wins over a missing username, same order the frontend expects.
@router.get("/collection", response_model=CollectionResponse)
async def get_collection(
    username: str | None = None,
    service: CollectionService = Depends(get_collection_service),
    aggregator: StatsAggregator = Depends(get_stats_aggregator),
    settings: Settings = Depends(get_settings),
) -> CollectionResponse:
    """Fetch a user's collection with community counts and stats.

    Can take about a minute on a cold cache (one rate-limited call per release).
    """
    name = _require_username(username)
    items = await service.fetch_collection(name)
    stats = aggregator.aggregate(items)

    return CollectionResponse(
        releases=[CollectionItemModel.model_validate(item) for item in items],
        stats=CollectionStatsModel.model_validate(stats),
        limited_results=len(items) >= settings.collection.max_items,
    )


@router.get("/collection/progress", response_model=EnrichmentProgressModel)
async def get_collection_progress(
    username: str | None = None,
    service: CollectionService = Depends(get_collection_service),
) -> EnrichmentProgressModel:
    """Progress of the latest collection fetch for a user (poll while waiting)."""
    progress = service.progress(_require_username(username))
    return EnrichmentProgressModel.model_validate(progress)


@router.get("/release/{release_id}", response_model=ReleaseCommunityResponse)
async def get_release_community(
    release_id: str,
    service: CollectionService = Depends(get_collection_service),
) -> ReleaseCommunityResponse:
    """Community have/want counts for one release (cached for an hour)."""
    counts = await service.fetch_item_detail(release_id)
    return ReleaseCommunityResponse(
        id=release_id,
        community=CommunityModel(have=counts.have, want=counts.want),
        rarity_score=counts.rarity_score,
    )
