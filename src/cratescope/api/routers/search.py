"""Catalog search endpoint."""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from cratescope.api.dependencies import get_search_service
from cratescope.application.services import SearchFilters, SearchService

logger = logging.getLogger(__name__)

router = APIRouter()


class SearchRequest(BaseModel):
    """Search filters. Everything is optional, genre defaults to Rock."""

    genre: str | None = None
    style: str | None = None
    format: str | None = None
    country: str | None = None
    year_min: int | None = Field(default=None, ge=0)
    year_max: int | None = Field(default=None, ge=0)
    artist: str | None = None
    album: str | None = None
    seed: int | None = Field(
        default=None, ge=0, description="Fix the result sampling (random when omitted)"
    )

    def to_filters(self) -> SearchFilters:
        """Convert to service filters (seed is passed separately)."""
        return SearchFilters(**self.model_dump(exclude={"seed"}))


class SearchResultModel(BaseModel):
    """One search hit."""

    id: str
    title: str
    artist: str
    year: str
    genre: str
    style: str
    format: str
    country: str
    cover_image: str
    total_results: int = Field(description="Total hits Discogs reported for the query")
    rank: int


class SearchResponse(BaseModel):
    """Search results plus which fallback produced them."""

    success: bool
    results: list[SearchResultModel] = Field(default_factory=list)
    total_found: int = 0
    simplified: bool = Field(default=False, description="Only the genre filter was used")
    last_resort: bool = Field(default=False, description="Fell back to the default genre")
    emergency: bool = Field(default=False, description="Timed out, emergency search results")
    message: str | None = None


@router.post("/search", response_model=SearchResponse)
async def search_catalog(
    body: SearchRequest,
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    """Search Discogs releases, relaxing the filters when nothing matches."""
    outcome = await service.search(body.to_filters(), seed=body.seed)
    return SearchResponse(
        success=bool(outcome.results),
        results=[SearchResultModel(**asdict(result)) for result in outcome.results],
        total_found=outcome.total_found,
        simplified=outcome.simplified,
        last_resort=outcome.last_resort,
        emergency=outcome.emergency,
        message=outcome.message,
    )
