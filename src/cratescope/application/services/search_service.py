"""Catalog search with filter fallbacks and seeded result sampling.

Hey future me - Discogs search is picky: a very specific filter combo often
returns nothing. So we try three times, getting less specific each time:

1. All filters the user set
2. Genre only ("simplified")
3. Plain "Rock" ("last_resort")

If any of those times out we give it ONE more go with plain "Rock" ("emergency")
and show the first 10 hits. Every attempt costs a rate-limited API call, so
worst case a search is 4 calls.

Variety: the same query should not show the same 10 records every time. A
seed picks the result page (1-5) and drives a tiny LCG that samples 5 of the
top 20 plus 5 of the rest. Same seed = same picks, which is what tests use.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any

from cratescope.domain.exceptions import CatalogTimeoutError
from cratescope.domain.value_objects.catalog_taxonomy import DEFAULT_GENRE
from cratescope.infrastructure.integrations.discogs_client import DiscogsClient

logger = logging.getLogger(__name__)

PER_PAGE = 50
PAGE_SPREAD = 5
SAMPLE_THRESHOLD = 10  # Sample only when MORE results than this come back
TOP_POOL_SIZE = 20
PICKS_PER_POOL = 5
MAX_SEED = 1_000_000
EMERGENCY_LIMIT = 10


class SeededRandom:
    """Linear congruential generator with an explicit seed.

    Not for anything security related - it only shuffles search results.
    """

    MODULUS = 2147483647
    MULTIPLIER = 1664525
    INCREMENT = 1013904223

    def __init__(self, seed: int) -> None:
        self.seed = seed

    def random(self) -> float:
        """Next float in [0, 1)."""
        self.seed = (self.seed * self.MULTIPLIER + self.INCREMENT) % self.MODULUS
        return self.seed / self.MODULUS


@dataclass
class SearchFilters:
    """Search criteria. Empty strings and None mean "not set"."""

    genre: str | None = None
    style: str | None = None
    format: str | None = None
    country: str | None = None
    year_min: int | None = None
    year_max: int | None = None
    artist: str | None = None
    album: str | None = None

    def genre_only(self) -> "SearchFilters":
        """Same genre, everything else dropped."""
        return SearchFilters(genre=self.genre)


@dataclass
class SearchResult:
    """One release as shown in the search results list."""

    id: str
    title: str
    artist: str
    year: str
    genre: str
    style: str
    format: str
    country: str
    cover_image: str
    total_results: int
    rank: int


@dataclass
class SearchOutcome:
    """Results plus which fallback step produced them."""

    results: list[SearchResult] = field(default_factory=list)
    simplified: bool = False
    last_resort: bool = False
    emergency: bool = False
    message: str | None = None

    @property
    def total_found(self) -> int:
        """Number of results returned (after sampling)."""
        return len(self.results)


def _is_set(value: str | None) -> bool:
    return bool(value and value.strip())


def build_search_params(filters: SearchFilters, seed: int) -> dict[str, Any]:
    """Translate filters into /database/search query parameters.

    Args:
        filters: Search criteria
        seed: Picks the result page (seed % 5 + 1)

    Returns:
        Query params dict, unset filters omitted
    """
    params: dict[str, Any] = {
        "type": "release",
        "per_page": PER_PAGE,
        "genre": filters.genre if _is_set(filters.genre) else DEFAULT_GENRE,
    }
    if _is_set(filters.style):
        params["style"] = filters.style
    if _is_set(filters.format):
        params["format"] = filters.format
    if _is_set(filters.country):
        params["country"] = filters.country
    if _is_set(filters.artist):
        params["artist"] = filters.artist
    if _is_set(filters.album):
        params["release_title"] = filters.album
    # Year range only when BOTH ends are there and in the right order
    if filters.year_min and filters.year_max and filters.year_max >= filters.year_min:
        params["year"] = f"{filters.year_min}-{filters.year_max}"
    params["page"] = seed % PAGE_SPREAD + 1
    return params


def _take(pool: list[dict[str, Any]], count: int, rng: SeededRandom) -> list[dict[str, Any]]:
    """Pop `count` random entries out of pool (mutates pool)."""
    picked = []
    for _ in range(min(count, len(pool))):
        picked.append(pool.pop(int(rng.random() * len(pool))))
    return picked


def select_diverse(results: list[dict[str, Any]], seed: int) -> list[dict[str, Any]]:
    """Sample 5 from the top 20 and 5 from the rest; small result sets pass through."""
    if len(results) <= SAMPLE_THRESHOLD:
        return list(results)

    rng = SeededRandom(seed)
    selected = _take(results[:TOP_POOL_SIZE], PICKS_PER_POOL, rng)
    if len(results) > TOP_POOL_SIZE:
        selected += _take(results[TOP_POOL_SIZE:], PICKS_PER_POOL, rng)
    return selected


def to_search_result(item: dict[str, Any], rank: int, total_results: int) -> SearchResult:
    """Convert a raw search hit. Titles look like "Artist - Title"."""
    raw_title = item.get("title") or ""
    artist, title = "", raw_title
    if " - " in raw_title:
        artist, _, title = raw_title.partition(" - ")

    def first(value: Any) -> str:
        if isinstance(value, list):
            return str(value[0]) if value else ""
        return str(value or "")

    return SearchResult(
        id=str(item["id"]) if item.get("id") is not None else "",
        title=title,
        artist=artist,
        year=str(item.get("year") or ""),
        genre=first(item.get("genre")),
        style=first(item.get("style")),
        format=first(item.get("format")),
        country=item.get("country") or "",
        cover_image=item.get("thumb") or item.get("cover_image") or "",
        total_results=total_results,
        rank=rank,
    )


class SearchService:
    """Runs catalog searches through the (rate limited) Discogs client."""

    def __init__(self, client: DiscogsClient) -> None:
        self._client = client

    async def search(self, filters: SearchFilters, seed: int | None = None) -> SearchOutcome:
        """Search with the full -> genre-only -> Rock fallback chain.

        A timeout anywhere in the chain triggers one emergency Rock search
        whose first 10 hits are returned with ``emergency=True``.

        Args:
            filters: Search criteria
            seed: Variation seed; random when omitted

        Returns:
            SearchOutcome, empty results only if all three attempts came back empty

        Raises:
            CatalogTimeoutError: The emergency search timed out too, or found nothing
            RateLimitExceeded, UpstreamError: A search call failed
        """
        if seed is None:
            seed = random.randrange(MAX_SEED)
        logger.debug("Searching with seed %d: %s", seed, filters)

        try:
            return await self._search_with_fallbacks(filters, seed)
        except CatalogTimeoutError as e:
            logger.warning(
                "Search timed out (%s), attempting emergency %s search", e.message, DEFAULT_GENRE
            )
            results = await self._search_once(SearchFilters(genre=DEFAULT_GENRE), seed)
            if not results:
                raise
            return SearchOutcome(
                results=results[:EMERGENCY_LIMIT],
                emergency=True,
                message="Search timed out, but we found some records for you anyway.",
            )

    async def _search_with_fallbacks(self, filters: SearchFilters, seed: int) -> SearchOutcome:
        results = await self._search_once(filters, seed)
        if results:
            return SearchOutcome(results=results)

        logger.info("No results with full filters, retrying with genre only")
        results = await self._search_once(filters.genre_only(), seed)
        if results:
            return SearchOutcome(
                results=results,
                simplified=True,
                message=(
                    "Showing simplified results. Try different search criteria "
                    "for more specific matches."
                ),
            )

        logger.info("No results with genre only, falling back to %s", DEFAULT_GENRE)
        results = await self._search_once(SearchFilters(genre=DEFAULT_GENRE), seed)
        if results:
            return SearchOutcome(
                results=results,
                last_resort=True,
                message=(
                    f"No matches found for your criteria. Showing some "
                    f"{DEFAULT_GENRE} records instead."
                ),
            )

        return SearchOutcome(message="No results found after multiple search attempts")

    async def _search_once(self, filters: SearchFilters, seed: int) -> list[SearchResult]:
        data = await self._client.search_database(build_search_params(filters, seed))
        hits = data.get("results")
        if not isinstance(hits, list) or not hits:
            return []

        total = (data.get("pagination") or {}).get("items") or len(hits)
        selected = select_diverse(hits, seed)
        logger.debug("Selected %d of %d search hits", len(selected), len(hits))
        return [
            to_search_result(item, rank=index + 1, total_results=total)
            for index, item in enumerate(selected)
        ]
