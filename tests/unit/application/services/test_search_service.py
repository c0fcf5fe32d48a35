"""Unit tests for SearchService and its helpers."""

from typing import Any
from unittest.mock import AsyncMock

import pytest

from cratescope.application.services.search_service import (
    SearchFilters,
    SearchService,
    SeededRandom,
    build_search_params,
    select_diverse,
    to_search_result,
)
from cratescope.domain.exceptions import CatalogTimeoutError, UpstreamError


def hits(count: int) -> list[dict[str, Any]]:
    """Raw search hits with ids 0..count-1."""
    return [
        {
            "id": i,
            "title": f"Artist {i} - Record {i}",
            "year": "1971",
            "genre": ["Jazz"],
            "style": ["Bebop", "Hard Bop"],
            "format": ["Vinyl", "LP"],
            "country": "US",
            "thumb": f"https://img.example/{i}.jpg",
        }
        for i in range(count)
    ]


def page(results: list[dict[str, Any]], total: int | None = None) -> dict[str, Any]:
    return {"pagination": {"items": total or len(results)}, "results": results}


class TestSeededRandom:
    """Test the LCG."""

    def test_first_value(self) -> None:
        """seed 0 -> increment / modulus."""
        rng = SeededRandom(0)

        assert rng.random() == pytest.approx(1013904223 / 2147483647)

    def test_same_seed_same_sequence(self) -> None:
        """Reproducible for tests."""
        first = SeededRandom(1234)
        second = SeededRandom(1234)

        assert [first.random() for _ in range(5)] == [second.random() for _ in range(5)]

    def test_values_in_unit_interval(self) -> None:
        """Always in [0, 1)."""
        rng = SeededRandom(987654)

        assert all(0.0 <= rng.random() < 1.0 for _ in range(200))


class TestBuildSearchParams:
    """Test filter -> query parameter translation."""

    def test_all_filters(self) -> None:
        """Every set filter is passed on."""
        filters = SearchFilters(
            genre="Jazz",
            style="Bebop",
            format="Vinyl",
            country="US",
            year_min=1950,
            year_max=1960,
            artist="Miles Davis",
            album="Kind Of Blue",
        )

        params = build_search_params(filters, seed=7)

        assert params == {
            "type": "release",
            "per_page": 50,
            "genre": "Jazz",
            "style": "Bebop",
            "format": "Vinyl",
            "country": "US",
            "artist": "Miles Davis",
            "release_title": "Kind Of Blue",
            "year": "1950-1960",
            "page": 3,
        }

    def test_missing_genre_defaults_to_rock(self) -> None:
        """No (or blank) genre means Rock."""
        assert build_search_params(SearchFilters(), seed=0)["genre"] == "Rock"
        assert build_search_params(SearchFilters(genre="  "), seed=0)["genre"] == "Rock"

    def test_blank_filters_omitted(self) -> None:
        """Empty strings count as unset."""
        params = build_search_params(SearchFilters(genre="Jazz", style="", country=" "), seed=0)

        assert "style" not in params
        assert "country" not in params

    @pytest.mark.parametrize(
        ("year_min", "year_max"),
        [(1960, None), (None, 1960), (1970, 1960)],
    )
    def test_year_needs_valid_range(self, year_min: int | None, year_max: int | None) -> None:
        """Half-open or inverted ranges are dropped."""
        params = build_search_params(
            SearchFilters(genre="Jazz", year_min=year_min, year_max=year_max), seed=0
        )

        assert "year" not in params

    def test_single_year_range(self) -> None:
        """min == max is fine."""
        params = build_search_params(SearchFilters(year_min=1977, year_max=1977), seed=0)

        assert params["year"] == "1977-1977"

    @pytest.mark.parametrize(("seed", "expected_page"), [(0, 1), (4, 5), (5, 1), (123456, 2)])
    def test_page_from_seed(self, seed: int, expected_page: int) -> None:
        """page = seed % 5 + 1."""
        assert build_search_params(SearchFilters(), seed=seed)["page"] == expected_page


class TestSelectDiverse:
    """Test result sampling."""

    def test_ten_or_fewer_pass_through(self) -> None:
        """Small result sets are not sampled."""
        results = hits(10)

        assert select_diverse(results, seed=42) == results

    def test_five_from_top_and_five_from_rest(self) -> None:
        """50 hits -> 5 of the first 20 plus 5 of the other 30."""
        selected = select_diverse(hits(50), seed=42)

        selected_ids = [hit["id"] for hit in selected]
        assert len(selected_ids) == 10
        assert len(set(selected_ids)) == 10
        assert all(i < 20 for i in selected_ids[:5])
        assert all(i >= 20 for i in selected_ids[5:])

    def test_between_eleven_and_twenty(self) -> None:
        """Only the top pool exists, so only 5 picks."""
        selected = select_diverse(hits(15), seed=42)

        assert len(selected) == 5

    def test_deterministic_for_seed(self) -> None:
        """Same seed, same picks."""
        results = hits(50)

        assert select_diverse(results, seed=99) == select_diverse(results, seed=99)

    def test_input_untouched(self) -> None:
        """Sampling works on copies."""
        results = hits(50)

        select_diverse(results, seed=1)

        assert [hit["id"] for hit in results] == list(range(50))


class TestToSearchResult:
    """Test raw hit conversion."""

    def test_artist_title_split(self) -> None:
        """ "Artist - Title" is split on the first separator."""
        result = to_search_result(
            {"id": 1, "title": "Miles Davis - Kind Of Blue - Remastered"}, rank=1, total_results=9
        )

        assert result.artist == "Miles Davis"
        assert result.title == "Kind Of Blue - Remastered"

    def test_title_without_separator(self) -> None:
        """No separator: whole string is the title, artist empty."""
        result = to_search_result({"id": 1, "title": "Untitled"}, rank=1, total_results=1)

        assert result.artist == ""
        assert result.title == "Untitled"

    def test_first_list_values_and_thumb(self) -> None:
        """Genre/style/format take the first entry, thumb is the cover."""
        result = to_search_result(hits(1)[0], rank=3, total_results=120)

        assert result.id == "0"
        assert result.genre == "Jazz"
        assert result.style == "Bebop"
        assert result.format == "Vinyl"
        assert result.cover_image == "https://img.example/0.jpg"
        assert result.rank == 3
        assert result.total_results == 120

    def test_missing_id_is_empty(self) -> None:
        """No id -> empty string, id 0 stays "0"."""
        assert to_search_result({"title": "A - B"}, rank=1, total_results=1).id == ""
        assert to_search_result({"id": 0, "title": "x"}, rank=1, total_results=1).id == "0"

    def test_cover_image_fallback(self) -> None:
        """Without thumb the cover_image is used."""
        result = to_search_result(
            {"id": 2, "title": "A - B", "cover_image": "https://img.example/big.jpg"},
            rank=1,
            total_results=1,
        )

        assert result.cover_image == "https://img.example/big.jpg"
        assert result.genre == ""


class TestSearchService:
    """Test the fallback chain."""

    @pytest.fixture
    def client(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture
    def filters(self) -> SearchFilters:
        return SearchFilters(genre="Jazz", style="Bebop", country="JP")

    async def test_full_filters_hit(self, client: AsyncMock, filters: SearchFilters) -> None:
        """First attempt succeeds: one call, no flags."""
        client.search_database.return_value = page(hits(3), total=3)

        outcome = await SearchService(client).search(filters, seed=0)

        assert outcome.total_found == 3
        assert outcome.simplified is False
        assert outcome.last_resort is False
        assert outcome.message is None
        assert [r.rank for r in outcome.results] == [1, 2, 3]
        client.search_database.assert_awaited_once()

    async def test_genre_only_fallback(self, client: AsyncMock, filters: SearchFilters) -> None:
        """Empty full search -> genre-only search, flagged simplified."""
        client.search_database.side_effect = [page([]), page(hits(2))]

        outcome = await SearchService(client).search(filters, seed=0)

        assert outcome.simplified is True
        assert outcome.last_resort is False
        assert "simplified" in outcome.message
        second_params = client.search_database.await_args_list[1].args[0]
        assert second_params["genre"] == "Jazz"
        assert "style" not in second_params
        assert "country" not in second_params

    async def test_last_resort_rock(self, client: AsyncMock, filters: SearchFilters) -> None:
        """Both empty -> plain Rock search, flagged last_resort."""
        client.search_database.side_effect = [page([]), page([]), page(hits(4))]

        outcome = await SearchService(client).search(filters, seed=0)

        assert outcome.last_resort is True
        assert outcome.simplified is False
        assert outcome.total_found == 4
        assert "Rock" in outcome.message
        third_params = client.search_database.await_args_list[2].args[0]
        assert third_params["genre"] == "Rock"

    async def test_all_attempts_empty(self, client: AsyncMock, filters: SearchFilters) -> None:
        """Three empty searches -> empty outcome with a message."""
        client.search_database.return_value = {"results": []}

        outcome = await SearchService(client).search(filters, seed=0)

        assert outcome.results == []
        assert outcome.total_found == 0
        assert outcome.message == "No results found after multiple search attempts"
        assert client.search_database.await_count == 3

    async def test_large_result_set_sampled(self, client: AsyncMock, filters: SearchFilters) -> None:
        """50 hits come back as 10 sampled results carrying the catalog total."""
        client.search_database.return_value = page(hits(50), total=5000)

        outcome = await SearchService(client).search(filters, seed=11)

        assert outcome.total_found == 10
        assert all(result.total_results == 5000 for result in outcome.results)
        assert client.search_database.await_args.args[0]["page"] == 2

    async def test_errors_propagate(self, client: AsyncMock, filters: SearchFilters) -> None:
        """A failing call is not treated as "no results"."""
        client.search_database.side_effect = UpstreamError("boom", status_code=500)

        with pytest.raises(UpstreamError):
            await SearchService(client).search(filters, seed=0)

        client.search_database.assert_awaited_once()

    async def test_timeout_runs_emergency_search(
        self, client: AsyncMock, filters: SearchFilters
    ) -> None:
        """Timed out search -> one more Rock search, flagged emergency."""
        client.search_database.side_effect = [
            CatalogTimeoutError("GET", "https://api.discogs.com/database/search", 15.0),
            page(hits(50), total=800),
        ]

        outcome = await SearchService(client).search(filters, seed=3)

        assert outcome.emergency is True
        assert outcome.simplified is False
        assert outcome.last_resort is False
        assert outcome.total_found == 10
        assert outcome.message == "Search timed out, but we found some records for you anyway."
        emergency_params = client.search_database.await_args_list[1].args[0]
        assert emergency_params["genre"] == "Rock"
        assert "style" not in emergency_params

    async def test_timeout_in_fallback_step(
        self, client: AsyncMock, filters: SearchFilters
    ) -> None:
        """A timeout during the genre-only retry also ends in the emergency search."""
        client.search_database.side_effect = [
            page([]),
            CatalogTimeoutError("GET", "https://api.discogs.com/database/search", 15.0),
            page(hits(2)),
        ]

        outcome = await SearchService(client).search(filters, seed=0)

        assert outcome.emergency is True
        assert outcome.total_found == 2
        assert client.search_database.await_count == 3

    async def test_emergency_search_empty_reraises_timeout(
        self, client: AsyncMock, filters: SearchFilters
    ) -> None:
        """Nothing from the emergency search -> the original timeout surfaces."""
        timeout = CatalogTimeoutError("GET", "https://api.discogs.com/database/search", 15.0)
        client.search_database.side_effect = [timeout, page([])]

        with pytest.raises(CatalogTimeoutError) as exc_info:
            await SearchService(client).search(filters, seed=0)

        assert exc_info.value is timeout

    async def test_emergency_search_timeout_propagates(
        self, client: AsyncMock, filters: SearchFilters
    ) -> None:
        """Emergency search timing out too -> CatalogTimeoutError, no further calls."""
        client.search_database.side_effect = CatalogTimeoutError(
            "GET", "https://api.discogs.com/database/search", 15.0
        )

        with pytest.raises(CatalogTimeoutError):
            await SearchService(client).search(filters, seed=0)

        assert client.search_database.await_count == 2
