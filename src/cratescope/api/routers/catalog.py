"""Reference data for the search filter dropdowns. No auth, no API calls."""

from fastapi import APIRouter

from cratescope.domain.value_objects.catalog_taxonomy import (
    FORMATS,
    GENRE_STYLE_MAP,
    GENRES,
    STYLES,
)

router = APIRouter()


@router.get("/genres", response_model=list[str])
async def list_genres() -> list[str]:
    """All known genres."""
    return list(GENRES)


@router.get("/styles", response_model=list[str])
async def list_styles() -> list[str]:
    """All known styles, de-duplicated across genres."""
    return list(STYLES)


@router.get("/formats", response_model=list[str])
async def list_formats() -> list[str]:
    """Release formats."""
    return list(FORMATS)


@router.get("/genre-style-map", response_model=dict[str, list[str]])
async def genre_style_map() -> dict[str, list[str]]:
    """Styles per genre."""
    return {genre: list(styles) for genre, styles in GENRE_STYLE_MAP.items()}
