"""Application lifecycle management for startup and shutdown tasks.

This module holds the FastAPI lifespan context manager, the composition root
of the app. Everything process-wide is created here exactly once and hung on
app.state:

- settings            → Settings passed to create_app() (or get_settings())
- http_client         → shared httpx.AsyncClient, closed on shutdown
- rate_limiter        → THE Discogs RateLimiter (one budget per process!)
- signer              → OAuth1Signer with the consumer credentials
- collection_cache    → username → enriched items (1h)
- checkpoint_cache    → "{username}_partial" → EnrichmentCheckpoint (5 min)
- detail_cache        → release id → CommunityCounts (1h)
- enrichment_progress → username → EnrichmentProgress
- stats_aggregator    → StatsAggregator

Scaling note: all of this is per process. Running several uvicorn workers
means several limiters sharing one Discogs budget - run a single worker.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from cratescope.application.cache import InMemoryCache
from cratescope.application.services import StatsAggregator
from cratescope.config import Settings, get_settings
from cratescope.domain.value_objects import OAuthCredentials
from cratescope.infrastructure.integrations.oauth1 import OAuth1Signer
from cratescope.infrastructure.observability import configure_logging
from cratescope.infrastructure.rate_limiter import RateLimiter, RateLimiterConfig

logger = logging.getLogger(__name__)


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Create the shared limiter from the rate_limit settings section."""
    return RateLimiter(RateLimiterConfig(**settings.rate_limit.model_dump()))


# Hey future me, this runs once on startup (everything before yield) and once on shutdown
# (after yield). TestClient(app) used as a context manager triggers it too, so route tests get
# the real wiring - pytest-httpx then intercepts the shared httpx client's transport.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks including:
    - Logging configuration
    - Shared HTTP client, rate limiter, signer and caches
    - Resource cleanup
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    app.state.settings = settings

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    if not settings.discogs.is_configured:
        logger.warning(
            "Discogs consumer key/secret missing - login, collection and search will "
            "answer 503 until DISCOGS__CONSUMER_KEY and DISCOGS__CONSUMER_SECRET are set"
        )

    http_client = httpx.AsyncClient(
        timeout=settings.discogs.timeout_seconds,
        headers={"User-Agent": settings.discogs.user_agent},
    )
    collection_ttl = settings.collection.cache_ttl_seconds

    app.state.http_client = http_client
    app.state.rate_limiter = build_rate_limiter(settings)
    app.state.signer = OAuth1Signer(
        OAuthCredentials(
            consumer_key=settings.discogs.consumer_key,
            consumer_secret=settings.discogs.consumer_secret,
        )
    )
    app.state.collection_cache = InMemoryCache(default_ttl_seconds=collection_ttl)
    app.state.checkpoint_cache = InMemoryCache(
        default_ttl_seconds=settings.collection.checkpoint_ttl_seconds
    )
    app.state.detail_cache = InMemoryCache(default_ttl_seconds=collection_ttl)
    app.state.enrichment_progress = {}
    app.state.stats_aggregator = StatsAggregator()
    logger.info(
        "Discogs rate limiter ready: %d requests per %.0fs",
        settings.rate_limit.capacity_per_window,
        settings.rate_limit.window_seconds,
    )

    try:
        yield
    finally:
        logger.info("Shutting down application")
        await http_client.aclose()
