"""Dependency injection for API endpoints."""

import logging
from typing import cast

import httpx
from fastapi import Cookie, Depends, Request

from cratescope.application.cache import InMemoryCache
from cratescope.application.services import (
    CollectionService,
    DiscogsAuthService,
    SearchService,
    StatsAggregator,
)
from cratescope.config import Settings
from cratescope.domain.entities import EnrichmentProgress
from cratescope.domain.exceptions import AuthenticationError, ConfigurationError
from cratescope.domain.value_objects import OAuthToken
from cratescope.infrastructure.integrations.discogs_client import DiscogsClient
from cratescope.infrastructure.integrations.oauth1 import OAuth1Signer
from cratescope.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "discogs_oauth_token"
TOKEN_SECRET_COOKIE = "discogs_oauth_token_secret"


# Hey future me, everything process-wide lives on app.state (built once in the lifespan, see
# infrastructure/lifecycle.py). These getters only READ it. Tests override them with
# app.dependency_overrides or just build the app with custom Settings.
def get_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return cast(Settings, request.app.state.settings)


def get_rate_limiter(request: Request) -> RateLimiter:
    """The single shared Discogs rate limiter."""
    return cast(RateLimiter, request.app.state.rate_limiter)


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared HTTP client (closed on shutdown)."""
    return cast(httpx.AsyncClient, request.app.state.http_client)


def get_signer(request: Request) -> OAuth1Signer:
    """OAuth signer with the app's consumer credentials."""
    return cast(OAuth1Signer, request.app.state.signer)


def get_stats_aggregator(request: Request) -> StatsAggregator:
    """Stats aggregator (stateless, shared)."""
    return cast(StatsAggregator, request.app.state.stats_aggregator)


def get_user_token(
    discogs_oauth_token: str | None = Cookie(default=None),
    discogs_oauth_token_secret: str | None = Cookie(default=None),
) -> OAuthToken | None:
    """Access token from the session cookies, None if not logged in."""
    if not discogs_oauth_token or not discogs_oauth_token_secret:
        return None
    return OAuthToken(key=discogs_oauth_token, secret=discogs_oauth_token_secret)


def require_user_token(
    token: OAuthToken | None = Depends(get_user_token),
) -> OAuthToken:
    """Access token or 401.

    Raises:
        AuthenticationError: No token cookies present
    """
    if token is None:
        raise AuthenticationError(
            "Authentication required. Please login with Discogs first."
        )
    return token


# Yo, a NEW DiscogsClient per request because it carries the user's token and its own
# consecutive-429 counter. The limiter and HTTP client inside are the shared ones.
def get_discogs_client(
    request: Request,
    token: OAuthToken = Depends(require_user_token),
) -> DiscogsClient:
    """Discogs client signed with the current user's token."""
    settings = get_settings(request)
    if not settings.discogs.is_configured:
        raise ConfigurationError("Discogs consumer key/secret not configured")
    return DiscogsClient(
        settings=settings.discogs,
        rate_limiter=get_rate_limiter(request),
        http_client=get_http_client(request),
        signer=get_signer(request),
        token=token,
    )


def get_collection_service(
    request: Request,
    client: DiscogsClient = Depends(get_discogs_client),
) -> CollectionService:
    """Collection pipeline wired to the shared caches."""
    state = request.app.state
    return CollectionService(
        client=client,
        collection_cache=cast(InMemoryCache, state.collection_cache),
        checkpoint_cache=cast(InMemoryCache, state.checkpoint_cache),
        detail_cache=cast(InMemoryCache, state.detail_cache),
        settings=get_settings(request).collection,
        progress=cast(dict[str, EnrichmentProgress], state.enrichment_progress),
    )


def get_search_service(
    client: DiscogsClient = Depends(get_discogs_client),
) -> SearchService:
    """Search service for the current user."""
    return SearchService(client)


def get_auth_service(request: Request) -> DiscogsAuthService:
    """OAuth handshake service (no user token needed)."""
    return DiscogsAuthService(
        settings=get_settings(request).discogs,
        signer=get_signer(request),
        http_client=get_http_client(request),
    )
