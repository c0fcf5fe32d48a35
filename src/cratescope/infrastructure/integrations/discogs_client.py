"""Discogs HTTP client with OAuth 1.0a signing and shared rate limiting."""

import asyncio
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, cast
from urllib.parse import quote

import httpx

from cratescope.config.settings import DiscogsSettings
from cratescope.domain.exceptions import (
    CatalogTimeoutError,
    RateLimitError,
    UpstreamError,
)
from cratescope.domain.value_objects import OAuthToken
from cratescope.infrastructure.integrations.oauth1 import OAuth1Signer
from cratescope.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Discogs sends these on every response
RATELIMIT_HEADER = "X-Discogs-Ratelimit"
RATELIMIT_REMAINING_HEADER = "X-Discogs-Ratelimit-Remaining"
LOW_REMAINING_WARNING = 5


class AuthMode(str, Enum):
    """How requests are authenticated."""

    OAUTH = "oauth"  # Signed per request with the user's access token
    KEY = "key"  # Static "Discogs key=..., secret=..." header


class DiscogsClient:
    """HTTP client for Discogs API operations.

    Hey future me - one instance per REQUEST (it carries the user's token), but
    the RateLimiter and the httpx.AsyncClient passed in are process-wide! Never
    create a RateLimiter here or each request gets its own budget and we blow
    through Discogs' 60/min in no time.
    """

    def __init__(
        self,
        settings: DiscogsSettings,
        rate_limiter: RateLimiter,
        http_client: httpx.AsyncClient,
        signer: OAuth1Signer | None = None,
        token: OAuthToken | None = None,
    ) -> None:
        """
        Initialize Discogs client.

        OAuth mode needs both a signer and a token; otherwise the client starts
        in key mode.

        Args:
            settings: Discogs configuration settings
            rate_limiter: Shared limiter every call goes through
            http_client: Shared HTTP client (owned by the app lifespan)
            signer: OAuth signer with the consumer credentials
            token: User access token from the session cookies
        """
        self.settings = settings
        self._rate_limiter = rate_limiter
        self._client = http_client
        self._signer = signer
        self._token = token
        self._mode = AuthMode.OAUTH if signer and token else AuthMode.KEY
        self._consecutive_rate_limits = 0

    @property
    def mode(self) -> AuthMode:
        """Current authentication mode."""
        return self._mode

    @property
    def consecutive_rate_limits(self) -> int:
        """429s in a row since the last success."""
        return self._consecutive_rate_limits

    async def get(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> Any:
        """
        GET a Discogs endpoint.

        Args:
            path: API path, e.g. "/releases/249504"
            params: Query parameters

        Returns:
            Decoded JSON body

        Raises:
            RateLimitExceeded: 429 persisted through all limiter retries
            CatalogTimeoutError: Request exceeded the timeout
            UpstreamError: Any other failed response
        """
        return await self._rate_limiter.enqueue(
            lambda: self._send("GET", path, params=params)
        )

    async def post(
        self,
        path: str,
        data: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        POST to a Discogs endpoint.

        Args:
            path: API path
            data: Form body (signed)
            json: JSON body (not part of the OAuth signature)

        Returns:
            Decoded JSON body, None for empty responses
        """
        return await self._rate_limiter.enqueue(
            lambda: self._send("POST", path, data=data, json=json)
        )

    def _authorization(
        self, method: str, url: str, data: Mapping[str, Any] | None
    ) -> str:
        if self._mode is AuthMode.OAUTH and self._signer and self._token:
            return self._signer.sign(method, url, data, self._token).authorization_header
        return (
            f"Discogs key={self.settings.consumer_key}, "
            f"secret={self.settings.consumer_secret}"
        )

    # Yo future me, this runs INSIDE the limiter, once per attempt. The signature is rebuilt
    # every attempt on purpose - a retried request needs a fresh nonce/timestamp or
    # Discogs rejects it as a replay. We sign against the final URL including the query
    # string, because query params are part of the signature base string.
    async def _send(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = httpx.URL(self.settings.api_base_url + path)
        if params:
            url = url.copy_merge_params(
                {k: v for k, v in params.items() if v is not None}
            )

        headers = {
            "User-Agent": self.settings.user_agent,
            "Accept": "application/json",
            "Authorization": self._authorization(method, str(url), data),
        }

        # httpx applies the timeout per phase (connect, each read), so a slow-drip body could
        # outlive it. wait_for puts one deadline on the whole call, body included.
        try:
            response = await asyncio.wait_for(
                self._client.request(
                    method,
                    url,
                    data=data,
                    json=json,
                    headers=headers,
                    timeout=self.settings.timeout_seconds,
                ),
                timeout=self.settings.timeout_seconds,
            )
        except (httpx.TimeoutException, TimeoutError) as e:
            raise CatalogTimeoutError(
                method, str(url), self.settings.timeout_seconds
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{method} {url.path} failed: {e}") from e

        if response.status_code == 429:
            self._record_rate_limited()
            raise RateLimitError(retry_after=_retry_after(response))

        self._consecutive_rate_limits = 0
        self._log_remaining(response)

        if response.is_error:
            raise UpstreamError(
                f"Discogs {method} {url.path} returned {response.status_code}",
                status_code=response.status_code,
                body=_body(response),
            )

        if not response.content:
            return None
        return response.json()

    # Hey future me - after N 429s in a row the user's OAuth budget is clearly toast, so we
    # drop to the app key for the rest of this client's life. Both modes share the same
    # limiter queue, so the downgrade doesn't bypass our own throttling.
    def _record_rate_limited(self) -> None:
        self._consecutive_rate_limits += 1
        logger.warning(
            "Discogs 429 (%d consecutive, mode=%s)",
            self._consecutive_rate_limits,
            self._mode.value,
        )
        if (
            self._mode is AuthMode.OAUTH
            and self._consecutive_rate_limits
            >= self.settings.max_consecutive_rate_limits
        ):
            logger.warning(
                "Too many consecutive rate limit errors, falling back to key authentication"
            )
            self._mode = AuthMode.KEY

    @staticmethod
    def _log_remaining(response: httpx.Response) -> None:
        limit = response.headers.get(RATELIMIT_HEADER)
        remaining = response.headers.get(RATELIMIT_REMAINING_HEADER)
        if not (limit and remaining and remaining.isdigit()):
            return
        logger.debug("Discogs rate limit: %s/%s remaining", remaining, limit)
        if int(remaining) < LOW_REMAINING_WARNING:
            logger.warning("Discogs rate limit nearly exhausted: %s/%s", remaining, limit)

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    async def get_collection_releases(
        self, username: str, per_page: int = 50
    ) -> list[dict[str, Any]]:
        """
        Most recently added releases in a user's collection (folder 0 = "All").

        Args:
            username: Discogs username
            per_page: How many releases to fetch (single page only)

        Returns:
            Raw release entries with basic_information
        """
        data = await self.get(
            f"/users/{quote(username, safe='')}/collection/folders/0/releases",
            params={"sort": "added", "sort_order": "desc", "per_page": per_page},
        )
        return cast(list[dict[str, Any]], (data or {}).get("releases") or [])

    async def get_release(self, release_id: str) -> dict[str, Any]:
        """Full release payload, including the community have/want block."""
        data = await self.get(f"/releases/{quote(str(release_id), safe='')}")
        return cast(dict[str, Any], data or {})

    async def search_database(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Query /database/search. Requires authentication (either mode)."""
        data = await self.get("/database/search", params=params)
        return cast(dict[str, Any], data or {})


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
