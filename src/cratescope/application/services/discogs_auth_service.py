"""Discogs OAuth 1.0a handshake.

Hey future me - this service encapsulates the three-legged OAuth dance!

OAuth Flow:
1. get_request_token(callback_url) -> temporary token + authorize URL
2. User visits URL on discogs.com, grants access, Discogs redirects back to
   our callback with oauth_token + oauth_verifier
3. exchange_verifier(request_token, verifier) -> long-lived access token

Token Storage:
- This service does NOT store tokens! The auth router puts them in cookies.
- Service is stateless for better testability

The handshake calls go straight through httpx, NOT through the RateLimiter.
It's two calls per login, and the limiter's 55/min leaves room for them.
"""

import logging
from urllib.parse import parse_qsl, quote

import httpx

from cratescope.config.settings import DiscogsSettings
from cratescope.domain.exceptions import (
    AuthenticationError,
    CatalogTimeoutError,
    ConfigurationError,
    UpstreamError,
)
from cratescope.domain.value_objects import OAuthToken
from cratescope.infrastructure.integrations.oauth1 import OAuth1Signer

logger = logging.getLogger(__name__)


class DiscogsAuthService:
    """Service for the Discogs OAuth handshake."""

    def __init__(
        self,
        settings: DiscogsSettings,
        signer: OAuth1Signer,
        http_client: httpx.AsyncClient,
    ) -> None:
        """Initialize auth service.

        Args:
            settings: Discogs configuration (endpoint URLs, user agent)
            signer: Signer holding the consumer key/secret
            http_client: Shared HTTP client
        """
        self.settings = settings
        self._signer = signer
        self._client = http_client

    def authorize_url(self, request_token: OAuthToken) -> str:
        """URL on discogs.com where the user grants access."""
        return f"{self.settings.authorize_url}?oauth_token={quote(request_token.key, safe='')}"

    async def get_request_token(self, callback_url: str) -> tuple[OAuthToken, str]:
        """Obtain a temporary request token.

        Args:
            callback_url: Where Discogs redirects after the user approves

        Returns:
            (request token, authorize URL). The caller must keep the token
            secret around until the callback - it signs the exchange.

        Raises:
            ConfigurationError: No consumer credentials configured
            AuthenticationError: Discogs answered without a token
            UpstreamError: Discogs rejected the request
        """
        self._require_credentials()
        url = f"{self.settings.request_token_url}?oauth_callback={quote(callback_url, safe='')}"
        body = await self._send("GET", url)

        token = self._parse_token(body, "request token")
        logger.info("Obtained Discogs request token")
        return token, self.authorize_url(token)

    # Hey future me - the exchange is signed with the REQUEST token (key from the callback
    # query, secret from our cookie). The verifier goes in the form body AND into the
    # signature, Discogs checks both.
    async def exchange_verifier(
        self, request_token: OAuthToken, verifier: str
    ) -> OAuthToken:
        """Exchange the callback verifier for an access token.

        Args:
            request_token: Token from step 1 (key + secret)
            verifier: oauth_verifier from the callback query

        Returns:
            Access token to store in the user's cookies

        Raises:
            ConfigurationError: No consumer credentials configured
            AuthenticationError: Discogs answered without a token
            UpstreamError: Discogs rejected the exchange (expired/used verifier)
        """
        self._require_credentials()
        body = await self._send(
            "POST",
            self.settings.access_token_url,
            data={"oauth_verifier": verifier},
            token=request_token,
        )

        token = self._parse_token(body, "access token")
        logger.info("Discogs OAuth handshake completed")
        return token

    def _require_credentials(self) -> None:
        if not self.settings.is_configured:
            raise ConfigurationError(
                "Discogs consumer key/secret not configured "
                "(set DISCOGS__CONSUMER_KEY and DISCOGS__CONSUMER_SECRET)"
            )

    async def _send(
        self,
        method: str,
        url: str,
        data: dict[str, str] | None = None,
        token: OAuthToken | None = None,
    ) -> str:
        signed = self._signer.sign(method, url, data, token)
        headers = {
            "Authorization": signed.authorization_header,
            "User-Agent": self.settings.user_agent,
        }
        try:
            response = await self._client.request(
                method,
                url,
                data=data,
                headers=headers,
                timeout=self.settings.timeout_seconds,
            )
        except httpx.TimeoutException as e:
            raise CatalogTimeoutError(method, url, self.settings.timeout_seconds) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"OAuth {method} {url} failed: {e}") from e

        if response.is_error:
            logger.warning(
                "Discogs OAuth endpoint returned %d: %s",
                response.status_code,
                response.text[:200],
            )
            raise UpstreamError(
                f"Discogs OAuth endpoint returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.text

    @staticmethod
    def _parse_token(body: str, what: str) -> OAuthToken:
        """Parse an oauth_token=...&oauth_token_secret=... form body."""
        fields = dict(parse_qsl(body))
        key = fields.get("oauth_token")
        secret = fields.get("oauth_token_secret")
        if not key or not secret:
            raise AuthenticationError(f"Invalid {what} response from Discogs")
        return OAuthToken(key=key, secret=secret)
