"""Tests for cookie-based Discogs token dependencies."""

from types import SimpleNamespace

import httpx
import pytest

from cratescope.api.dependencies import (
    get_discogs_client,
    get_user_token,
    require_user_token,
)
from cratescope.config import Settings
from cratescope.config.settings import DiscogsSettings
from cratescope.domain.exceptions import AuthenticationError, ConfigurationError
from cratescope.domain.value_objects import OAuthCredentials, OAuthToken
from cratescope.infrastructure.integrations.discogs_client import AuthMode
from cratescope.infrastructure.integrations.oauth1 import OAuth1Signer
from cratescope.infrastructure.rate_limiter import RateLimiter


def fake_request(settings: Settings) -> SimpleNamespace:
    """Just enough of a Request for the app.state getters."""
    state = SimpleNamespace(
        settings=settings,
        rate_limiter=RateLimiter(),
        http_client=httpx.AsyncClient(),
        signer=OAuth1Signer(OAuthCredentials(consumer_key="ckey", consumer_secret="csecret")),
    )
    return SimpleNamespace(app=SimpleNamespace(state=state))


def test_user_token_from_cookies() -> None:
    """Both cookies -> token."""
    token = get_user_token(discogs_oauth_token="k", discogs_oauth_token_secret="s")

    assert token == OAuthToken(key="k", secret="s")


@pytest.mark.parametrize(("key", "secret"), [(None, "s"), ("k", None), ("", ""), (None, None)])
def test_user_token_needs_both_cookies(key: str | None, secret: str | None) -> None:
    """One cookie alone is not a login."""
    assert get_user_token(discogs_oauth_token=key, discogs_oauth_token_secret=secret) is None


def test_require_user_token_raises_without_token() -> None:
    """Missing token -> AuthenticationError (mapped to 401)."""
    with pytest.raises(AuthenticationError):
        require_user_token(None)


async def test_discogs_client_per_request() -> None:
    """Client is signed with the user's token and shares the app's limiter."""
    settings = Settings(
        _env_file=None,
        discogs=DiscogsSettings(consumer_key="ckey", consumer_secret="csecret"),
    )
    request = fake_request(settings)

    client = get_discogs_client(request, OAuthToken(key="k", secret="s"))

    assert client.mode is AuthMode.OAUTH
    assert client._rate_limiter is request.app.state.rate_limiter
    await request.app.state.http_client.aclose()


async def test_discogs_client_unconfigured() -> None:
    """No consumer credentials -> ConfigurationError (mapped to 503)."""
    request = fake_request(Settings(_env_file=None, discogs=DiscogsSettings()))

    with pytest.raises(ConfigurationError):
        get_discogs_client(request, OAuthToken(key="k", secret="s"))
    await request.app.state.http_client.aclose()
