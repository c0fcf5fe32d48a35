"""Discogs OAuth login endpoints.

Hey future me - the browser flow is:
1. Frontend calls GET /api/auth, gets {"url"} and sends the user there
2. Discogs redirects back to GET /api/auth/callback?oauth_token=..&oauth_verifier=..
3. We exchange, set the token cookies and redirect to "/"

Between 1 and 3 the request-token SECRET sits in the discogs_oauth_token_secret
cookie (1 hour). After 3 that same cookie name holds the ACCESS token secret.
Errors in step 3 never render an error page - we redirect to /?auth_error=<code>
and the frontend shows a message.
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Cookie, Depends, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from cratescope.api.dependencies import (
    TOKEN_COOKIE,
    TOKEN_SECRET_COOKIE,
    get_auth_service,
    get_settings,
    get_user_token,
)
from cratescope.application.services import DiscogsAuthService
from cratescope.config import Settings
from cratescope.domain.exceptions import (
    AuthenticationError,
    DomainException,
    UpstreamError,
)
from cratescope.domain.value_objects import OAuthToken

logger = logging.getLogger(__name__)

router = APIRouter()

REQUEST_SECRET_MAX_AGE = 60 * 60  # 1 hour
ACCESS_TOKEN_MAX_AGE = 60 * 60 * 24 * 30  # 30 days


class AuthUrlResponse(BaseModel):
    """Where to send the user to approve access."""

    url: str = Field(description="Discogs authorize URL")


class AuthStatusResponse(BaseModel):
    """Login state derived from the token cookies."""

    authenticated: bool = Field(description="Both token cookies present")


class LogoutResponse(BaseModel):
    """Logout result."""

    success: bool = True


def _set_cookie(response: Response, settings: Settings, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=key,
        value=value,
        max_age=max_age,
        path="/",
        secure=settings.secure_cookies,
        httponly=True,
        samesite="lax",
    )


@router.get("", response_model=AuthUrlResponse)
async def start_auth(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    auth_service: DiscogsAuthService = Depends(get_auth_service),
) -> AuthUrlResponse:
    """Start the OAuth handshake.

    Fetches a request token, parks its secret in a short-lived cookie and
    returns the Discogs authorize URL.
    """
    callback_url = str(request.url_for("auth_callback"))
    request_token, authorize_url = await auth_service.get_request_token(callback_url)

    _set_cookie(
        response,
        settings,
        TOKEN_SECRET_COOKIE,
        request_token.secret,
        REQUEST_SECRET_MAX_AGE,
    )
    return AuthUrlResponse(url=authorize_url)


def _error_redirect(code: str) -> RedirectResponse:
    return RedirectResponse(url=f"/?auth_error={quote(code, safe='')}", status_code=307)


@router.get("/callback", name="auth_callback")
async def auth_callback(
    oauth_token: str | None = None,
    oauth_verifier: str | None = None,
    discogs_oauth_token_secret: str | None = Cookie(default=None),
    settings: Settings = Depends(get_settings),
    auth_service: DiscogsAuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Finish the handshake and store the access token in cookies."""
    if not oauth_token or not oauth_verifier:
        logger.warning("OAuth callback without oauth_token/oauth_verifier")
        return _error_redirect("missing_params")
    if not discogs_oauth_token_secret:
        logger.warning("OAuth callback without request token secret cookie")
        return _error_redirect("missing_token_secret")

    request_token = OAuthToken(key=oauth_token, secret=discogs_oauth_token_secret)
    try:
        access_token = await auth_service.exchange_verifier(request_token, oauth_verifier)
    except AuthenticationError:
        return _error_redirect("invalid_access_token")
    except UpstreamError as e:
        code = f"api_error_{e.status_code}" if e.status_code else "unknown_error"
        return _error_redirect(code)
    except DomainException as e:
        logger.error("OAuth callback failed: %s", e.message)
        return _error_redirect("unknown_error")

    response = RedirectResponse(url="/", status_code=307)
    _set_cookie(response, settings, TOKEN_COOKIE, access_token.key, ACCESS_TOKEN_MAX_AGE)
    _set_cookie(
        response, settings, TOKEN_SECRET_COOKIE, access_token.secret, ACCESS_TOKEN_MAX_AGE
    )
    return response


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(
    token: OAuthToken | None = Depends(get_user_token),
) -> AuthStatusResponse:
    """Whether the browser holds an access token."""
    return AuthStatusResponse(authenticated=token is not None)


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response) -> LogoutResponse:
    """Forget the access token (cookies only, Discogs keeps the grant)."""
    response.delete_cookie(TOKEN_COOKIE, path="/")
    response.delete_cookie(TOKEN_SECRET_COOKIE, path="/")
    return LogoutResponse()
