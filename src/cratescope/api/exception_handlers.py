"""Custom exception handlers for FastAPI application.

This module registers global exception handlers that convert domain exceptions
into proper HTTP responses with appropriate status codes. Routers just let
domain exceptions propagate - no try/except + string matching in route code.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from cratescope.domain.exceptions import (
    AuthenticationError,
    CatalogTimeoutError,
    ConfigurationError,
    DomainException,
    InvalidRequestError,
    RateLimitExceeded,
    UpstreamError,
)

logger = logging.getLogger(__name__)

# Hey future me - Discogs counts per minute, so "come back in a minute" is the honest answer
DEFAULT_RETRY_AFTER_SECONDS = 60


# Hey future me, this registers GLOBAL exception handlers for the entire app! FastAPI picks the
# handler of the most specific class in the exception's MRO, so the DomainException fallback
# only fires for subclasses without their own handler. Call during app setup, before requests.
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers mapping domain exceptions to HTTP responses.

    Mapping:
    - AuthenticationError -> 401
    - InvalidRequestError -> 400
    - RateLimitExceeded -> 429 (with Retry-After)
    - UpstreamError -> 502
    - ConfigurationError -> 503
    - CatalogTimeoutError -> 504
    - any other DomainException -> 500

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle missing/invalid authentication with 401 Unauthorized."""
        logger.info(
            "Authentication required at %s",
            request.url.path,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": exc.message},
        )

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_error_handler(
        request: Request, exc: InvalidRequestError
    ) -> JSONResponse:
        """Handle malformed requests with 400 Bad Request."""
        logger.warning(
            "Invalid request at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message},
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded_handler(
        request: Request, exc: RateLimitExceeded
    ) -> JSONResponse:
        """Handle exhausted 429 retries with 429 Too Many Requests."""
        retry_after = int(exc.retry_after or DEFAULT_RETRY_AFTER_SECONDS)
        logger.warning(
            "Rate limit exceeded at %s after %d attempts",
            request.url.path,
            exc.attempts,
            extra={"path": request.url.path, "attempts": exc.attempts},
        )
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "detail": "Rate limit exceeded. Please try again in a few minutes.",
                "retry_after": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(
        request: Request, exc: UpstreamError
    ) -> JSONResponse:
        """Handle failed Discogs responses with 502 Bad Gateway."""
        logger.warning(
            "Discogs error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "upstream_status": exc.status_code},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": exc.message, "upstream_status": exc.status_code},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle misconfiguration with 503 Service Unavailable."""
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": exc.message},
        )

    @app.exception_handler(CatalogTimeoutError)
    async def timeout_error_handler(
        request: Request, exc: CatalogTimeoutError
    ) -> JSONResponse:
        """Handle Discogs timeouts with 504 Gateway Timeout."""
        logger.warning(
            "Discogs timeout at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "timeout": exc.timeout},
        )
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            content={
                "detail": (
                    "Request timed out. The Discogs API may be experiencing high traffic."
                )
            },
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request, exc: DomainException
    ) -> JSONResponse:
        """Fallback for domain exceptions without a dedicated handler."""
        logger.error(
            "Unhandled domain error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": exc.message},
        )
