"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing str(exception).
    # DON'T raise this directly - use a specific subclass so callers can catch precisely.
    # Error handling anywhere in this codebase switches on exception TYPE and structured
    # fields (status_code, retry_count), never on message text.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class InvalidRequestError(DomainException):
    """Malformed input to the OAuth signer (e.g. an unparsable URL).

    Fatal for that call, never retried.

    HTTP Status: 400
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class RateLimitError(DomainException):
    """The catalog answered 429 Too Many Requests.

    Transient. The RateLimiter catches this type, requeues the call and backs off.
    Nobody else should retry on it.
    """

    def __init__(
        self,
        message: str = "Discogs rate limit hit (429)",
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class RateLimitExceeded(DomainException):
    """A call kept hitting 429 after all limiter retries were used up.

    Terminal.

    HTTP Status: 429
    """

    def __init__(self, attempts: int, retry_after: float | None = None) -> None:
        super().__init__(
            f"Discogs rate limit exceeded after {attempts} attempts - retry later"
        )
        self.attempts = attempts
        self.retry_after = retry_after


class CatalogTimeoutError(DomainException, TimeoutError):
    """A catalog call exceeded its deadline.

    Subclasses the builtin TimeoutError so plain ``except TimeoutError`` works.
    Propagated to the caller, never retried by the core.

    HTTP Status: 504
    """

    def __init__(self, method: str, url: str, timeout: float) -> None:
        super().__init__(f"{method} {url} timed out after {timeout:.1f}s")
        self.method = method
        self.url = url
        self.timeout = timeout


class UpstreamError(DomainException):
    """Any other failed catalog response (non-2xx other than 429, or no response).

    status_code is None when the request never got a response (connection
    refused, DNS failure and friends).

    HTTP Status: 502
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(DomainException):
    """User is not authenticated or the OAuth handshake failed.

    HTTP Status: 401
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration (e.g. missing consumer credentials).

    HTTP Status: 503
    """

    pass


__all__ = [
    "AuthenticationError",
    "CatalogTimeoutError",
    "ConfigurationError",
    "DomainException",
    "InvalidRequestError",
    "RateLimitError",
    "RateLimitExceeded",
    "UpstreamError",
]
