"""OAuth 1.0a HMAC-SHA1 request signing for the Discogs API.

Hey future me - Discogs still speaks OAuth 1.0a, so every user-authenticated
request needs its own signature. The recipe (RFC 5849 §3.4):

1. Collect oauth_* params + query params of the URL + form body params
2. Percent-encode keys/values (RFC 3986, NOT urlencode's "+" for spaces!)
3. Sort by key then value, join as k=v with "&"
4. Base string = METHOD & enc(base_url) & enc(param_string)
5. HMAC-SHA1 with key enc(consumer_secret) & enc(token_secret), base64

Everything here is pure: no I/O, no retries. Nonce and timestamp can be passed
in explicitly, which is what the tests do to get stable signatures.
"""

import base64
import hashlib
import hmac
import secrets
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from urllib.parse import parse_qsl, quote, urlsplit

from cratescope.domain.exceptions import InvalidRequestError
from cratescope.domain.value_objects import OAuthCredentials, OAuthToken

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"

_DEFAULT_PORTS = {"http": 80, "https": 443}


def percent_encode(value: object) -> str:
    """Percent-encode per RFC 3986: only A-Z a-z 0-9 - . _ ~ stay literal."""
    return quote(str(value), safe="-._~")


def generate_nonce() -> str:
    """16 random bytes, hex encoded."""
    return secrets.token_hex(16)


def generate_timestamp() -> str:
    """Current unix time in whole seconds."""
    return str(int(time.time()))


def base_string_uri(url: str) -> str:
    """Strip query/fragment and normalise scheme, host and port.

    Args:
        url: Absolute http(s) URL, may carry a query string

    Returns:
        scheme://host[:port]/path

    Raises:
        InvalidRequestError: If the URL has no usable scheme/host or a bad port
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise InvalidRequestError(f"Cannot parse URL for signing: {url!r}", url=url) from e

    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parts.hostname:
        raise InvalidRequestError(
            f"URL must be absolute http(s) for signing: {url!r}", url=url
        )

    host = parts.hostname.lower()
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        host = f"{host}:{port}"
    return f"{scheme}://{host}{parts.path or '/'}"


Params = Mapping[str, object] | Iterable[tuple[str, object]]


def _pairs(params: Params) -> list[tuple[str, object]]:
    if isinstance(params, Mapping):
        return list(params.items())
    return list(params)


def query_parameters(url: str) -> list[tuple[str, str]]:
    """Query-string parameters of a URL as (key, value) pairs.

    Repeated keys stay separate pairs and blank values are kept, both are signed.
    """
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def normalize_parameters(params: Params) -> str:
    """Encode, sort by key then value (byte order) and join as k=v&k=v."""
    encoded = sorted(
        (percent_encode(key), percent_encode(value)) for key, value in _pairs(params)
    )
    return "&".join(f"{key}={value}" for key, value in encoded)


def signature_base_string(method: str, url: str, params: Params) -> str:
    """Build METHOD&enc(base_url)&enc(normalized params)."""
    return "&".join(
        (
            method.upper(),
            percent_encode(base_string_uri(url)),
            percent_encode(normalize_parameters(params)),
        )
    )


def hmac_sha1_signature(
    base_string: str, consumer_secret: str, token_secret: str | None = None
) -> str:
    """HMAC-SHA1 over the base string, base64 encoded."""
    key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"
    digest = hmac.new(
        key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def to_header(oauth_params: Mapping[str, str]) -> str:
    """Serialize oauth_* params into an Authorization header value.

    Non-oauth keys (query/body params that went into the signature) are dropped.
    """
    fields = ", ".join(
        f'{key}="{percent_encode(value)}"'
        for key, value in oauth_params.items()
        if key.startswith("oauth_")
    )
    return f"OAuth {fields}"


@dataclass(frozen=True)
class SignedRequest:
    """Result of signing one request. Created per call and thrown away."""

    method: str
    url: str
    oauth_params: dict[str, str]
    base_string: str

    @property
    def signature(self) -> str:
        """The computed oauth_signature."""
        return self.oauth_params["oauth_signature"]

    @property
    def authorization_header(self) -> str:
        """Value for the Authorization header."""
        return to_header(self.oauth_params)


class OAuth1Signer:
    """Signs requests with the app's consumer credentials and an optional user token."""

    def __init__(
        self,
        credentials: OAuthCredentials,
        nonce_factory: Callable[[], str] = generate_nonce,
        timestamp_factory: Callable[[], str] = generate_timestamp,
    ) -> None:
        """
        Initialize signer.

        Args:
            credentials: Consumer key/secret
            nonce_factory: Produces oauth_nonce values
            timestamp_factory: Produces oauth_timestamp values
        """
        self.credentials = credentials
        self._nonce_factory = nonce_factory
        self._timestamp_factory = timestamp_factory

    def sign(
        self,
        method: str,
        url: str,
        data: Mapping[str, object] | None = None,
        token: OAuthToken | None = None,
        *,
        nonce: str | None = None,
        timestamp: str | None = None,
    ) -> SignedRequest:
        """
        Sign a request.

        Args:
            method: HTTP method
            url: Full URL, query string included (query params are signed)
            data: Form body params (also signed, e.g. oauth_callback/oauth_verifier)
            token: User token; omitted during the request-token step
            nonce: Fixed nonce instead of a random one
            timestamp: Fixed timestamp instead of now

        Returns:
            SignedRequest with oauth params (incl. oauth_signature) and base string

        Raises:
            InvalidRequestError: If the URL can't be parsed
        """
        oauth_params: dict[str, str] = {
            "oauth_consumer_key": self.credentials.consumer_key,
            "oauth_nonce": nonce if nonce is not None else self._nonce_factory(),
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": (
                timestamp if timestamp is not None else self._timestamp_factory()
            ),
            "oauth_version": OAUTH_VERSION,
        }
        if token is not None and token.key:
            oauth_params["oauth_token"] = token.key

        # Validate before touching the query string so a bad URL fails loudly
        base_string_uri(url)

        # Every pair is signed, including keys repeated in the query or shared with the body
        all_params: list[tuple[str, object]] = [*oauth_params.items(), *query_parameters(url)]
        if data:
            all_params.extend(data.items())

        base_string = signature_base_string(method, url, all_params)
        oauth_params["oauth_signature"] = hmac_sha1_signature(
            base_string,
            self.credentials.consumer_secret,
            token.secret if token is not None else None,
        )

        return SignedRequest(
            method=method.upper(),
            url=url,
            oauth_params=oauth_params,
            base_string=base_string,
        )

    def authorize(
        self,
        method: str,
        url: str,
        data: Mapping[str, object] | None = None,
        token: OAuthToken | None = None,
        *,
        nonce: str | None = None,
        timestamp: str | None = None,
    ) -> dict[str, str]:
        """Same as sign() but only returns the oauth params."""
        return self.sign(
            method, url, data, token, nonce=nonce, timestamp=timestamp
        ).oauth_params

    @staticmethod
    def to_header(oauth_params: Mapping[str, str]) -> str:
        """Authorization header value for oauth params."""
        return to_header(oauth_params)
