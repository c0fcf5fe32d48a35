"""OAuth 1.0a credential value objects."""

from dataclasses import dataclass


@dataclass(frozen=True)
class OAuthCredentials:
    """Consumer key/secret pair registered with Discogs.

    Process-wide, loaded once from settings.
    """

    consumer_key: str
    consumer_secret: str

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks
        return f"OAuthCredentials(consumer_key={self.consumer_key!r}, consumer_secret='***')"


@dataclass(frozen=True)
class OAuthToken:
    """Token/secret pair (request token during the handshake, access token after).

    Hey future me - the core never stores these! They live in the user's
    cookies and get passed in per request.
    """

    key: str
    secret: str

    def __repr__(self) -> str:
        return f"OAuthToken(key={self.key!r}, secret='***')"
