"""Domain value objects."""

from cratescope.domain.value_objects.oauth import OAuthCredentials, OAuthToken

__all__ = ["OAuthCredentials", "OAuthToken"]
