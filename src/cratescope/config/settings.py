"""Application settings loaded from environment variables and .env."""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiscogsSettings(BaseModel):
    """Discogs API configuration.

    Hey future me - consumer_key/consumer_secret come from the Discogs developer
    settings page (Settings → Developers → Create an Application). They are the
    SAME pair for OAuth signing and for the "Discogs key=..., secret=..." fallback
    header. Never hardcode them here, put them in .env as DISCOGS__CONSUMER_KEY etc.
    """

    consumer_key: str = ""
    consumer_secret: str = ""
    api_base_url: str = "https://api.discogs.com"
    request_token_url: str = "https://api.discogs.com/oauth/request_token"
    authorize_url: str = "https://www.discogs.com/oauth/authorize"
    access_token_url: str = "https://api.discogs.com/oauth/access_token"
    # Discogs rejects requests without a User-Agent identifying the client
    user_agent: str = "cratescope/0.1.0 +https://github.com/cratescope/cratescope"
    timeout_seconds: float = Field(default=15.0, gt=0)
    max_consecutive_rate_limits: int = Field(default=3, ge=1)

    @property
    def is_configured(self) -> bool:
        """Check whether consumer credentials are present."""
        return bool(self.consumer_key and self.consumer_secret)


class RateLimitSettings(BaseModel):
    """Client-side throttling for the Discogs API.

    Discogs allows 60 authenticated requests per minute. We stay at 55 so a
    few stray calls (handshake, health checks) never push us over.
    """

    capacity_per_window: int = Field(default=55, ge=1)
    window_seconds: float = Field(default=60.0, gt=0)
    min_spacing_seconds: float = Field(default=0.05, ge=0)
    backoff_base_seconds: float = Field(default=2.0, gt=0)
    max_backoff_seconds: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=3, ge=0)


class CollectionSettings(BaseModel):
    """Collection fetch and enrichment tuning."""

    max_items: int = Field(default=50, ge=1, le=100)
    batch_size: int = Field(default=5, ge=1)
    batch_delay_seconds: float = Field(default=1.5, ge=0)
    cache_ttl_seconds: int = Field(default=3600, ge=1)
    checkpoint_ttl_seconds: int = Field(default=300, ge=1)


class ObservabilitySettings(BaseModel):
    """Logging configuration."""

    log_json_format: bool = False


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "cratescope"
    log_level: str = "INFO"
    secure_cookies: bool = False

    discogs: DiscogsSettings = Field(default_factory=DiscogsSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    collection: CollectionSettings = Field(default_factory=CollectionSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


# Hey future me - lru_cache makes this a process-wide singleton. Tests that need
# different values should build Settings(...) directly and override the FastAPI
# dependency instead of fiddling with env vars and cache_clear().
@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
