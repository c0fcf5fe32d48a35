"""Configuration module for cratescope."""

from .settings import (
    CollectionSettings,
    DiscogsSettings,
    ObservabilitySettings,
    RateLimitSettings,
    Settings,
    get_settings,
)

__all__ = [
    "CollectionSettings",
    "DiscogsSettings",
    "ObservabilitySettings",
    "RateLimitSettings",
    "Settings",
    "get_settings",
]
