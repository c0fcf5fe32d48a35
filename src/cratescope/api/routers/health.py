# Hey future me - Health Checks für Docker!
#
# Endpoints:
# - /health       → Status + rate limiter budget + cache sizes
# - /health/live  → Liveness probe (app is running)
#
# Use case: Docker HEALTHCHECK: curl -f http://localhost:8000/health/live || exit 1
"""Health check endpoints."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from cratescope import __version__
from cratescope.api.dependencies import get_rate_limiter, get_settings
from cratescope.config import Settings
from cratescope.infrastructure.rate_limiter import RateLimiter

router = APIRouter()


class HealthStatus(BaseModel):
    """Overall health status response."""

    status: str = Field(description="healthy or degraded")
    timestamp: str = Field(description="ISO timestamp of health check")
    version: str = Field(default=__version__, description="Application version")
    discogs_configured: bool = Field(description="Consumer key/secret present")
    rate_limiter: dict[str, Any] = Field(
        default_factory=dict, description="Current window budget and queue depth"
    )
    caches: dict[str, Any] = Field(default_factory=dict, description="Cache entry counts")


class LivenessStatus(BaseModel):
    """Simple liveness probe response."""

    status: str = Field(description="alive")
    timestamp: str = Field(description="ISO timestamp")


@router.get("/live", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """Liveness probe - no dependency checks."""
    return LivenessStatus(status="alive", timestamp=datetime.now(UTC).isoformat())


@router.get("", response_model=HealthStatus)
async def health(
    request: Request,
    settings: Settings = Depends(get_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> HealthStatus:
    """Health plus a snapshot of the shared rate limiter.

    Degraded (still 200) when Discogs credentials are missing - the reference
    data endpoints keep working, everything else answers 503.
    """
    state = request.app.state
    configured = settings.discogs.is_configured
    return HealthStatus(
        status="healthy" if configured else "degraded",
        timestamp=datetime.now(UTC).isoformat(),
        discogs_configured=configured,
        rate_limiter=limiter.get_stats(),
        caches={
            "collections": state.collection_cache.get_stats(),
            "checkpoints": state.checkpoint_cache.get_stats(),
            "release_details": state.detail_cache.get_stats(),
        },
    )
