"""FastAPI application factory.

Run with:
    uvicorn cratescope.main:app --workers 1
"""

from fastapi import FastAPI

from cratescope import __version__
from cratescope.api.exception_handlers import register_exception_handlers
from cratescope.api.routers import api_router, health
from cratescope.config import Settings
from cratescope.infrastructure.lifecycle import lifespan
from cratescope.infrastructure.observability import RequestLoggingMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from env/.env on startup when omitted

    Returns:
        Configured FastAPI app (lifespan not yet started)
    """
    app = FastAPI(
        title="cratescope",
        description="Discogs collection rarity stats and catalog search",
        version=__version__,
        lifespan=lifespan,
    )
    if settings is not None:
        app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(health.router, prefix="/health", tags=["Health"])
    return app


app = create_app()
