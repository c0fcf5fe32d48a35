"""API router initialization."""

# Hey future me, this is the MAIN API router aggregator! Gets mounted at /api in main.py, so
# auth endpoints become /api/auth, /api/auth/callback, ... The health router is NOT in here,
# it lives at /health outside /api (Docker probes don't care about our API prefix).

from fastapi import APIRouter

from cratescope.api.routers import auth, catalog, collection, search

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(collection.router, tags=["Collection"])
api_router.include_router(search.router, tags=["Search"])
api_router.include_router(catalog.router, tags=["Catalog"])

__all__ = ["api_router"]
