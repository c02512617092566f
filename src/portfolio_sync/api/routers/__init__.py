"""API routers package."""

from portfolio_sync.api.routers.preferences import router as preferences_router
from portfolio_sync.api.routers.entries import router as entries_router
from portfolio_sync.api.routers.scenarios import router as scenarios_router
from portfolio_sync.api.routers.projection import router as projection_router

__all__ = [
    "preferences_router",
    "entries_router",
    "scenarios_router",
    "projection_router",
]
