"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from portfolio_sync.config.settings import get_settings
from portfolio_sync.config.logging_config import setup_logging
from portfolio_sync.repositories.sqlalchemy.database import init_db
from portfolio_sync.api.routers import (
    entries_router,
    preferences_router,
    projection_router,
    scenarios_router,
)
from portfolio_sync.core.exceptions import AppError

# AppError code -> HTTP status; anything else is a 400
ERROR_STATUS = {
    "VALIDATION_ERROR": 400,
    "SIGN_IN_REQUIRED": 401,
    "IDENTITY_MISMATCH": 403,
    "NOT_FOUND": 404,
    "REMOTE_STORE_ERROR": 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()
    yield
    # Shutdown (nothing to clean up)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Growth projections with local-first, cloud-synced calculator state",
    version=settings.app_version,
    lifespan=lifespan,
)

# Include routers
app.include_router(preferences_router)
app.include_router(entries_router)
app.include_router(scenarios_router)
app.include_router(projection_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.code, 400),
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
