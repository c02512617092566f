"""Dependency injection for FastAPI."""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from portfolio_sync.config.settings import get_settings
from portfolio_sync.core.exceptions import SignInRequiredError
from portfolio_sync.providers.stub_provider import StubGrowthRateProvider
from portfolio_sync.repositories.http.remote_store import USER_HEADER
from portfolio_sync.repositories.sqlalchemy.database import get_db
from portfolio_sync.repositories.sqlalchemy import SqlAlchemyRemoteRepository
from portfolio_sync.services import MarketDataService

_market_data_service: Optional[MarketDataService] = None


def get_user_id(x_user_id: Optional[str] = Header(default=None, alias=USER_HEADER)) -> str:
    """Resolve the caller's identity; user-scoped routes reject anonymous calls."""
    if not x_user_id or not x_user_id.strip():
        raise SignInRequiredError("access your portfolio")
    return x_user_id.strip()


def get_remote_repo(db: Session = Depends(get_db)) -> SqlAlchemyRemoteRepository:
    """Provide SqlAlchemyRemoteRepository instance."""
    return SqlAlchemyRemoteRepository(db)


def get_market_data_service() -> MarketDataService:
    """Provide the shared MarketDataService (its cache outlives a request)."""
    global _market_data_service
    if _market_data_service is None:
        settings = get_settings()
        _market_data_service = MarketDataService(
            provider=StubGrowthRateProvider(),
            cache_ttl_seconds=settings.market_data_cache_ttl_seconds,
        )
    return _market_data_service
