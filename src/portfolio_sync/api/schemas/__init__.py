"""Pydantic schemas for API request/response."""

from portfolio_sync.api.schemas.portfolio import (
    ContributionChangeSchema,
    PortfolioInputs,
    PortfolioPatch,
    PreferencesRequest,
    PreferencesResponse,
)
from portfolio_sync.api.schemas.entry import (
    EntryCreateRequest,
    EntryUpdateRequest,
    EntryResponse,
    EntryListResponse,
)
from portfolio_sync.api.schemas.scenario import (
    ScenarioCreateRequest,
    ScenarioUpdateRequest,
    ScenarioResponse,
    ScenarioListResponse,
)
from portfolio_sync.api.schemas.projection import (
    ProjectionRequest,
    ProjectionResponse,
    YearPointResponse,
    YearlyRowResponse,
)

__all__ = [
    "ContributionChangeSchema",
    "PortfolioInputs",
    "PortfolioPatch",
    "PreferencesRequest",
    "PreferencesResponse",
    "EntryCreateRequest",
    "EntryUpdateRequest",
    "EntryResponse",
    "EntryListResponse",
    "ScenarioCreateRequest",
    "ScenarioUpdateRequest",
    "ScenarioResponse",
    "ScenarioListResponse",
    "ProjectionRequest",
    "ProjectionResponse",
    "YearPointResponse",
    "YearlyRowResponse",
]
