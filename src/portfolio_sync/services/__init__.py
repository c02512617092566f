"""Service layer - projection, sync and scenario orchestration."""

from portfolio_sync.services.growth_rate_policy import NO_ADJUSTMENTS, RateAdjustments, resolve_rate
from portfolio_sync.services.projection_engine import (
    build_yearly_table,
    compute_derived,
    monthly_contribution_for_year,
    project,
    project_series,
    project_state,
    project_state_series,
    target_value_at,
    with_derived,
)
from portfolio_sync.services.change_detector import fingerprint
from portfolio_sync.services.broadcast import (
    BroadcastChannel,
    InProcessBroadcastChannel,
    StateBroadcast,
)
from portfolio_sync.services.sync_coordinator import StateSyncCoordinator
from portfolio_sync.services.scenario_service import ScenarioService
from portfolio_sync.services.market_data_service import MarketDataService

__all__ = [
    "NO_ADJUSTMENTS",
    "RateAdjustments",
    "resolve_rate",
    "build_yearly_table",
    "compute_derived",
    "monthly_contribution_for_year",
    "project",
    "project_series",
    "project_state",
    "project_state_series",
    "target_value_at",
    "with_derived",
    "fingerprint",
    "BroadcastChannel",
    "InProcessBroadcastChannel",
    "StateBroadcast",
    "StateSyncCoordinator",
    "ScenarioService",
    "MarketDataService",
]
