"""Domain layer - pure business models with no external dependencies."""

from portfolio_sync.domain.models import (
    BoostAfter,
    ContributionChange,
    PauseAfter,
    PortfolioEntry,
    PortfolioState,
    Scenario,
    SyncStatus,
)

__all__ = [
    "BoostAfter",
    "ContributionChange",
    "PauseAfter",
    "PortfolioEntry",
    "PortfolioState",
    "Scenario",
    "SyncStatus",
]
