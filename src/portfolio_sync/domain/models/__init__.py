"""Domain models package."""

from portfolio_sync.domain.models.enums import ContributionChangeKind, SyncStatus
from portfolio_sync.domain.models.contribution import (
    DEFAULT_BOOST_AMOUNT,
    BoostAfter,
    ContributionChange,
    PauseAfter,
    contribution_change_from_dict,
)
from portfolio_sync.domain.models.portfolio import (
    DERIVED_FIELDS,
    INPUT_FIELDS,
    PortfolioState,
)
from portfolio_sync.domain.models.entry import (
    SAMPLE_ID_PREFIX,
    PortfolioEntry,
    validate_amount,
)
from portfolio_sync.domain.models.scenario import Scenario

__all__ = [
    "ContributionChangeKind",
    "SyncStatus",
    "DEFAULT_BOOST_AMOUNT",
    "BoostAfter",
    "ContributionChange",
    "PauseAfter",
    "contribution_change_from_dict",
    "DERIVED_FIELDS",
    "INPUT_FIELDS",
    "PortfolioState",
    "SAMPLE_ID_PREFIX",
    "PortfolioEntry",
    "validate_amount",
    "Scenario",
]
