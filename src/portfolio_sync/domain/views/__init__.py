"""View models for service outputs."""

from portfolio_sync.domain.views.projection import (
    ProjectionResult,
    YearPoint,
    YearlyRow,
)

__all__ = [
    "ProjectionResult",
    "YearPoint",
    "YearlyRow",
]
