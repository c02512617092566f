"""View models for projection outputs."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ProjectionResult:
    """Final value and total invested at the end of the horizon."""

    final_value: int
    total_contributed: int


@dataclass(frozen=True)
class YearPoint:
    """Projection value after a given year (1-based)."""

    year: int
    value: int
    contributed: int


@dataclass(frozen=True)
class YearlyRow:
    """One row of the year-by-year table."""

    year: int  # Calendar year
    age: Optional[int]
    contributions: int
    asset_value: int
    hurdle_value: int
    asset_gains: int
    outperformance: int
