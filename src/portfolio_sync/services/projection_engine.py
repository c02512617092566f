"""Year-by-year compounding projection."""

import math
from dataclasses import replace
from datetime import date, datetime, time
from typing import Iterator, Optional

from portfolio_sync.core.timezone import UTC_TZ, now_utc, to_utc
from portfolio_sync.domain.models import PortfolioState
from portfolio_sync.domain.views import ProjectionResult, YearlyRow, YearPoint
from portfolio_sync.services.growth_rate_policy import (
    NO_ADJUSTMENTS,
    RateAdjustments,
    resolve_rate,
)

MONTHS_PER_YEAR = 12
DAYS_PER_MONTH = 30.44
# Largest integer a JSON number (IEEE double) holds exactly
MAX_CURRENCY_VALUE = 2**53 - 1


def round_currency(value: float) -> int:
    """
    Floor at zero, then round half-up to a whole currency unit.

    Values past MAX_CURRENCY_VALUE (including overflow to infinity) are capped.
    """
    value = max(0.0, value)
    if value >= MAX_CURRENCY_VALUE:
        return MAX_CURRENCY_VALUE
    return math.floor(value + 0.5)


def monthly_contribution_for_year(
    year: int,
    monthly_contribution: float,
    pause_after_year: Optional[int] = None,
    boost_after_year: Optional[int] = None,
    boosted_monthly_amount: Optional[float] = None,
) -> float:
    """
    Return the monthly contribution in effect during `year`.

    Pause is checked before boost, so pause wins when both are given.
    """
    if pause_after_year and year > pause_after_year:
        return 0.0
    if boost_after_year and year > boost_after_year:
        return boosted_monthly_amount or 0.0
    return monthly_contribution


def _iterate(
    starting_capital: float,
    monthly_contribution: float,
    base_rate_percent: float,
    horizon_years: int,
    pause_after_year: Optional[int],
    boost_after_year: Optional[int],
    boosted_monthly_amount: Optional[float],
    policy: RateAdjustments,
) -> Iterator[tuple[int, float, float]]:
    """Yield (year, running value, running contributed) with no rounding."""
    value = starting_capital
    contributed = starting_capital

    for year in range(1, horizon_years + 1):
        rate = resolve_rate(year, base_rate_percent, policy) / 100
        monthly = monthly_contribution_for_year(
            year,
            monthly_contribution,
            pause_after_year,
            boost_after_year,
            boosted_monthly_amount,
        )
        yearly_contribution = monthly * MONTHS_PER_YEAR
        contributed += yearly_contribution
        # End-of-year deposit: growth first, then the new money
        value = value * (1 + rate) + yearly_contribution
        yield year, value, contributed


def project(
    starting_capital: float,
    monthly_contribution: float,
    base_rate_percent: float,
    horizon_years: int,
    pause_after_year: Optional[int] = None,
    boost_after_year: Optional[int] = None,
    boosted_monthly_amount: Optional[float] = None,
    policy: Optional[RateAdjustments] = None,
) -> ProjectionResult:
    """
    Project the value of a recurring investment after `horizon_years`.

    A horizon of zero returns the starting capital unchanged.
    """
    value = starting_capital
    contributed = starting_capital
    for _, value, contributed in _iterate(
        starting_capital,
        monthly_contribution,
        base_rate_percent,
        horizon_years,
        pause_after_year,
        boost_after_year,
        boosted_monthly_amount,
        policy or NO_ADJUSTMENTS,
    ):
        pass

    return ProjectionResult(
        final_value=round_currency(value),
        total_contributed=round_currency(contributed),
    )


def project_series(
    starting_capital: float,
    monthly_contribution: float,
    base_rate_percent: float,
    horizon_years: int,
    pause_after_year: Optional[int] = None,
    boost_after_year: Optional[int] = None,
    boosted_monthly_amount: Optional[float] = None,
    policy: Optional[RateAdjustments] = None,
) -> list[YearPoint]:
    """
    Return one point per projection year (1..horizon).

    Each point equals what `project` returns for that year as the horizon.
    """
    return [
        YearPoint(
            year=year,
            value=round_currency(value),
            contributed=round_currency(contributed),
        )
        for year, value, contributed in _iterate(
            starting_capital,
            monthly_contribution,
            base_rate_percent,
            horizon_years,
            pause_after_year,
            boost_after_year,
            boosted_monthly_amount,
            policy or NO_ADJUSTMENTS,
        )
    ]


def project_state(
    state: PortfolioState,
    base_rate_percent: Optional[float] = None,
    horizon_years: Optional[int] = None,
) -> ProjectionResult:
    """Project a portfolio state (custom rate and full horizon by default)."""
    return project(
        state.starting_amount,
        state.monthly_amount,
        state.custom_cagr if base_rate_percent is None else base_rate_percent,
        state.years if horizon_years is None else horizon_years,
        pause_after_year=state.pause_after_year,
        boost_after_year=state.boost_after_year,
        boosted_monthly_amount=state.boost_amount,
        policy=RateAdjustments.from_state(state),
    )


def project_state_series(
    state: PortfolioState,
    base_rate_percent: Optional[float] = None,
) -> list[YearPoint]:
    """Per-year series for a portfolio state."""
    return project_series(
        state.starting_amount,
        state.monthly_amount,
        state.custom_cagr if base_rate_percent is None else base_rate_percent,
        state.years,
        pause_after_year=state.pause_after_year,
        boost_after_year=state.boost_after_year,
        boosted_monthly_amount=state.boost_amount,
        policy=RateAdjustments.from_state(state),
    )


def compute_derived(state: PortfolioState, current_year: Optional[int] = None) -> dict:
    """
    Compute the derived fields of a state from its inputs.

    The benchmark runs the same strategy and policy at the hurdle rate.
    """
    if current_year is None:
        current_year = now_utc().year

    future_value = project_state(state).final_value
    hurdle_value = project_state(state, base_rate_percent=state.hurdle_rate).final_value

    return {
        "future_value": future_value,
        "hurdle_value": hurdle_value,
        "outperformance": future_value - hurdle_value,
        "target_year": current_year + state.years,
        "future_age": state.current_age + state.years if state.current_age is not None else None,
    }


def with_derived(state: PortfolioState, current_year: Optional[int] = None) -> PortfolioState:
    """Return a copy of `state` with freshly computed derived fields."""
    return replace(state, **compute_derived(state, current_year))


def build_yearly_table(state: PortfolioState, current_year: Optional[int] = None) -> list[YearlyRow]:
    """
    Build the year-by-year table for a state.

    A row for the current calendar year is included only when there is a
    starting amount.
    """
    if current_year is None:
        current_year = now_utc().year

    rows: list[YearlyRow] = []
    if state.starting_amount > 0:
        starting = round_currency(state.starting_amount)
        rows.append(
            YearlyRow(
                year=current_year,
                age=state.current_age,
                contributions=starting,
                asset_value=starting,
                hurdle_value=starting,
                asset_gains=0,
                outperformance=0,
            )
        )

    asset_series = project_state_series(state)
    hurdle_series = project_state_series(state, base_rate_percent=state.hurdle_rate)
    for asset, hurdle in zip(asset_series, hurdle_series):
        rows.append(
            YearlyRow(
                year=current_year + asset.year,
                age=state.current_age + asset.year if state.current_age is not None else None,
                contributions=asset.contributed,
                asset_value=asset.value,
                hurdle_value=hurdle.value,
                asset_gains=asset.value - asset.contributed,
                outperformance=asset.value - hurdle.value,
            )
        )
    return rows


def target_value_at(state: PortfolioState, at: datetime, baseline: date) -> int:
    """
    Return the projected target for a portfolio entry recorded at `at`.

    Elapsed time since `baseline` is counted in 30.44-day months and rounded
    up to whole projection years.
    """
    baseline_dt = UTC_TZ.localize(datetime.combine(baseline, time.min))
    elapsed_days = (to_utc(at) - baseline_dt).total_seconds() / 86400
    months_elapsed = max(0, math.floor(elapsed_days / DAYS_PER_MONTH))
    years_elapsed = months_elapsed / MONTHS_PER_YEAR

    if years_elapsed <= 0:
        return round_currency(state.starting_amount)

    return project_state(state, horizon_years=math.ceil(years_elapsed)).final_value
