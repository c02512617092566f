"""Effective annual growth rate for a projection year."""

from dataclasses import dataclass

from portfolio_sync.domain.models import PortfolioState

CONSERVATIVE_FACTOR = 0.6

# Last projection year of each declining-rate phase
PHASE1_LAST_YEAR = 10
PHASE2_LAST_YEAR = 20


@dataclass(frozen=True)
class RateAdjustments:
    """Policy flags and parameters applied on top of a base rate."""

    use_conservative_rate: bool = False
    use_declining_rates: bool = False
    phase1_rate: float = 30.0
    phase2_rate: float = 20.0
    phase3_rate: float = 15.0
    use_inflation_adjustment: bool = False
    inflation_rate: float = 3.0

    @classmethod
    def from_state(cls, state: PortfolioState) -> "RateAdjustments":
        """Build the policy from a portfolio state's input fields."""
        return cls(
            use_conservative_rate=state.use_conservative_rate,
            use_declining_rates=state.use_declining_rates,
            phase1_rate=state.phase1_rate,
            phase2_rate=state.phase2_rate,
            phase3_rate=state.phase3_rate,
            use_inflation_adjustment=state.use_inflation_adjustment,
            inflation_rate=state.inflation_rate,
        )


NO_ADJUSTMENTS = RateAdjustments()


def resolve_rate(year: int, base_rate_percent: float, policy: RateAdjustments = NO_ADJUSTMENTS) -> float:
    """
    Return the effective rate (percent, never negative) for `year`.

    Steps run in a fixed order:
    1. start from the base rate
    2. conservative scaling (x0.6)
    3. declining phases replace the rate (years 1-10, 11-20, 21+), scaled
       by x0.6 again when conservative scaling is also on
    4. inflation is subtracted in percentage points
    5. floor at zero
    """
    rate = base_rate_percent

    if policy.use_conservative_rate:
        rate = rate * CONSERVATIVE_FACTOR

    if policy.use_declining_rates:
        if year <= PHASE1_LAST_YEAR:
            rate = policy.phase1_rate
        elif year <= PHASE2_LAST_YEAR:
            rate = policy.phase2_rate
        else:
            rate = policy.phase3_rate

        if policy.use_conservative_rate:
            rate = rate * CONSERVATIVE_FACTOR

    if policy.use_inflation_adjustment:
        rate = rate - policy.inflation_rate

    return max(0.0, rate)
