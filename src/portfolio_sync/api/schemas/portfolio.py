"""Pydantic schemas for portfolio inputs and preferences endpoints."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from portfolio_sync.domain.models import PortfolioState
from portfolio_sync.domain.models.enums import ContributionChangeKind


class ContributionChangeSchema(BaseModel):
    """Pause or boost of monthly contributions after a given year."""

    kind: ContributionChangeKind
    year: int = Field(..., ge=1, description="Last year at the base monthly amount")
    monthly_amount: Optional[float] = Field(
        default=None,
        ge=0,
        description="Boosted monthly amount (boost only)",
    )


class PortfolioInputs(BaseModel):
    """The persisted input fields of a portfolio state."""

    model_config = {"extra": "forbid"}

    starting_amount: float = Field(default=0.0, ge=0)
    monthly_amount: float = Field(default=500.0, ge=0)
    years: int = Field(default=20, ge=1)
    current_age: Optional[int] = Field(default=None, ge=0)
    hurdle_rate: float = 30.0
    selected_asset: str = Field(default="BTC", min_length=1, max_length=50)
    custom_cagr: float = 30.0
    contribution_change: Optional[ContributionChangeSchema] = None
    use_conservative_rate: bool = False
    use_declining_rates: bool = False
    phase1_rate: float = 30.0
    phase2_rate: float = 20.0
    phase3_rate: float = 15.0
    use_inflation_adjustment: bool = False
    inflation_rate: float = 3.0

    @classmethod
    def from_state(cls, state: PortfolioState) -> "PortfolioInputs":
        return cls.model_validate(state.input_dict())


class PortfolioPatch(PortfolioInputs):
    """
    Request schema for portfolio inputs.

    Accepts the convenience schedule keys as well; only fields actually
    sent are applied, the rest keep their defaults.
    """

    pause_after_year: Optional[int] = None
    boost_after_year: Optional[int] = None
    boost_amount: Optional[float] = Field(default=None, ge=0)

    def to_patch(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)

    def to_state(self) -> PortfolioState:
        """Validate the sent fields on top of the default state."""
        return PortfolioState().apply_patch(self.to_patch())


class PreferencesRequest(BaseModel):
    """Request schema for replacing a user's stored inputs."""

    inputs: PortfolioPatch


class PreferencesResponse(BaseModel):
    """Response schema for a user's stored inputs."""

    inputs: PortfolioInputs
