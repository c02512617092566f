"""Pydantic schemas for the projection endpoint."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from portfolio_sync.api.schemas.portfolio import PortfolioPatch


class ProjectionRequest(PortfolioPatch):
    """Portfolio inputs plus the calendar year the projection starts from."""

    current_year: Optional[int] = Field(default=None, ge=1900, le=3000)

    def to_patch(self) -> dict[str, Any]:
        patch = super().to_patch()
        patch.pop("current_year", None)
        return patch


class YearPointResponse(BaseModel):
    year: int
    value: int
    contributed: int


class YearlyRowResponse(BaseModel):
    year: int
    age: Optional[int] = None
    contributions: int
    asset_value: int
    hurdle_value: int
    asset_gains: int
    outperformance: int


class ProjectionResponse(BaseModel):
    """Response schema for a projection."""

    final_value: int
    total_contributed: int
    future_value: int
    hurdle_value: int
    outperformance: int
    target_year: int
    future_age: Optional[int] = None
    series: list[YearPointResponse]
    yearly_table: list[YearlyRowResponse]
