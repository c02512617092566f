"""Pydantic schemas for saved scenario endpoints."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from portfolio_sync.api.schemas.portfolio import PortfolioPatch
from portfolio_sync.domain.models import Scenario


class ScenarioCreateRequest(BaseModel):
    """Request schema for saving a scenario."""

    id: Optional[str] = Field(default=None, max_length=64)
    name: str = Field(..., min_length=1, max_length=100)
    inputs: PortfolioPatch = Field(default_factory=PortfolioPatch)


class ScenarioUpdateRequest(BaseModel):
    """Request schema for renaming a scenario and/or replacing its inputs."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    inputs: Optional[PortfolioPatch] = None


class ScenarioResponse(BaseModel):
    """Response schema for a single scenario."""

    id: str
    name: str
    inputs: dict[str, Any]
    results: dict[str, Any]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, scenario: Scenario) -> "ScenarioResponse":
        return cls(
            id=scenario.scenario_id,
            name=scenario.name,
            inputs=scenario.inputs,
            results=scenario.results,
            created_at=scenario.created_at,
            updated_at=scenario.updated_at,
        )


class ScenarioListResponse(BaseModel):
    """Response schema for listing scenarios."""

    scenarios: list[ScenarioResponse]
    count: int
