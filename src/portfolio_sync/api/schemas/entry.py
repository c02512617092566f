"""Pydantic schemas for portfolio entry endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from portfolio_sync.domain.models import PortfolioEntry


class EntryCreateRequest(BaseModel):
    """Request schema for recording a portfolio amount."""

    id: Optional[str] = Field(default=None, max_length=64, description="Client-generated id")
    amount: float = Field(..., description="Observed portfolio amount")
    target: Optional[float] = Field(
        default=None,
        description="Projected target; computed from stored inputs when omitted",
    )
    created_at: Optional[datetime] = None


class EntryUpdateRequest(BaseModel):
    """Request schema for editing an entry (variance is recomputed)."""

    amount: float
    target: float
    created_at: Optional[datetime] = None


class EntryResponse(BaseModel):
    """Response schema for a single entry."""

    id: str
    amount: float
    target: float
    variance: float
    variance_percentage: float
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, entry: PortfolioEntry) -> "EntryResponse":
        return cls(
            id=entry.entry_id,
            amount=entry.amount,
            target=entry.target,
            variance=entry.variance,
            variance_percentage=entry.variance_percentage,
            created_at=entry.created_at,
        )


class EntryListResponse(BaseModel):
    """Response schema for listing entries."""

    entries: list[EntryResponse]
    count: int
