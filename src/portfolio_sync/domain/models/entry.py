"""PortfolioEntry domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from portfolio_sync.core.exceptions import ValidationError
from portfolio_sync.core.timezone import parse_datetime_utc, to_utc

SAMPLE_ID_PREFIX = "sample-"


@dataclass
class PortfolioEntry:
    """
    An observed portfolio amount compared against the projected target.

    Variance is computed once when the entry is created (or explicitly
    edited) and stored; later changes to projection assumptions never
    rewrite it.
    """

    entry_id: str
    amount: float
    target: float
    variance: float
    variance_percentage: float
    created_at: Optional[datetime] = field(default=None)
    owner_id: Optional[str] = None

    @property
    def is_sample(self) -> bool:
        """Return True for the illustrative entries shown to anonymous users."""
        return self.entry_id.startswith(SAMPLE_ID_PREFIX)

    @classmethod
    def create(
        cls,
        entry_id: str,
        amount: Any,
        target: Any,
        created_at: Optional[datetime] = None,
        owner_id: Optional[str] = None,
    ) -> "PortfolioEntry":
        """Validate inputs and compute the variance snapshot."""
        amount_value = validate_amount(amount)
        target_value = validate_target(target)
        variance = amount_value - target_value
        variance_percentage = (variance / target_value) * 100 if target_value > 0 else 0.0
        return cls(
            entry_id=entry_id,
            amount=amount_value,
            target=target_value,
            variance=variance,
            variance_percentage=variance_percentage,
            created_at=created_at,
            owner_id=owner_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.entry_id,
            "amount": self.amount,
            "target": self.target,
            "variance": self.variance,
            "variance_percentage": self.variance_percentage,
            "created_at": to_utc(self.created_at).isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PortfolioEntry":
        created_at = data.get("created_at")
        return cls(
            entry_id=str(data["id"]),
            amount=float(data["amount"]),
            target=float(data["target"]),
            variance=float(data["variance"]),
            variance_percentage=float(data["variance_percentage"]),
            created_at=parse_datetime_utc(created_at) if created_at else None,
            owner_id=data.get("owner_id"),
        )


def validate_amount(value: Any) -> float:
    """Return `value` as a positive float or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError("Please enter a valid amount")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Please enter a valid amount")
    if amount != amount or amount <= 0 or amount == float("inf"):
        raise ValidationError("Please enter a valid amount")
    return amount


def validate_target(value: Any) -> float:
    """Return `value` as a finite float or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError("Target must be a number")
    try:
        target = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Target must be a number")
    if target != target or target in (float("inf"), float("-inf")):
        raise ValidationError("Target must be a finite number")
    return target
