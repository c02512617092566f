"""Contribution schedule changes (pause or boost after a given year)."""

from dataclasses import dataclass
from typing import Any, Optional, Union

from portfolio_sync.domain.models.enums import ContributionChangeKind

DEFAULT_BOOST_AMOUNT = 1000.0


@dataclass(frozen=True)
class PauseAfter:
    """Stop monthly contributions once the projection passes `year`."""

    year: int

    @property
    def kind(self) -> ContributionChangeKind:
        return ContributionChangeKind.PAUSE

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "year": self.year}


@dataclass(frozen=True)
class BoostAfter:
    """Switch to `monthly_amount` once the projection passes `year`."""

    year: int
    monthly_amount: float = DEFAULT_BOOST_AMOUNT

    @property
    def kind(self) -> ContributionChangeKind:
        return ContributionChangeKind.BOOST

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "year": self.year,
            "monthly_amount": self.monthly_amount,
        }


ContributionChange = Union[PauseAfter, BoostAfter]


def contribution_change_from_dict(data: Optional[dict[str, Any]]) -> Optional[ContributionChange]:
    """
    Rebuild a contribution change from its serialized form.

    Returns None for None; raises ValueError/KeyError on malformed input.
    """
    if data is None:
        return None
    kind = ContributionChangeKind(data["kind"])
    year = int(data["year"])
    if kind == ContributionChangeKind.PAUSE:
        return PauseAfter(year=year)
    amount = data.get("monthly_amount")
    return BoostAfter(
        year=year,
        monthly_amount=DEFAULT_BOOST_AMOUNT if amount is None else float(amount),
    )
