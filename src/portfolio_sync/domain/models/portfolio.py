"""PortfolioState domain model."""

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from portfolio_sync.core.exceptions import ValidationError
from portfolio_sync.domain.models.contribution import (
    DEFAULT_BOOST_AMOUNT,
    BoostAfter,
    ContributionChange,
    PauseAfter,
    contribution_change_from_dict,
)

INPUT_FIELDS: tuple[str, ...] = (
    "starting_amount",
    "monthly_amount",
    "years",
    "current_age",
    "hurdle_rate",
    "selected_asset",
    "custom_cagr",
    "contribution_change",
    "use_conservative_rate",
    "use_declining_rates",
    "phase1_rate",
    "phase2_rate",
    "phase3_rate",
    "use_inflation_adjustment",
    "inflation_rate",
)

DERIVED_FIELDS: tuple[str, ...] = (
    "future_value",
    "hurdle_value",
    "outperformance",
    "target_year",
    "future_age",
)

# Patch keys that map onto contribution_change
SCHEDULE_KEYS: tuple[str, ...] = ("pause_after_year", "boost_after_year", "boost_amount")

_FLOAT_FIELDS = {
    "starting_amount",
    "monthly_amount",
    "hurdle_rate",
    "custom_cagr",
    "phase1_rate",
    "phase2_rate",
    "phase3_rate",
    "inflation_rate",
}
_INT_FIELDS = {"years", "current_age"}
_BOOL_FIELDS = {
    "use_conservative_rate",
    "use_declining_rates",
    "use_inflation_adjustment",
}


@dataclass
class PortfolioState:
    """
    The single authoritative calculator configuration plus its last outputs.

    Input fields are user-controlled. Derived fields are recomputed from the
    inputs on every change and are never a source of truth on their own.
    IMPORTANT: Mutate only through StateSyncCoordinator.update_state.
    """

    # Inputs
    starting_amount: float = 0.0
    monthly_amount: float = 500.0
    years: int = 20
    current_age: Optional[int] = None
    hurdle_rate: float = 30.0
    selected_asset: str = "BTC"
    custom_cagr: float = 30.0
    contribution_change: Optional[ContributionChange] = None
    use_conservative_rate: bool = False
    use_declining_rates: bool = False
    phase1_rate: float = 30.0
    phase2_rate: float = 20.0
    phase3_rate: float = 15.0
    use_inflation_adjustment: bool = False
    inflation_rate: float = 3.0

    # Derived
    future_value: int = 0
    hurdle_value: int = 0
    outperformance: int = 0
    target_year: Optional[int] = None
    future_age: Optional[int] = None

    last_updated: Optional[str] = field(default=None)

    @property
    def pause_after_year(self) -> Optional[int]:
        if isinstance(self.contribution_change, PauseAfter):
            return self.contribution_change.year
        return None

    @property
    def boost_after_year(self) -> Optional[int]:
        if isinstance(self.contribution_change, BoostAfter):
            return self.contribution_change.year
        return None

    @property
    def boost_amount(self) -> Optional[float]:
        if isinstance(self.contribution_change, BoostAfter):
            return self.contribution_change.monthly_amount
        return None

    def input_dict(self) -> dict[str, Any]:
        """Return exactly the input fields, JSON-ready."""
        data = {name: getattr(self, name) for name in INPUT_FIELDS}
        if self.contribution_change is not None:
            data["contribution_change"] = self.contribution_change.to_dict()
        return data

    def derived_dict(self) -> dict[str, Any]:
        """Return the derived fields."""
        return {name: getattr(self, name) for name in DERIVED_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        """Serialize the full state (inputs, derived fields, timestamp)."""
        data = self.input_dict()
        data.update(self.derived_dict())
        data["last_updated"] = self.last_updated
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PortfolioState":
        """
        Build a state from a serialized mapping.

        Missing input fields fall back to defaults; unknown keys are ignored.
        Raises ValidationError when a present field cannot be coerced.
        """
        state = cls()
        inputs = {k: v for k, v in data.items() if k in INPUT_FIELDS or k in SCHEDULE_KEYS}
        if inputs:
            state = state.apply_patch(inputs, validate_ranges=False)
        derived = {}
        for name in DERIVED_FIELDS:
            if data.get(name) is not None:
                derived[name] = _coerce_int(name, data[name])
        last_updated = data.get("last_updated")
        return replace(
            state,
            **derived,
            last_updated=str(last_updated) if last_updated is not None else None,
        )

    def apply_patch(self, patch: Mapping[str, Any], validate_ranges: bool = True) -> "PortfolioState":
        """
        Return a new state with `patch` merged into the input fields.

        Derived keys and `last_updated` in the patch are ignored. Unknown keys,
        uncoercible values and (when validate_ranges) out-of-range values raise
        ValidationError; self is never modified.
        """
        unknown = [
            key for key in patch
            if key not in INPUT_FIELDS
            and key not in SCHEDULE_KEYS
            and key not in DERIVED_FIELDS
            and key != "last_updated"
        ]
        if unknown:
            raise ValidationError(f"Unknown portfolio field(s): {', '.join(sorted(unknown))}")

        changes: dict[str, Any] = {}
        for key, value in patch.items():
            if key not in INPUT_FIELDS or key == "contribution_change":
                continue
            changes[key] = _coerce_field(key, value)

        schedule_touched = "contribution_change" in patch or any(k in patch for k in SCHEDULE_KEYS)
        if schedule_touched:
            changes["contribution_change"] = self._merge_schedule(patch)

        updated = replace(self, **changes)
        if validate_ranges:
            updated._validate(check_schedule=schedule_touched or "years" in changes)
        return updated

    def _merge_schedule(self, patch: Mapping[str, Any]) -> Optional[ContributionChange]:
        """Resolve contribution_change and its convenience keys into one variant."""
        current = self.contribution_change
        if "contribution_change" in patch:
            current = _coerce_change(patch["contribution_change"])

        pause = patch.get("pause_after_year")
        boost = patch.get("boost_after_year")
        if pause is not None and boost is not None:
            raise ValidationError("Pause and boost cannot both be set")

        if "pause_after_year" in patch:
            if pause is not None:
                current = PauseAfter(year=_coerce_int("pause_after_year", pause))
            elif isinstance(current, PauseAfter):
                current = None

        if "boost_after_year" in patch:
            if boost is not None:
                amount = patch.get("boost_amount")
                if amount is None:
                    amount = (
                        current.monthly_amount
                        if isinstance(current, BoostAfter)
                        else DEFAULT_BOOST_AMOUNT
                    )
                current = BoostAfter(
                    year=_coerce_int("boost_after_year", boost),
                    monthly_amount=_coerce_float("boost_amount", amount),
                )
            elif isinstance(current, BoostAfter):
                current = None
        elif patch.get("boost_amount") is not None:
            if not isinstance(current, BoostAfter):
                raise ValidationError("boost_amount requires an active boost")
            current = replace(
                current,
                monthly_amount=_coerce_float("boost_amount", patch["boost_amount"]),
            )

        return current

    def _validate(self, check_schedule: bool) -> None:
        if self.starting_amount < 0:
            raise ValidationError("Starting amount cannot be negative")
        if self.monthly_amount < 0:
            raise ValidationError("Monthly amount cannot be negative")
        if self.years < 1:
            raise ValidationError("Years must be at least 1")
        if self.current_age is not None and self.current_age < 0:
            raise ValidationError("Current age cannot be negative")
        if check_schedule and self.contribution_change is not None:
            change = self.contribution_change
            if change.year < 1 or change.year >= self.years:
                raise ValidationError(
                    f"{change.kind.value.capitalize()} year must be between 1 and {self.years - 1}"
                )
            if isinstance(change, BoostAfter) and change.monthly_amount < 0:
                raise ValidationError("Boost amount cannot be negative")


def _coerce_field(name: str, value: Any) -> Any:
    if name in _FLOAT_FIELDS:
        return _coerce_float(name, value)
    if name in _INT_FIELDS:
        if value is None and name == "current_age":
            return None
        return _coerce_int(name, value)
    if name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise ValidationError(f"{name} must be true or false")
        return value
    if name == "selected_asset":
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("selected_asset must be a non-empty string")
        return value.strip()
    return value


def _coerce_float(name: str, value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number")
    if number != number or number in (float("inf"), float("-inf")):
        raise ValidationError(f"{name} must be a finite number")
    return number


def _coerce_int(name: str, value: Any) -> int:
    number = _coerce_float(name, value)
    if not number.is_integer():
        raise ValidationError(f"{name} must be a whole number")
    return int(number)


def _coerce_change(value: Any) -> Optional[ContributionChange]:
    if value is None or isinstance(value, (PauseAfter, BoostAfter)):
        return value
    if isinstance(value, Mapping):
        try:
            return contribution_change_from_dict(dict(value))
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"Invalid contribution change: {dict(value)!r}")
    raise ValidationError(f"Invalid contribution change: {value!r}")
