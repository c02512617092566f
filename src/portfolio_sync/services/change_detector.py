"""Fingerprints of portfolio input fields."""

import json
from typing import Any, Mapping, Union

from portfolio_sync.domain.models import PortfolioState


def fingerprint(state: Union[PortfolioState, Mapping[str, Any]]) -> str:
    """
    Return a deterministic fingerprint of the state's input fields.

    Derived fields and timestamps are excluded, and key order does not
    matter, so two fingerprints are equal exactly when no input changed.
    Raw mappings are normalized through PortfolioState first (so 500 and
    500.0 fingerprint the same). Only compare fingerprints; never parse them.
    """
    if not isinstance(state, PortfolioState):
        state = PortfolioState.from_dict(state)
    return json.dumps(state.input_dict(), sort_keys=True, separators=(",", ":"))
