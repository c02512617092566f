"""Saved scenario domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class Scenario:
    """
    A named snapshot of calculator inputs, owned by one user.

    `inputs` holds PortfolioState input fields; `results` holds the derived
    fields as they were when the scenario was saved.
    """

    scenario_id: str
    owner_id: str
    name: str
    inputs: dict[str, Any] = field(default_factory=dict)
    results: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
