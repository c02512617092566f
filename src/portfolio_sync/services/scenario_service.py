"""Saved scenario service."""

import logging
import uuid
from typing import TYPE_CHECKING, Callable, Optional

from portfolio_sync.core.exceptions import NotFoundError, SignInRequiredError, ValidationError
from portfolio_sync.core.timezone import now_utc
from portfolio_sync.domain.models import PortfolioState, Scenario
from portfolio_sync.repositories.protocols import RemoteStore
from portfolio_sync.services.projection_engine import compute_derived

if TYPE_CHECKING:
    from portfolio_sync.services.sync_coordinator import StateSyncCoordinator

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


class ScenarioService:
    """
    Named snapshots of calculator inputs for the signed-in user.

    Results are always computed here from the inputs being saved.
    """

    def __init__(self, remote_store: RemoteStore, identity: Callable[[], Optional[str]]):
        self._remote = remote_store
        self._identity = identity

    async def list_scenarios(self) -> list[Scenario]:
        return await self._remote.list_scenarios(self._require_user("view saved scenarios"))

    async def get_scenario(self, scenario_id: str) -> Scenario:
        for scenario in await self.list_scenarios():
            if scenario.scenario_id == scenario_id:
                return scenario
        raise NotFoundError("Scenario", scenario_id)

    async def save_scenario(self, name: str, state: PortfolioState) -> Scenario:
        """Save the inputs of `state` under `name`."""
        user_id = self._require_user("save scenarios")
        now = now_utc()
        scenario = Scenario(
            scenario_id=str(uuid.uuid4()),
            owner_id=user_id,
            name=validate_name(name),
            inputs=state.input_dict(),
            results=compute_derived(state, now.year),
            created_at=now,
            updated_at=now,
        )
        saved = await self._remote.insert_scenario(user_id, scenario)
        logger.info("Saved scenario %s for %s", saved.scenario_id, user_id)
        return saved

    async def update_scenario(
        self,
        scenario_id: str,
        name: Optional[str] = None,
        state: Optional[PortfolioState] = None,
    ) -> Scenario:
        """Rename a scenario and/or replace its inputs."""
        user_id = self._require_user("update scenarios")
        scenario = await self.get_scenario(scenario_id)
        now = now_utc()
        if name is not None:
            scenario.name = validate_name(name)
        if state is not None:
            scenario.inputs = state.input_dict()
            scenario.results = compute_derived(state, now.year)
        scenario.updated_at = now
        return await self._remote.update_scenario(user_id, scenario)

    async def rename_scenario(self, scenario_id: str, name: str) -> Scenario:
        return await self.update_scenario(scenario_id, name=name)

    async def delete_scenario(self, scenario_id: str) -> None:
        user_id = self._require_user("delete scenarios")
        await self._remote.delete_scenario(user_id, scenario_id)

    async def load_into(self, coordinator: "StateSyncCoordinator", scenario_id: str) -> PortfolioState:
        """Apply a saved scenario's inputs to the coordinator's state."""
        scenario = await self.get_scenario(scenario_id)
        return coordinator.update_state(scenario.inputs)

    def _require_user(self, action: str) -> str:
        user_id = self._identity()
        if not user_id:
            raise SignInRequiredError(action)
        return user_id


def validate_name(name: str) -> str:
    """Return a stripped scenario name or raise ValidationError."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Scenario name is required")
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Scenario name must be at most {MAX_NAME_LENGTH} characters")
    return name
