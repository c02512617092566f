"""Saved scenario endpoints."""

import uuid

from fastapi import APIRouter, Depends, Response

from portfolio_sync.api.deps import get_remote_repo, get_user_id
from portfolio_sync.api.schemas import (
    ScenarioCreateRequest,
    ScenarioListResponse,
    ScenarioResponse,
    ScenarioUpdateRequest,
)
from portfolio_sync.core.timezone import now_utc
from portfolio_sync.domain.models import Scenario
from portfolio_sync.repositories.sqlalchemy import SqlAlchemyRemoteRepository
from portfolio_sync.services import compute_derived
from portfolio_sync.services.scenario_service import validate_name

router = APIRouter(prefix="/scenarios", tags=["scenarios"])


@router.get("", response_model=ScenarioListResponse)
def list_scenarios(
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> ScenarioListResponse:
    scenarios = [ScenarioResponse.from_domain(s) for s in repo.list_scenarios(user_id)]
    return ScenarioListResponse(scenarios=scenarios, count=len(scenarios))


@router.post("", response_model=ScenarioResponse, status_code=201)
def create_scenario(
    data: ScenarioCreateRequest,
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> ScenarioResponse:
    """Save a scenario; results are computed from the submitted inputs."""
    state = data.inputs.to_state()
    now = now_utc()
    scenario = Scenario(
        scenario_id=data.id or str(uuid.uuid4()),
        owner_id=user_id,
        name=validate_name(data.name),
        inputs=state.input_dict(),
        results=compute_derived(state, now.year),
        created_at=now,
        updated_at=now,
    )
    return ScenarioResponse.from_domain(repo.insert_scenario(user_id, scenario))


@router.put("/{scenario_id}", response_model=ScenarioResponse)
def update_scenario(
    scenario_id: str,
    data: ScenarioUpdateRequest,
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> ScenarioResponse:
    """Rename a scenario and/or replace its inputs."""
    scenario = repo.get_scenario(user_id, scenario_id)
    if data.name is not None:
        scenario.name = validate_name(data.name)
    if data.inputs is not None:
        state = data.inputs.to_state()
        scenario.inputs = state.input_dict()
        scenario.results = compute_derived(state, now_utc().year)
    return ScenarioResponse.from_domain(repo.update_scenario(user_id, scenario))


@router.delete("/{scenario_id}", status_code=204)
def delete_scenario(
    scenario_id: str,
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> Response:
    repo.delete_scenario(user_id, scenario_id)
    return Response(status_code=204)
