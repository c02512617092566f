"""Stored calculator inputs, one row per user."""

from fastapi import APIRouter, Depends

from portfolio_sync.api.deps import get_remote_repo, get_user_id
from portfolio_sync.api.schemas import PortfolioInputs, PreferencesRequest, PreferencesResponse
from portfolio_sync.core.exceptions import NotFoundError
from portfolio_sync.repositories.sqlalchemy import SqlAlchemyRemoteRepository

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("", response_model=PreferencesResponse)
def get_preferences(
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> PreferencesResponse:
    """Return the caller's stored inputs (404 when nothing is stored yet)."""
    inputs = repo.get_preferences(user_id)
    if inputs is None:
        raise NotFoundError("Preferences", user_id)
    return PreferencesResponse(inputs=PortfolioInputs.model_validate(inputs))


@router.put("", response_model=PreferencesResponse)
def put_preferences(
    data: PreferencesRequest,
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> PreferencesResponse:
    """Replace the caller's stored inputs; derived values are never stored."""
    state = data.inputs.to_state()
    stored = repo.upsert_preferences(user_id, state.input_dict())
    return PreferencesResponse(inputs=PortfolioInputs.model_validate(stored))
