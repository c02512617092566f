"""Portfolio entry endpoints."""

import uuid

from fastapi import APIRouter, Depends, Response

from portfolio_sync.api.deps import get_remote_repo, get_user_id
from portfolio_sync.api.schemas import (
    EntryCreateRequest,
    EntryListResponse,
    EntryResponse,
    EntryUpdateRequest,
)
from portfolio_sync.config.settings import get_settings
from portfolio_sync.core.timezone import now_utc
from portfolio_sync.domain.models import PortfolioEntry, PortfolioState
from portfolio_sync.repositories.sqlalchemy import SqlAlchemyRemoteRepository
from portfolio_sync.services import target_value_at

router = APIRouter(prefix="/entries", tags=["entries"])


@router.get("", response_model=EntryListResponse)
def list_entries(
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> EntryListResponse:
    """List the caller's entries, newest first."""
    entries = [EntryResponse.from_domain(e) for e in repo.list_entries(user_id)]
    return EntryListResponse(entries=entries, count=len(entries))


@router.post("", response_model=EntryResponse, status_code=201)
def create_entry(
    data: EntryCreateRequest,
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> EntryResponse:
    """
    Record an observed amount.

    Without a target, the target is projected from the caller's stored
    inputs (or the defaults) for the time elapsed since the baseline.
    """
    created_at = data.created_at or now_utc()
    target = data.target
    if target is None:
        inputs = repo.get_preferences(user_id)
        state = PortfolioState.from_dict(inputs) if inputs else PortfolioState()
        target = target_value_at(state, created_at, get_settings().entry_target_baseline)

    entry = PortfolioEntry.create(
        entry_id=data.id or str(uuid.uuid4()),
        amount=data.amount,
        target=target,
        created_at=created_at,
        owner_id=user_id,
    )
    return EntryResponse.from_domain(repo.insert_entry(user_id, entry))


@router.put("/{entry_id}", response_model=EntryResponse)
def update_entry(
    entry_id: str,
    data: EntryUpdateRequest,
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> EntryResponse:
    """Edit an entry; variance is recomputed from the new values."""
    entry = PortfolioEntry.create(
        entry_id=entry_id,
        amount=data.amount,
        target=data.target,
        created_at=data.created_at,
        owner_id=user_id,
    )
    return EntryResponse.from_domain(repo.update_entry(user_id, entry))


@router.delete("/{entry_id}", status_code=204)
def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_user_id),
    repo: SqlAlchemyRemoteRepository = Depends(get_remote_repo),
) -> Response:
    repo.delete_entry(user_id, entry_id)
    return Response(status_code=204)
