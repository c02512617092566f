"""Projection and suggested-rate endpoints (no identity required)."""

from fastapi import APIRouter, Depends

from portfolio_sync.api.deps import get_market_data_service
from portfolio_sync.api.schemas import (
    ProjectionRequest,
    ProjectionResponse,
    YearPointResponse,
    YearlyRowResponse,
)
from portfolio_sync.core.exceptions import NotFoundError
from portfolio_sync.core.timezone import now_utc
from portfolio_sync.services import (
    MarketDataService,
    build_yearly_table,
    compute_derived,
    project_state,
    project_state_series,
)

router = APIRouter(tags=["projection"])


@router.post("/projection", response_model=ProjectionResponse)
def run_projection(data: ProjectionRequest) -> ProjectionResponse:
    """Project the submitted inputs: totals, yearly series and table."""
    state = data.to_state()
    current_year = data.current_year or now_utc().year

    result = project_state(state)
    derived = compute_derived(state, current_year)
    series = [
        YearPointResponse(year=p.year, value=p.value, contributed=p.contributed)
        for p in project_state_series(state)
    ]
    table = [
        YearlyRowResponse(
            year=row.year,
            age=row.age,
            contributions=row.contributions,
            asset_value=row.asset_value,
            hurdle_value=row.hurdle_value,
            asset_gains=row.asset_gains,
            outperformance=row.outperformance,
        )
        for row in build_yearly_table(state, current_year)
    ]
    return ProjectionResponse(
        final_value=result.final_value,
        total_contributed=result.total_contributed,
        series=series,
        yearly_table=table,
        **derived,
    )


@router.get("/assets/{asset}/suggested-rate")
def suggested_rate(
    asset: str,
    service: MarketDataService = Depends(get_market_data_service),
) -> dict:
    """Return a patch selecting `asset` with its suggested growth rate."""
    patch = service.suggest_patch(asset)
    if patch is None:
        raise NotFoundError("Growth rate", asset)
    return patch
