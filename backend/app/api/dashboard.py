"""Dashboard API endpoints."""
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_admin_backend
from app.database import BackendClient
from app.schemas.dashboard import DashboardMetrics, DashboardResponse
from app.schemas.raffle import RaffleResponse
from app.schemas.support import SupportRequestResponse
from app.services.dashboard import RANGES, compute_metrics, load_dashboard, recent

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    range_key: str = Query("30d", alias="range"),
    backend: BackendClient = Depends(get_admin_backend),
):
    """Headline metrics plus the latest raffles and support requests."""
    if range_key not in RANGES:
        raise ValueError(f"Range must be one of: {', '.join(RANGES)}.")
    data = await load_dashboard(backend)
    metrics = compute_metrics(data, range_key)
    return DashboardResponse(
        metrics=DashboardMetrics.model_validate(metrics, from_attributes=True),
        recent_raffles=[RaffleResponse.model_validate(r) for r in recent(data.raffles)],
        recent_supports=[SupportRequestResponse.model_validate(s) for s in recent(data.supports)],
    )
