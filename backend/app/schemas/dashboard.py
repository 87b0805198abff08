"""Dashboard schemas."""
from pydantic import BaseModel

from app.schemas.raffle import RaffleResponse
from app.schemas.support import SupportRequestResponse


class DashboardMetrics(BaseModel):
    """Headline numbers for one time range."""

    range: str
    label: str
    total_revenue: float
    completed_payments: int
    failed_payments: int
    active_raffles: int
    open_supports: int


class DashboardResponse(BaseModel):
    metrics: DashboardMetrics
    recent_raffles: list[RaffleResponse]
    recent_supports: list[SupportRequestResponse]
