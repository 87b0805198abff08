"""Dashboard overview."""
import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging

from app.database import BackendClient
from app.models.raffle import Raffle, RaffleStatus, Ticket
from app.models.support import SupportRequest
from app.services.normalizers import normalize_raffle, normalize_rows, normalize_support_request, normalize_ticket
from app.services.notifications import parse_timestamp

logger = logging.getLogger(__name__)

RANGES = {
    "7d": (7, "Last 7 days"),
    "30d": (30, "Last 30 days"),
    "90d": (90, "Last 90 days"),
    "all": (None, "All time"),
}
RECENT_SUPPORT_LIMIT = 20
RECENT_ITEMS = 5


@dataclass
class DashboardData:
    raffles: list[Raffle]
    tickets: list[Ticket]
    supports: list[SupportRequest]


@dataclass
class Metrics:
    range: str
    label: str
    total_revenue: float = 0.0
    completed_payments: int = 0
    failed_payments: int = 0
    active_raffles: int = 0
    open_supports: int = 0


async def load_dashboard(backend: BackendClient, now: datetime | None = None) -> DashboardData:
    """Fetch raffles, the last year of tickets and recent support requests together.

    Any failing query fails the whole load.
    """
    now = now or datetime.now(timezone.utc)
    one_year_ago = (now - timedelta(days=365)).isoformat()

    raffle_rows, ticket_rows, support_rows = await asyncio.gather(
        backend.table(Raffle.__tablename__).select(Raffle.columns).order("created_at", desc=True).execute(),
        backend.table(Ticket.__tablename__)
        .select(Ticket.columns)
        .gte("purchased_at", one_year_ago)
        .order("purchased_at", desc=True)
        .execute(),
        backend.table(SupportRequest.__tablename__)
        .select(SupportRequest.columns)
        .order("created_at", desc=True)
        .limit(RECENT_SUPPORT_LIMIT)
        .execute(),
    )

    return DashboardData(
        raffles=normalize_rows(raffle_rows, normalize_raffle),
        tickets=normalize_rows(ticket_rows, normalize_ticket),
        supports=normalize_rows(support_rows, normalize_support_request),
    )


def compute_metrics(data: DashboardData, range_key: str = "30d", now: datetime | None = None) -> Metrics:
    if range_key not in RANGES:
        raise ValueError(f"Range must be one of: {', '.join(RANGES)}.")
    days, label = RANGES[range_key]
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=days) if days is not None else None

    metrics = Metrics(range=range_key, label=label)
    for ticket in data.tickets:
        if since is not None:
            purchased = parse_timestamp(ticket.purchased_at or "")
            if purchased is None or purchased < since:
                continue
        if ticket.payment_status == "completed":
            metrics.completed_payments += 1
            metrics.total_revenue += ticket.payment_amount
        elif ticket.payment_status == "failed":
            metrics.failed_payments += 1

    metrics.active_raffles = sum(1 for r in data.raffles if r.status == RaffleStatus.ACTIVE.value)
    metrics.open_supports = sum(1 for s in data.supports if s.status.lower() == "open")
    return metrics


def recent(items: list, count: int = RECENT_ITEMS) -> list:
    return items[:count]
