"""Ticket search across all raffles."""
from dataclasses import dataclass

from app.database import BackendClient
from app.models.raffle import Ticket
from app.services.normalizers import normalize_rows, normalize_ticket

TICKET_PAGE_SIZE = 25
PAYMENT_STATUSES = ("pending", "completed", "failed")
SEARCH_COLUMNS = ("ticket_code", "checkout_session_id", "payment_intent_id")


@dataclass
class TicketPage:
    items: list[Ticket]
    page: int
    page_size: int
    has_more: bool


def check_payment_status(value: str) -> str:
    value = value.strip().lower() or "all"
    if value != "all" and value not in PAYMENT_STATUSES:
        raise ValueError(f"Payment status must be one of: all, {', '.join(PAYMENT_STATUSES)}.")
    return value


async def list_tickets(
    backend: BackendClient,
    page: int = 0,
    page_size: int = TICKET_PAGE_SIZE,
    payment_status: str = "all",
    winner_only: bool = False,
    raffle_id: str = "",
    customer_id: str = "",
    search: str = "",
) -> TicketPage:
    """One page of tickets, newest first, with their raffle name and customer email.

    ``search`` matches the ticket code, checkout session or payment intent.
    """
    payment_status = check_payment_status(payment_status)
    if page < 0:
        raise ValueError("Page must not be negative.")

    query = backend.table(Ticket.__tablename__).select(Ticket.list_columns).order("created_at", desc=True)
    if payment_status != "all":
        query = query.eq("payment_status", payment_status)
    if winner_only:
        query = query.eq("is_winner", True)
    if raffle_id.strip():
        query = query.eq("raffle_id", raffle_id.strip())
    if customer_id.strip():
        query = query.eq("customer_id", customer_id.strip())
    if search.strip():
        query = query.ilike_any(SEARCH_COLUMNS, search.strip())

    start = page * page_size
    rows = await query.range(start, start + page_size - 1).execute()
    return TicketPage(
        items=normalize_rows(rows, normalize_ticket),
        page=page,
        page_size=page_size,
        has_more=len(rows) == page_size,
    )
