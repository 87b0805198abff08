"""Tickets API endpoints."""
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_admin_backend
from app.database import BackendClient
from app.schemas.ticket import TicketPageResponse
from app.services.tickets import TICKET_PAGE_SIZE, list_tickets

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.get("", response_model=TicketPageResponse)
async def get_tickets(
    page: int = Query(0, ge=0),
    payment_status: str = "all",
    winner_only: bool = False,
    raffle_id: str = "",
    customer_id: str = "",
    search: str = "",
    backend: BackendClient = Depends(get_admin_backend),
):
    """Tickets, newest first, a page at a time."""
    return await list_tickets(
        backend,
        page=page,
        page_size=TICKET_PAGE_SIZE,
        payment_status=payment_status,
        winner_only=winner_only,
        raffle_id=raffle_id,
        customer_id=customer_id,
        search=search,
    )
