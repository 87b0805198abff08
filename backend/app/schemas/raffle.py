"""Raffle schemas."""
from pydantic import BaseModel

from app.models.raffle import RaffleStatus
from app.schemas.customer import CustomerResponse
from app.schemas.ticket import TicketResponse


class RaffleCreate(BaseModel):
    """New raffle form. Ranges are checked by the raffle service."""

    item_name: str = ""
    item_description: str = ""
    ticket_price: float = 5.0
    total_tickets: int = 100
    max_tickets_per_customer: int = 3
    status: RaffleStatus = RaffleStatus.ACTIVE
    draw_date: str | None = None


class RaffleResponse(BaseModel):
    """Raffle info response."""

    id: str
    item_name: str
    item_description: str
    status: str
    total_tickets: int
    sold_tickets: int
    ticket_price: float
    draw_date: str | None
    max_tickets_per_customer: int | None
    item_image_url: str | None
    created_at: str
    winner_id: str | None = None
    updated_at: str | None = None

    class Config:
        from_attributes = True


class RaffleUpdate(BaseModel):
    """Raffle edit form. An empty draw date clears it; status is kept when omitted."""

    item_name: str = ""
    item_description: str = ""
    ticket_price: float
    total_tickets: int
    draw_date: str | None = None
    status: RaffleStatus | None = None


class RaffleStatsResponse(BaseModel):
    sold: int
    total: int
    sold_percent: int
    revenue: float
    completed_payments: int
    failed_payments: int

    class Config:
        from_attributes = True


class RaffleDetailResponse(BaseModel):
    raffle: RaffleResponse
    tickets: list[TicketResponse]
    winner: CustomerResponse | None
    stats: RaffleStatsResponse

    class Config:
        from_attributes = True
