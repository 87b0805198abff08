"""Ticket schemas."""
from pydantic import BaseModel


class TicketResponse(BaseModel):
    id: str
    raffle_id: str
    customer_id: str
    ticket_number: int | None
    ticket_code: str | None
    payment_status: str
    payment_amount: float
    payment_intent_id: str | None
    checkout_session_id: str | None
    payment_currency: str | None
    payment_method: str | None
    payment_completed_at: str | None
    payment_error: str | None
    is_winner: bool
    purchased_at: str | None
    created_at: str | None
    raffle_name: str | None
    customer_email: str | None

    class Config:
        from_attributes = True


class TicketPageResponse(BaseModel):
    items: list[TicketResponse]
    page: int
    page_size: int
    has_more: bool

    class Config:
        from_attributes = True
