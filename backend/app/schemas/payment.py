"""Payment feed schemas."""
from pydantic import BaseModel


class PaymentResponse(BaseModel):
    ticket_id: str
    raffle_id: str
    customer_id: str
    ticket_number: int | None
    ticket_code: str | None
    payment_status: str
    payment_intent_id: str | None
    checkout_session_id: str | None
    payment_amount: float
    payment_currency: str | None
    payment_method: str | None
    payment_completed_at: str | None
    payment_error: str | None
    purchased_at: str | None
    ticket_created_at: str | None
    is_winner: bool
    raffle_item_name: str | None
    customer_name: str | None
    customer_email: str | None
    customer_phone: str | None
    customer_county: str | None

    class Config:
        from_attributes = True


class PaymentSummaryResponse(BaseModel):
    total: int
    completed: int
    pending: int
    failed: int
    revenue: float
    currency: str

    class Config:
        from_attributes = True


class PaymentListResponse(BaseModel):
    """Filtered rows; the summary covers every loaded payment."""

    items: list[PaymentResponse]
    summary: PaymentSummaryResponse
