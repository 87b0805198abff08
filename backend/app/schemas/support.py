"""Support request schemas."""
from pydantic import BaseModel


class SupportRequestResponse(BaseModel):
    id: str
    created_at: str
    status: str
    customer_name: str | None
    customer_email: str | None
    issue_type: str | None
    topic: str | None
    raffle_id: str | None
    raffle_item_name: str | None
    ticket_number: int | None

    class Config:
        from_attributes = True


class SupportStatusUpdate(BaseModel):
    """Status change request."""

    status: str
