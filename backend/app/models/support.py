"""Support request model."""
from dataclasses import dataclass


@dataclass
class SupportRequest:
    """Customer support ticket raised from the mobile app."""

    __tablename__ = "support_requests"
    columns = (
        "id,customer_name,customer_email,issue_type,topic,status,"
        "raffle_id,raffle_item_name,ticket_number,created_at"
    )

    id: str
    created_at: str
    status: str = "open"  # open, pending, in_progress, waiting_customer, closed
    customer_name: str | None = None
    customer_email: str | None = None
    issue_type: str | None = None
    topic: str | None = None
    raffle_id: str | None = None
    raffle_item_name: str | None = None
    ticket_number: int | None = None
