"""Payment feed model."""
from dataclasses import dataclass


@dataclass
class Payment:
    """One ticket's payment, joined with its raffle and customer by the view."""

    __tablename__ = "payments_view"
    columns = (
        "ticket_id,raffle_id,customer_id,ticket_number,ticket_code,"
        "payment_status,payment_intent_id,checkout_session_id,"
        "payment_amount,payment_currency,payment_method,"
        "payment_completed_at,payment_error,purchased_at,ticket_created_at,"
        "is_winner,raffle_item_name,"
        "customer_name,customer_email,customer_phone,customer_county"
    )

    ticket_id: str
    raffle_id: str = ""
    customer_id: str = ""
    ticket_number: int | None = None
    ticket_code: str | None = None
    payment_status: str = "pending"
    payment_intent_id: str | None = None
    checkout_session_id: str | None = None
    payment_amount: float = 0.0
    payment_currency: str | None = None
    payment_method: str | None = None
    payment_completed_at: str | None = None
    payment_error: str | None = None
    purchased_at: str | None = None
    ticket_created_at: str | None = None
    is_winner: bool = False
    raffle_item_name: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_county: str | None = None
