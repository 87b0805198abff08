"""Raffle and ticket models."""
from dataclasses import dataclass
from enum import Enum


class RaffleStatus(str, Enum):
    ACTIVE = "active"
    SOLDOUT = "soldout"
    DRAWN = "drawn"
    CANCELLED = "cancelled"


@dataclass
class Raffle:
    """Prize raffle."""

    __tablename__ = "raffles"
    columns = (
        "id,item_name,item_description,status,total_tickets,sold_tickets,"
        "ticket_price,draw_date,max_tickets_per_customer,item_image_url,created_at"
    )
    detail_columns = columns + ",winner_id,updated_at"

    id: str
    item_name: str
    status: str = RaffleStatus.ACTIVE.value
    item_description: str = ""
    total_tickets: int = 0
    sold_tickets: int = 0
    ticket_price: float = 0.0
    draw_date: str | None = None
    max_tickets_per_customer: int | None = None
    item_image_url: str | None = None
    created_at: str = ""
    winner_id: str | None = None
    updated_at: str | None = None


@dataclass
class Ticket:
    """Purchased (or attempted) raffle ticket."""

    __tablename__ = "tickets"
    columns = "id,raffle_id,payment_status,payment_amount,purchased_at"
    owner_columns = "id,raffle_id,customer_id,ticket_number,payment_status,is_winner,purchased_at,payment_amount"
    list_columns = (
        "id,raffle_id,customer_id,ticket_number,ticket_code,payment_status,payment_intent_id,"
        "checkout_session_id,payment_amount,payment_currency,payment_method,payment_completed_at,"
        "payment_error,is_winner,created_at,"
        "raffle:raffles!tickets_raffle_id_fkey(id,item_name),"
        "customer:customers!tickets_customer_id_fkey(id,email)"
    )

    id: str
    raffle_id: str
    payment_status: str = "pending"  # pending, completed, failed
    payment_amount: float = 0.0
    purchased_at: str | None = None
    customer_id: str = ""
    ticket_number: int | None = None
    ticket_code: str | None = None
    payment_intent_id: str | None = None
    checkout_session_id: str | None = None
    payment_currency: str | None = None
    payment_method: str | None = None
    payment_completed_at: str | None = None
    payment_error: str | None = None
    is_winner: bool = False
    created_at: str | None = None
    raffle_name: str | None = None
    customer_email: str | None = None
