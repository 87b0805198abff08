"""Inbox notification model."""
from dataclasses import dataclass
from typing import Any


@dataclass
class Notification:
    """Row of the shared ``notifications`` table (customer and admin inboxes)."""

    __tablename__ = "notifications"
    columns = "id,customer_id,raffle_id,type,audience,title,body,is_read,created_at,read_at,data"

    id: str
    created_at: str
    title: str
    body: str = ""
    customer_id: str | None = None
    raffle_id: str | None = None
    type: str = "system"  # ticket_purchased, system, ...
    audience: str = "customer"  # customer, admin
    is_read: bool = False
    read_at: str | None = None
    data: dict[str, Any] | None = None
