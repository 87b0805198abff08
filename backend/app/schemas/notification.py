"""Notification inbox schemas."""
from typing import Any

from pydantic import BaseModel, Field


class NotificationAction(BaseModel):
    """Deep link into the console."""

    label: str
    href: str
    variant: str = "secondary"


class NotificationResponse(BaseModel):
    id: str
    created_at: str
    title: str
    body: str
    customer_id: str | None
    raffle_id: str | None
    type: str
    audience: str
    is_read: bool
    read_at: str | None
    data: dict[str, Any] | None
    kind: str
    day: str
    actions: list[NotificationAction]


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    total: int
    unread: int


class NotificationCreate(BaseModel):
    """Manual system notification."""

    title: str
    body: str
    audience: str = "customer"
    customer_id: str | None = None


class ReadStateUpdate(BaseModel):
    """Mark notifications read or unread; no ids means every unread one."""

    ids: list[str] = Field(default_factory=list)
    read: bool = True


class ReadStateResult(BaseModel):
    ok: bool
    updated: int
    error: str | None = None
