"""Notification campaign and per-recipient delivery records."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CampaignMode(str, Enum):
    """Targeting strategy selecting which customers receive a campaign."""

    ALL_USERS = "all_users"
    RAFFLE_USERS = "raffle_users"
    SELECTED_CUSTOMERS = "selected_customers"
    ATTEMPT_STATUS = "attempt_status"
    MULTI_RAFFLE_UNION = "multi_raffle_union"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "CampaignMode":
        text = str(value).strip() if value is not None else ""
        try:
            mode = cls(text)
        except ValueError:
            return cls.UNKNOWN
        return mode


@dataclass
class Campaign:
    """One notification broadcast, written once at send time."""

    __tablename__ = "admin_notification_campaigns"
    columns = "id,created_at,created_by,mode,title,body,data,criteria,recipient_count"

    id: str
    created_at: str
    created_by: str | None
    mode: str  # raw value; see CampaignMode.parse
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    criteria: dict[str, Any] = field(default_factory=dict)
    recipient_count: int = 0

    @property
    def mode_key(self) -> CampaignMode:
        return CampaignMode.parse(self.mode)


@dataclass
class Delivery:
    """Outcome of one campaign for one customer.

    ``push_attempted`` / ``push_ok`` are telemetry written by the dispatch
    function and may never be set even when a push went out.
    """

    __tablename__ = "admin_notification_deliveries"
    columns = (
        "id,created_at,campaign_id,customer_id,expo_push_token,in_app_inserted,"
        "push_attempted,push_ok,push_provider,push_response,error"
    )

    id: str
    created_at: str
    campaign_id: str
    customer_id: str
    expo_push_token: str | None = None
    in_app_inserted: bool = False
    push_attempted: bool = False
    push_ok: bool = False
    push_provider: str | None = None
    push_response: dict[str, Any] | None = None
    error: str | None = None
