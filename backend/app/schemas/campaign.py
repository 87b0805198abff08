"""Notification campaign schemas."""
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.models.campaign import CampaignMode
from app.services.normalizers import parse_id_list, unique_strings


class SendCampaignRequest(BaseModel):
    """Targeting rules and message for a new campaign."""

    mode: CampaignMode
    title: str = "SnapWin"
    body: str = Field(..., min_length=1)
    data: dict[str, Any] | None = None

    raffle_id: str | None = None
    # Lists may also arrive as pasted text, one id per line or comma separated
    raffle_ids: list[str] | str | None = None
    customer_ids: list[str] | str | None = None

    attempt_passed: bool | None = None
    only_completed_tickets: bool = True

    @field_validator("mode")
    @classmethod
    def reject_unknown_mode(cls, value: CampaignMode) -> CampaignMode:
        if value is CampaignMode.UNKNOWN:
            raise ValueError("Unsupported targeting mode.")
        return value

    @field_validator("title")
    @classmethod
    def default_title(cls, value: str) -> str:
        return value.strip() or "SnapWin"

    @field_validator("body")
    @classmethod
    def strip_body(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message body is required.")
        return value

    @field_validator("raffle_id")
    @classmethod
    def strip_raffle_id(cls, value: str | None) -> str | None:
        return (value or "").strip() or None

    @field_validator("raffle_ids", "customer_ids")
    @classmethod
    def parse_ids(cls, value: list[str] | str | None) -> list[str]:
        return unique_strings(parse_id_list(value))


class SendCampaignResult(BaseModel):
    """What the dispatch function reports back."""

    ok: bool
    campaign_id: str | None = None
    recipient_count: int = 0


class ChipResponse(BaseModel):
    label: str
    value: str
    tone: str


class DeliveryCounts(BaseModel):
    """Delivery totals from the stored telemetry flags."""

    total: int = 0
    pending: int = 0
    ok: int = 0
    failed: int = 0


class CampaignResponse(BaseModel):
    """Campaign with its audience rendered for display."""

    id: str
    created_at: str
    created_by: str | None
    mode: str
    mode_label: str
    title: str
    body: str
    data: dict[str, Any]
    criteria: dict[str, Any]
    recipient_count: int
    audience_summary: str
    chips: list[ChipResponse]
    counts: DeliveryCounts | None = None


class CampaignListResponse(BaseModel):
    items: list[CampaignResponse]
    page: int
    has_more: bool
    telemetry_looks_disabled: bool


class DeliveryStatusFilter(str, Enum):
    """Filters on the stored flags, coarser than the inferred status."""

    ALL = "all"
    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"


class DeliveryResponse(BaseModel):
    id: str
    created_at: str
    campaign_id: str
    customer_id: str
    customer_name: str | None = None
    customer_email: str | None = None
    expo_push_token: str | None
    in_app_inserted: bool
    push_attempted: bool
    push_ok: bool
    push_provider: str | None
    push_response: dict[str, Any] | None
    error: str | None
    effective_status: str


class DeliveryPageResponse(BaseModel):
    items: list[DeliveryResponse]
    page: int
    has_more: bool
