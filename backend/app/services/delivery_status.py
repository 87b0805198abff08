"""Effective push delivery status.

The dispatch function does not always write ``push_attempted``/``push_ok``
even when a push was sent, so the status shown to admins is recovered from
the error string and the provider response when the flags are unset.
"""
from dataclasses import dataclass
from enum import Enum

from app.models.campaign import Delivery

_OK_STATUSES = {"ok", "success"}
_FAILED_STATUSES = {"error", "failed"}


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"
    ATTEMPTED_UNKNOWN = "attempted_unknown"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Inferred attempt/ok pair; ``ok`` is None when it cannot be told."""

    attempted: bool
    ok: bool | None = None

    @property
    def status(self) -> DeliveryStatus:
        if not self.attempted:
            return DeliveryStatus.PENDING
        if self.ok is None:
            return DeliveryStatus.ATTEMPTED_UNKNOWN
        return DeliveryStatus.OK if self.ok else DeliveryStatus.FAILED


def _has_error(delivery: Delivery) -> bool:
    return bool(delivery.error)


def _response_ok(response: dict) -> bool | None:
    status = response.get("status")
    if isinstance(status, str):
        lowered = status.strip().lower()
        if lowered in _OK_STATUSES:
            return True
        if lowered in _FAILED_STATUSES:
            return False
    ok = response.get("ok")
    if isinstance(ok, bool):
        return ok
    return None


def infer_delivery_outcome(delivery: Delivery) -> DeliveryOutcome:
    """Resolve the delivery's outcome; earlier signals win over later ones."""
    response = delivery.push_response or None

    # The stored flags are authoritative once the dispatcher wrote them.
    if delivery.push_attempted:
        return DeliveryOutcome(attempted=True, ok=delivery.push_ok)

    if _has_error(delivery):
        return DeliveryOutcome(attempted=True, ok=False)

    if response:
        return DeliveryOutcome(attempted=True, ok=_response_ok(response))

    return DeliveryOutcome(attempted=False)


def infer_delivery_status(delivery: Delivery) -> DeliveryStatus:
    return infer_delivery_outcome(delivery).status
