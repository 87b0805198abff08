"""Decode untyped backend rows into typed records.

Rows come back from the hosted service as loosely typed JSON. Each
``normalize_*`` function returns a record or ``None`` when a required field
is missing; callers drop ``None`` rows instead of failing the whole page.
"""
from collections.abc import Callable, Iterable
import logging
import math
import re
from typing import Any, TypeVar

from app.models.campaign import Campaign, Delivery
from app.models.customer import Customer, CustomerRef
from app.models.notification import Notification
from app.models.payment import Payment
from app.models.raffle import Raffle, Ticket
from app.models.support import SupportRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUE_STRINGS = {"true", "t", "1", "yes"}
_ID_SPLIT = re.compile(r"[\s,]+")


def safe_string(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def optional_string(value: Any) -> str | None:
    """Empty and missing values both become None."""
    text = safe_string(value)
    return text or None


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def to_record(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def to_number(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value))
        except (TypeError, ValueError):
            return default
    return number if math.isfinite(number) else default


def to_int(value: Any, default: int = 0) -> int:
    return int(to_number(value, default))


def unique_strings(values: Iterable[Any]) -> list[str]:
    """Trim, drop blanks and de-duplicate while keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        text = safe_string(value).strip()
        if text:
            seen.setdefault(text, None)
    return list(seen)


def parse_id_list(value: Any) -> list[str]:
    """Accept a JSON list or a comma/whitespace separated string of ids."""
    if isinstance(value, list):
        return [text for text in (safe_string(item).strip() for item in value) if text]
    if isinstance(value, str):
        return [part for part in _ID_SPLIT.split(value) if part]
    return []


def normalize_rows(rows: Iterable[Any], normalizer: Callable[[dict], T | None]) -> list[T]:
    """Apply a normalizer to each row and drop the rejects."""
    result = []
    dropped = 0
    for row in rows:
        record = normalizer(row) if isinstance(row, dict) else None
        if record is None:
            dropped += 1
            continue
        result.append(record)
    if dropped:
        logger.debug("Dropped %d malformed row(s) during %s", dropped, normalizer.__name__)
    return result


def normalize_campaign(row: dict) -> Campaign | None:
    campaign_id = safe_string(row.get("id"))
    if not campaign_id:
        return None
    return Campaign(
        id=campaign_id,
        created_at=safe_string(row.get("created_at")),
        created_by=optional_string(row.get("created_by")),
        mode=safe_string(row.get("mode")),
        title=safe_string(row.get("title")),
        body=safe_string(row.get("body")),
        data=to_record(row.get("data")) or {},
        criteria=to_record(row.get("criteria")) or {},
        recipient_count=to_int(row.get("recipient_count")),
    )


def normalize_delivery(row: dict) -> Delivery | None:
    delivery_id = safe_string(row.get("id"))
    if not delivery_id:
        return None
    return Delivery(
        id=delivery_id,
        created_at=safe_string(row.get("created_at")),
        campaign_id=safe_string(row.get("campaign_id")),
        customer_id=safe_string(row.get("customer_id")),
        expo_push_token=optional_string(row.get("expo_push_token")),
        in_app_inserted=to_bool(row.get("in_app_inserted")),
        push_attempted=to_bool(row.get("push_attempted")),
        push_ok=to_bool(row.get("push_ok")),
        push_provider=optional_string(row.get("push_provider")),
        push_response=to_record(row.get("push_response")),
        error=optional_string(row.get("error")),
    )


def normalize_notification(row: dict) -> Notification | None:
    notification_id = row.get("id")
    created_at = row.get("created_at")
    title = safe_string(row.get("title")).strip()
    if not isinstance(notification_id, str) or not notification_id:
        return None
    if not isinstance(created_at, str) or not created_at or not title:
        return None
    return Notification(
        id=notification_id,
        created_at=created_at,
        title=title,
        body=safe_string(row.get("body")).strip(),
        customer_id=optional_string(row.get("customer_id")),
        raffle_id=optional_string(row.get("raffle_id")),
        type=safe_string(row.get("type")).strip() or "system",
        audience=safe_string(row.get("audience")).strip() or "customer",
        is_read=to_bool(row.get("is_read")),
        read_at=optional_string(row.get("read_at")),
        data=to_record(row.get("data")),
    )


def normalize_customer(row: dict) -> Customer | None:
    customer_id = safe_string(row.get("id"))
    if not customer_id:
        return None
    return Customer(
        id=customer_id,
        name=safe_string(row.get("name")),
        email=safe_string(row.get("email")),
        phone=safe_string(row.get("phone")),
        county=safe_string(row.get("county")),
        created_at=safe_string(row.get("created_at")),
        address=safe_string(row.get("address")),
        stripe_customer_id=optional_string(row.get("stripe_customer_id")),
    )


def normalize_customer_ref(row: dict) -> CustomerRef | None:
    customer_id = safe_string(row.get("id"))
    if not customer_id:
        return None
    return CustomerRef(
        id=customer_id,
        name=safe_string(row.get("name")),
        email=safe_string(row.get("email")),
    )


def normalize_raffle(row: dict) -> Raffle | None:
    raffle_id = safe_string(row.get("id"))
    item_name = safe_string(row.get("item_name"))
    if not raffle_id or not item_name:
        return None
    max_per_customer = row.get("max_tickets_per_customer")
    return Raffle(
        id=raffle_id,
        item_name=item_name,
        status=safe_string(row.get("status")) or "active",
        item_description=safe_string(row.get("item_description")),
        total_tickets=to_int(row.get("total_tickets")),
        sold_tickets=to_int(row.get("sold_tickets")),
        ticket_price=to_number(row.get("ticket_price")),
        draw_date=optional_string(row.get("draw_date")),
        max_tickets_per_customer=to_int(max_per_customer) if max_per_customer is not None else None,
        item_image_url=optional_string(row.get("item_image_url")),
        created_at=safe_string(row.get("created_at")),
        winner_id=optional_string(row.get("winner_id")),
        updated_at=optional_string(row.get("updated_at")),
    )


def normalize_ticket(row: dict) -> Ticket | None:
    ticket_id = safe_string(row.get("id"))
    if not ticket_id:
        return None
    ticket_number = row.get("ticket_number")
    raffle = to_record(row.get("raffle")) or {}
    customer = to_record(row.get("customer")) or {}
    return Ticket(
        id=ticket_id,
        raffle_id=safe_string(row.get("raffle_id")),
        payment_status=safe_string(row.get("payment_status")) or "pending",
        payment_amount=to_number(row.get("payment_amount")),
        purchased_at=optional_string(row.get("purchased_at")),
        customer_id=safe_string(row.get("customer_id")),
        ticket_number=to_int(ticket_number) if ticket_number is not None else None,
        ticket_code=optional_string(row.get("ticket_code")),
        payment_intent_id=optional_string(row.get("payment_intent_id")),
        checkout_session_id=optional_string(row.get("checkout_session_id")),
        payment_currency=optional_string(row.get("payment_currency")),
        payment_method=optional_string(row.get("payment_method")),
        payment_completed_at=optional_string(row.get("payment_completed_at")),
        payment_error=optional_string(row.get("payment_error")),
        is_winner=to_bool(row.get("is_winner")),
        created_at=optional_string(row.get("created_at")),
        raffle_name=optional_string(raffle.get("item_name")),
        customer_email=optional_string(customer.get("email")),
    )


def normalize_payment(row: dict) -> Payment | None:
    ticket_id = safe_string(row.get("ticket_id"))
    if not ticket_id:
        return None
    ticket_number = row.get("ticket_number")
    return Payment(
        ticket_id=ticket_id,
        raffle_id=safe_string(row.get("raffle_id")),
        customer_id=safe_string(row.get("customer_id")),
        ticket_number=to_int(ticket_number) if ticket_number is not None else None,
        ticket_code=optional_string(row.get("ticket_code")),
        payment_status=safe_string(row.get("payment_status")) or "pending",
        payment_intent_id=optional_string(row.get("payment_intent_id")),
        checkout_session_id=optional_string(row.get("checkout_session_id")),
        payment_amount=to_number(row.get("payment_amount")),
        payment_currency=optional_string(row.get("payment_currency")),
        payment_method=optional_string(row.get("payment_method")),
        payment_completed_at=optional_string(row.get("payment_completed_at")),
        payment_error=optional_string(row.get("payment_error")),
        purchased_at=optional_string(row.get("purchased_at")),
        ticket_created_at=optional_string(row.get("ticket_created_at")),
        is_winner=to_bool(row.get("is_winner")),
        raffle_item_name=optional_string(row.get("raffle_item_name")),
        customer_name=optional_string(row.get("customer_name")),
        customer_email=optional_string(row.get("customer_email")),
        customer_phone=optional_string(row.get("customer_phone")),
        customer_county=optional_string(row.get("customer_county")),
    )


def normalize_support_request(row: dict) -> SupportRequest | None:
    request_id = safe_string(row.get("id"))
    if not request_id:
        return None
    ticket_number = row.get("ticket_number")
    return SupportRequest(
        id=request_id,
        created_at=safe_string(row.get("created_at")),
        status=safe_string(row.get("status")) or "open",
        customer_name=optional_string(row.get("customer_name")),
        customer_email=optional_string(row.get("customer_email")),
        issue_type=optional_string(row.get("issue_type")),
        topic=optional_string(row.get("topic")),
        raffle_id=optional_string(row.get("raffle_id")),
        raffle_item_name=optional_string(row.get("raffle_item_name")),
        ticket_number=to_int(ticket_number) if ticket_number is not None else None,
    )
