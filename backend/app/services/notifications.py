"""Admin notification inbox: loading, filtering, deep links and read state."""
from datetime import datetime, timedelta, timezone
import json
import logging
import re

from app.database import BackendClient, BackendError
from app.models.notification import Notification
from app.services.mutations import MutationResult, apply_optimistic, run_mutation
from app.services.normalizers import normalize_notification, normalize_rows

logger = logging.getLogger(__name__)

KINDS = ("ticket", "support", "customer", "system", "other")
AUDIENCES = ("customer", "admin")

_UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)
_SHORT_OFFSET_RE = re.compile(r"(T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?[+-]\d{2})$")


def parse_timestamp(value: str) -> datetime | None:
    """Parse ISO timestamps, including ``2025-12-25 16:21:29.612469+00``."""
    text = (value or "").strip()
    if not text:
        return None
    text = text.replace(" ", "T", 1)
    text = _SHORT_OFFSET_RE.sub(r"\1:00", text)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _sort_key(notification: Notification) -> datetime:
    return parse_timestamp(notification.created_at) or datetime.min.replace(tzinfo=timezone.utc)


def sort_newest_first(items: list[Notification]) -> list[Notification]:
    return sorted(items, key=_sort_key, reverse=True)


def day_bucket(created_at: str, now: datetime | None = None) -> str:
    """Group label: Today, Yesterday or Earlier."""
    now = now or datetime.now(timezone.utc)
    parsed = parse_timestamp(created_at)
    if parsed is None:
        return "Earlier"
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if parsed >= start_of_today:
        return "Today"
    if parsed >= start_of_today - timedelta(days=1):
        return "Yesterday"
    return "Earlier"


def _data_string(notification: Notification, key: str) -> str | None:
    if not notification.data:
        return None
    value = notification.data.get(key)
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def infer_kind(notification: Notification) -> str:
    """Classify a notification, preferring ``data.event`` over text matching."""
    kind_type = notification.type.strip().lower()
    if kind_type == "ticket_purchased":
        return "ticket"

    event = (_data_string(notification, "event") or "").lower()
    if "ticket" in event:
        return "ticket"
    if "support" in event:
        return "support"
    if "customer" in event:
        return "customer"

    # Older rows have no event; fall back to the wording
    title = notification.title.lower()
    body = notification.body.lower()
    if "support" in title or "support" in body or "request" in body:
        return "support"
    if "registered" in title or "created an account" in body or "joined snapwin" in body:
        return "customer"
    if "ticket" in title or "ticket #" in body or "purchased" in body:
        return "ticket"

    if kind_type == "system":
        return "system"
    return "other"


def _action(label: str, href: str, variant: str = "secondary") -> dict:
    return {"label": label, "href": href, "variant": variant}


def build_admin_actions(notification: Notification) -> list[dict]:
    """Deep links into the console for one notification."""
    kind = infer_kind(notification)
    event = (_data_string(notification, "event") or "").lower()
    ticket_id = _data_string(notification, "ticket_id")
    raffle_id = notification.raffle_id or _data_string(notification, "raffle_id")
    customer_id = notification.customer_id or _data_string(notification, "customer_id")
    actions = []

    if notification.type.lower() == "ticket_purchased" or kind == "ticket" or "ticket" in event:
        if raffle_id:
            actions.append(_action("Open raffle", f"/raffles/{raffle_id}", "primary"))
            actions.append(_action("View tickets", f"/tickets?raffle_id={raffle_id}"))
        else:
            actions.append(_action("View tickets", "/tickets", "primary"))
        if ticket_id:
            actions.append(_action("Find ticket", f"/tickets?ticket_id={ticket_id}"))
        if customer_id:
            actions.append(_action("Open customer", f"/customers/{customer_id}"))
        return actions[:3]

    if kind == "support" or "support" in event:
        match = _UUID_RE.search(notification.body)
        support_id = _data_string(notification, "support_request_id") or (match.group(0) if match else None)
        if support_id:
            actions.append(_action("Open support request", f"/support/{support_id}", "primary"))
        elif raffle_id:
            actions.append(_action("View support (raffle)", f"/support?raffle_id={raffle_id}", "primary"))
        elif customer_id:
            actions.append(_action("View support (customer)", f"/support?customer_id={customer_id}", "primary"))
        else:
            actions.append(_action("View support", "/support", "primary"))
        if raffle_id:
            actions.append(_action("Open raffle", f"/raffles/{raffle_id}"))
        if customer_id:
            actions.append(_action("Open customer", f"/customers/{customer_id}"))
        return actions[:3]

    if kind == "customer" or "customer" in event:
        if customer_id:
            return [_action("Open customer", f"/customers/{customer_id}", "primary")]
        return [_action("View customers", "/customers", "primary")]

    if raffle_id:
        actions.append(_action("Open raffle", f"/raffles/{raffle_id}", "primary"))
    if customer_id:
        actions.append(_action("Open customer", f"/customers/{customer_id}", "secondary" if actions else "primary"))
    if not actions:
        actions.append(_action("Open dashboard", "/dashboard", "primary"))
    return actions[:2]


async def fetch_notifications(backend: BackendClient, limit: int = 400) -> list[Notification]:
    """Latest notifications, malformed rows dropped, newest first."""
    rows = await (
        backend.table(Notification.__tablename__)
        .select(Notification.columns)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return sort_newest_first(normalize_rows(rows, normalize_notification))


def filter_notifications(
    items: list[Notification],
    audience: str = "all",
    read: str = "all",
    kind: str = "all",
    search: str = "",
) -> list[Notification]:
    result = list(items)

    if audience != "all":
        result = [n for n in result if n.audience.strip().lower() == audience.lower()]

    if read == "unread":
        result = [n for n in result if not n.is_read]
    elif read == "read":
        result = [n for n in result if n.is_read]

    if kind != "all":
        result = [n for n in result if infer_kind(n) == kind]

    needle = search.strip().lower()
    if needle:
        result = [
            n for n in result
            if needle in n.title.lower()
            or needle in n.body.lower()
            or needle in (n.customer_id or "").lower()
            or needle in (n.raffle_id or "").lower()
            or needle in n.type.lower()
            or needle in n.audience.lower()
            or needle in json.dumps(n.data or {}).lower()
        ]

    return result


def unread_count(items: list[Notification]) -> int:
    return sum(1 for n in items if not n.is_read)


async def update_read_state(backend: BackendClient, ids: list[str], read: bool) -> MutationResult:
    """Set read/unread on the given notifications."""
    if not ids:
        return MutationResult(ok=True)
    read_at = datetime.now(timezone.utc).isoformat() if read else None
    query = backend.table(Notification.__tablename__).select(Notification.columns)
    query = query.eq("id", ids[0]) if len(ids) == 1 else query.in_("id", ids)
    return await run_mutation(lambda: query.update({"is_read": read, "read_at": read_at}))


async def set_read_state(
    backend: BackendClient,
    items: list[Notification],
    ids: list[str],
    read: bool,
) -> tuple[list[Notification], MutationResult]:
    """Patch the local list first and roll it back if the write fails."""
    read_at = datetime.now(timezone.utc).isoformat() if read else None
    return await apply_optimistic(
        items,
        ids,
        lambda: update_read_state(backend, ids, read),
        is_read=read,
        read_at=read_at,
    )


async def mark_all_read(
    backend: BackendClient,
    items: list[Notification],
) -> tuple[list[Notification], MutationResult]:
    return await set_read_state(backend, items, [n.id for n in items if not n.is_read], True)


async def create_notification(
    backend: BackendClient,
    title: str,
    body: str,
    audience: str = "customer",
    customer_id: str | None = None,
) -> Notification:
    """Create a manual system notification."""
    title = title.strip()
    body = body.strip()
    if not title or not body:
        raise ValueError("Title and message are required.")
    if audience not in AUDIENCES:
        raise ValueError(f"Audience must be one of: {', '.join(AUDIENCES)}.")

    row = await backend.table(Notification.__tablename__).select(Notification.columns).insert({
        "title": title,
        "body": body,
        "audience": audience,
        "type": "system",
        "customer_id": (customer_id or "").strip() or None,
        "raffle_id": None,
        "is_read": False,
        "read_at": None,
        "data": {"event": "admin_manual_system"},
    })
    created = normalize_notification(row)
    if created is None:
        raise BackendError("Notification created but could not be normalized.")
    logger.info("Created %s notification %s", audience, created.id)
    return created
