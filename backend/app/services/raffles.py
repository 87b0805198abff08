"""Raffle listing, detail, creation and editing."""
import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
import logging
import math
import time

from app.database import BackendClient, BackendError
from app.models.customer import Customer
from app.models.raffle import Raffle, RaffleStatus, Ticket
from app.schemas.raffle import RaffleCreate, RaffleUpdate
from app.services.normalizers import normalize_customer, normalize_raffle, normalize_rows, normalize_ticket

logger = logging.getLogger(__name__)

RAFFLE_IMAGES_BUCKET = "raffle-images"
MAX_TICKETS_PER_CUSTOMER = 1000


def default_draw_date(now: datetime | None = None) -> datetime:
    """One week out at 18:00."""
    now = now or datetime.now().astimezone()
    return (now + timedelta(days=7)).replace(hour=18, minute=0, second=0, microsecond=0)


async def fetch_raffles(backend: BackendClient) -> list[Raffle]:
    rows = await backend.table(Raffle.__tablename__).select(Raffle.columns).order("created_at", desc=True).execute()
    return normalize_rows(rows, normalize_raffle)


def filter_raffles(raffles: list[Raffle], status: str = "all", search: str = "") -> list[Raffle]:
    if status != "all":
        raffles = [r for r in raffles if r.status == status]
    needle = search.strip().lower()
    if needle:
        raffles = [r for r in raffles if needle in r.item_name.lower()]
    return raffles


def _check_listing(name: str, description: str, ticket_price: float, total_tickets: int) -> tuple[str, str]:
    name = name.strip()
    description = description.strip()
    if not name:
        raise ValueError("Item name is required.")
    if not description:
        raise ValueError("Item description is required.")
    if not math.isfinite(ticket_price) or ticket_price <= 0:
        raise ValueError("Ticket price must be a positive number.")
    if total_tickets <= 0:
        raise ValueError("Total tickets must be a positive integer.")
    return name, description


def _parse_draw_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError("Draw date must be an ISO date/time.") from exc


def validate_raffle(data: RaffleCreate) -> dict:
    """Check the form and build the row to insert. Raises ValueError."""
    name, description = _check_listing(data.item_name, data.item_description, data.ticket_price, data.total_tickets)
    if not 1 <= data.max_tickets_per_customer <= MAX_TICKETS_PER_CUSTOMER:
        raise ValueError("Max tickets per customer must be an integer between 1 and 1000.")

    draw_date = _parse_draw_date(data.draw_date) if data.draw_date else default_draw_date()

    return {
        "item_name": name,
        "item_description": description,
        "ticket_price": data.ticket_price,
        "total_tickets": data.total_tickets,
        "sold_tickets": 0,
        "status": RaffleStatus(data.status).value,
        "draw_date": draw_date.isoformat(),
        "max_tickets_per_customer": data.max_tickets_per_customer,
    }


def image_path(raffle_id: str, filename: str, millis: int | None = None) -> str:
    """Storage path like ``raffles/<id>-<millis>.<ext>``; extension defaults to jpg."""
    ext = filename.rsplit(".", 1)[-1] if "." in filename else ""
    millis = millis if millis is not None else int(time.time() * 1000)
    return f"raffles/{raffle_id}-{millis}.{ext or 'jpg'}"


async def create_raffle(
    backend: BackendClient,
    data: RaffleCreate,
    image: bytes | None = None,
    image_filename: str = "",
    image_content_type: str = "image/jpeg",
    bucket: str = RAFFLE_IMAGES_BUCKET,
) -> Raffle:
    """Insert a raffle, then upload its image and point the row at it."""
    row = validate_raffle(data)
    created = await backend.table(Raffle.__tablename__).select(Raffle.columns).insert(row)
    raffle = normalize_raffle(created)
    if raffle is None:
        raise BackendError("Raffle created but the row came back incomplete.")
    logger.info("Created raffle %s (%s)", raffle.id, raffle.item_name)

    if image:
        path = await backend.upload(
            bucket,
            image_path(raffle.id, image_filename),
            image,
            content_type=image_content_type,
            cache_control="3600",
            upsert=False,
        )
        public_url = backend.public_url(bucket, path)
        await (
            backend.table(Raffle.__tablename__)
            .select(Raffle.columns)
            .eq("id", raffle.id)
            .update({"item_image_url": public_url})
        )
        raffle.item_image_url = public_url

    return raffle


@dataclass
class RaffleStats:
    sold: int = 0
    total: int = 0
    sold_percent: int = 0
    revenue: float = 0.0
    completed_payments: int = 0
    failed_payments: int = 0


@dataclass
class RaffleDetail:
    raffle: Raffle
    tickets: list[Ticket] = field(default_factory=list)
    winner: Customer | None = None
    stats: RaffleStats = field(default_factory=RaffleStats)


def raffle_stats(raffle: Raffle, tickets: list[Ticket]) -> RaffleStats:
    """Sales figures; revenue is price times sold tickets."""
    sold = raffle.sold_tickets
    total = raffle.total_tickets
    return RaffleStats(
        sold=sold,
        total=total,
        sold_percent=round(sold / total * 100) if total > 0 else 0,
        revenue=raffle.ticket_price * sold,
        completed_payments=sum(1 for t in tickets if t.payment_status == "completed"),
        failed_payments=sum(1 for t in tickets if t.payment_status == "failed"),
    )


async def get_raffle(backend: BackendClient, raffle_id: str) -> Raffle | None:
    row = await backend.table(Raffle.__tablename__).select(Raffle.detail_columns).eq("id", raffle_id).maybe_single()
    return normalize_raffle(row) if row else None


async def _load_winner(backend: BackendClient, winner_id: str) -> Customer | None:
    try:
        row = await backend.table(Customer.__tablename__).select(Customer.columns).eq("id", winner_id).maybe_single()
    except BackendError as exc:
        logger.warning("Winner lookup for %s failed: %s", winner_id, exc.message)
        return None
    return normalize_customer(row) if row else None


async def load_raffle_detail(backend: BackendClient, raffle_id: str) -> RaffleDetail | None:
    """Raffle, its tickets by number, the winner when drawn and sales stats."""
    raffle, ticket_rows = await asyncio.gather(
        get_raffle(backend, raffle_id),
        backend.table(Ticket.__tablename__)
        .select(Ticket.owner_columns)
        .eq("raffle_id", raffle_id)
        .order("ticket_number", desc=False)
        .execute(),
    )
    if raffle is None:
        return None
    tickets = normalize_rows(ticket_rows, normalize_ticket)
    winner = await _load_winner(backend, raffle.winner_id) if raffle.winner_id else None
    return RaffleDetail(raffle=raffle, tickets=tickets, winner=winner, stats=raffle_stats(raffle, tickets))


def validate_raffle_update(data: RaffleUpdate, sold_tickets: int) -> dict:
    """Check an edit and build the row patch. Raises ValueError."""
    name, description = _check_listing(data.item_name, data.item_description, data.ticket_price, data.total_tickets)
    if data.total_tickets < sold_tickets:
        raise ValueError(f"Total tickets cannot be lower than sold tickets ({sold_tickets}).")

    values = {
        "item_name": name,
        "item_description": description,
        "ticket_price": data.ticket_price,
        "total_tickets": data.total_tickets,
        "draw_date": _parse_draw_date(data.draw_date).isoformat() if data.draw_date else None,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    if data.status is not None:
        values["status"] = RaffleStatus(data.status).value
    return values


async def update_raffle(backend: BackendClient, raffle_id: str, data: RaffleUpdate) -> Raffle | None:
    """Apply an edit to an existing raffle; None when it does not exist."""
    current = await get_raffle(backend, raffle_id)
    if current is None:
        return None
    values = validate_raffle_update(data, current.sold_tickets)

    rows = await backend.table(Raffle.__tablename__).select(Raffle.detail_columns).eq("id", raffle_id).update(values)
    updated = normalize_rows(rows, normalize_raffle)
    logger.info("Updated raffle %s", raffle_id)
    return updated[0] if updated else replace(current, **values)
