"""Customer directory."""
import asyncio
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from app.database import BackendClient
from app.models.customer import Customer
from app.models.raffle import Ticket
from app.services.csv_export import to_csv
from app.services.normalizers import normalize_customer, normalize_rows, normalize_ticket

CUSTOMER_CSV_COLUMNS = ["id", "name", "email", "phone", "county", "created_at"]
CUSTOMER_TICKET_CSV_COLUMNS = [
    "ticket_number",
    "payment_status",
    "is_winner",
    "purchased_at",
    "payment_amount",
    "raffle_id",
    "customer_id",
]


@dataclass
class CustomerStats:
    total_tickets: int = 0
    completed_tickets: int = 0
    failed_tickets: int = 0
    total_spent: float = 0.0
    wins: int = 0


@dataclass
class CustomerDetail:
    customer: Customer
    tickets: list[Ticket] = field(default_factory=list)
    stats: CustomerStats = field(default_factory=CustomerStats)


async def list_customers(backend: BackendClient) -> list[Customer]:
    rows = await backend.table(Customer.__tablename__).select(Customer.columns).order("created_at", desc=True).execute()
    return normalize_rows(rows, normalize_customer)


def search_customers(customers: list[Customer], search: str) -> list[Customer]:
    """Case-insensitive match on name, email, phone or county."""
    needle = search.strip().lower()
    if not needle:
        return customers
    return [
        c for c in customers
        if needle in c.name.lower()
        or needle in c.email.lower()
        or needle in c.phone.lower()
        or needle in c.county.lower()
    ]


def customer_stats(tickets: Iterable[Ticket]) -> CustomerStats:
    """Spend counts completed payments only; wins count any ticket."""
    stats = CustomerStats()
    for ticket in tickets:
        stats.total_tickets += 1
        if ticket.payment_status == "completed":
            stats.completed_tickets += 1
            stats.total_spent += ticket.payment_amount
        elif ticket.payment_status == "failed":
            stats.failed_tickets += 1
        if ticket.is_winner:
            stats.wins += 1
    return stats


async def load_customer_detail(backend: BackendClient, customer_id: str) -> CustomerDetail | None:
    """The customer and their tickets, most recent purchase first."""
    customer_row, ticket_rows = await asyncio.gather(
        backend.table(Customer.__tablename__).select(Customer.detail_columns).eq("id", customer_id).maybe_single(),
        backend.table(Ticket.__tablename__)
        .select(Ticket.owner_columns)
        .eq("customer_id", customer_id)
        .order("purchased_at", desc=True)
        .execute(),
    )
    customer = normalize_customer(customer_row) if customer_row else None
    if customer is None:
        return None
    tickets = normalize_rows(ticket_rows, normalize_ticket)
    return CustomerDetail(customer=customer, tickets=tickets, stats=customer_stats(tickets))


def name_slug(name: str) -> str:
    """Lowercase ASCII slug for download names, e.g. ``"Aoife O'Brien"`` to ``"aoife-o-brien"``."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")

def customers_to_csv(customers: Iterable[Customer]) -> str:
    return to_csv(
        CUSTOMER_CSV_COLUMNS,
        ([c.id, c.name, c.email, c.phone, c.county, c.created_at] for c in customers),
    )


def customer_tickets_to_csv(tickets: Iterable[Ticket]) -> str:
    return to_csv(
        CUSTOMER_TICKET_CSV_COLUMNS,
        (
            [t.ticket_number, t.payment_status, t.is_winner, t.purchased_at, t.payment_amount, t.raffle_id, t.customer_id]
            for t in tickets
        ),
    )
