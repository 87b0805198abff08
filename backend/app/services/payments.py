"""Payments feed over the payments view."""
from dataclasses import dataclass

from app.database import BackendClient
from app.models.payment import Payment
from app.services.normalizers import normalize_payment, normalize_rows
from app.services.tickets import check_payment_status


@dataclass
class PaymentSummary:
    total: int = 0
    completed: int = 0
    pending: int = 0
    failed: int = 0
    revenue: float = 0.0
    currency: str = "eur"


async def fetch_payments(backend: BackendClient) -> list[Payment]:
    rows = await (
        backend.table(Payment.__tablename__)
        .select(Payment.columns)
        .order("ticket_created_at", desc=True)
        .execute()
    )
    return normalize_rows(rows, normalize_payment)


def _haystack(payment: Payment) -> str:
    parts = [
        payment.raffle_item_name,
        payment.customer_name,
        payment.customer_email,
        payment.customer_phone,
        payment.customer_county,
        payment.ticket_code,
        payment.payment_intent_id,
        payment.checkout_session_id,
        payment.ticket_id,
        payment.raffle_id,
        payment.customer_id,
    ]
    return " ".join(part for part in parts if part).lower()


def filter_payments(payments: list[Payment], status: str = "all", search: str = "") -> list[Payment]:
    status = check_payment_status(status)
    if status != "all":
        payments = [p for p in payments if p.payment_status == status]
    needle = search.strip().lower()
    if needle:
        payments = [p for p in payments if needle in _haystack(p)]
    return payments


def summarize_payments(payments: list[Payment]) -> PaymentSummary:
    """Counts by status and completed revenue; currency prefers EUR when present."""
    summary = PaymentSummary(total=len(payments))
    for payment in payments:
        if payment.payment_status == "completed":
            summary.completed += 1
            summary.revenue += payment.payment_amount
        elif payment.payment_status == "pending":
            summary.pending += 1
        elif payment.payment_status == "failed":
            summary.failed += 1

    currencies = [p.payment_currency for p in payments if p.payment_currency]
    if any(c.lower() == "eur" for c in currencies):
        summary.currency = next(c for c in currencies if c.lower() == "eur")
    elif currencies:
        summary.currency = currencies[0]
    return summary
