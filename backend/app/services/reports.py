"""Ad-hoc reports over the main tables."""
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any

from app.database import BackendClient, Query, escape_ilike
from app.services.csv_export import records_to_csv

logger = logging.getLogger(__name__)

REPORT_ROW_LIMIT = 5000


@dataclass(frozen=True)
class Dataset:
    key: str
    label: str
    table: str
    columns: tuple[str, ...]
    default_columns: tuple[str, ...]
    date_field: str
    filters: tuple[str, ...]


DATASETS = {
    "customers": Dataset(
        key="customers",
        label="Customers",
        table="customers",
        columns=(
            "id", "name", "email", "phone", "address", "county", "created_at",
            "stripe_customer_id", "expo_push_token", "avatar_url", "user_id",
        ),
        default_columns=("id", "name", "email", "phone", "county", "created_at", "expo_push_token"),
        date_field="created_at",
        filters=("search", "county", "has_push_token"),
    ),
    "raffles": Dataset(
        key="raffles",
        label="Raffles",
        table="raffles",
        columns=(
            "id", "item_name", "item_description", "status", "total_tickets", "sold_tickets",
            "ticket_price", "draw_date", "winner_id", "item_image_url", "created_at", "updated_at",
        ),
        default_columns=(
            "id", "item_name", "status", "ticket_price", "total_tickets", "sold_tickets",
            "draw_date", "created_at",
        ),
        date_field="created_at",
        filters=("status", "search"),
    ),
    "tickets": Dataset(
        key="tickets",
        label="Tickets / Payments",
        table="tickets",
        columns=(
            "id", "raffle_id", "ticket_number", "customer_id", "purchased_at", "payment_status",
            "payment_intent_id", "payment_amount", "payment_currency", "payment_method",
            "payment_completed_at", "payment_error", "checkout_session_id", "is_winner",
            "created_at", "ticket_code",
        ),
        default_columns=(
            "id", "ticket_code", "ticket_number", "raffle_id", "customer_id", "payment_status",
            "payment_amount", "payment_currency", "created_at",
        ),
        date_field="created_at",
        filters=(
            "payment_status", "winner_only", "raffle_id", "customer_id", "ticket_code",
            "min_amount", "max_amount",
        ),
    ),
    "customer_attempts": Dataset(
        key="customer_attempts",
        label="Customer Attempts",
        table="customer_attempts",
        columns=("id", "raffle_id", "customer_id", "passed", "attempted_at", "answers"),
        default_columns=("id", "raffle_id", "customer_id", "passed", "attempted_at"),
        date_field="attempted_at",
        filters=("passed", "raffle_id", "customer_id"),
    ),
}


def get_dataset(key: str) -> Dataset:
    dataset = DATASETS.get(key)
    if dataset is None:
        raise ValueError(f"Unknown dataset: {key}")
    return dataset


def _day_bound(value: str, end_of_day: bool) -> str:
    try:
        day = datetime.strptime(value.strip(), "%Y-%m-%d")
    except ValueError as exc:
        raise ValueError(f"Dates must look like YYYY-MM-DD, got {value!r}.") from exc
    if end_of_day:
        day = day.replace(hour=23, minute=59, second=59, microsecond=999000)
    return day.replace(tzinfo=timezone.utc).isoformat()


def _amount(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number.") from exc


def _is_on(value: str) -> bool:
    return value.strip().lower() in {"true", "1", "yes", "on"}


def _apply_filters(query: Query, dataset: Dataset, filters: dict[str, str]) -> Query:
    unknown = sorted(set(filters) - set(dataset.filters))
    if unknown:
        raise ValueError(f"Unsupported filter(s) for {dataset.key}: {', '.join(unknown)}")

    values = {key: value.strip() for key, value in filters.items() if value and value.strip()}

    if dataset.key == "customers":
        if "search" in values:
            query = query.ilike_any(("name", "email"), values["search"])
        if "county" in values:
            query = query.eq("county", values["county"])
        if _is_on(values.get("has_push_token", "")):
            query = query.not_null("expo_push_token")

    elif dataset.key == "raffles":
        if "status" in values:
            query = query.eq("status", values["status"])
        if "search" in values:
            query = query.ilike("item_name", f"%{escape_ilike(values['search'])}%")

    elif dataset.key == "tickets":
        if "payment_status" in values:
            query = query.eq("payment_status", values["payment_status"])
        if _is_on(values.get("winner_only", "")):
            query = query.eq("is_winner", True)
        if "raffle_id" in values:
            query = query.eq("raffle_id", values["raffle_id"])
        if "customer_id" in values:
            query = query.eq("customer_id", values["customer_id"])
        if "ticket_code" in values:
            query = query.ilike("ticket_code", f"%{escape_ilike(values['ticket_code'])}%")
        if "min_amount" in values:
            query = query.gte("payment_amount", _amount(values["min_amount"], "Minimum amount"))
        if "max_amount" in values:
            query = query.lte("payment_amount", _amount(values["max_amount"], "Maximum amount"))

    elif dataset.key == "customer_attempts":
        passed = values.get("passed", "all").lower()
        if passed not in {"all", "passed", "failed"}:
            raise ValueError("Passed filter must be all, passed or failed.")
        if passed != "all":
            query = query.eq("passed", passed == "passed")
        if "raffle_id" in values:
            query = query.eq("raffle_id", values["raffle_id"])
        if "customer_id" in values:
            query = query.eq("customer_id", values["customer_id"])

    return query


def build_report_query(
    backend: BackendClient,
    dataset_key: str,
    columns: list[str],
    filters: dict[str, str] | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    limit: int = REPORT_ROW_LIMIT,
) -> tuple[Query, list[str]]:
    """Validate the report inputs and build its query."""
    dataset = get_dataset(dataset_key)
    if not columns:
        raise ValueError("Select at least one column.")
    invalid = [column for column in columns if column not in dataset.columns]
    if invalid:
        raise ValueError(f"Unknown column(s) for {dataset.key}: {', '.join(invalid)}")

    query = backend.table(dataset.table).select(columns)
    if date_from:
        query = query.gte(dataset.date_field, _day_bound(date_from, end_of_day=False))
    if date_to:
        query = query.lte(dataset.date_field, _day_bound(date_to, end_of_day=True))

    query = _apply_filters(query, dataset, filters or {})
    query = query.order(dataset.date_field, desc=True).limit(limit)
    return query, list(columns)


async def run_report(
    backend: BackendClient,
    dataset_key: str,
    columns: list[str],
    filters: dict[str, str] | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    limit: int = REPORT_ROW_LIMIT,
) -> list[dict[str, Any]]:
    query, columns = build_report_query(backend, dataset_key, columns, filters, date_from, date_to, limit)
    rows = await query.execute()
    logger.info("Report %s returned %d row(s)", dataset_key, len(rows))
    return [{column: row.get(column) for column in columns} for row in rows]


def report_to_csv(rows: list[dict[str, Any]], columns: list[str]) -> str:
    return records_to_csv(rows, columns)


def report_filename(dataset_key: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d-%H-%M-%S")
    return f"{dataset_key}_report_{stamp}.csv"
