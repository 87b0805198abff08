"""Campaign history: listing, delivery tallies and detail lookups."""
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from enum import Enum
import logging

from app.database import BackendClient
from app.models.campaign import Campaign, CampaignMode, Delivery
from app.schemas.campaign import (
    CampaignListResponse,
    CampaignResponse,
    ChipResponse,
    DeliveryCounts,
    DeliveryResponse,
)
from app.services.campaign_resolver import audience_chips, extract_raffle_ids, mode_label, summarize_audience
from app.services.csv_export import to_csv
from app.services.delivery_paginator import CustomerCache
from app.services.delivery_status import infer_delivery_status
from app.services.normalizers import normalize_campaign, normalize_rows, safe_string, to_bool, unique_strings

logger = logging.getLogger(__name__)

RAFFLE_LOOKUP_LIMIT = 200

DELIVERY_CSV_COLUMNS = [
    "id",
    "created_at",
    "campaign_id",
    "customer_id",
    "expo_push_token",
    "in_app_inserted",
    "push_attempted",
    "push_ok",
    "push_provider",
    "error",
    "push_response_json",
    "effective_status",
]


class CampaignNotFoundError(LookupError):
    """No campaign with the requested id."""


class TimeRange(str, Enum):
    TODAY = "today"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    ALL = "all"


def range_start(time_range: TimeRange, now: datetime | None = None) -> str | None:
    """ISO lower bound on ``created_at`` for a time range, or None for all."""
    now = now or datetime.now(timezone.utc)
    if time_range is TimeRange.ALL:
        return None
    if time_range is TimeRange.TODAY:
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    else:
        days = 7 if time_range is TimeRange.LAST_7_DAYS else 30
        start = now - timedelta(days=days)
    return start.isoformat()


async def resolve_raffle_names(
    backend: BackendClient,
    raffle_ids: Iterable[str],
    known: Mapping[str, str] | None = None,
    limit: int = RAFFLE_LOOKUP_LIMIT,
) -> dict[str, str]:
    """Raffle id -> item name for ids not already in ``known``."""
    names = dict(known or {})
    unknown = [rid for rid in unique_strings(raffle_ids) if rid not in names]
    if not unknown:
        return names

    rows = await backend.table("raffles").select("id,item_name").in_("id", unknown).limit(limit).execute()
    for row in rows:
        raffle_id = safe_string(row.get("id"))
        item_name = safe_string(row.get("item_name"))
        if raffle_id and item_name:
            names[raffle_id] = item_name
    return names


def merge_campaigns(existing: list[Campaign], fetched: list[Campaign]) -> list[Campaign]:
    """Combine pages, later copies of an id win, newest first."""
    by_id = {campaign.id: campaign for campaign in [*existing, *fetched]}
    return sorted(by_id.values(), key=lambda c: c.created_at, reverse=True)


async def fetch_campaigns(
    backend: BackendClient,
    page: int = 0,
    page_size: int = 50,
    search: str = "",
    mode: str = "all",
    time_range: TimeRange = TimeRange.ALL,
) -> tuple[list[Campaign], int]:
    """One page of campaigns plus the number of rows the page returned."""
    start = page * page_size
    query = (
        backend.table(Campaign.__tablename__)
        .select(Campaign.columns)
        .order("created_at", desc=True)
        .range(start, start + page_size - 1)
    )

    since = range_start(time_range)
    if since:
        query = query.gte("created_at", since)
    if mode != "all":
        query = query.eq("mode", mode)

    needle = search.strip()
    if needle:
        query = query.ilike_any(("title", "body"), needle)

    rows = await query.execute()
    return normalize_rows(rows, normalize_campaign), len(rows)


def tally_deliveries(campaign_ids: list[str], rows: Iterable[dict]) -> dict[str, DeliveryCounts]:
    """Count deliveries per campaign from the stored push flags."""
    counts = {campaign_id: DeliveryCounts() for campaign_id in campaign_ids}
    for row in rows:
        campaign_id = safe_string(row.get("campaign_id"))
        if not campaign_id:
            continue
        tally = counts.setdefault(campaign_id, DeliveryCounts())
        tally.total += 1
        if not to_bool(row.get("push_attempted")):
            tally.pending += 1
        elif to_bool(row.get("push_ok")):
            tally.ok += 1
        else:
            tally.failed += 1
    return counts


async def fetch_delivery_counts(backend: BackendClient, campaign_ids: list[str]) -> dict[str, DeliveryCounts]:
    if not campaign_ids:
        return {}
    rows = await (
        backend.table(Delivery.__tablename__)
        .select("campaign_id,push_attempted,push_ok")
        .in_("campaign_id", campaign_ids)
        .execute()
    )
    return tally_deliveries(campaign_ids, rows)


def telemetry_looks_disabled(counts: Iterable[DeliveryCounts]) -> bool:
    """True when campaigns have recipients but no delivery was ever attempted."""
    counts = list(counts)
    if not counts or not any(c.total > 0 for c in counts):
        return False
    return not any(c.ok > 0 or c.failed > 0 or c.pending < c.total for c in counts)


def campaign_response(
    campaign: Campaign,
    raffle_names: Mapping[str, str],
    counts: DeliveryCounts | None = None,
) -> CampaignResponse:
    return CampaignResponse(
        id=campaign.id,
        created_at=campaign.created_at,
        created_by=campaign.created_by,
        mode=campaign.mode,
        mode_label=mode_label(campaign.mode),
        title=campaign.title,
        body=campaign.body,
        data=campaign.data,
        criteria=campaign.criteria,
        recipient_count=campaign.recipient_count,
        audience_summary=summarize_audience(campaign.mode, campaign.criteria, raffle_names),
        chips=[
            ChipResponse(label=chip.label, value=chip.value, tone=chip.tone)
            for chip in audience_chips(campaign.mode, campaign.criteria, raffle_names)
        ],
        counts=counts,
    )


async def list_campaigns(
    backend: BackendClient,
    page: int = 0,
    page_size: int = 50,
    search: str = "",
    mode: str = "all",
    time_range: TimeRange = TimeRange.ALL,
    only_failures: bool = False,
    raffle_lookup_limit: int = RAFFLE_LOOKUP_LIMIT,
) -> CampaignListResponse:
    """One page of campaigns with audience text and delivery tallies."""
    if mode != "all" and CampaignMode.parse(mode) is CampaignMode.UNKNOWN:
        raise ValueError(f"Unknown campaign mode: {mode}")

    campaigns, row_count = await fetch_campaigns(backend, page, page_size, search, mode, time_range)
    raffle_ids = [rid for campaign in campaigns for rid in extract_raffle_ids(campaign.criteria)]
    raffle_names = await resolve_raffle_names(backend, raffle_ids, limit=raffle_lookup_limit)
    counts = await fetch_delivery_counts(backend, [c.id for c in campaigns])

    items = [campaign_response(c, raffle_names, counts.get(c.id, DeliveryCounts())) for c in campaigns]
    disabled = telemetry_looks_disabled(item.counts for item in items)
    # Failures only show up once push telemetry is recorded
    if only_failures:
        items = [item for item in items if item.counts and item.counts.failed > 0]

    return CampaignListResponse(
        items=items,
        page=page,
        has_more=row_count == page_size,
        telemetry_looks_disabled=disabled,
    )


async def load_campaign(
    backend: BackendClient,
    campaign_id: str,
    raffle_lookup_limit: int = RAFFLE_LOOKUP_LIMIT,
) -> tuple[Campaign, dict[str, str]]:
    """Fetch one campaign and the names of the raffles it targets."""
    campaign_id = campaign_id.strip()
    if not campaign_id:
        raise ValueError("Missing campaign id.")

    row = await (
        backend.table(Campaign.__tablename__)
        .select(Campaign.columns)
        .eq("id", campaign_id)
        .maybe_single()
    )
    campaign = normalize_campaign(row) if row else None
    if campaign is None:
        raise CampaignNotFoundError("Campaign not found.")

    raffle_names = await resolve_raffle_names(
        backend, extract_raffle_ids(campaign.criteria), limit=raffle_lookup_limit
    )
    return campaign, raffle_names


def delivery_response(delivery: Delivery, customers: CustomerCache | None = None) -> DeliveryResponse:
    customer = customers.get(delivery.customer_id) if customers else None
    return DeliveryResponse(
        id=delivery.id,
        created_at=delivery.created_at,
        campaign_id=delivery.campaign_id,
        customer_id=delivery.customer_id,
        customer_name=customer.name if customer else None,
        customer_email=customer.email if customer else None,
        expo_push_token=delivery.expo_push_token,
        in_app_inserted=delivery.in_app_inserted,
        push_attempted=delivery.push_attempted,
        push_ok=delivery.push_ok,
        push_provider=delivery.push_provider,
        push_response=delivery.push_response,
        error=delivery.error,
        effective_status=infer_delivery_status(delivery).value,
    )


def deliveries_to_csv(deliveries: Iterable[Delivery]) -> str:
    return to_csv(
        DELIVERY_CSV_COLUMNS,
        (
            [
                d.id,
                d.created_at,
                d.campaign_id,
                d.customer_id,
                d.expo_push_token,
                d.in_app_inserted,
                d.push_attempted,
                d.push_ok,
                d.push_provider,
                d.error,
                d.push_response,
                infer_delivery_status(d).value,
            ]
            for d in deliveries
        ),
    )
