"""Notification campaign API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.deps import get_access_token, get_admin_backend, get_current_admin
from app.config import get_settings
from app.database import BackendClient, get_backend
from app.schemas.campaign import (
    CampaignListResponse,
    CampaignResponse,
    DeliveryPageResponse,
    DeliveryStatusFilter,
    SendCampaignRequest,
    SendCampaignResult,
)
from app.services.admin_auth import AdminIdentity
from app.services.campaign_dispatch import send_campaign
from app.services.campaigns import (
    TimeRange,
    campaign_response,
    deliveries_to_csv,
    delivery_response,
    fetch_delivery_counts,
    list_campaigns,
    load_campaign,
)
from app.services.csv_export import csv_filename
from app.services.delivery_paginator import CustomerCache, DeliveryPaginator

router = APIRouter(prefix="/campaigns", tags=["campaigns"])
settings = get_settings()


def _paginator(backend: BackendClient, campaign_id: str, delivery_status: DeliveryStatusFilter) -> DeliveryPaginator:
    return DeliveryPaginator(
        backend,
        campaign_id,
        delivery_status,
        page_size=settings.delivery_page_size,
        customers=CustomerCache(backend, batch_size=settings.customer_lookup_batch_size),
    )


@router.post("", response_model=SendCampaignResult, status_code=status.HTTP_201_CREATED)
async def create_campaign(
    request: SendCampaignRequest,
    token: str = Depends(get_access_token),
    backend: BackendClient = Depends(get_backend),
    _admin: AdminIdentity = Depends(get_current_admin),
):
    """Send a campaign through the dispatch function."""
    return await send_campaign(backend, request, token, function_name=settings.notification_function)


@router.get("", response_model=CampaignListResponse)
async def get_campaigns(
    page: int = Query(0, ge=0),
    search: str = "",
    mode: str = "all",
    time_range: TimeRange = Query(TimeRange.LAST_7_DAYS, alias="range"),
    only_failures: bool = False,
    backend: BackendClient = Depends(get_admin_backend),
):
    """List campaigns, newest first."""
    return await list_campaigns(
        backend,
        page=page,
        page_size=settings.campaign_page_size,
        search=search,
        mode=mode,
        time_range=time_range,
        only_failures=only_failures,
        raffle_lookup_limit=settings.raffle_lookup_limit,
    )


@router.get("/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(campaign_id: str, backend: BackendClient = Depends(get_admin_backend)):
    """Campaign detail with audience description and delivery tallies."""
    campaign, raffle_names = await load_campaign(backend, campaign_id, raffle_lookup_limit=settings.raffle_lookup_limit)
    counts = await fetch_delivery_counts(backend, [campaign.id])
    return campaign_response(campaign, raffle_names, counts.get(campaign.id))


@router.get("/{campaign_id}/deliveries", response_model=DeliveryPageResponse)
async def get_deliveries(
    campaign_id: str,
    delivery_status: DeliveryStatusFilter = Query(DeliveryStatusFilter.ALL, alias="status"),
    page: int = Query(0, ge=0),
    backend: BackendClient = Depends(get_admin_backend),
):
    """One page of deliveries for a campaign."""
    paginator = _paginator(backend, campaign_id, delivery_status)
    paginator.page = page
    fetched = await paginator.load(reset=page == 0)
    if paginator.error and not fetched:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=paginator.error)

    return DeliveryPageResponse(
        items=[delivery_response(d, paginator.customers) for d in fetched],
        page=page,
        has_more=paginator.has_more,
    )


@router.get("/{campaign_id}/deliveries.csv")
async def export_deliveries(
    campaign_id: str,
    delivery_status: DeliveryStatusFilter = Query(DeliveryStatusFilter.ALL, alias="status"),
    pages: int = Query(1, ge=1, le=100),
    backend: BackendClient = Depends(get_admin_backend),
):
    """CSV of the first ``pages`` delivery pages; any failed page fails the export."""
    paginator = _paginator(backend, campaign_id, delivery_status)
    await paginator.load(reset=True)
    while paginator.has_more and paginator.page < pages and not paginator.error:
        await paginator.load()
    if paginator.error:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=paginator.error)

    filename = csv_filename("campaign", campaign_id, "deliveries")
    return Response(
        content=deliveries_to_csv(paginator.deliveries),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
