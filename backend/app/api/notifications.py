"""Notification inbox API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_admin_backend, get_live_registry
from app.config import get_settings
from app.database import BackendClient
from app.models.notification import Notification
from app.schemas.notification import (
    NotificationAction,
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
    ReadStateResult,
    ReadStateUpdate,
)
from app.services.notifications import (
    build_admin_actions,
    create_notification,
    day_bucket,
    fetch_notifications,
    filter_notifications,
    infer_kind,
    mark_all_read,
    set_read_state,
    sort_newest_first,
    unread_count,
)
from app.services.realtime import LiveRegistry

router = APIRouter(prefix="/notifications", tags=["notifications"])
settings = get_settings()


async def load_inbox(backend: BackendClient, registry: LiveRegistry) -> list[Notification]:
    """Inbox from the live collection, fetched when stale, newest first."""
    items = await registry.current(
        "notifications", lambda: fetch_notifications(backend, limit=settings.notifications_fetch_limit)
    )
    return sort_newest_first(items)


def notification_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        created_at=n.created_at,
        title=n.title,
        body=n.body,
        customer_id=n.customer_id,
        raffle_id=n.raffle_id,
        type=n.type,
        audience=n.audience,
        is_read=n.is_read,
        read_at=n.read_at,
        data=n.data,
        kind=infer_kind(n),
        day=day_bucket(n.created_at),
        actions=[NotificationAction(**action) for action in build_admin_actions(n)],
    )


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    audience: str = "all",
    read: str = "all",
    kind: str = "all",
    search: str = "",
    backend: BackendClient = Depends(get_admin_backend),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """Inbox, newest first."""
    items = await load_inbox(backend, registry)
    filtered = filter_notifications(items, audience=audience, read=read, kind=kind, search=search)
    return NotificationListResponse(
        items=[notification_response(n) for n in filtered],
        total=len(items),
        unread=unread_count(items),
    )


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def post_notification(
    payload: NotificationCreate,
    backend: BackendClient = Depends(get_admin_backend),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """Create a manual system notification."""
    created = await create_notification(
        backend,
        payload.title,
        payload.body,
        audience=payload.audience,
        customer_id=payload.customer_id,
    )
    registry.invalidate("notifications")
    return notification_response(created)


@router.post("/read", response_model=ReadStateResult)
async def update_read(
    payload: ReadStateUpdate,
    backend: BackendClient = Depends(get_admin_backend),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """Mark notifications read or unread. No ids marks every unread one read."""
    if not payload.ids and not payload.read:
        raise ValueError("Select the notifications to mark unread.")
    items = await load_inbox(backend, registry)
    if payload.ids:
        ids = payload.ids
        items, result = await set_read_state(backend, items, ids, payload.read)
    else:
        ids = [n.id for n in items if not n.is_read]
        items, result = await mark_all_read(backend, items)
    registry.collection("notifications").items = items

    if not result.ok:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return ReadStateResult(ok=True, updated=len(ids))


@router.post("/{notification_id}/read", response_model=ReadStateResult)
async def mark_notification_read(
    notification_id: str,
    backend: BackendClient = Depends(get_admin_backend),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """Mark a notification as read."""
    items = await load_inbox(backend, registry)
    if not any(n.id == notification_id for n in items):
        raise HTTPException(status_code=404, detail="Notification not found")

    items, result = await set_read_state(backend, items, [notification_id], True)
    registry.collection("notifications").items = items
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return ReadStateResult(ok=True, updated=1)
