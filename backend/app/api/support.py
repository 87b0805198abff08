"""Support API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_admin_backend, get_live_registry
from app.database import BackendClient
from app.schemas.support import SupportRequestResponse, SupportStatusUpdate
from app.services.realtime import LiveRegistry
from app.services.support import filter_by_status, get_support_request, list_support_requests, update_status

router = APIRouter(prefix="/support", tags=["support"])


@router.get("", response_model=list[SupportRequestResponse])
async def get_support_requests(
    status_filter: str = "all",
    backend: BackendClient = Depends(get_admin_backend),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """Support requests, newest first."""
    requests = await registry.current("support_requests", lambda: list_support_requests(backend))
    return filter_by_status(requests, status_filter)


@router.get("/{request_id}", response_model=SupportRequestResponse)
async def get_support(request_id: str, backend: BackendClient = Depends(get_admin_backend)):
    support_request = await get_support_request(backend, request_id)
    if support_request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Support request not found")
    return support_request


@router.patch("/{request_id}/status", response_model=SupportRequestResponse)
async def patch_status(
    request_id: str,
    payload: SupportStatusUpdate,
    backend: BackendClient = Depends(get_admin_backend),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """Change a request's status."""
    support_request = await get_support_request(backend, request_id)
    if support_request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Support request not found")

    result = await update_status(backend, request_id, payload.status)
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    registry.invalidate("support_requests")

    support_request.status = payload.status.strip().lower()
    return support_request
