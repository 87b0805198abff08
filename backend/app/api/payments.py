"""Payments API endpoints."""
from fastapi import APIRouter, Depends

from app.api.deps import get_admin_backend
from app.database import BackendClient
from app.schemas.payment import PaymentListResponse
from app.services.payments import fetch_payments, filter_payments, summarize_payments

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("", response_model=PaymentListResponse)
async def get_payments(
    status_filter: str = "all",
    search: str = "",
    backend: BackendClient = Depends(get_admin_backend),
):
    payments = await fetch_payments(backend)
    return PaymentListResponse(
        items=filter_payments(payments, status=status_filter, search=search),
        summary=summarize_payments(payments),
    )
