"""Customers API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.deps import get_admin_backend
from app.database import BackendClient
from app.schemas.customer import CustomerDetailResponse, CustomerResponse
from app.services.csv_export import csv_filename
from app.services.customers import (
    customer_tickets_to_csv,
    customers_to_csv,
    list_customers,
    load_customer_detail,
    name_slug,
    search_customers,
)

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=list[CustomerResponse])
async def get_customers(search: str = "", backend: BackendClient = Depends(get_admin_backend)):
    """Customers, newest first."""
    return search_customers(await list_customers(backend), search)


@router.get("/export.csv")
async def export_customers(search: str = "", backend: BackendClient = Depends(get_admin_backend)):
    customers = search_customers(await list_customers(backend), search)
    return Response(
        content=customers_to_csv(customers),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename("customers")}"'},
    )


@router.get("/{customer_id}", response_model=CustomerDetailResponse)
async def get_customer(customer_id: str, backend: BackendClient = Depends(get_admin_backend)):
    """Customer profile with their tickets and spend."""
    detail = await load_customer_detail(backend, customer_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found.")
    return detail


@router.get("/{customer_id}/tickets.csv")
async def export_customer_tickets(customer_id: str, backend: BackendClient = Depends(get_admin_backend)):
    detail = await load_customer_detail(backend, customer_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found.")
    name = name_slug(detail.customer.name) or customer_id
    return Response(
        content=customer_tickets_to_csv(detail.tickets),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename("customer", name, "tickets")}"'},
    )
