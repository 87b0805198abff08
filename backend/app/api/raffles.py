"""Raffles API endpoints."""
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from app.api.deps import get_admin_backend, get_live_registry
from app.config import get_settings
from app.database import BackendClient
from app.schemas.raffle import RaffleCreate, RaffleDetailResponse, RaffleResponse, RaffleUpdate
from app.services.raffles import create_raffle, fetch_raffles, filter_raffles, load_raffle_detail, update_raffle
from app.services.realtime import LiveRegistry

router = APIRouter(prefix="/raffles", tags=["raffles"])
settings = get_settings()


@router.get("", response_model=list[RaffleResponse])
async def get_raffles(
    status_filter: str = "all",
    search: str = "",
    backend: BackendClient = Depends(get_admin_backend),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """All raffles, newest first."""
    raffles = await registry.current("raffles", lambda: fetch_raffles(backend))
    return filter_raffles(raffles, status=status_filter, search=search)


@router.post("", response_model=RaffleResponse, status_code=status.HTTP_201_CREATED)
async def post_raffle(
    item_name: str = Form(""),
    item_description: str = Form(""),
    ticket_price: float = Form(5.0),
    total_tickets: int = Form(100),
    max_tickets_per_customer: int = Form(3),
    raffle_status: str = Form("active", alias="status"),
    draw_date: str | None = Form(None),
    image: UploadFile | None = File(None),
    backend: BackendClient = Depends(get_admin_backend),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """Create a raffle, optionally with its image."""
    data = RaffleCreate(
        item_name=item_name,
        item_description=item_description,
        ticket_price=ticket_price,
        total_tickets=total_tickets,
        max_tickets_per_customer=max_tickets_per_customer,
        status=raffle_status,
        draw_date=draw_date or None,
    )

    content = None
    filename = ""
    content_type = "image/jpeg"
    if image is not None:
        content = await image.read() or None
        filename = image.filename or ""
        content_type = image.content_type or content_type

    raffle = await create_raffle(
        backend,
        data,
        image=content,
        image_filename=filename,
        image_content_type=content_type,
        bucket=settings.raffle_images_bucket,
    )
    registry.invalidate("raffles")
    return raffle


@router.get("/{raffle_id}", response_model=RaffleDetailResponse)
async def get_raffle_detail(raffle_id: str, backend: BackendClient = Depends(get_admin_backend)):
    """Raffle with its tickets, winner and sales figures."""
    detail = await load_raffle_detail(backend, raffle_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Raffle not found.")
    return detail


@router.patch("/{raffle_id}", response_model=RaffleResponse)
async def patch_raffle(
    raffle_id: str,
    payload: RaffleUpdate,
    backend: BackendClient = Depends(get_admin_backend),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """Edit a raffle's listing, price, size, draw date or status."""
    raffle = await update_raffle(backend, raffle_id, payload)
    if raffle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Raffle not found.")
    registry.invalidate("raffles")
    return raffle
