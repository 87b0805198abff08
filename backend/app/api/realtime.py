"""Change feed webhook."""
import hmac
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Header, HTTPException, status

from app.api.deps import get_live_registry
from app.config import get_settings
from app.services.realtime import LiveRegistry

router = APIRouter(prefix="/realtime", tags=["realtime"])
settings = get_settings()
logger = logging.getLogger(__name__)


@router.post("/events")
async def receive_events(
    payload: dict[str, Any] | list[Any] = Body(...),
    secret: str | None = Header(None, alias="X-Change-Feed-Secret"),
    registry: LiveRegistry = Depends(get_live_registry),
):
    """Apply row changes posted by the database webhook or a feed relay."""
    if not settings.change_feed_secret:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Change feed is not enabled.")
    if secret is None or not hmac.compare_digest(secret.encode(), settings.change_feed_secret.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid change feed secret.")

    payloads = payload if isinstance(payload, list) else [payload]
    applied = registry.dispatch(payloads)
    logger.debug("Change feed: %d received, %d applied", len(payloads), applied)
    return {"received": len(payloads), "applied": applied}
