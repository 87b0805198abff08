"""Map service exceptions to HTTP responses."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.database import BackendError
from app.services.campaign_dispatch import DispatchError, MalformedResponseError, NotAuthenticatedError
from app.services.campaigns import CampaignNotFoundError

logger = logging.getLogger(__name__)


def _detail(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BackendError)
    @app.exception_handler(DispatchError)
    @app.exception_handler(MalformedResponseError)
    async def upstream_error(request: Request, exc: Exception):
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": _detail(exc)})

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated(request: Request, exc: NotAuthenticatedError):
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": _detail(exc)})

    @app.exception_handler(CampaignNotFoundError)
    async def not_found(request: Request, exc: CampaignNotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": _detail(exc)})

    @app.exception_handler(ValueError)
    async def invalid_input(request: Request, exc: ValueError):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})
