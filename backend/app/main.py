"""SnapWin Admin - raffle platform admin API."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.logging_config import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    from app.database import BackendClient
    from app.services.realtime import build_live_registry

    setup_logging(settings.log_level)
    app.state.backend = BackendClient.from_settings(settings)
    app.state.live = build_live_registry(settings)
    logger.info("%s started against %s", settings.app_name, settings.backend_url)

    yield

    app.state.live.close()
    await app.state.backend.aclose()


app = FastAPI(
    title=settings.app_name,
    description="Manage raffles, customers, support and notification campaigns",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# CORS for the admin console
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


# Import and include routers
from app.api import auth, campaigns, customers, dashboard, notifications, payments, raffles, realtime, reports, support, tickets  # noqa: E402
from app.api.errors import register_error_handlers  # noqa: E402

register_error_handlers(app)

app.include_router(auth.router, prefix="/api")
app.include_router(campaigns.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
app.include_router(raffles.router, prefix="/api")
app.include_router(tickets.router, prefix="/api")
app.include_router(payments.router, prefix="/api")
app.include_router(customers.router, prefix="/api")
app.include_router(support.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")
app.include_router(reports.router, prefix="/api")
app.include_router(realtime.router, prefix="/api")
