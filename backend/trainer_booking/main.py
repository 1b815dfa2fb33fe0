# backend/trainer_booking/main.py
"""
FastAPI application for trainer bookings and payment reconciliation.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Dict

from fastapi import APIRouter, FastAPI, Response

from .core.config import is_running_tests, settings
from .database import init_db
from .errors import register_error_handlers
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import bookings as bookings_v1, trainers as trainers_v1

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_TITLE = "Trainer Booking API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    if not settings.stripe_configured:
        logger.warning("STRIPE_SECRET_KEY is not set; checkout requests will fail")
    if not settings.webhook_secret:
        logger.warning("STRIPE_WEBHOOK_SECRET is not set; all webhooks will be rejected")

    init_db()

    yield

    logger.info(f"{API_TITLE} shutting down...")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
register_error_handlers(app)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(trainers_v1.router, prefix="/trainers")
app.include_router(api_v1)


@app.get("/health", include_in_schema=False)
def health_check() -> Dict[str, str]:
    return {"status": "healthy", "environment": settings.environment}


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Prometheus exposition of the service registry."""
    return Response(content=prometheus_metrics.get_metrics(), media_type=prometheus_metrics.content_type)
