# backend/scheduling/main.py
"""
ASGI application for the scheduling service.

Mounts the appointment routes under ``settings.api_prefix`` and exposes
Prometheus metrics on ``/metrics``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from . import __version__
from .core.config import is_running_tests, settings
from .database import init_db
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes.v1 import appointments as appointments_v1, metrics as metrics_v1

API_TITLE = "Marketplace Scheduling API"
API_DESCRIPTION = "Appointment booking, availability and lifecycle for service professionals"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{API_TITLE} {__version__} starting up...")
    if not is_running_tests():
        init_db()
    yield
    logger.info(f"{API_TITLE} shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )

    # Register unified error envelope handlers
    register_error_handlers(app)

    if settings.metrics_enabled:
        app.add_middleware(PrometheusMiddleware)
        app.include_router(metrics_v1.router)

    api_v1 = APIRouter(prefix=settings.api_prefix)
    api_v1.include_router(appointments_v1.router, prefix="/appointments")
    app.include_router(api_v1)

    @app.get("/health", include_in_schema=False)
    def health() -> dict[str, str]:
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()
