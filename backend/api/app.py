"""
FastAPI application factory for the Data Weaver API service.

Creates the app with:
- REST routes (cricket, trends, dashboard, health)
- Middleware stack
- Liveness endpoint
- Lifespan management (logging, metrics server, startup report)
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from shared.config import get_settings
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from api.middleware import setup_middleware
from api.routes.cricket import router as cricket_router
from api.routes.dashboard import router as dashboard_router
from api.routes.health import router as health_router
from api.routes.trends import router as trends_router

logger = get_logger(__name__)


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing without the metrics server."""
    yield


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    There are no connections to hold: resolvers open their own HTTP clients
    per request. Startup only configures logging and metrics.
    """
    settings = get_settings()
    setup_logging("api")
    start_metrics_server()

    logger.info(
        "api_service_started",
        host=settings.api_host,
        port=settings.api_port,
        cricket_api="configured" if settings.cricket_configured else "missing",
        trends_api="configured" if settings.trends_configured else "missing",
        default_season=settings.default_season,
    )
    if not (settings.cricket_configured and settings.trends_configured):
        logger.warning("api_keys_missing_using_fallback_data")

    yield

    logger.info("api_service_stopped")


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application. Set use_lifespan=False for testing."""
    app = FastAPI(
        title="Data Weaver API",
        description="Cricket match calendars correlated with food-delivery search interest",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else _noop_lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Middleware
    setup_middleware(app)

    # REST routes
    app.include_router(cricket_router)
    app.include_router(trends_router)
    app.include_router(dashboard_router)
    app.include_router(health_router)

    # Liveness
    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "api"}

    return app


# For running with uvicorn directly
app = create_app()
