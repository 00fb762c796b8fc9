"""
Dependency injection for the API service.
Provides settings, the upstream HTTP transport and the dashboard service to
route handlers. Tests replace these through ``app.dependency_overrides``.
"""
from __future__ import annotations

from typing import Optional

import httpx
from fastapi import Depends

from shared.config import Settings, get_settings

from analytics.service import DashboardService


def get_app_settings() -> Settings:
    """FastAPI dependency: returns the process settings."""
    return get_settings()


def get_transport() -> Optional[httpx.AsyncBaseTransport]:
    """FastAPI dependency: upstream transport; None means real network I/O."""
    return None


def get_dashboard_service(
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
) -> DashboardService:
    """FastAPI dependency: a fresh DashboardService per request."""
    return DashboardService(settings, transport=transport)
