"""
Configuration health endpoint.

GET /api/health  Reports which upstream API keys are configured.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from shared.config import Settings

from api.dependencies import get_app_settings

router = APIRouter(prefix="/api", tags=["system"])

ENDPOINTS = {
    "matches": "/api/cricket/matches",
    "currentMatches": "/api/cricket/current-matches",
    "trends": "/api/trends/interest",
    "testTrends": "/api/trends/test",
    "dashboard": "/api/dashboard",
}


def _key_status(configured: bool) -> str:
    return "configured" if configured else "missing"


@router.get("/health")
async def api_health(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    all_configured = settings.cricket_configured and settings.trends_configured
    return {
        "status": "ok",
        "apis": {
            "cricket": _key_status(settings.cricket_configured),
            "trends": _key_status(settings.trends_configured),
        },
        "message": (
            "All APIs configured" if all_configured
            else "Some API keys missing - using fallback data"
        ),
        "endpoints": ENDPOINTS,
    }
