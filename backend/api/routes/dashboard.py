"""
Dashboard REST endpoint.

GET /api/dashboard  Match calendar joined with search interest, plus statistic and insights.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from shared.config import Settings

from analytics.service import DashboardService
from api.dependencies import get_app_settings, get_dashboard_service
from ingest.seasons import get_season

router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/dashboard")
async def get_dashboard(
    season: Optional[str] = Query(None, description="Season key, e.g. ipl-2024"),
    keyword: Optional[str] = Query(None),
    geo: Optional[str] = Query(None),
    settings: Settings = Depends(get_app_settings),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    season_key = season or settings.default_season
    try:
        get_season(season_key)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown season: {season_key}")

    dashboard = await service.load(season_key, keyword=keyword, region=geo)
    return {"success": True, "data": dashboard.model_dump(mode="json", by_alias=True)}
