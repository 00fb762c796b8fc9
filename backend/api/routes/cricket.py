"""
Match calendar REST endpoints.

GET /api/cricket/matches          Resolved season calendar (remote or bundled).
GET /api/cricket/current-matches  Raw qualifying entries from the current-matches endpoint.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from shared.config import Settings
from shared.models.domain import SeasonProfile
from shared.models.enums import DataSource
from shared.utils.errors import ProviderError
from shared.utils.logging import get_logger

from api.dependencies import get_app_settings, get_transport
from ingest.providers.cricapi import CricApiCurrentMatchesProvider
from ingest.seasons import get_season
from ingest.service import MatchCalendarResolver

logger = get_logger(__name__)
router = APIRouter(prefix="/api/cricket", tags=["cricket"])


def _season_or_404(season: Optional[str], settings: Settings) -> SeasonProfile:
    key = season or settings.default_season
    try:
        return get_season(key)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown season: {key}")


@router.get("/matches")
async def get_matches(
    season: Optional[str] = Query(None, description="Season key, e.g. ipl-2024"),
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
) -> dict[str, Any]:
    """
    Resolve the season's match calendar.

    Remote matches come back newest first; the bundled file keeps its own
    order and carries an explanatory note. FallbackExhausted is turned into
    a 500 by the exception handlers.
    """
    profile = _season_or_404(season, settings)

    async with MatchCalendarResolver(settings, transport=transport) as resolver:
        result = await resolver.resolve(profile)

    body: dict[str, Any] = {
        "success": True,
        "data": [m.model_dump(mode="json", by_alias=True, exclude_none=True) for m in result.matches],
        "source": result.source.value,
        "count": len(result.matches),
    }
    if result.note:
        body["note"] = result.note
    return body


@router.get("/current-matches")
async def get_current_matches(
    season: Optional[str] = Query(None, description="Season key, e.g. ipl-2024"),
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
) -> Any:
    """Pass-through of the current-matches endpoint, filtered to the season. No fallback."""
    profile = _season_or_404(season, settings)

    provider = CricApiCurrentMatchesProvider(settings, transport=transport)
    if not provider.enabled:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "CricAPI key not configured", "fallback": True},
        )

    await provider.start()
    try:
        matches = await provider.list_qualifying(profile)
    except (ProviderError, ValueError) as exc:
        logger.warning("current_matches_failed", season=profile.key, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(exc), "fallback": True},
        )
    finally:
        await provider.close()

    return {
        "success": True,
        "data": [m.model_dump(mode="json", by_alias=True, exclude_none=True) for m in matches],
        "source": DataSource.CRICAPI.value,
    }
