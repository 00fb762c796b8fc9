"""
Search-interest REST endpoints.

GET /api/trends/interest  Daily interest series, real or simulated.
GET /api/trends/test      Probe of the real trends API, no fallback.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from shared.config import Settings
from shared.models.enums import DataSource, FailureKind
from shared.utils.errors import ProviderError
from shared.utils.logging import get_logger

from api.dependencies import get_app_settings, get_transport
from ingest.providers.trends import TrendsProvider
from ingest.service import InterestSeriesResolver

logger = get_logger(__name__)
router = APIRouter(prefix="/api/trends", tags=["trends"])

PROBE_SAMPLE_SIZE = 5


def _probe_failure(kind: FailureKind, error: str) -> JSONResponse:
    logger.warning("trends_probe_failed", failure=kind.value, error=error)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": error, "failure": kind.value},
    )


def _default_window(settings: Settings, start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    end = end or datetime.now(timezone.utc).date()
    start = start or end - timedelta(days=settings.trends_default_window_days)
    if start > end:
        raise HTTPException(status_code=400, detail="startDate must not be after endDate")
    return start, end


@router.get("/interest")
async def get_interest(
    keyword: Optional[str] = Query(None),
    geo: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
) -> dict[str, Any]:
    """
    Interest series for ``keyword`` in ``geo``.

    Without a match calendar the synthetic fallback boosts no days.
    """
    keyword = keyword or settings.default_keyword
    geo = geo or settings.default_geo
    start, end = _default_window(settings, start_date, end_date)

    async with InterestSeriesResolver(settings, transport=transport) as resolver:
        result = await resolver.resolve(keyword, geo, start, end)

    body: dict[str, Any] = {
        "success": True,
        "data": {"timeline": [p.model_dump(mode="json", by_alias=True) for p in result.points]},
        "source": result.source.value,
        "count": len(result.points),
    }
    if result.fallback:
        body["fallback"] = True
    return body


@router.get("/test")
async def probe_trends(
    keyword: Optional[str] = Query(None),
    geo: Optional[str] = Query(None),
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
) -> Any:
    """Call the real trends API once and report what came back."""
    keyword = keyword or settings.default_keyword
    geo = geo or settings.default_geo

    provider = TrendsProvider(settings, transport=transport)
    if not provider.enabled:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "RapidAPI key not configured",
                "failure": FailureKind.NOT_CONFIGURED.value,
            },
        )

    await provider.start()
    try:
        points = await provider.fetch_timeline(keyword, geo)
    except ProviderError as exc:
        return _probe_failure(exc.kind, str(exc))
    except (KeyError, ValueError, TypeError) as exc:
        return _probe_failure(FailureKind.MALFORMED_RESPONSE, f"{type(exc).__name__}: {exc}")
    finally:
        await provider.close()

    return {
        "success": True,
        "message": "Trends API working.",
        "dataPoints": len(points),
        "sample": [p.model_dump(mode="json", by_alias=True) for p in points[:PROBE_SAMPLE_SIZE]],
        "source": DataSource.TRENDS.value,
    }
