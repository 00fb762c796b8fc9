"""
Search-interest connector for a Google Trends compatible API (RapidAPI host).

The upstream answers with either the Trends "multiline" JSON, where the
series lives under ``default.timelineData``, or with an HTML page when
Google is throttling. Both failure shapes are classified here so the
cascade can log them distinctly before falling back to synthetic data.
"""
from __future__ import annotations

import json
import math
from datetime import date, datetime, timezone
from typing import Any, Optional

import httpx

from shared.config import Settings, get_settings
from shared.models.domain import InterestPoint
from shared.models.enums import ProviderName
from shared.utils.errors import MalformedResponse, RateLimited
from shared.utils.http_client import ProviderHTTPClient
from shared.utils.logging import get_logger

from ingest.providers.base import InterestProvider, InterestQuery, ProviderResult

logger = get_logger(__name__)

# Google prefixes JSON bodies with this anti-hijacking guard.
XSSI_PREFIX = ")]}',"
RATE_LIMIT_MARKERS = ("<html", "Error 429")


def parse_timeline(body: str, provider: str = ProviderName.TRENDS.value) -> list[dict[str, Any]]:
    """
    Extract ``default.timelineData`` from a raw response body.

    Raises:
        RateLimited: body is an HTML page or carries a 429 marker.
        MalformedResponse: body is not JSON or lacks the timeline list.
    """
    if any(marker in body for marker in RATE_LIMIT_MARKERS):
        raise RateLimited(provider, "Rate limited by Google (429)")

    text = body.strip()
    if text.startswith(XSSI_PREFIX):
        text = text[len(XSSI_PREFIX):]

    try:
        parsed = json.loads(text)
    except ValueError as exc:
        raise MalformedResponse(provider, "Invalid JSON response from Google Trends") from exc

    default = parsed.get("default") if isinstance(parsed, dict) else None
    timeline = default.get("timelineData") if isinstance(default, dict) else None
    if not isinstance(timeline, list):
        raise MalformedResponse(provider, "No timeline data in response")
    return timeline


def _first_value(values: Any, provider: str) -> int | float:
    if isinstance(values, list) and values and values[0] is not None:
        value = values[0]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            value = float(value)
        if not math.isfinite(value):
            raise MalformedResponse(provider, f"Non-finite interest value: {value!r}")
        return max(value, 0)
    return 0


def _utc_day(raw_time: Any, provider: str) -> date:
    try:
        return datetime.fromtimestamp(int(raw_time), tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedResponse(provider, f"Unusable timestamp: {raw_time!r}") from exc


def to_interest_points(
    timeline: list[dict[str, Any]], provider: str = ProviderName.TRENDS.value
) -> list[InterestPoint]:
    """
    Epoch-seconds ``time`` becomes a UTC calendar date; ``value[0]`` the value.

    Raises:
        MalformedResponse: a timestamp is out of range or a value is not finite.
    """
    points: list[InterestPoint] = []
    for entry in timeline:
        day = _utc_day(entry["time"], provider)
        points.append(InterestPoint(date=day, value=_first_value(entry.get("value"), provider)))
    return points


def clip_to_window(points: list[InterestPoint], start: date, end: date) -> list[InterestPoint]:
    """
    Keep points inside ``[start, end]``. If none fall inside but some exist,
    return them all: some data in the wrong range beats no data.
    """
    inside = [p for p in points if start <= p.date <= end]
    if inside or not points:
        return inside
    logger.warning(
        "trends_no_points_in_window",
        start=start.isoformat(),
        end=end.isoformat(),
        available_from=points[0].date.isoformat(),
        available_to=points[-1].date.isoformat(),
        count=len(points),
    )
    return list(points)


class TrendsProvider(InterestProvider):
    """Real search-interest series. Skipped when no RapidAPI key is set."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        http_client = ProviderHTTPClient(
            provider_name=ProviderName.TRENDS.value,
            base_url=settings.trends_base_url,
            headers={
                "X-RapidAPI-Key": settings.rapidapi_key,
                "X-RapidAPI-Host": settings.trends_host,
            },
            transport=transport,
            settings=settings,
        )
        super().__init__(name=ProviderName.TRENDS, http_client=http_client)
        self._api_key = settings.rapidapi_key
        self._path = settings.trends_path

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def fetch_timeline(self, keyword: str, region: str) -> list[InterestPoint]:
        """Raw transformed series, unfiltered. Raises ProviderError subclasses."""
        resp = await self._http.get(self._path, params={"keyword": keyword, "geo": region})
        try:
            timeline = parse_timeline(resp.text, self._name.value)
        except RateLimited:
            logger.warning("trends_rate_limited", keyword=keyword, geo=region)
            raise
        points = to_interest_points(timeline, self._name.value)
        if points:
            logger.info(
                "trends_timeline_received",
                keyword=keyword,
                geo=region,
                count=len(points),
                first=points[0].date.isoformat(),
                last=points[-1].date.isoformat(),
            )
        return points

    async def _fetch_interest(self, query: InterestQuery) -> ProviderResult:
        points = await self.fetch_timeline(query.keyword, query.region)
        return ProviderResult(
            provider=self._name,
            success=True,
            points=clip_to_window(points, query.start, query.end),
        )
