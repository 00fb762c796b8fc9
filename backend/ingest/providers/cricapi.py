"""
CricAPI match-calendar connectors.

Two strategies share one filter: the current/upcoming endpoint, then the
full schedule endpoint. The free tier only lists current and upcoming
fixtures, so both commonly come back empty out of season.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from shared.config import Settings, get_settings
from shared.models.domain import MatchRecord, SeasonProfile, UpstreamMatch
from shared.models.enums import ProviderName
from shared.utils.errors import MalformedResponse
from shared.utils.http_client import ProviderHTTPClient
from shared.utils.logging import get_logger

from ingest.providers.base import MatchProvider, ProviderResult

logger = get_logger(__name__)


def qualifies(match: UpstreamMatch, season: SeasonProfile) -> bool:
    """Right match format and a name/series/series-id naming the season."""
    if match.match_type != season.match_format:
        return False
    return season.matches_upstream(match.name, match.series, match.series_id)


def parse_matches_payload(payload: Any, provider: str) -> list[UpstreamMatch]:
    """Validate the ``{"data": [...]}`` envelope. A missing ``data`` is an empty list."""
    if not isinstance(payload, dict):
        raise MalformedResponse(provider, "Match API response is not a JSON object")
    entries = payload.get("data") or []
    if not isinstance(entries, list):
        raise MalformedResponse(provider, "Match API 'data' is not a list")
    return [UpstreamMatch.model_validate(entry) for entry in entries if isinstance(entry, dict)]


class CricApiProvider(MatchProvider):
    """Base connector for one CricAPI listing endpoint."""

    ENDPOINT: str = ""

    def __init__(
        self,
        name: ProviderName,
        settings: Settings | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        http_client = ProviderHTTPClient(
            provider_name=name.value,
            base_url=settings.cricapi_base_url,
            transport=transport,
            settings=settings,
        )
        super().__init__(name=name, http_client=http_client)
        self._api_key = settings.cricapi_key

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def list_qualifying(self, season: SeasonProfile) -> list[UpstreamMatch]:
        """Fetch the endpoint and keep the season's matches, unmapped."""
        resp = await self._http.get(self.ENDPOINT, params={"apikey": self._api_key, "offset": 0})
        upstream = parse_matches_payload(resp.json(), self._name.value)
        qualifying = [m for m in upstream if qualifies(m, season)]
        logger.info(
            "cricapi_matches_filtered",
            provider=self._name.value,
            endpoint=self.ENDPOINT,
            checked=len(upstream),
            qualifying=len(qualifying),
            season=season.key,
        )
        return qualifying

    async def _fetch_matches(self, season: SeasonProfile) -> ProviderResult:
        qualifying = await self.list_qualifying(season)
        records: list[MatchRecord] = [m.to_record() for m in qualifying]
        return ProviderResult(provider=self._name, success=True, matches=records)


class CricApiCurrentMatchesProvider(CricApiProvider):
    """Current and upcoming matches."""

    ENDPOINT = "/currentMatches"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(ProviderName.CRICAPI_CURRENT, settings=settings, transport=transport)


class CricApiScheduleProvider(CricApiProvider):
    """Full match listing."""

    ENDPOINT = "/matches"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(ProviderName.CRICAPI_SCHEDULE, settings=settings, transport=transport)
