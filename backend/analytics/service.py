"""
Dashboard service for Data Weaver.
Responsibilities:
1. Resolve the season's match calendar.
2. Derive the analysis window from the match dates.
3. Resolve the search-interest series for that window.
4. Reconcile both into the daily timeline, statistic and insights.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

import httpx

from shared.config import Settings, get_settings
from shared.models.domain import Dashboard, InterestResult, MatchRecord
from shared.models.enums import DataSource
from shared.utils.errors import FallbackExhausted
from shared.utils.logging import get_logger
from shared.utils.metrics import DASHBOARD_LATENCY, DASHBOARD_LOADS, atrack_latency

from analytics.reconciler import Reconciler
from analytics.synthetic import SyntheticInterestGenerator
from ingest.seasons import get_season
from ingest.service import InterestSeriesResolver, MatchCalendarResolver

logger = get_logger(__name__)


def analysis_window(matches: list[MatchRecord], padding_days: int) -> tuple[date, date]:
    """[earliest match - padding, latest match + padding]."""
    dates = [m.date for m in matches]
    pad = timedelta(days=padding_days)
    return min(dates) - pad, max(dates) + pad


class DashboardService:
    """
    Orchestrates one dashboard load. Calendar first, interest second.

    Resolvers are built fresh per load; ``transport`` is handed to every
    HTTP client so tests can stand in for the upstream APIs.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        generator: Optional[SyntheticInterestGenerator] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport
        self._generator = generator

    async def load(
        self,
        season: Optional[str] = None,
        keyword: Optional[str] = None,
        region: Optional[str] = None,
    ) -> Dashboard:
        """
        Build the dashboard for ``season`` (default from settings).

        Raises:
            FallbackExhausted: no match calendar could be produced.
        """
        season_key = season or self._settings.default_season
        keyword = keyword or self._settings.default_keyword
        region = region or self._settings.default_geo

        status = "error"
        async with atrack_latency(DASHBOARD_LATENCY):
            try:
                dashboard = await self._build(season_key, keyword, region)
                status = "fallback" if (
                    dashboard.match_source.is_fallback or dashboard.interest_source.is_fallback
                ) else "ok"
                return dashboard
            except FallbackExhausted:
                status = "exhausted"
                raise
            finally:
                DASHBOARD_LOADS.labels(status=status).inc()

    async def _build(self, season_key: str, keyword: str, region: str) -> Dashboard:
        try:
            profile = get_season(season_key)
        except KeyError as exc:
            raise FallbackExhausted(season_key, "unknown season") from exc

        async with MatchCalendarResolver(self._settings, transport=self._transport) as calendar:
            calendar_result = await calendar.resolve(profile)

        matches = calendar_result.matches
        start, end = analysis_window(matches, self._settings.window_padding_days)
        match_days = {m.date for m in matches}

        async with InterestSeriesResolver(
            self._settings, transport=self._transport, generator=self._generator
        ) as interest:
            interest_result = await interest.resolve(keyword, region, start, end, match_days)

        if not any(start <= p.date <= end for p in interest_result.points):
            interest_result = self._regenerate(start, end, match_days, interest_result)

        reconciliation = Reconciler(profile.acronym).merge(matches, interest_result.points, start, end)

        logger.info(
            "dashboard_loaded",
            season=profile.key,
            matches=len(matches),
            start=start.isoformat(),
            end=end.isoformat(),
            match_source=calendar_result.source.value,
            interest_source=interest_result.source.value,
            percent_increase=reconciliation.statistic.percent_increase,
        )

        return Dashboard(
            season=profile.key,
            total_matches=len(matches),
            start_date=start,
            end_date=end,
            match_source=calendar_result.source,
            interest_source=interest_result.source,
            interest_fallback=interest_result.fallback,
            timeline=reconciliation.records,
            statistic=reconciliation.statistic,
            insights=reconciliation.insights,
        )

    def _regenerate(
        self,
        start: date,
        end: date,
        match_days: set[date],
        previous: InterestResult,
    ) -> InterestResult:
        logger.warning(
            "interest_outside_window",
            start=start.isoformat(),
            end=end.isoformat(),
            source=previous.source.value,
            points=len(previous.points),
        )
        generator = self._generator or SyntheticInterestGenerator(seed=self._settings.synthetic_seed)
        return InterestResult(
            points=generator.generate(start, end, match_days),
            source=DataSource.SYNTHETIC_OUT_OF_WINDOW,
            fallback=True,
            reason="out_of_window",
        )
