"""
Ingest resolvers.

MatchCalendarResolver and InterestSeriesResolver each run an ordered
provider cascade and tag the data they return with its source. Instances
are cheap and meant to be built per dashboard load; use them as async
context managers so their HTTP clients are opened and closed.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence, Union

import httpx

from shared.config import Settings, get_settings
from shared.models.domain import CalendarResult, InterestResult, SeasonProfile
from shared.models.enums import DataSource, ProviderName
from shared.utils.errors import FallbackExhausted
from shared.utils.logging import get_logger

from analytics.synthetic import SyntheticInterestGenerator
from ingest.providers.base import InterestProvider, InterestQuery, MatchProvider
from ingest.providers.cricapi import CricApiCurrentMatchesProvider, CricApiScheduleProvider
from ingest.providers.historical import HistoricalFileProvider
from ingest.providers.registry import ProviderCascade
from ingest.providers.synthetic import SyntheticInterestProvider
from ingest.providers.trends import TrendsProvider
from ingest.seasons import get_season

logger = get_logger(__name__)

HISTORICAL_NOTE = (
    "The match API free tier does not return historical matches. "
    "Using bundled season data."
)


class MatchCalendarResolver:
    """
    Resolves a season's match list.

    Cascade: current matches -> full schedule -> bundled historical file.
    Remote results are sorted newest first; the historical file keeps its
    own order. Only FallbackExhausted escapes.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        providers: Optional[Sequence[MatchProvider]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        if providers is None:
            providers = [
                CricApiCurrentMatchesProvider(settings, transport=transport),
                CricApiScheduleProvider(settings, transport=transport),
                HistoricalFileProvider(settings.historical_data_dir),
            ]
        self._cascade: ProviderCascade[MatchProvider] = ProviderCascade("match_calendar", providers)

    async def __aenter__(self) -> "MatchCalendarResolver":
        await self._cascade.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self._cascade.close()

    async def resolve(self, season: Union[SeasonProfile, str]) -> CalendarResult:
        """
        Resolve the match calendar for ``season``.

        Raises:
            FallbackExhausted: the season is unknown or its bundled file is unusable.
        """
        if isinstance(season, SeasonProfile):
            profile = season
        else:
            try:
                profile = get_season(season)
            except KeyError as exc:
                raise FallbackExhausted(season, "unknown season") from exc

        outcome = await self._cascade.run(lambda provider: provider.fetch_matches(profile))
        result = outcome.result

        if not result.has_data:
            raise FallbackExhausted(profile.key, result.error or "no matches available")

        matches = list(result.matches or [])
        if result.provider == ProviderName.HISTORICAL:
            logger.info(
                "match_calendar_historical",
                season=profile.key,
                count=len(matches),
                remote_failure=outcome.last_failure.value if outcome.last_failure else None,
            )
            return CalendarResult(matches=matches, source=DataSource.HISTORICAL, note=HISTORICAL_NOTE)

        matches.sort(key=lambda m: m.date, reverse=True)
        logger.info("match_calendar_remote", season=profile.key, count=len(matches))
        return CalendarResult(matches=matches, source=DataSource.CRICAPI)


class InterestSeriesResolver:
    """
    Resolves a daily search-interest series.

    Cascade: trends API -> synthetic generator. Never raises; the synthetic
    step is told which days are match days so boosting is consistent.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        providers: Optional[Sequence[InterestProvider]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        generator: Optional[SyntheticInterestGenerator] = None,
    ) -> None:
        settings = settings or get_settings()
        if providers is None:
            providers = [
                TrendsProvider(settings, transport=transport),
                SyntheticInterestProvider(generator, seed=settings.synthetic_seed),
            ]
        self._cascade: ProviderCascade[InterestProvider] = ProviderCascade("interest_series", providers)

    async def __aenter__(self) -> "InterestSeriesResolver":
        await self._cascade.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self._cascade.close()

    async def resolve(
        self,
        keyword: str,
        region: str,
        start: date,
        end: date,
        match_days: Iterable[date] = (),
    ) -> InterestResult:
        query = InterestQuery(
            keyword=keyword,
            region=region,
            start=start,
            end=end,
            match_days=frozenset(match_days),
        )
        outcome = await self._cascade.run(lambda provider: provider.fetch_interest(query))
        result = outcome.result
        points = list(result.points or [])

        if result.provider == ProviderName.SYNTHETIC:
            reason = outcome.last_failure
            logger.info(
                "interest_series_synthetic",
                keyword=keyword,
                geo=region,
                points=len(points),
                reason=reason.value if reason else None,
            )
            return InterestResult(
                points=points,
                source=DataSource.SYNTHETIC,
                fallback=True,
                reason=reason.value if reason else None,
            )

        logger.info("interest_series_real", keyword=keyword, geo=region, points=len(points))
        return InterestResult(points=points, source=DataSource.TRENDS)
