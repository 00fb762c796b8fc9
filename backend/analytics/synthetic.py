"""
Synthetic search-interest generator for Data Weaver.
Produces a plausible daily series when no real trends data is available.
"""
from __future__ import annotations

import random
from datetime import date, timedelta
from typing import Iterable, Optional

from shared.models.domain import InterestPoint
from shared.utils.logging import get_logger
from shared.utils.metrics import SYNTHETIC_POINTS

logger = get_logger(__name__)

BASE_INTEREST = 50.0
BASE_JITTER = 20.0
MATCH_DAY_BOOST = (15.0, 30.0)
WEEKEND_BOOST = (5.0, 10.0)


class SyntheticInterestGenerator:
    """
    Generates one interest point per calendar day.

    Model:
        interest = (50 + U(0, 20))
                 + U(15, 30)  if the day is a match day
                 + U(5, 10)   if the day is a Saturday or Sunday

    rounded to the nearest integer. All three draws are taken for every day,
    whether or not they apply, so for a given seed a match day always scores
    higher than the same day would without a match.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random(seed)

    def generate(self, start: date, end: date, match_days: Iterable[date] = ()) -> list[InterestPoint]:
        """
        Build the series for ``[start, end]`` inclusive.

        Args:
            start: First day.
            end: Last day; an end before start yields an empty series.
            match_days: Days with at least one match.

        Returns:
            Gap-free list of InterestPoint with non-negative integer values.
        """
        days = frozenset(match_days)
        points: list[InterestPoint] = []
        boosted = 0

        current = start
        while current <= end:
            is_match_day = current in days
            points.append(self._make_point(current, is_match_day))
            boosted += is_match_day
            current += timedelta(days=1)

        SYNTHETIC_POINTS.labels(match_day="true").inc(boosted)
        SYNTHETIC_POINTS.labels(match_day="false").inc(len(points) - boosted)
        logger.debug(
            "synthetic_interest_generated",
            start=start.isoformat(),
            end=end.isoformat(),
            points=len(points),
            match_days=boosted,
        )
        return points

    def _make_point(self, day: date, is_match_day: bool) -> InterestPoint:
        base = BASE_INTEREST + self._rng.uniform(0.0, BASE_JITTER)
        match_boost = self._rng.uniform(*MATCH_DAY_BOOST)
        weekend_boost = self._rng.uniform(*WEEKEND_BOOST)

        interest = base
        if is_match_day:
            interest += match_boost
        if day.weekday() >= 5:
            interest += weekend_boost

        return InterestPoint(date=day, value=max(0, int(round(interest))))
