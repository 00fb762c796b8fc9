"""
Reconciler: joins the interest series with the match calendar, computes the
match-day vs non-match-day comparison, and derives dashboard insights.

Everything here is pure. The same inputs always yield identical output.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Optional, Sequence

from shared.models.domain import (
    DailyRecord,
    Insight,
    InterestPoint,
    MatchRecord,
    Number,
    Reconciliation,
    Statistic,
)
from shared.models.enums import CorrelationSign
from shared.utils.logging import get_logger

logger = get_logger(__name__)

STRONG_CORRELATION_PCT = 10.0

CRICKET_AND_CRAVINGS = Insight(
    title="Cricket & Cravings",
    text=(
        "The data suggests that cricket fans are more likely to order food while "
        "watching matches, possibly to avoid missing game time."
    ),
)
BUSINESS_OPPORTUNITY = Insight(
    title="Business Opportunity",
    text=(
        "Food delivery platforms could optimize their marketing and delivery "
        "capacity around major sporting events."
    ),
)


def merge_records(
    matches: Sequence[MatchRecord],
    points: Sequence[InterestPoint],
    start: date,
    end: date,
) -> list[DailyRecord]:
    """Tag in-window points with match-day membership. Gaps stay gaps."""
    match_dates = {m.date for m in matches}
    return [
        DailyRecord(date=p.date, interest=p.value, is_match_day=p.date in match_dates)
        for p in points
        if start <= p.date <= end
    ]


def _mean(values: list[Number]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_statistic(records: Sequence[DailyRecord]) -> Statistic:
    """
    Percentage difference of the match-day mean over the non-match-day mean.

    An empty bucket averages to 0.0. When the comparison is undefined (either
    bucket empty, a zero non-match-day mean, or a non-finite mean) the result
    is 0.0 / Negative with ``comparable=False``.
    """
    match_day = [r.interest for r in records if r.is_match_day]
    non_match_day = [r.interest for r in records if not r.is_match_day]

    avg_match = _mean(match_day)
    avg_non_match = _mean(non_match_day)

    if not (math.isfinite(avg_match) and math.isfinite(avg_non_match)):
        logger.warning("statistic_non_finite_mean", avg_match_day=avg_match, avg_non_match_day=avg_non_match)
        return Statistic(
            avg_match_day=0.0,
            avg_non_match_day=0.0,
            percent_increase=0.0,
            sign=CorrelationSign.NEGATIVE,
            comparable=False,
        )

    if not match_day or not non_match_day or avg_non_match == 0:
        logger.info(
            "statistic_empty_bucket",
            match_days=len(match_day),
            non_match_days=len(non_match_day),
            avg_non_match_day=avg_non_match,
        )
        return Statistic(
            avg_match_day=round(avg_match, 1),
            avg_non_match_day=round(avg_non_match, 1),
            percent_increase=0.0,
            sign=CorrelationSign.NEGATIVE,
            comparable=False,
        )

    percent = round((avg_match - avg_non_match) / avg_non_match * 100, 1)
    if percent == 0:
        percent = 0.0  # normalise -0.0

    return Statistic(
        avg_match_day=round(avg_match, 1),
        avg_non_match_day=round(avg_non_match, 1),
        percent_increase=percent,
        sign=CorrelationSign.POSITIVE if percent > 0 else CorrelationSign.NEGATIVE,
    )


def find_peak(records: Sequence[DailyRecord]) -> Optional[DailyRecord]:
    """Highest interest; the earliest record wins ties."""
    peak: Optional[DailyRecord] = None
    for record in records:
        if peak is None or record.interest > peak.interest:
            peak = record
    return peak


def _format_number(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def derive_insights(
    records: Sequence[DailyRecord],
    statistic: Statistic,
    matches: Sequence[MatchRecord],
    tournament: str = "IPL",
) -> list[Insight]:
    insights: list[Insight] = []

    if statistic.percent_increase > STRONG_CORRELATION_PCT:
        insights.append(Insight(
            title="Strong Correlation Detected",
            text=(
                f"Food delivery interest increases by {statistic.percent_increase:.1f}% on "
                f"{tournament} match days compared to non-match days."
            ),
        ))

    peak = find_peak(records)
    if peak is not None and peak.is_match_day:
        match = next((m for m in matches if m.date == peak.date), None)
        if match is None:
            logger.warning("peak_day_without_match", date=peak.date.isoformat())
        else:
            insights.append(Insight(
                title="Peak Interest Day",
                text=(
                    f"Highest food delivery interest ({_format_number(peak.interest)}) occurred on "
                    f"{peak.date.isoformat()} during {match.label}."
                ),
            ))

    insights.append(CRICKET_AND_CRAVINGS)
    insights.append(BUSINESS_OPPORTUNITY)
    return insights


class Reconciler:
    """Merge + statistic + insights for one dashboard load."""

    def __init__(self, tournament: str = "IPL") -> None:
        self._tournament = tournament

    def merge(
        self,
        matches: Sequence[MatchRecord],
        points: Sequence[InterestPoint],
        start: date,
        end: date,
    ) -> Reconciliation:
        records = merge_records(matches, points, start, end)
        statistic = compute_statistic(records)
        insights = derive_insights(records, statistic, matches, self._tournament)
        logger.info(
            "reconciliation_complete",
            records=len(records),
            match_days=sum(1 for r in records if r.is_match_day),
            percent_increase=statistic.percent_increase,
            sign=statistic.sign.value,
            insights=len(insights),
        )
        return Reconciliation(records=records, statistic=statistic, insights=insights)
