"""
Pydantic v2 domain models shared across the Data Weaver services.
Python attributes are snake_case; the wire format is camelCase.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Annotated, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, NonNegativeInt
from pydantic.alias_generators import to_camel

from shared.models.enums import CorrelationSign, DataSource

Number = Union[int, float]
NonNegativeNumber = Union[NonNegativeInt, Annotated[float, Field(ge=0, allow_inf_nan=False)]]


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class FrozenModel(DomainModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        frozen=True,
    )


# ── Season vocabulary ───────────────────────────────────────────────────
class SeasonProfile(FrozenModel):
    """Identifies one tournament season in upstream data and on disk."""
    key: str
    tournament: str
    acronym: str
    series_id_fragment: str
    match_format: str = "t20"
    fallback_file: str

    def matches_upstream(self, name: Optional[str], series: Optional[str], series_id: Optional[str]) -> bool:
        """Case-sensitive substring match against the season vocabulary."""
        if name and (self.tournament in name or self.acronym in name):
            return True
        if series and self.acronym in series:
            return True
        if series_id and self.series_id_fragment in series_id:
            return True
        return False


# ── Match calendar ──────────────────────────────────────────────────────
class MatchRecord(FrozenModel):
    """One scheduled or played match. Duplicates across strategies are kept."""
    date: date
    label: str = Field(validation_alias=AliasChoices("label", "match"))
    venue: str = "TBD"
    match_type: str = Field(
        default="league", validation_alias=AliasChoices("matchType", "match_type", "type")
    )
    source_id: Optional[str] = None
    status: Optional[str] = None


class UpstreamMatch(DomainModel):
    """
    A raw record from the match API's ``data`` array.

    Every field is optional upstream. Defaults are applied once, in
    :meth:`to_record`:

    - label: ``"<teams[0]> vs <teams[1]>"`` with ``Team 1`` / ``Team 2`` for gaps
    - venue: ``TBD``
    - date: date part of ``dateTimeGMT``, else today's UTC date (absent or unparseable)
    - status: ``scheduled``
    """
    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    match_type: Optional[str] = None
    name: Optional[str] = None
    series: Optional[str] = None
    series_id: Optional[str] = None
    teams: Optional[list[Optional[str]]] = None
    venue: Optional[str] = None
    date_time_gmt: Optional[str] = Field(default=None, alias="dateTimeGMT")
    id: Optional[str] = None
    status: Optional[str] = None

    def to_record(self, today: Optional[date] = None) -> MatchRecord:
        teams = self.teams or []
        home = (teams[0] if len(teams) > 0 else None) or "Team 1"
        away = (teams[1] if len(teams) > 1 else None) or "Team 2"

        match_date = today or datetime.now(timezone.utc).date()
        if self.date_time_gmt:
            try:
                match_date = date.fromisoformat(self.date_time_gmt.split("T")[0])
            except ValueError:
                pass

        return MatchRecord(
            date=match_date,
            label=f"{home} vs {away}",
            venue=self.venue or "TBD",
            match_type="league",
            source_id=self.id,
            status=self.status or "scheduled",
        )


class CalendarResult(DomainModel):
    matches: list[MatchRecord]
    source: DataSource
    note: Optional[str] = None


# ── Search interest ─────────────────────────────────────────────────────
class InterestPoint(FrozenModel):
    date: date
    value: NonNegativeNumber


class InterestResult(DomainModel):
    points: list[InterestPoint]
    source: DataSource
    fallback: bool = False
    reason: Optional[str] = None


# ── Reconciliation output ───────────────────────────────────────────────
class DailyRecord(FrozenModel):
    date: date
    interest: Number
    is_match_day: bool


class Statistic(FrozenModel):
    """
    Match-day vs non-match-day comparison.

    ``comparable`` is False when a bucket was empty or the non-match-day
    average was zero; percent_increase is then 0.0 and sign Negative.
    """
    avg_match_day: float
    avg_non_match_day: float
    percent_increase: float
    sign: CorrelationSign
    comparable: bool = True


class Insight(FrozenModel):
    title: str
    text: str


class Reconciliation(DomainModel):
    records: list[DailyRecord]
    statistic: Statistic
    insights: list[Insight]


class Dashboard(DomainModel):
    season: str
    total_matches: int
    start_date: date
    end_date: date
    match_source: DataSource
    interest_source: DataSource
    interest_fallback: bool
    timeline: list[DailyRecord]
    statistic: Statistic
    insights: list[Insight]
