"""
Tests for the match calendar cascade: CricAPI current matches, CricAPI
schedule, bundled historical file.

Upstream responses are simulated with httpx.MockTransport.
"""
from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import httpx
import pytest

from ingest.providers.cricapi import CricApiCurrentMatchesProvider, parse_matches_payload, qualifies
from ingest.providers.historical import HistoricalFileProvider, load_bundled_matches
from ingest.seasons import IPL_2024, get_season
from ingest.service import HISTORICAL_NOTE, MatchCalendarResolver
from shared.models.domain import UpstreamMatch
from shared.models.enums import DataSource
from shared.utils.errors import FallbackExhausted, MalformedResponse

from conftest import FakeUpstream, cricapi_match, make_settings

CURRENT = "/v1/currentMatches"
SCHEDULE = "/v1/matches"


# ── Season filter ───────────────────────────────────────────────────────

class TestQualifies:

    def test_full_tournament_name(self) -> None:
        assert qualifies(UpstreamMatch.model_validate(cricapi_match()), IPL_2024)

    def test_acronym_in_series(self) -> None:
        m = UpstreamMatch.model_validate(cricapi_match(name="MI vs CSK", series="IPL 2024"))
        assert qualifies(m, IPL_2024)

    def test_series_id_fragment(self) -> None:
        m = UpstreamMatch.model_validate(cricapi_match(name="MI vs CSK", seriesId="abc-ipl-2024"))
        assert qualifies(m, IPL_2024)

    def test_wrong_format_rejected(self) -> None:
        assert not qualifies(UpstreamMatch.model_validate(cricapi_match(match_type="odi")), IPL_2024)

    def test_unrelated_series_rejected(self) -> None:
        m = UpstreamMatch.model_validate(cricapi_match(name="Big Bash League", series="BBL"))
        assert not qualifies(m, IPL_2024)

    def test_match_is_case_sensitive(self) -> None:
        m = UpstreamMatch.model_validate(cricapi_match(name="indian premier league", series="ipl"))
        assert not qualifies(m, IPL_2024)


# ── Upstream record defaults ────────────────────────────────────────────

class TestUpstreamRecord:

    def test_to_record_maps_fields(self) -> None:
        record = UpstreamMatch.model_validate(cricapi_match()).to_record()
        assert record.date == date(2024, 4, 14)
        assert record.label == "Mumbai Indians vs Chennai Super Kings"
        assert record.venue == "Wankhede Stadium, Mumbai"
        assert record.match_type == "league"
        assert record.source_id == "m-1"

    def test_missing_teams_and_venue_default(self) -> None:
        raw = {"matchType": "t20", "name": "IPL", "dateTimeGMT": "2024-05-01T10:00:00"}
        record = UpstreamMatch.model_validate(raw).to_record()
        assert record.label == "Team 1 vs Team 2"
        assert record.venue == "TBD"
        assert record.status == "scheduled"

    def test_missing_timestamp_uses_today(self) -> None:
        raw = cricapi_match(date_time=None)
        record = UpstreamMatch.model_validate(raw).to_record(today=date(2025, 1, 2))
        assert record.date == date(2025, 1, 2)

    def test_numeric_ids_are_coerced_to_strings(self) -> None:
        [match] = parse_matches_payload(
            {"data": [cricapi_match(id=4521, seriesId=76)]}, "cricapi_current"
        )
        assert match.series_id == "76"
        assert match.to_record().source_id == "4521"

    def test_payload_without_data_is_empty(self) -> None:
        assert parse_matches_payload({"status": "success"}, "cricapi_current") == []

    def test_payload_data_not_a_list(self) -> None:
        with pytest.raises(MalformedResponse):
            parse_matches_payload({"data": "nope"}, "cricapi_current")


# ── Resolver cascade ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_missing_key_goes_straight_to_bundled_file() -> None:
    upstream = FakeUpstream()
    async with MatchCalendarResolver(make_settings(), transport=upstream.transport) as resolver:
        result = await resolver.resolve("ipl-2024")

    assert upstream.requests == []
    assert result.source == DataSource.HISTORICAL
    assert result.note == HISTORICAL_NOTE
    assert result.matches == load_bundled_matches(IPL_2024)


@pytest.mark.asyncio
async def test_both_endpoints_empty_falls_back_to_bundled_file_in_file_order() -> None:
    upstream = FakeUpstream({
        CURRENT: httpx.Response(200, json={"data": []}),
        SCHEDULE: httpx.Response(200, json={"data": [cricapi_match(name="Big Bash", series="BBL")]}),
    })
    settings = make_settings(cricapi_key="k")
    async with MatchCalendarResolver(settings, transport=upstream.transport) as resolver:
        result = await resolver.resolve(IPL_2024)

    assert upstream.paths == [CURRENT, SCHEDULE]
    assert result.source == DataSource.HISTORICAL
    assert result.matches == load_bundled_matches(IPL_2024)
    assert result.matches[0].date == date(2024, 3, 22)
    assert result.matches[0].label == "Chennai Super Kings vs Royal Challengers Bengaluru"
    assert result.matches[-1].match_type == "final"


@pytest.mark.asyncio
async def test_current_matches_win_and_are_sorted_newest_first() -> None:
    upstream = FakeUpstream({
        CURRENT: httpx.Response(200, json={"data": [
            cricapi_match(id="a", date_time="2024-04-01T14:00:00"),
            cricapi_match(id="b", date_time="2024-04-20T14:00:00"),
            cricapi_match(id="c", date_time="2024-04-10T14:00:00", match_type="test"),
        ]}),
    })
    settings = make_settings(cricapi_key="secret")
    async with MatchCalendarResolver(settings, transport=upstream.transport) as resolver:
        result = await resolver.resolve(IPL_2024)

    assert upstream.paths == [CURRENT]
    assert upstream.requests[0].url.params["apikey"] == "secret"
    assert upstream.requests[0].url.params["offset"] == "0"
    assert result.source == DataSource.CRICAPI
    assert result.note is None
    assert [m.source_id for m in result.matches] == ["b", "a"]


@pytest.mark.asyncio
async def test_current_matches_error_falls_through_to_schedule() -> None:
    upstream = FakeUpstream({
        CURRENT: httpx.Response(503, text="unavailable"),
        SCHEDULE: httpx.Response(200, json={"data": [cricapi_match(id="s")]}),
    })
    async with MatchCalendarResolver(make_settings(cricapi_key="k"), transport=upstream.transport) as resolver:
        result = await resolver.resolve(IPL_2024)

    assert upstream.paths == [CURRENT, SCHEDULE]
    assert result.source == DataSource.CRICAPI
    assert [m.source_id for m in result.matches] == ["s"]


@pytest.mark.asyncio
async def test_non_json_bodies_are_treated_as_failures() -> None:
    upstream = FakeUpstream({
        CURRENT: httpx.Response(200, text="<html>oops</html>"),
        SCHEDULE: httpx.Response(200, json=["not", "an", "envelope"]),
    })
    async with MatchCalendarResolver(make_settings(cricapi_key="k"), transport=upstream.transport) as resolver:
        result = await resolver.resolve(IPL_2024)

    assert result.source == DataSource.HISTORICAL


@pytest.mark.asyncio
async def test_transport_error_falls_back() -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    upstream = FakeUpstream({CURRENT: boom, SCHEDULE: boom})
    async with MatchCalendarResolver(make_settings(cricapi_key="k"), transport=upstream.transport) as resolver:
        result = await resolver.resolve(IPL_2024)

    assert result.source == DataSource.HISTORICAL


# ── Fallback exhaustion ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_missing_bundled_file_raises(tmp_path: Path) -> None:
    async with MatchCalendarResolver(make_settings(historical_data_dir=tmp_path)) as resolver:
        with pytest.raises(FallbackExhausted) as exc_info:
            await resolver.resolve(IPL_2024)
    assert exc_info.value.season == "ipl-2024"


@pytest.mark.asyncio
async def test_corrupt_bundled_file_raises(tmp_path: Path) -> None:
    (tmp_path / IPL_2024.fallback_file).write_text("{not json", encoding="utf-8")
    resolver = MatchCalendarResolver(providers=[HistoricalFileProvider(tmp_path)])
    async with resolver:
        with pytest.raises(FallbackExhausted):
            await resolver.resolve(IPL_2024)


@pytest.mark.asyncio
async def test_empty_bundled_file_raises(tmp_path: Path) -> None:
    (tmp_path / IPL_2024.fallback_file).write_text("[]", encoding="utf-8")
    resolver = MatchCalendarResolver(providers=[HistoricalFileProvider(tmp_path)])
    async with resolver:
        with pytest.raises(FallbackExhausted):
            await resolver.resolve(IPL_2024)


@pytest.mark.asyncio
async def test_custom_bundled_file_is_returned_verbatim(tmp_path: Path) -> None:
    rows = [
        {"date": "2024-05-02", "match": "B vs C", "venue": "Two", "type": "league"},
        {"date": "2024-05-01", "match": "A vs B", "venue": "One", "type": "league"},
    ]
    (tmp_path / IPL_2024.fallback_file).write_text(json.dumps(rows), encoding="utf-8")
    resolver = MatchCalendarResolver(providers=[HistoricalFileProvider(tmp_path)])
    async with resolver:
        result = await resolver.resolve(IPL_2024)
    assert [m.label for m in result.matches] == ["B vs C", "A vs B"]


@pytest.mark.asyncio
async def test_unknown_season_raises() -> None:
    async with MatchCalendarResolver(make_settings()) as resolver:
        with pytest.raises(FallbackExhausted):
            await resolver.resolve("bbl-2030")


def test_season_lookup_is_case_insensitive() -> None:
    assert get_season(" IPL-2024 ") is IPL_2024


def test_cascade_requires_terminal_provider() -> None:
    with pytest.raises(ValueError):
        MatchCalendarResolver(providers=[CricApiCurrentMatchesProvider(make_settings())])
