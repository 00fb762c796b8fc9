"""
Tests for the trends connector and the interest-series cascade
(trends API -> synthetic generator).
"""
from __future__ import annotations

from datetime import date

import httpx
import pytest

from ingest.providers.trends import clip_to_window, parse_timeline, to_interest_points
from ingest.service import InterestSeriesResolver
from shared.models.domain import InterestPoint
from shared.models.enums import DataSource
from shared.utils.errors import MalformedResponse, RateLimited

from conftest import FakeUpstream, make_settings, trends_body

TRENDS = "/interestOverTime"

APR_01 = 1711929600   # 2024-04-01T00:00:00Z
DAY = 86400


# ── Body parsing ────────────────────────────────────────────────────────

class TestParseTimeline:

    def test_html_is_rate_limited(self) -> None:
        with pytest.raises(RateLimited):
            parse_timeline("<html><body>Too many requests</body></html>")

    def test_error_429_marker_is_rate_limited(self) -> None:
        with pytest.raises(RateLimited):
            parse_timeline("Error 429 (Too Many Requests)")

    def test_invalid_json_is_malformed(self) -> None:
        with pytest.raises(MalformedResponse):
            parse_timeline("{definitely not json")

    def test_missing_timeline_is_malformed(self) -> None:
        with pytest.raises(MalformedResponse):
            parse_timeline('{"default": {}}')

    def test_non_object_default_is_malformed(self) -> None:
        with pytest.raises(MalformedResponse):
            parse_timeline('{"default": [1, 2]}')

    def test_xssi_prefix_is_stripped(self) -> None:
        body = ")]}',\n" + trends_body([(APR_01, 40)])
        assert len(parse_timeline(body)) == 1


class TestTransform:

    def test_epoch_seconds_to_utc_date(self) -> None:
        points = to_interest_points([{"time": str(APR_01), "value": [73]}])
        assert points == [InterestPoint(date=date(2024, 4, 1), value=73)]

    def test_missing_or_null_value_defaults_to_zero(self) -> None:
        points = to_interest_points([
            {"time": str(APR_01)},
            {"time": str(APR_01 + DAY), "value": [None]},
            {"time": str(APR_01 + 2 * DAY), "value": []},
        ])
        assert [p.value for p in points] == [0, 0, 0]

    def test_out_of_range_timestamp_is_malformed(self) -> None:
        with pytest.raises(MalformedResponse):
            to_interest_points([{"time": "99999999999999999999", "value": [5]}])

    def test_non_numeric_timestamp_is_malformed(self) -> None:
        with pytest.raises(MalformedResponse):
            to_interest_points([{"time": "yesterday", "value": [5]}])

    @pytest.mark.parametrize("value", [float("inf"), float("nan"), "Infinity"])
    def test_non_finite_value_is_malformed(self, value: object) -> None:
        with pytest.raises(MalformedResponse):
            to_interest_points([{"time": str(APR_01), "value": [value]}])

    def test_clip_keeps_points_inside_window(self) -> None:
        points = to_interest_points([{"time": str(APR_01 + n * DAY), "value": [n]} for n in range(5)])
        clipped = clip_to_window(points, date(2024, 4, 2), date(2024, 4, 3))
        assert [p.date for p in clipped] == [date(2024, 4, 2), date(2024, 4, 3)]

    def test_clip_returns_everything_when_window_misses(self) -> None:
        points = to_interest_points([{"time": str(APR_01 + n * DAY), "value": [n]} for n in range(3)])
        assert clip_to_window(points, date(2023, 1, 1), date(2023, 1, 31)) == points


# ── Resolver cascade ────────────────────────────────────────────────────

START = date(2024, 4, 1)
END = date(2024, 4, 10)


@pytest.mark.asyncio
async def test_missing_key_uses_synthetic_without_network() -> None:
    upstream = FakeUpstream()
    async with InterestSeriesResolver(make_settings(), transport=upstream.transport) as resolver:
        result = await resolver.resolve("swiggy", "IN", START, END, {date(2024, 4, 3)})

    assert upstream.requests == []
    assert result.source == DataSource.SYNTHETIC
    assert result.fallback is True
    assert result.reason == "not_configured"
    assert len(result.points) == 10


@pytest.mark.asyncio
async def test_real_series_is_clipped_to_window() -> None:
    body = trends_body([(APR_01 + n * DAY, 30 + n) for n in range(20)])
    upstream = FakeUpstream({TRENDS: httpx.Response(200, text=body)})
    settings = make_settings(rapidapi_key="rapid")

    async with InterestSeriesResolver(settings, transport=upstream.transport) as resolver:
        result = await resolver.resolve("zomato", "IN", START, END)

    assert result.source == DataSource.TRENDS
    assert result.fallback is False
    assert [p.date for p in result.points][0] == START
    assert [p.date for p in result.points][-1] == END

    request = upstream.requests[0]
    assert request.headers["X-RapidAPI-Key"] == "rapid"
    assert request.headers["X-RapidAPI-Host"] == settings.trends_host
    assert request.url.params["keyword"] == "zomato"
    assert request.url.params["geo"] == "IN"


@pytest.mark.asyncio
async def test_html_body_falls_back_as_rate_limited() -> None:
    upstream = FakeUpstream({TRENDS: httpx.Response(200, text="<html>blocked</html>")})
    async with InterestSeriesResolver(make_settings(rapidapi_key="r"), transport=upstream.transport) as resolver:
        result = await resolver.resolve("swiggy", "IN", START, END)

    assert result.source == DataSource.SYNTHETIC
    assert result.reason == "rate_limited"


@pytest.mark.asyncio
async def test_http_429_falls_back_as_rate_limited() -> None:
    upstream = FakeUpstream({TRENDS: httpx.Response(429, text="slow down")})
    async with InterestSeriesResolver(make_settings(rapidapi_key="r"), transport=upstream.transport) as resolver:
        result = await resolver.resolve("swiggy", "IN", START, END)

    assert result.reason == "rate_limited"
    assert len(result.points) == 10


@pytest.mark.asyncio
async def test_malformed_body_falls_back() -> None:
    upstream = FakeUpstream({TRENDS: httpx.Response(200, json={"unexpected": True})})
    async with InterestSeriesResolver(make_settings(rapidapi_key="r"), transport=upstream.transport) as resolver:
        result = await resolver.resolve("swiggy", "IN", START, END)

    assert result.source == DataSource.SYNTHETIC
    assert result.reason == "malformed_response"


@pytest.mark.asyncio
async def test_empty_timeline_falls_back() -> None:
    upstream = FakeUpstream({TRENDS: httpx.Response(200, text=trends_body([]))})
    async with InterestSeriesResolver(make_settings(rapidapi_key="r"), transport=upstream.transport) as resolver:
        result = await resolver.resolve("swiggy", "IN", START, END)

    assert result.source == DataSource.SYNTHETIC
    assert result.reason == "empty"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    '{"default": {"timelineData": [{"time": "99999999999999999999", "value": [5]}]}}',
    '{"default": {"timelineData": [{"time": "1711929600", "value": [Infinity]}]}}',
])
async def test_unusable_timeline_entries_fall_back(body: str) -> None:
    upstream = FakeUpstream({TRENDS: httpx.Response(200, text=body)})
    async with InterestSeriesResolver(make_settings(rapidapi_key="r"), transport=upstream.transport) as resolver:
        result = await resolver.resolve("swiggy", "IN", START, END)

    assert result.source == DataSource.SYNTHETIC
    assert result.fallback is True
    assert result.reason == "malformed_response"
    assert len(result.points) == 10


@pytest.mark.asyncio
async def test_synthetic_fallback_boosts_match_days() -> None:
    match_day = date(2024, 4, 3)   # Wednesday
    async with InterestSeriesResolver(make_settings()) as resolver:
        boosted = await resolver.resolve("swiggy", "IN", match_day, match_day, {match_day})
    async with InterestSeriesResolver(make_settings()) as resolver:
        plain = await resolver.resolve("swiggy", "IN", match_day, match_day)

    assert boosted.points[0].value > plain.points[0].value
