"""Shared fixtures: isolated settings and a recording mock upstream."""
from __future__ import annotations

import json
from typing import Any, Callable, Optional, Union

import httpx
import pytest

from shared.config import Settings

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def make_settings(cricapi_key: str = "", rapidapi_key: str = "", **overrides: Any) -> Settings:
    """Settings that ignore the host environment for keys and pin the seed."""
    values: dict[str, Any] = {
        "CRICAPI_KEY": cricapi_key,
        "RAPIDAPI_KEY": rapidapi_key,
        "synthetic_seed": 7,
        "metrics_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


class FakeUpstream:
    """
    httpx.MockTransport keyed by URL path. Unrouted paths answer 404.
    Every request is recorded for assertions.
    """

    def __init__(self, routes: Optional[dict[str, Route]] = None) -> None:
        self.routes: dict[str, Route] = dict(routes or {})
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(route):
            return route(request)
        return route

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def cricapi_match(
    name: str = "Mumbai Indians vs Chennai Super Kings, 29th Match, Indian Premier League 2024",
    teams: Optional[list[str]] = None,
    date_time: Optional[str] = "2024-04-14T14:00:00",
    match_type: str = "t20",
    **extra: Any,
) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": extra.pop("id", "m-1"),
        "name": name,
        "matchType": match_type,
        "teams": teams if teams is not None else ["Mumbai Indians", "Chennai Super Kings"],
        "venue": "Wankhede Stadium, Mumbai",
        "status": "Match not started",
    }
    if date_time is not None:
        entry["dateTimeGMT"] = date_time
    entry.update(extra)
    return entry


def trends_body(points: list[tuple[int, Any]]) -> str:
    """A Trends multiline body for (epoch-seconds, value) pairs."""
    timeline = [
        {"time": str(ts), "formattedTime": "", "value": [value]} for ts, value in points
    ]
    return json.dumps({"default": {"timelineData": timeline}})


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def keyed_settings() -> Settings:
    return make_settings(cricapi_key="cric-test-key", rapidapi_key="rapid-test-key")
