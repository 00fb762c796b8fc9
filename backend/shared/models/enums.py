"""Domain enumerations for the Data Weaver platform."""
from __future__ import annotations

from enum import Enum


class ProviderName(str, Enum):
    CRICAPI_CURRENT = "cricapi_current"
    CRICAPI_SCHEDULE = "cricapi_schedule"
    HISTORICAL = "historical"
    TRENDS = "trends"
    SYNTHETIC = "synthetic"


class DataSource(str, Enum):
    """Human-readable source tags returned alongside resolved data."""
    CRICAPI = "CricAPI"
    HISTORICAL = "Local JSON (Historical Data)"
    TRENDS = "Google Trends"
    SYNTHETIC = "Simulated (Google Trends unavailable)"
    SYNTHETIC_OUT_OF_WINDOW = "Simulated (Google Trends data outside match window)"

    @property
    def is_fallback(self) -> bool:
        return self in (
            DataSource.HISTORICAL,
            DataSource.SYNTHETIC,
            DataSource.SYNTHETIC_OUT_OF_WINDOW,
        )


class FailureKind(str, Enum):
    """Why a cascade strategy produced no data."""
    NOT_CONFIGURED = "not_configured"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    RATE_LIMITED = "rate_limited"
    EMPTY = "empty"


class CorrelationSign(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
