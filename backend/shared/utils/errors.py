"""
Failure taxonomy for upstream data acquisition.

Provider errors are recoverable: the cascade logs them and moves to the next
strategy. FallbackExhausted is not; it means the terminal strategy itself
failed and must reach the caller.
"""
from __future__ import annotations

from shared.models.enums import FailureKind


class ProviderError(Exception):
    """Base for recoverable upstream failures."""

    kind: FailureKind = FailureKind.UPSTREAM_UNAVAILABLE

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(message)


class UpstreamUnavailable(ProviderError):
    """Network error, timeout or non-2xx response."""

    kind = FailureKind.UPSTREAM_UNAVAILABLE


class MalformedResponse(ProviderError):
    """Response parsed but did not have the expected shape."""

    kind = FailureKind.MALFORMED_RESPONSE


class RateLimited(ProviderError):
    """HTTP 429, or an HTML/rate-limit page where JSON was expected."""

    kind = FailureKind.RATE_LIMITED


class FallbackExhausted(Exception):
    """The bundled historical dataset is missing or unreadable."""

    def __init__(self, season: str, detail: str) -> None:
        self.season = season
        self.detail = detail
        super().__init__(f"No matches available for season '{season}': {detail}")
