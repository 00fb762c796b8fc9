"""
Abstract base classes for upstream data providers.
Defines the contract every cascade strategy must implement.
"""
from __future__ import annotations

import abc
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Optional

from shared.models.domain import InterestPoint, MatchRecord, SeasonProfile
from shared.models.enums import FailureKind, ProviderName
from shared.utils.errors import FallbackExhausted, ProviderError
from shared.utils.http_client import ProviderHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class InterestQuery:
    """Parameters for one interest-series lookup."""
    keyword: str
    region: str
    start: date
    end: date
    match_days: frozenset[date] = field(default_factory=frozenset)


class ProviderResult:
    """Container for provider fetch results with metadata."""

    def __init__(
        self,
        provider: ProviderName,
        success: bool,
        latency_ms: float = 0.0,
        matches: Optional[list[MatchRecord]] = None,
        points: Optional[list[InterestPoint]] = None,
        error: Optional[str] = None,
        failure: Optional[FailureKind] = None,
    ) -> None:
        self.provider = provider
        self.success = success
        self.latency_ms = latency_ms
        self.matches = matches
        self.points = points
        self.error = error
        self.failure = failure

    @property
    def has_data(self) -> bool:
        return bool(self.matches) or bool(self.points)


class BaseProvider(abc.ABC):
    """
    Base class for one strategy of a fallback cascade.

    The base class handles HTTP lifecycle, timing, and converts recoverable
    failures into unsuccessful ProviderResults. A terminal provider is the
    last strategy of its cascade; it is always consulted.
    """

    terminal: bool = False

    def __init__(self, name: ProviderName, http_client: Optional[ProviderHTTPClient] = None) -> None:
        self._name = name
        self._http = http_client

    @property
    def name(self) -> ProviderName:
        return self._name

    @property
    def enabled(self) -> bool:
        """False when the provider lacks configuration and must be skipped."""
        return True

    async def start(self) -> None:
        """Initialize the provider HTTP client."""
        if self._http:
            await self._http.start()

    async def close(self) -> None:
        """Shutdown the provider HTTP client."""
        if self._http:
            await self._http.close()

    async def _guarded(
        self, operation: str, fetch: Callable[[], Awaitable[ProviderResult]]
    ) -> ProviderResult:
        """
        Run ``fetch`` with timing. Provider errors and parse errors become an
        unsuccessful result; FallbackExhausted always propagates.
        """
        start = time.perf_counter()
        try:
            result = await fetch()
            result.latency_ms = (time.perf_counter() - start) * 1000
            return result
        except FallbackExhausted:
            raise
        except ProviderError as exc:
            failure = exc.kind
            error = str(exc)
        except (ValueError, KeyError, TypeError, OverflowError) as exc:
            failure = FailureKind.MALFORMED_RESPONSE
            error = f"{type(exc).__name__}: {exc}"

        latency_ms = (time.perf_counter() - start) * 1000
        logger.warning(
            f"provider_{operation}_error",
            provider=self._name.value,
            failure=failure.value,
            error=error,
        )
        return ProviderResult(
            provider=self._name,
            success=False,
            latency_ms=latency_ms,
            error=error,
            failure=failure,
        )


class MatchProvider(BaseProvider):
    """A strategy producing match records for a season."""

    async def fetch_matches(self, season: SeasonProfile) -> ProviderResult:
        return await self._guarded("fetch_matches", lambda: self._fetch_matches(season))

    @abc.abstractmethod
    async def _fetch_matches(self, season: SeasonProfile) -> ProviderResult:
        """Provider-specific match fetch logic."""
        ...


class InterestProvider(BaseProvider):
    """A strategy producing a daily search-interest series."""

    async def fetch_interest(self, query: InterestQuery) -> ProviderResult:
        return await self._guarded("fetch_interest", lambda: self._fetch_interest(query))

    @abc.abstractmethod
    async def _fetch_interest(self, query: InterestQuery) -> ProviderResult:
        """Provider-specific interest fetch logic."""
        ...
