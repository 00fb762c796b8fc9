"""
Ordered fallback cascade over provider strategies.
Stops at the first strategy that succeeds with data; the terminal strategy
is always consulted when everything before it came back empty.
"""
from __future__ import annotations

from typing import Awaitable, Callable, Generic, Sequence, TypeVar

from shared.models.enums import FailureKind
from shared.utils.logging import get_logger
from shared.utils.metrics import FALLBACK_ACTIVATIONS, PROVIDER_OUTCOMES

from ingest.providers.base import BaseProvider, ProviderResult

logger = get_logger(__name__)

P = TypeVar("P", bound=BaseProvider)


class CascadeOutcome:
    """The winning result plus every attempt made before it."""

    def __init__(self, result: ProviderResult, attempts: list[ProviderResult]) -> None:
        self.result = result
        self.attempts = attempts

    @property
    def last_failure(self) -> FailureKind | None:
        """Most recent failure among the strategies that ran before the winner."""
        for attempt in reversed(self.attempts):
            if attempt is self.result:
                continue
            if attempt.failure is not None:
                return attempt.failure
        return None


class ProviderCascade(Generic[P]):
    """
    Deterministic failover cascade.

    Selection logic:
    1. Skip strategies that are not configured (no network call is made).
    2. Run each remaining strategy in order.
    3. Return the first successful result carrying data.
    4. The terminal strategy's result is returned as-is, empty or not.
    """

    def __init__(self, resolver: str, providers: Sequence[P]) -> None:
        if not providers or not providers[-1].terminal:
            raise ValueError(f"Cascade '{resolver}' must end with a terminal provider")
        self._resolver = resolver
        self._providers = list(providers)

    @property
    def providers(self) -> list[P]:
        return self._providers

    async def start(self) -> None:
        for provider in self._providers:
            await provider.start()

    async def close(self) -> None:
        for provider in self._providers:
            await provider.close()

    async def run(self, fetch: Callable[[P], Awaitable[ProviderResult]]) -> CascadeOutcome:
        attempts: list[ProviderResult] = []

        for provider in self._providers:
            name = provider.name.value

            if not provider.enabled:
                logger.info("cascade_provider_not_configured", resolver=self._resolver, provider=name)
                PROVIDER_OUTCOMES.labels(provider=name, outcome=FailureKind.NOT_CONFIGURED.value).inc()
                attempts.append(ProviderResult(
                    provider=provider.name,
                    success=False,
                    error="not configured",
                    failure=FailureKind.NOT_CONFIGURED,
                ))
                continue

            if provider.terminal:
                FALLBACK_ACTIVATIONS.labels(resolver=self._resolver, provider=name).inc()
                logger.info("cascade_terminal_fallback", resolver=self._resolver, provider=name)

            result = await fetch(provider)
            attempts.append(result)

            if result.success and result.has_data:
                PROVIDER_OUTCOMES.labels(provider=name, outcome="ok").inc()
                logger.info(
                    "cascade_provider_selected",
                    resolver=self._resolver,
                    provider=name,
                    latency_ms=round(result.latency_ms, 2),
                )
                return CascadeOutcome(result, attempts)

            if result.success:
                result.failure = FailureKind.EMPTY
            outcome = result.failure.value if result.failure else FailureKind.EMPTY.value
            PROVIDER_OUTCOMES.labels(provider=name, outcome=outcome).inc()
            logger.info(
                "cascade_provider_no_data",
                resolver=self._resolver,
                provider=name,
                outcome=outcome,
            )

            if provider.terminal:
                return CascadeOutcome(result, attempts)

        # Unreachable: the constructor guarantees a terminal provider.
        raise RuntimeError(f"Cascade '{self._resolver}' exhausted without a terminal provider")
