"""
Synthetic interest strategy: the terminal step of the interest cascade.
"""
from __future__ import annotations

from typing import Optional

from shared.models.enums import ProviderName

from analytics.synthetic import SyntheticInterestGenerator
from ingest.providers.base import InterestProvider, InterestQuery, ProviderResult


class SyntheticInterestProvider(InterestProvider):
    """Always available; fills the requested window with generated data."""

    terminal = True

    def __init__(self, generator: Optional[SyntheticInterestGenerator] = None, seed: Optional[int] = None) -> None:
        super().__init__(name=ProviderName.SYNTHETIC)
        self._generator = generator or SyntheticInterestGenerator(seed=seed)

    async def _fetch_interest(self, query: InterestQuery) -> ProviderResult:
        points = self._generator.generate(query.start, query.end, query.match_days)
        return ProviderResult(provider=self._name, success=True, points=points)
