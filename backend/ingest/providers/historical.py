"""
Bundled historical match calendar: the terminal strategy of the calendar
cascade. Returns the season file verbatim, in file order.
"""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from shared.models.domain import MatchRecord, SeasonProfile
from shared.models.enums import ProviderName
from shared.utils.errors import FallbackExhausted
from shared.utils.logging import get_logger

from ingest.providers.base import MatchProvider, ProviderResult

logger = get_logger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@lru_cache(maxsize=8)
def _read_season_file(path: str) -> tuple[MatchRecord, ...]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError("expected a JSON array of matches")
    return tuple(MatchRecord.model_validate(entry) for entry in raw)


def load_bundled_matches(season: SeasonProfile, data_dir: Optional[Path] = None) -> list[MatchRecord]:
    """
    Read a season's bundled file.

    Raises:
        FallbackExhausted: if the file is missing, unreadable, malformed or empty.
    """
    path = (data_dir or DATA_DIR) / season.fallback_file
    try:
        records = _read_season_file(str(path))
    except FileNotFoundError as exc:
        raise FallbackExhausted(season.key, f"bundled file not found: {path.name}") from exc
    except (OSError, ValueError, ValidationError) as exc:
        raise FallbackExhausted(season.key, f"bundled file unreadable: {exc}") from exc

    if not records:
        raise FallbackExhausted(season.key, f"bundled file is empty: {path.name}")
    return list(records)


class HistoricalFileProvider(MatchProvider):
    """Local JSON season data. Never skipped; failures are fatal."""

    terminal = True

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        super().__init__(name=ProviderName.HISTORICAL)
        self._data_dir = data_dir

    async def _fetch_matches(self, season: SeasonProfile) -> ProviderResult:
        try:
            records = load_bundled_matches(season, self._data_dir)
        except FallbackExhausted as exc:
            logger.error("historical_fallback_unavailable", season=season.key, detail=exc.detail)
            raise
        logger.info("historical_matches_loaded", season=season.key, count=len(records))
        return ProviderResult(provider=self._name, success=True, matches=records)
