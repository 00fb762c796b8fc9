"""Known tournament seasons and their bundled fallback files."""
from __future__ import annotations

from shared.models.domain import SeasonProfile

IPL_2024 = SeasonProfile(
    key="ipl-2024",
    tournament="Indian Premier League",
    acronym="IPL",
    series_id_fragment="ipl",
    match_format="t20",
    fallback_file="ipl_2024_matches.json",
)

SEASONS: dict[str, SeasonProfile] = {
    IPL_2024.key: IPL_2024,
}


def get_season(key: str) -> SeasonProfile:
    """Look up a season by key. Raises KeyError for unknown seasons."""
    return SEASONS[key.strip().lower()]
