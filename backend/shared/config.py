"""
Central configuration for the Data Weaver services.
Uses pydantic-settings for env-based config with validation.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Root settings. Frozen: resolvers receive it as an immutable value."""

    model_config = SettingsConfigDict(
        env_prefix="DW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    # ── General ──────────────────────────────────────────────
    environment: Environment = Environment.DEV
    log_level: str = "INFO"
    instance_id: str = Field(default="", description="Pod/container ID bound to every log line")

    # ── API ──────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    api_workers: int = 1
    cors_origins: list[str] = ["*"]

    # ── Upstream API keys ────────────────────────────────────
    # Empty means "not configured": the resolver goes straight to its fallback.
    cricapi_key: str = Field(
        default="",
        validation_alias=AliasChoices("DW_CRICAPI_KEY", "CRICAPI_KEY"),
    )
    rapidapi_key: str = Field(
        default="",
        validation_alias=AliasChoices("DW_RAPIDAPI_KEY", "RAPIDAPI_KEY"),
    )

    # ── Match API ────────────────────────────────────────────
    cricapi_base_url: str = "https://api.cricapi.com/v1"

    # ── Trends API ───────────────────────────────────────────
    trends_base_url: str = "https://google-trends8.p.rapidapi.com"
    trends_path: str = "/interestOverTime"
    trends_host: str = "google-trends8.p.rapidapi.com"

    provider_request_timeout_s: float = 10.0

    # ── Dashboard ────────────────────────────────────────────
    default_season: str = "ipl-2024"
    default_keyword: str = "swiggy"
    default_geo: str = "IN"
    window_padding_days: int = 5
    trends_default_window_days: int = 90
    historical_data_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding bundled season files; defaults to ingest/data",
    )
    synthetic_seed: Optional[int] = Field(
        default=None,
        description="Seed for the synthetic interest generator; unset means random",
    )

    # ── Observability ────────────────────────────────────────
    metrics_enabled: bool = True
    metrics_port: int = 9090

    @property
    def cricket_configured(self) -> bool:
        return bool(self.cricapi_key)

    @property
    def trends_configured(self) -> bool:
        return bool(self.rapidapi_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton access to validated settings."""
    return Settings()
