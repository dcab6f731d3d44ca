"""Centralised application settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """All runtime configuration for the anxiety scoring engine.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  The fixed scoring weights are **not**
    configurable; only the tunables of the baseline tracker, check-in decay
    and the surrounding service live here.
    """

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── API server ────────────────────────────────────────────
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_secret_key: str = "change-me-to-a-random-secret"
    cors_origins: str = "*"  # comma-separated origins, or "*" for all

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ── Baseline tracking ─────────────────────────────────────
    baseline_half_life_days: float = 14.0
    rest_motion_threshold: float = 0.2  # motion score below this counts as rest
    rest_debounce_seconds: int = 120  # min gap between recorded rest windows
    calibration_min_baselines: int = 3  # of 5 tracked signals
    calibration_days: int = 3

    # ── Check-in decay ────────────────────────────────────────
    checkin_decay_hours: float = 8.0

    # ── Session / pipeline ────────────────────────────────────
    history_max_reports: int = 2000
    pipeline_queue_size: int = 10_000


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
