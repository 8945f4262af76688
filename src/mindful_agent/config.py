"""Centralised application settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_DEFAULT_DB_URL = f"sqlite+aiosqlite:///{_PROJECT_ROOT / 'data' / 'mindful_agent.db'}"


class Settings(BaseSettings):
    """All runtime configuration for the mindfulness companion.

    Values are read from environment variables first, then from a *.env*
    file located at the project root.  Every variable lives in the flat
    ``MINDFUL_`` namespace (stripped automatically by *pydantic-settings*).

    User-facing preferences (sensitivity, monitoring toggle, reminder
    interval) are **not** settings: they belong to the persisted
    :class:`~mindful_agent.models.AppConfig`.
    """

    model_config = SettingsConfigDict(
        env_prefix="MINDFUL_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ──────────────────────────────────────────────
    database_url: str = _DEFAULT_DB_URL

    # ── API server ────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ── Haptics ───────────────────────────────────────────────
    haptic_webhook_url: str = ""  # optional bridge to a physical device
    haptic_webhook_timeout: float = 5.0

    # ── Monitoring loop ───────────────────────────────────────
    monitor_autostart: bool = True
    monitor_tick_seconds: float = 5.0
    trigger_cooldown_seconds: float = 300.0
    deferred_analysis_delay_seconds: float = 1.0

    # ── Baseline ──────────────────────────────────────────────
    baseline_window_days: int = 7
    baseline_refresh_hours: float = 24.0

    # ── Insights ──────────────────────────────────────────────
    insight_analysis_interval_seconds: float = 3600.0

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool | None = None  # None: JSON unless attached to a terminal


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
