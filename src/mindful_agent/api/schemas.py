"""Request / response models for the HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from mindful_agent.models import (
    MAX_REMINDER_INTERVAL,
    MIN_REMINDER_INTERVAL,
    AppConfig,
    HealthSnapshot,
    SensitivityMode,
)


class SampleRequest(BaseModel):
    value: float = Field(gt=0, lt=300)  # bpm
    timestamp: datetime | None = None


class ActivityRequest(BaseModel):
    """Workout-state change and/or an active-energy entry."""
    workout_active: bool | None = None
    active_energy_kcal: float | None = Field(None, ge=0)
    timestamp: datetime | None = None


class ConfigUpdate(BaseModel):
    sensitivity_mode: SensitivityMode | None = None
    monitoring_enabled: bool | None = None
    reminder_interval: float | None = Field(None, ge=MIN_REMINDER_INTERVAL, le=MAX_REMINDER_INTERVAL)


class StatusResponse(BaseModel):
    snapshot: HealthSnapshot
    status: str
    status_label: str
    is_connected: bool
    monitoring_running: bool
    baseline: float
    pending_acknowledgment: dict | None = None
    config: AppConfig
