"""Shared Pydantic models used across the companion."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Reminder interval bounds (seconds)
MIN_REMINDER_INTERVAL = 300.0
MAX_REMINDER_INTERVAL = 3600.0
DEFAULT_REMINDER_INTERVAL = 3600.0


def to_local_naive(ts: datetime) -> datetime:
    """Express *ts* as naive local time, the convention every engine clock uses."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone().replace(tzinfo=None)


# ── Enums ─────────────────────────────────────────────────────


class SensitivityMode(str, Enum):
    """User-selected trigger sensitivity.

    Deeper sensitivity means a lower stress threshold, i.e. nudges fire
    more easily.
    """

    LIGHT = "Light"
    MEDIUM = "Medium"
    DEEP = "Deep"

    @property
    def threshold(self) -> float:
        return _SENSITIVITY_THRESHOLDS[self]


_SENSITIVITY_THRESHOLDS = {
    SensitivityMode.LIGHT: 0.8,
    SensitivityMode.MEDIUM: 0.6,
    SensitivityMode.DEEP: 0.4,
}


class UserStatus(str, Enum):
    SAFE = "Safe"
    CALM = "Calm"
    NEED_TO_RELAX = "NeedToRelax"

    @property
    def label(self) -> str:
        return "Need to Relax" if self is UserStatus.NEED_TO_RELAX else self.value


class HapticKind(str, Enum):
    """Kinds of tactile nudge the companion can fire."""

    SAFE = "Safe"
    STRESS = "Stress"
    MINDFULNESS = "Mindfulness"

    @property
    def label(self) -> str:
        return _HAPTIC_LABELS[self]


_HAPTIC_LABELS = {
    HapticKind.SAFE: "Safe Vibration",
    HapticKind.STRESS: "Relax Reminder",
    HapticKind.MINDFULNESS: "Mindfulness Reminder",
}


class InsightKind(str, Enum):
    TIMING = "Timing"
    RESPONSE = "Response"
    STRESS = "Stress"
    RECOMMENDATION = "Recommendation"

    @property
    def label(self) -> str:
        if self is InsightKind.RESPONSE:
            return "Response Pattern"
        if self is InsightKind.STRESS:
            return "Stress Pattern"
        return self.value


# ── Data transfer objects ─────────────────────────────────────


class HeartRateSample(BaseModel):
    """A single heart-rate reading pushed by the health data source."""

    value: float  # beats per minute
    timestamp: datetime = Field(default_factory=datetime.now)


class HealthSnapshot(BaseModel):
    """Point-in-time view of the wearer's physiological state."""

    model_config = ConfigDict(frozen=True)

    heart_rate: float
    stress_level: float
    is_active: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def status(self) -> UserStatus:
        from mindful_agent.monitors.status import classify

        return classify(self.stress_level, self.heart_rate)


class HapticEvent(BaseModel):
    """A recorded nudge and its (optional) acknowledgment."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.now)
    kind: HapticKind
    acknowledged: bool = False
    response_time: float | None = None  # seconds between fire and acknowledgment
    heart_rate: float
    stress_level: float


class AIInsight(BaseModel):
    """A generated, confidence-scored observation about the wearer."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    message: str
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=datetime.now)
    kind: InsightKind


class AppConfig(BaseModel):
    """Process-wide user preferences, persisted between runs."""

    model_config = ConfigDict(validate_assignment=True)

    sensitivity_mode: SensitivityMode = SensitivityMode.MEDIUM
    monitoring_enabled: bool = True
    reminder_interval: float = Field(
        DEFAULT_REMINDER_INTERVAL, ge=MIN_REMINDER_INTERVAL, le=MAX_REMINDER_INTERVAL,
    )
    last_acknowledged_time: datetime | None = None
