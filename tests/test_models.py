"""Tests for the shared data models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from mindful_agent.models import (
    AIInsight,
    AppConfig,
    HapticEvent,
    HapticKind,
    InsightKind,
    SensitivityMode,
    UserStatus,
    to_local_naive,
)


class TestModels:
    def test_haptic_event_defaults(self):
        event = HapticEvent(kind=HapticKind.STRESS, heart_rate=88.0, stress_level=0.7)
        assert event.id  # auto-generated UUID
        assert event.acknowledged is False
        assert event.response_time is None

    def test_insight_confidence_bounds(self):
        with pytest.raises(ValidationError):
            AIInsight(message="x", confidence=1.2, kind=InsightKind.TIMING)

    def test_config_defaults(self):
        config = AppConfig()
        assert config.sensitivity_mode is SensitivityMode.MEDIUM
        assert config.reminder_interval == 3600.0
        assert config.last_acknowledged_time is None

    @pytest.mark.parametrize(
        ("mode", "threshold"),
        [(SensitivityMode.LIGHT, 0.8), (SensitivityMode.MEDIUM, 0.6), (SensitivityMode.DEEP, 0.4)],
    )
    def test_sensitivity_thresholds(self, mode, threshold):
        assert mode.threshold == threshold

    def test_labels(self):
        assert UserStatus.NEED_TO_RELAX.label == "Need to Relax"
        assert HapticKind.STRESS.label == "Relax Reminder"
        assert InsightKind.RESPONSE.label == "Response Pattern"


class TestToLocalNaive:
    def test_naive_unchanged(self):
        ts = datetime(2026, 3, 4, 10, 0)
        assert to_local_naive(ts) is ts

    def test_aware_converted_to_local_wall_clock(self):
        aware = datetime(2026, 3, 4, 10, 0, tzinfo=timezone(timedelta(hours=5)))
        local = to_local_naive(aware)
        assert local.tzinfo is None
        assert local == aware.astimezone().replace(tzinfo=None)
        # comparable with the engine clock
        assert abs((datetime.now() - to_local_naive(datetime.now(timezone.utc))).total_seconds()) < 5
