"""Reminder gating — decide whether a periodic mindfulness reminder fires."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

import structlog

from mindful_agent.insights.engine import InsightEngine
from mindful_agent.models import AppConfig, HapticEvent

logger = structlog.get_logger(__name__)

RECENT_ACKNOWLEDGMENT_SECONDS = 1800.0


class ReminderScheduler:
    """Consult the optimal response hours before each periodic reminder.

    Outside the wearer's best hours a reminder still fires when nothing
    has been acknowledged yet, or the last acknowledgment is more than
    30 minutes old.
    """

    def __init__(
        self,
        insight_engine: InsightEngine,
        quiet_after_ack_seconds: float = RECENT_ACKNOWLEDGMENT_SECONDS,
    ) -> None:
        self._engine = insight_engine
        self._quiet_after_ack = quiet_after_ack_seconds

    def should_fire(
        self,
        now: datetime,
        events: Sequence[HapticEvent],
        config: AppConfig,
    ) -> bool:
        if not config.monitoring_enabled:
            logger.debug("reminders.monitoring_disabled")
            return False

        optimal_hours = self._engine.get_optimal_reminder_times(events)
        if not optimal_hours or now.hour in optimal_hours:
            return True

        last_ack = config.last_acknowledged_time
        if last_ack is None:
            return True
        since_ack = (now - last_ack).total_seconds()
        if since_ack > self._quiet_after_ack:
            return True

        logger.info(
            "reminders.suppressed",
            hour=now.hour,
            optimal_hours=optimal_hours,
            since_ack=round(since_ack),
        )
        return False
