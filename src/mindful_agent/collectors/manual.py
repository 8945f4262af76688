"""In-process health source fed by explicit pushes (API, tests, replays)."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from mindful_agent.collectors.base import HealthSource
from mindful_agent.models import HeartRateSample, to_local_naive

if TYPE_CHECKING:
    from mindful_agent.streaming.pipeline import StreamPipeline

logger = structlog.get_logger(__name__)

ACTIVE_ENERGY_WINDOW = timedelta(minutes=30)
ACTIVE_ENERGY_KCAL = 50.0
_HISTORY_LIMIT = 50_000


class ManualHealthSource(HealthSource):
    """Keeps pushed samples so it can answer baseline and activity queries.

    Activity is reported while a workout is flagged, or when more than
    50 kcal of active energy were logged in the last 30 minutes.
    """

    name = "manual"

    def __init__(
        self,
        pipeline: StreamPipeline | None = None,
        *,
        authorized: bool = True,
    ) -> None:
        self._pipeline = pipeline
        self._authorized = authorized
        self._samples: deque[HeartRateSample] = deque(maxlen=_HISTORY_LIMIT)
        self._energy: deque[tuple[datetime, float]] = deque(maxlen=_HISTORY_LIMIT)
        self._workout_active = False

    def attach_pipeline(self, pipeline: StreamPipeline) -> None:
        self._pipeline = pipeline

    # ── Push side ─────────────────────────────────────────────

    async def push_sample(self, sample: HeartRateSample) -> None:
        """Record a sample and forward it downstream.

        Offset-aware timestamps are converted to naive local time.
        """
        if not self._authorized:
            logger.warning("manual_source.unauthorized_sample_dropped")
            return
        if sample.timestamp.tzinfo is not None:
            sample = sample.model_copy(update={"timestamp": to_local_naive(sample.timestamp)})
        self._samples.append(sample)
        if self._pipeline is not None:
            await self._pipeline.publish(sample)

    def set_workout_active(self, active: bool) -> None:
        if active != self._workout_active:
            logger.info("manual_source.workout_changed", active=active)
        self._workout_active = active

    def record_active_energy(self, kcal: float, timestamp: datetime | None = None) -> None:
        ts = to_local_naive(timestamp) if timestamp is not None else datetime.now()
        self._energy.append((ts, kcal))

    # ── HealthSource ──────────────────────────────────────────

    async def request_authorization(self) -> bool:
        return self._authorized

    async def average_heart_rate(self, start: datetime, end: datetime) -> float | None:
        values = [s.value for s in self._samples if start <= s.timestamp <= end]
        if not values:
            return None
        return sum(values) / len(values)

    async def is_active(self, now: datetime) -> bool:
        if self._workout_active:
            return True
        cutoff = now - ACTIVE_ENERGY_WINDOW
        burned = sum(kcal for ts, kcal in self._energy if cutoff <= ts <= now)
        return burned > ACTIVE_ENERGY_KCAL
