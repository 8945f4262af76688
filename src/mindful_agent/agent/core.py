"""Core agent — wires signal aggregation, trigger policy, haptics and insights."""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

import structlog

from mindful_agent.collectors.base import HealthSource
from mindful_agent.config import Settings, get_settings
from mindful_agent.haptics.drivers import HapticPlayer
from mindful_agent.insights.engine import InsightEngine
from mindful_agent.insights.messages import random_positive_message
from mindful_agent.models import (
    AIInsight,
    AppConfig,
    HapticEvent,
    HapticKind,
    HealthSnapshot,
    HeartRateSample,
    SensitivityMode,
)
from mindful_agent.monitors.signal import SignalAggregator
from mindful_agent.monitors.trigger import TriggerPolicy
from mindful_agent.scheduler.reminders import ReminderScheduler
from mindful_agent.scheduler.timers import TaskScheduler
from mindful_agent.storage.state import TOPIC_ACK_REQUESTED, TOPIC_SNAPSHOT, AppState

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PendingAcknowledgment:
    """A stress nudge waiting for the wearer to confirm it."""

    event_id: str
    fired_at: datetime
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "fired_at": self.fired_at.isoformat(),
            "message": self.message,
        }


class MindfulAgent:
    """Autonomous mindfulness companion operating on a single timeline.

    The agent has three entry points:

    1. **Push** — ``ingest_sample`` feeds the signal aggregator.
    2. **Periodic** — ``tick`` (every few seconds) evaluates the trigger
       policy, ``run_reminder`` fires gated mindfulness reminders.
    3. **User** — ``acknowledge`` and the config setters.

    All mutations of shared state go through one :class:`asyncio.Lock`.
    """

    def __init__(
        self,
        state: AppState,
        player: HapticPlayer,
        source: HealthSource | None = None,
        *,
        aggregator: SignalAggregator | None = None,
        policy: TriggerPolicy | None = None,
        insight_engine: InsightEngine | None = None,
        reminders: ReminderScheduler | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.now,
        rng: random.Random | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._state = state
        self._player = player
        self._source = source
        self._clock = clock
        self._rng = rng or random.Random()
        self._aggregator = aggregator or SignalAggregator()
        self._policy = policy or TriggerPolicy(
            rng=self._rng, cooldown_seconds=settings.trigger_cooldown_seconds,
        )
        self._engine = insight_engine or InsightEngine(
            analysis_interval=settings.insight_analysis_interval_seconds, clock=clock,
        )
        self._reminders = reminders or ReminderScheduler(self._engine)

        self._deferred_delay = settings.deferred_analysis_delay_seconds
        self._baseline_window = timedelta(days=settings.baseline_window_days)
        self._baseline_refresh = timedelta(hours=settings.baseline_refresh_hours)
        self._baseline_refreshed_at: datetime | None = None

        self._lock = asyncio.Lock()
        self._connected = False
        self._pending_ack: PendingAcknowledgment | None = None
        self._last_snapshot: HealthSnapshot | None = None

    # ── Accessors ─────────────────────────────────────────────

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def aggregator(self) -> SignalAggregator:
        return self._aggregator

    @property
    def insight_engine(self) -> InsightEngine:
        return self._engine

    @property
    def timers(self) -> TaskScheduler:
        return self._player.timers

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def pending_acknowledgment(self) -> PendingAcknowledgment | None:
        return self._pending_ack

    @property
    def last_snapshot(self) -> HealthSnapshot | None:
        return self._last_snapshot

    # ── Health source ─────────────────────────────────────────

    async def connect(self) -> bool:
        """Request health-data access; on success compute the baseline.

        A denied request leaves the aggregator unfed (neutral stress) and
        is not retried automatically.
        """
        if self._source is None:
            self._connected = False
            logger.warning("agent.no_health_source")
            return False
        self._connected = await self._source.request_authorization()
        if self._connected:
            logger.info("agent.connected", source=self._source.name)
            await self.refresh_baseline()
        else:
            logger.warning("agent.authorization_denied", source=self._source.name)
        return self._connected

    async def refresh_baseline(self) -> float:
        """Recompute the baseline from the source's long-window average."""
        now = self._clock()
        if self._source is not None and self._connected:
            average = await self._source.average_heart_rate(now - self._baseline_window, now)
            async with self._lock:
                self._aggregator.recompute_baseline(average)
        self._baseline_refreshed_at = now
        return self._aggregator.baseline

    def _baseline_due(self, now: datetime) -> bool:
        if self._baseline_refreshed_at is None:
            return True
        return now - self._baseline_refreshed_at >= self._baseline_refresh

    async def ingest_sample(self, sample: HeartRateSample) -> float:
        """Pipeline consumer: feed one heart-rate sample, return the stress score."""
        async with self._lock:
            return self._aggregator.ingest(sample)

    async def snapshot(self) -> HealthSnapshot:
        now = self._clock()
        active = False
        if self._source is not None and self._connected:
            active = await self._source.is_active(now)
        snap = HealthSnapshot(
            heart_rate=self._aggregator.current_heart_rate,
            stress_level=self._aggregator.current_stress,
            is_active=active,
            timestamp=now,
        )
        self._last_snapshot = snap
        self._state.notify(TOPIC_SNAPSHOT, snap)
        return snap

    # ── Periodic work ─────────────────────────────────────────

    async def tick(self) -> HapticEvent | None:
        """One monitoring cycle: snapshot → trigger decision → insights."""
        if self._connected and self._baseline_due(self._clock()):
            await self.refresh_baseline()

        snap = await self.snapshot()
        async with self._lock:
            kind = self._policy.decide(
                snap, self._state.events.items, self._state.config.sensitivity_mode,
            )
            event = await self._fire_locked(kind, snap) if kind is not None else None
            if len(self._state.events):
                await self._analyze_locked()
        return event

    async def run_reminder(self) -> HapticEvent | None:
        """Fire a mindfulness reminder unless the reminder gate says otherwise."""
        now = self._clock()
        if not self._reminders.should_fire(now, self._state.events.items, self._state.config):
            return None
        snap = await self.snapshot()
        return await self.fire(HapticKind.MINDFULNESS, snap)

    # ── Triggering ────────────────────────────────────────────

    async def fire(self, kind: HapticKind, snapshot: HealthSnapshot | None = None) -> HapticEvent:
        """Record and play a nudge, bypassing the trigger policy."""
        snap = snapshot or await self.snapshot()
        async with self._lock:
            return await self._fire_locked(kind, snap)

    async def _fire_locked(self, kind: HapticKind, snap: HealthSnapshot) -> HapticEvent:
        event = HapticEvent(
            timestamp=self._clock(),
            kind=kind,
            heart_rate=snap.heart_rate,
            stress_level=snap.stress_level,
        )
        await self._state.add_event(event)
        sensitivity = self._state.config.sensitivity_mode
        await self._player.play(kind, sensitivity)

        if kind is HapticKind.STRESS:
            self._pending_ack = PendingAcknowledgment(
                event_id=event.id,
                fired_at=event.timestamp,
                message=random_positive_message(self._rng),
            )
            self._state.notify(TOPIC_ACK_REQUESTED, self._pending_ack)

        self.timers.schedule(self._deferred_delay, self.analyze, name="deferred_analysis")
        logger.info(
            "agent.haptic_fired",
            event_id=event.id,
            kind=kind.value,
            sensitivity=sensitivity.value,
            heart_rate=round(snap.heart_rate, 1),
            stress=round(snap.stress_level, 3),
        )
        return event

    # ── Insights ──────────────────────────────────────────────

    async def analyze(self) -> list[AIInsight]:
        """Run the (throttled) insight engine and store what it produces."""
        async with self._lock:
            return await self._analyze_locked()

    async def _analyze_locked(self) -> list[AIInsight]:
        insights = self._engine.analyze(self._state.events.items)
        for insight in insights:
            await self._state.add_insight(insight)
        return insights

    def optimal_reminder_hours(self) -> list[int]:
        return self._engine.get_optimal_reminder_times(self._state.events.items)

    # ── User actions ──────────────────────────────────────────

    async def acknowledge(self, event_id: str | None = None) -> HapticEvent | None:
        """Mark an event acknowledged and record how long the wearer took.

        Without *event_id* the pending stress prompt is acknowledged.
        Unknown ids return ``None``; an already acknowledged event is
        returned unchanged.
        """
        pending = self._pending_ack
        event_id = event_id or (pending.event_id if pending else None)
        if event_id is None:
            logger.info("agent.nothing_to_acknowledge")
            return None

        async with self._lock:
            event = self._state.events.get(event_id)
            if event is None:
                logger.warning("agent.acknowledge_unknown", event_id=event_id)
                return None
            if event.acknowledged:
                return event

            fired_at = pending.fired_at if pending and pending.event_id == event_id else event.timestamp
            response_time = max(0.0, (self._clock() - fired_at).total_seconds())
            updated = await self._state.update_event(event_id, True, response_time)
            if pending and pending.event_id == event_id:
                self._pending_ack = None

            logger.info(
                "agent.acknowledged",
                event_id=event_id,
                response_time=round(response_time, 2),
            )
            await self._analyze_locked()
            return updated

    async def set_sensitivity(self, mode: SensitivityMode) -> AppConfig:
        async with self._lock:
            return await self._state.update_config(sensitivity_mode=mode)

    async def set_monitoring_enabled(self, enabled: bool) -> AppConfig:
        async with self._lock:
            return await self._state.update_config(monitoring_enabled=enabled)

    async def set_reminder_interval(self, seconds: float) -> AppConfig:
        async with self._lock:
            return await self._state.update_config(reminder_interval=seconds)

    async def reset(self) -> None:
        """Clear events, insights, preferences and the signal window ("reset all data").

        The baseline stays: it comes from the health source, not from stored data.
        """
        async with self._lock:
            self._pending_ack = None
            self._aggregator.reset()
            await self._state.reset()

    async def close(self) -> None:
        await self.timers.cancel_all()
