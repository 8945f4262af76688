"""Application state container — events, insights, config, and observers.

One :class:`AppState` is built at startup and injected into the agent, the
monitoring service, and the API.  It is the single writer for the event
log, the insight log, and the user configuration, and it snapshots each of
them to the :class:`BlobStore` after every mutation.

Persisted layout (flat key → JSON blob)::

    hapticEvents          list[HapticEvent]
    aiInsights            list[AIInsight]
    sensitivityMode       "Light" | "Medium" | "Deep"
    isMonitoringEnabled   bool
    reminderInterval      float seconds
    lastAcknowledgedTime  ISO datetime | null
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable

import structlog

from mindful_agent.models import (
    DEFAULT_REMINDER_INTERVAL,
    MAX_REMINDER_INTERVAL,
    MIN_REMINDER_INTERVAL,
    AIInsight,
    AppConfig,
    HapticEvent,
    SensitivityMode,
)
from mindful_agent.storage.blob import BlobStore, MemoryBlobStore
from mindful_agent.storage.event_store import EventStore, InsightLog

logger = structlog.get_logger(__name__)

KEY_EVENTS = "hapticEvents"
KEY_INSIGHTS = "aiInsights"
KEY_SENSITIVITY = "sensitivityMode"
KEY_MONITORING = "isMonitoringEnabled"
KEY_REMINDER_INTERVAL = "reminderInterval"
KEY_LAST_ACKNOWLEDGED = "lastAcknowledgedTime"

Observer = Callable[[str, Any], None]

# ── Change topics ─────────────────────────────────────────────
TOPIC_EVENT_ADDED = "event_added"
TOPIC_EVENT_UPDATED = "event_updated"
TOPIC_INSIGHT_ADDED = "insight_added"
TOPIC_CONFIG_CHANGED = "config_changed"
TOPIC_SNAPSHOT = "snapshot"
TOPIC_ACK_REQUESTED = "acknowledgment_requested"
TOPIC_RESET = "reset"


def _decode_json(data: bytes | None) -> Any:
    if data is None:
        return None
    try:
        return json.loads(data)
    except (ValueError, UnicodeDecodeError):
        return None


class AppState:
    """Explicit, injectable replacement for shared mutable singletons."""

    def __init__(
        self,
        store: BlobStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store or MemoryBlobStore()
        self._clock = clock
        self.events = EventStore()
        self.insights = InsightLog()
        self.config = AppConfig()
        self._observers: list[Observer] = []

    # ── Observers ─────────────────────────────────────────────

    def subscribe(self, fn: Observer) -> Callable[[], None]:
        """Register *fn(topic, payload)*; returns an unsubscribe callable."""
        self._observers.append(fn)

        def _unsubscribe() -> None:
            if fn in self._observers:
                self._observers.remove(fn)

        return _unsubscribe

    def notify(self, topic: str, payload: Any = None) -> None:
        for fn in list(self._observers):
            try:
                fn(topic, payload)
            except Exception:
                logger.exception("state.observer_error", topic=topic)

    # ── Events ────────────────────────────────────────────────

    async def add_event(self, event: HapticEvent) -> None:
        self.events.append(event)
        await self._save_events()
        self.notify(TOPIC_EVENT_ADDED, event)

    async def update_event(
        self,
        event_id: str,
        acknowledged: bool,
        response_time: float | None,
    ) -> HapticEvent | None:
        updated = self.events.update(event_id, acknowledged, response_time)
        if updated is None:
            return None
        if acknowledged:
            self.config.last_acknowledged_time = self._clock()
            await self._save_config()
        await self._save_events()
        self.notify(TOPIC_EVENT_UPDATED, updated)
        return updated

    # ── Insights ──────────────────────────────────────────────

    async def add_insight(self, insight: AIInsight) -> None:
        self.insights.append(insight)
        await self._store.save_blob(KEY_INSIGHTS, self.insights.dump())
        self.notify(TOPIC_INSIGHT_ADDED, insight)

    # ── Config ────────────────────────────────────────────────

    async def update_config(self, **changes: Any) -> AppConfig:
        """Apply validated changes (pydantic raises on bad values) and persist."""
        for name, value in changes.items():
            setattr(self.config, name, value)
        await self._save_config()
        self.notify(TOPIC_CONFIG_CHANGED, self.config.model_copy())
        return self.config

    async def reset(self) -> None:
        """Drop all events and insights and restore the default config."""
        self.events.clear()
        self.insights.clear()
        self.config = AppConfig()
        await self.save()
        self.notify(TOPIC_RESET)
        logger.info("state.reset")

    # ── Persistence ───────────────────────────────────────────

    async def save(self) -> None:
        await self._save_events()
        await self._store.save_blob(KEY_INSIGHTS, self.insights.dump())
        await self._save_config()

    async def load(self) -> None:
        """Restore state from the blob store; bad or missing keys use defaults."""
        self.events.load(await self._store.load_blob(KEY_EVENTS))
        self.insights.load(await self._store.load_blob(KEY_INSIGHTS))
        self.config = await self._load_config()
        logger.info(
            "state.loaded",
            events=len(self.events),
            insights=len(self.insights),
            sensitivity=self.config.sensitivity_mode.value,
            monitoring=self.config.monitoring_enabled,
        )

    async def _save_events(self) -> None:
        await self._store.save_blob(KEY_EVENTS, self.events.dump())

    async def _save_config(self) -> None:
        cfg = self.config
        last_ack = cfg.last_acknowledged_time.isoformat() if cfg.last_acknowledged_time else None
        await self._store.save_blob(KEY_SENSITIVITY, json.dumps(cfg.sensitivity_mode.value).encode())
        await self._store.save_blob(KEY_MONITORING, json.dumps(cfg.monitoring_enabled).encode())
        await self._store.save_blob(KEY_REMINDER_INTERVAL, json.dumps(cfg.reminder_interval).encode())
        await self._store.save_blob(KEY_LAST_ACKNOWLEDGED, json.dumps(last_ack).encode())

    async def _load_config(self) -> AppConfig:
        config = AppConfig()

        mode = _decode_json(await self._store.load_blob(KEY_SENSITIVITY))
        try:
            config.sensitivity_mode = SensitivityMode(mode)
        except ValueError:
            if mode is not None:
                logger.warning("state.bad_sensitivity", value=mode)

        enabled = _decode_json(await self._store.load_blob(KEY_MONITORING))
        if isinstance(enabled, bool):
            config.monitoring_enabled = enabled

        interval = _decode_json(await self._store.load_blob(KEY_REMINDER_INTERVAL))
        if isinstance(interval, (int, float)) and not isinstance(interval, bool):
            config.reminder_interval = min(
                MAX_REMINDER_INTERVAL, max(MIN_REMINDER_INTERVAL, float(interval)),
            )
        else:
            config.reminder_interval = DEFAULT_REMINDER_INTERVAL

        last_ack = _decode_json(await self._store.load_blob(KEY_LAST_ACKNOWLEDGED))
        if isinstance(last_ack, str):
            try:
                config.last_acknowledged_time = datetime.fromisoformat(last_ack)
            except ValueError:
                logger.warning("state.bad_last_acknowledged", value=last_ack)

        return config
