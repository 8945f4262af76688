"""Monitoring service — the periodic monitor tick and reminder loop.

Architecture
~~~~~~~~~~~~
The ``MonitoringService`` runs as a background component within the
FastAPI lifespan.  It owns two asyncio tasks:

1. **Monitor tick** — every ``monitor_tick_seconds`` (5 s) it asks the
   agent to refresh its snapshot, evaluate the trigger policy and run the
   throttled insight analysis.
2. **Reminder loop** — every ``reminder_interval`` seconds, checked on
   each tick against the persisted config so a changed interval applies
   to the wait already in progress, it asks the agent for a gated
   mindfulness reminder.

A failing tick is logged and never stops the loop.  Stopping cancels both
tasks and any pending haptic pulses or deferred analyses.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Any, Callable

import structlog

from mindful_agent.agent.core import MindfulAgent
from mindful_agent.config import Settings, get_settings

logger = structlog.get_logger(__name__)


class MonitoringService:
    """Background service driving the agent's periodic work.

    Integration::

        service = MonitoringService(agent)
        await service.start()
        ...
        await service.stop()
    """

    def __init__(
        self,
        agent: MindfulAgent,
        settings: Settings | None = None,
        tick_seconds: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        settings = settings or get_settings()
        self._agent = agent
        self._tick_seconds = tick_seconds or settings.monitor_tick_seconds
        self._monotonic = monotonic
        self._running = False
        self._monitor_task: asyncio.Task | None = None
        self._reminder_task: asyncio.Task | None = None

        self._stats: dict[str, Any] = {
            "ticks": 0,
            "tick_errors": 0,
            "reminder_runs": 0,
            "reminders_fired": 0,
            "reminder_errors": 0,
            "last_tick": None,
        }

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> bool:
        """Start both loops unless monitoring is disabled in the config."""
        if self._running:
            return True
        if not self._agent.state.config.monitoring_enabled:
            logger.info("monitoring.disabled_not_started")
            return False
        self._running = True
        self._monitor_task = asyncio.create_task(self._monitor_loop(), name="monitor_tick")
        self._reminder_task = asyncio.create_task(self._reminder_loop(), name="reminder_loop")
        logger.info(
            "monitoring.started",
            tick_seconds=self._tick_seconds,
            reminder_interval=self._agent.state.config.reminder_interval,
        )
        return True

    async def stop(self) -> None:
        """Cancel both loops and every pending deferred callback."""
        self._running = False
        for task in (self._monitor_task, self._reminder_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._monitor_task = None
        self._reminder_task = None
        await self._agent.timers.cancel_all()
        logger.info("monitoring.stopped")

    async def set_monitoring_enabled(self, enabled: bool) -> None:
        """Persist the toggle and start or stop the loops accordingly."""
        await self._agent.set_monitoring_enabled(enabled)
        if enabled:
            await self.start()
        else:
            await self.stop()

    @property
    def stats(self) -> dict[str, Any]:
        return dict(self._stats)

    @property
    def is_running(self) -> bool:
        return self._running

    # ── Loops ─────────────────────────────────────────────────

    async def _monitor_loop(self) -> None:
        while self._running:
            await self.run_tick()
            await asyncio.sleep(self._tick_seconds)

    async def _reminder_loop(self) -> None:
        # interval re-read on every poll
        last_run = self._monotonic()
        while self._running:
            await asyncio.sleep(self._tick_seconds)
            if self._monotonic() - last_run >= self._agent.state.config.reminder_interval:
                last_run = self._monotonic()
                await self.run_reminder()

    # ── Single cycles (also used for manual triggers) ─────────

    async def run_tick(self) -> None:
        self._stats["ticks"] += 1
        self._stats["last_tick"] = datetime.now().isoformat()
        try:
            await self._agent.tick()
        except Exception:
            self._stats["tick_errors"] += 1
            logger.exception("monitoring.tick_error")

    async def run_reminder(self) -> None:
        self._stats["reminder_runs"] += 1
        try:
            event = await self._agent.run_reminder()
        except Exception:
            self._stats["reminder_errors"] += 1
            logger.exception("monitoring.reminder_error")
            return
        if event is not None:
            self._stats["reminders_fired"] += 1
