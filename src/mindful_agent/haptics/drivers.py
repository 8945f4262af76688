"""Haptic drivers — log, webhook, and recording delivery of pulse symbols.

Architecture
~~~~~~~~~~~~
* **HapticDriver** — abstract base for pulse delivery channels.
* **LogDriver / WebhookDriver / RecordingDriver** — concrete channels.
* **HapticDispatcher** — fan-out with error-isolation and results.
* **HapticPlayer** — expands a nudge into its staggered pulse steps.
* **create_dispatcher()** — factory that wires drivers from settings.

Adding a new channel
~~~~~~~~~~~~~~~~~~~~
1. Subclass ``HapticDriver``.
2. Implement ``async play(symbol) -> bool``.
3. Optionally set ``name`` for debug output.
4. Register via ``dispatcher.add_driver(...)`` or add to the factory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

import httpx
import structlog

from mindful_agent.haptics.patterns import PatternStep, PatternSymbol, pattern_for
from mindful_agent.scheduler.timers import TaskScheduler

if TYPE_CHECKING:
    from mindful_agent.config import Settings
    from mindful_agent.models import HapticKind, SensitivityMode

logger = structlog.get_logger(__name__)


# ── Dispatch result ───────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome summary for a single ``dispatch()`` call."""

    symbol: str
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def all_ok(self) -> bool:
        return len(self.failed) == 0


# ── Abstract driver ───────────────────────────────────────────


class HapticDriver(ABC):
    """Contract for pulse delivery channels.

    Playback is fire-and-forget from the core's point of view: the
    boolean result is only used for logging and dispatch statistics.
    """

    name: str = "base"

    @abstractmethod
    async def play(self, symbol: PatternSymbol) -> bool:
        """Play a single pulse.  Return ``True`` on success."""


# ── Concrete drivers ─────────────────────────────────────────


class LogDriver(HapticDriver):
    """Write pulses to the structured log (always enabled)."""

    name = "log"

    async def play(self, symbol: PatternSymbol) -> bool:
        logger.info("haptics.pulse", symbol=symbol.value)
        return True


class WebhookDriver(HapticDriver):
    """POST each pulse to a device bridge over HTTP."""

    name = "webhook"

    def __init__(self, url: str, *, timeout: float = 5.0) -> None:
        self._url = url
        self._timeout = timeout

    async def play(self, symbol: PatternSymbol) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json={"pattern": symbol.value, "sent_at": datetime.now().isoformat()},
                )
                resp.raise_for_status()
            return True
        except Exception as exc:
            logger.error("haptics.webhook_failed", url=self._url, error=str(exc))
            return False


class RecordingDriver(HapticDriver):
    """Keep played symbols in memory (dry runs and tests)."""

    name = "recording"

    def __init__(self) -> None:
        self.played: list[PatternSymbol] = []

    async def play(self, symbol: PatternSymbol) -> bool:
        self.played.append(symbol)
        return True


# ── Dispatcher ────────────────────────────────────────────────


class HapticDispatcher:
    """Fan-out pulses to registered drivers with error isolation.

    Each driver is invoked independently — a failure in one channel
    never blocks delivery to the others.
    """

    def __init__(self, *, drivers: list[HapticDriver] | None = None) -> None:
        self._drivers: list[HapticDriver] = drivers or [LogDriver()]

    def add_driver(self, driver: HapticDriver) -> None:
        self._drivers.append(driver)

    def remove_driver(self, name: str) -> bool:
        """Remove the first driver matching *name*. Return ``True`` if found."""
        for i, d in enumerate(self._drivers):
            if d.name == name:
                self._drivers.pop(i)
                return True
        return False

    @property
    def driver_names(self) -> list[str]:
        return [d.name for d in self._drivers]

    async def dispatch(self, symbol: PatternSymbol) -> DispatchResult:
        sent: list[str] = []
        failed: list[str] = []

        for driver in self._drivers:
            try:
                ok = await driver.play(symbol)
                (sent if ok else failed).append(driver.name)
            except Exception:
                logger.exception("haptics.driver_error", driver=driver.name, symbol=symbol.value)
                failed.append(driver.name)

        result = DispatchResult(symbol=symbol.value, sent=sent, failed=failed)
        if result.failed:
            logger.warning("haptics.partial_failure", symbol=symbol.value, failed=result.failed)
        return result


# ── Player ────────────────────────────────────────────────────


class HapticPlayer:
    """Turn a nudge kind into timed pulses on the dispatcher.

    The first step plays immediately; later steps are scheduled on the
    shared :class:`TaskScheduler` so the caller never waits for them.
    """

    def __init__(
        self,
        dispatcher: HapticDispatcher,
        timers: TaskScheduler | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._timers = timers or TaskScheduler()

    @property
    def timers(self) -> TaskScheduler:
        return self._timers

    async def play(self, kind: HapticKind, sensitivity: SensitivityMode) -> list[PatternStep]:
        steps = pattern_for(kind, sensitivity)
        logger.info(
            "haptics.play",
            kind=kind.value,
            sensitivity=sensitivity.value,
            pulses=len(steps),
        )
        for step in steps:
            if step.offset <= 0:
                await self._dispatcher.dispatch(step.symbol)
            else:
                self._timers.schedule(
                    step.offset,
                    lambda s=step.symbol: self._dispatcher.dispatch(s),
                    name=f"haptic:{step.symbol.value}",
                )
        return steps


# ── Factory ───────────────────────────────────────────────────


def create_dispatcher(settings: Settings) -> HapticDispatcher:
    """Build a :class:`HapticDispatcher` wired from application settings.

    * **LogDriver** is always registered.
    * **WebhookDriver** is added when ``settings.haptic_webhook_url`` is set.
    """
    dispatcher = HapticDispatcher()
    if settings.haptic_webhook_url:
        dispatcher.add_driver(
            WebhookDriver(settings.haptic_webhook_url, timeout=settings.haptic_webhook_timeout),
        )
    return dispatcher
