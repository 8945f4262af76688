"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

import pytest

from mindful_agent.agent.core import MindfulAgent
from mindful_agent.collectors.manual import ManualHealthSource
from mindful_agent.config import Settings
from mindful_agent.haptics.drivers import HapticDispatcher, HapticPlayer, RecordingDriver
from mindful_agent.models import HapticEvent, HapticKind
from mindful_agent.storage.blob import MemoryBlobStore
from mindful_agent.storage.state import AppState


class FakeClock:
    """Manually advanced clock; call the instance to read the time."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FixedRandom:
    """Stand-in random source: ``randint`` always returns the configured draw."""

    def __init__(self, draw: int) -> None:
        self.draw = draw

    def randint(self, a: int, b: int) -> int:
        return self.draw

    def choice(self, seq):
        return seq[0]


# Wednesday, 10:00
START = datetime(2026, 3, 4, 10, 0, 0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(START)


@pytest.fixture
def make_event() -> Callable[..., HapticEvent]:
    def _make(
        timestamp: datetime = START,
        kind: HapticKind = HapticKind.STRESS,
        acknowledged: bool = False,
        response_time: float | None = None,
        heart_rate: float = 85.0,
        stress_level: float = 0.7,
    ) -> HapticEvent:
        return HapticEvent(
            timestamp=timestamp,
            kind=kind,
            acknowledged=acknowledged,
            response_time=response_time,
            heart_rate=heart_rate,
            stress_level=stress_level,
        )

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        monitor_autostart=False,
        deferred_analysis_delay_seconds=0.0,
        haptic_webhook_url="",
    )


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def recorder() -> RecordingDriver:
    return RecordingDriver()


@pytest.fixture
def source() -> ManualHealthSource:
    return ManualHealthSource()


@pytest.fixture
async def agent(settings, blob_store, recorder, source, clock):
    state = AppState(blob_store, clock=clock)
    player = HapticPlayer(HapticDispatcher(drivers=[recorder]))
    agent = MindfulAgent(
        state,
        player,
        source,
        settings=settings,
        clock=clock,
        rng=FixedRandom(draw=10),
    )
    yield agent
    await agent.close()
