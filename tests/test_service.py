"""Tests for the monitoring service and the deferred-task scheduler."""

import asyncio

import pytest

from mindful_agent.scheduler.service import MonitoringService
from mindful_agent.scheduler.timers import TaskScheduler


@pytest.mark.asyncio
async def test_start_and_stop(agent, settings):
    service = MonitoringService(agent, settings=settings, tick_seconds=0.01)
    assert await service.start() is True
    await asyncio.sleep(0.05)
    await service.stop()

    assert service.is_running is False
    assert service.stats["ticks"] >= 1
    assert service.stats["tick_errors"] == 0


@pytest.mark.asyncio
async def test_not_started_when_monitoring_disabled(agent, settings):
    await agent.set_monitoring_enabled(False)
    service = MonitoringService(agent, settings=settings)
    assert await service.start() is False
    assert service.is_running is False


@pytest.mark.asyncio
async def test_toggle_persists_and_controls_loops(agent, settings):
    service = MonitoringService(agent, settings=settings, tick_seconds=0.01)
    await service.set_monitoring_enabled(False)
    assert agent.state.config.monitoring_enabled is False
    assert service.is_running is False

    await service.set_monitoring_enabled(True)
    assert service.is_running is True
    await service.stop()


@pytest.mark.asyncio
async def test_failing_tick_is_counted(agent, settings, monkeypatch):
    async def broken():
        raise RuntimeError("sensor offline")

    monkeypatch.setattr(agent, "tick", broken)
    service = MonitoringService(agent, settings=settings)
    await service.run_tick()
    await service.run_tick()
    assert service.stats["ticks"] == 2
    assert service.stats["tick_errors"] == 2


@pytest.mark.asyncio
async def test_reminder_cycle_counts_fired(agent, settings):
    await agent.connect()
    service = MonitoringService(agent, settings=settings)
    await service.run_reminder()
    assert service.stats["reminders_fired"] == 1
    assert len(agent.state.events) == 1


class _Monotonic:
    def __init__(self) -> None:
        self.value = 0.0

    def __call__(self) -> float:
        return self.value


@pytest.mark.asyncio
async def test_shortened_interval_applies_to_running_wait(agent, settings):
    monotonic = _Monotonic()
    service = MonitoringService(agent, settings=settings, tick_seconds=0.01, monotonic=monotonic)
    await agent.connect()
    await service.start()

    monotonic.value = 310.0
    await asyncio.sleep(0.05)
    assert service.stats["reminders_fired"] == 0

    await agent.set_reminder_interval(300.0)
    await asyncio.sleep(0.05)
    await service.stop()

    assert service.stats["reminders_fired"] == 1
    assert service.stats["reminder_errors"] == 0


class TestTaskScheduler:
    @pytest.mark.asyncio
    async def test_join_runs_callbacks(self):
        timers = TaskScheduler()
        ran = []

        async def job():
            ran.append("done")

        timers.schedule(0.01, job)
        await timers.join()
        assert ran == ["done"]
        assert timers.pending == 0

    @pytest.mark.asyncio
    async def test_errors_are_swallowed_into_the_log(self):
        timers = TaskScheduler()

        async def job():
            raise ValueError("bad")

        task = timers.schedule(0, job)
        await timers.join()
        assert task.exception() is None

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        timers = TaskScheduler()
        ran = []

        async def job():
            ran.append("late")

        timers.schedule(10, job)
        await timers.cancel_all()
        assert ran == []
        assert timers.pending == 0
