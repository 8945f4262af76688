"""Tests for the manual health source."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import START
from mindful_agent.collectors.manual import ManualHealthSource
from mindful_agent.models import HeartRateSample


class _Collector:
    def __init__(self):
        self.samples = []

    async def publish(self, sample):
        self.samples.append(sample)


class TestManualHealthSource:
    @pytest.mark.asyncio
    async def test_push_forwards_to_pipeline(self):
        pipeline = _Collector()
        source = ManualHealthSource(pipeline)
        sample = HeartRateSample(value=72.0, timestamp=START)
        await source.push_sample(sample)
        assert pipeline.samples == [sample]

    @pytest.mark.asyncio
    async def test_unauthorized_source_drops_samples(self):
        pipeline = _Collector()
        source = ManualHealthSource(pipeline, authorized=False)
        assert await source.request_authorization() is False
        await source.push_sample(HeartRateSample(value=72.0))
        assert pipeline.samples == []

    @pytest.mark.asyncio
    async def test_average_heart_rate_window(self):
        source = ManualHealthSource()
        for minutes, value in ((-10, 60.0), (-5, 80.0), (5, 200.0)):
            await source.push_sample(
                HeartRateSample(value=value, timestamp=START + timedelta(minutes=minutes)),
            )
        assert await source.average_heart_rate(START - timedelta(hours=1), START) == 70.0
        assert await source.average_heart_rate(START - timedelta(days=2), START - timedelta(days=1)) is None

    @pytest.mark.asyncio
    async def test_workout_marks_active(self):
        source = ManualHealthSource()
        assert await source.is_active(START) is False
        source.set_workout_active(True)
        assert await source.is_active(START) is True

    @pytest.mark.asyncio
    async def test_recent_active_energy_marks_active(self):
        source = ManualHealthSource()
        source.record_active_energy(30.0, START - timedelta(minutes=40))
        source.record_active_energy(30.0, START - timedelta(minutes=20))
        assert await source.is_active(START) is False
        source.record_active_energy(25.0, START - timedelta(minutes=5))
        assert await source.is_active(START) is True

    @pytest.mark.asyncio
    async def test_offset_timestamps_become_local_naive(self):
        pipeline = _Collector()
        source = ManualHealthSource(pipeline)
        now = datetime.now()
        await source.push_sample(HeartRateSample(value=75.0, timestamp=datetime.now(timezone.utc)))
        source.record_active_energy(60.0, datetime.now(timezone.utc))

        assert pipeline.samples[0].timestamp.tzinfo is None
        assert await source.average_heart_rate(now - timedelta(minutes=1), now + timedelta(minutes=1)) == 75.0
        assert await source.is_active(now + timedelta(seconds=1)) is True
