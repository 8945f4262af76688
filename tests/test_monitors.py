"""Tests for stress scoring, status classification and the trigger policy."""

from datetime import timedelta

import pytest

from conftest import START, FixedRandom
from mindful_agent.models import (
    HapticKind,
    HealthSnapshot,
    HeartRateSample,
    SensitivityMode,
    UserStatus,
)
from mindful_agent.monitors.signal import NEUTRAL_STRESS, SignalAggregator, sample_variance
from mindful_agent.monitors.status import classify
from mindful_agent.monitors.trigger import TriggerPolicy


def _feed(aggregator: SignalAggregator, values: list[float]) -> None:
    for v in values:
        aggregator.ingest(HeartRateSample(value=v))


class TestSignalAggregator:
    """Unit tests for :class:`SignalAggregator`."""

    @pytest.mark.parametrize("count", [0, 1, 5, 10])
    def test_window_holds_every_sample_up_to_capacity(self, count):
        agg = SignalAggregator()
        _feed(agg, [60.0 + i for i in range(count)])
        assert len(agg.recent_values) == count

    def test_oldest_sample_evicted_first(self):
        agg = SignalAggregator()
        _feed(agg, [float(v) for v in range(1, 16)])
        assert agg.recent_values == [float(v) for v in range(6, 16)]
        assert agg.sample_count == 15

    def test_neutral_stress_below_three_samples(self):
        agg = SignalAggregator()
        assert agg.current_stress == NEUTRAL_STRESS
        _feed(agg, [150.0, 150.0])
        assert agg.current_stress == NEUTRAL_STRESS

    def test_stress_formula(self):
        # baseline 70, newest 85 → hr_stress 0.5; variance of [75, 80, 85] = 25 → hrv_stress 0
        agg = SignalAggregator(baseline=70.0)
        _feed(agg, [75.0, 80.0, 85.0])
        assert agg.current_stress == pytest.approx(0.35)

    def test_flat_high_heart_rate_saturates(self):
        agg = SignalAggregator(baseline=60.0)
        _feed(agg, [120.0] * 5)
        assert agg.current_stress == pytest.approx(1.0)

    def test_stress_stays_in_unit_interval(self):
        agg = SignalAggregator(baseline=70.0)
        for values in ([40.0, 200.0, 41.0, 199.0], [300.0] * 10, [30.0] * 10):
            agg.reset()
            _feed(agg, values)
            assert 0.0 <= agg.current_stress <= 1.0

    def test_low_heart_rate_with_steady_signal(self):
        # hr below baseline → hr_stress 0; zero variance → hrv_stress 1
        agg = SignalAggregator(baseline=70.0)
        _feed(agg, [60.0, 60.0, 60.0])
        assert agg.current_stress == pytest.approx(0.3)

    def test_recompute_baseline(self):
        agg = SignalAggregator(baseline=70.0)
        _feed(agg, [75.0, 80.0, 85.0])
        agg.recompute_baseline(55.0)
        assert agg.baseline == 55.0
        assert agg.current_stress == pytest.approx(0.7)

    def test_recompute_baseline_ignores_missing_average(self):
        agg = SignalAggregator(baseline=70.0)
        agg.recompute_baseline(None)
        agg.recompute_baseline(0.0)
        assert agg.baseline == 70.0

    def test_reset_clears_window_and_count(self):
        agg = SignalAggregator(baseline=65.0)
        _feed(agg, [90.0, 95.0, 99.0])
        agg.reset()
        assert agg.recent_values == []
        assert agg.sample_count == 0
        assert agg.current_stress == NEUTRAL_STRESS
        assert agg.baseline == 65.0

    def test_current_heart_rate(self):
        agg = SignalAggregator()
        assert agg.current_heart_rate == 0.0
        _feed(agg, [72.0, 91.0])
        assert agg.current_heart_rate == 91.0

    def test_sample_variance(self):
        assert sample_variance([]) == 0.0
        assert sample_variance([5.0]) == 0.0
        assert sample_variance([1.0, 2.0, 3.0, 4.0]) == pytest.approx(5 / 3)


class TestClassify:
    @pytest.mark.parametrize(
        ("stress", "heart_rate", "expected"),
        [
            (0.75, 60.0, UserStatus.NEED_TO_RELAX),
            (0.1, 110.0, UserStatus.NEED_TO_RELAX),
            (0.2, 70.0, UserStatus.SAFE),
            (0.5, 85.0, UserStatus.CALM),
            (0.2, 85.0, UserStatus.CALM),
            (0.7, 100.0, UserStatus.CALM),
        ],
    )
    def test_classify(self, stress, heart_rate, expected):
        assert classify(stress, heart_rate) == expected

    def test_snapshot_status_is_derived(self):
        snap = HealthSnapshot(heart_rate=70.0, stress_level=0.2, timestamp=START)
        assert snap.status == UserStatus.SAFE


class TestTriggerPolicy:
    """Unit tests for :class:`TriggerPolicy`."""

    @staticmethod
    def _snap(stress: float, hr: float = 85.0, active: bool = False, at=START) -> HealthSnapshot:
        return HealthSnapshot(heart_rate=hr, stress_level=stress, is_active=active, timestamp=at)

    @pytest.mark.parametrize(
        ("mode", "stress", "fires"),
        [
            (SensitivityMode.LIGHT, 0.75, False),
            (SensitivityMode.LIGHT, 0.85, True),
            (SensitivityMode.MEDIUM, 0.6, False),
            (SensitivityMode.MEDIUM, 0.65, True),
            (SensitivityMode.DEEP, 0.45, True),
        ],
    )
    def test_threshold_by_sensitivity(self, mode, stress, fires):
        policy = TriggerPolicy(rng=FixedRandom(draw=10))
        kind = policy.decide(self._snap(stress), [], mode)
        assert (kind is HapticKind.STRESS) is fires

    def test_cooldown_blocks_second_trigger(self, make_event):
        policy = TriggerPolicy(rng=FixedRandom(draw=1))
        previous = make_event(timestamp=START)
        snap = self._snap(0.99, at=START + timedelta(seconds=299))
        assert policy.decide(snap, [previous], SensitivityMode.DEEP) is None

    def test_cooldown_expires(self, make_event):
        policy = TriggerPolicy(rng=FixedRandom(draw=10))
        previous = make_event(timestamp=START)
        snap = self._snap(0.99, at=START + timedelta(seconds=300))
        assert policy.decide(snap, [previous], SensitivityMode.MEDIUM) is HapticKind.STRESS

    def test_cooldown_uses_newest_event(self, make_event):
        policy = TriggerPolicy()
        events = [make_event(timestamp=START), make_event(timestamp=START - timedelta(hours=2))]
        snap = self._snap(0.99, at=START + timedelta(seconds=60))
        assert policy.decide(snap, events, SensitivityMode.DEEP) is None

    @pytest.mark.parametrize("stress", [0.1, 0.5, 0.99])
    def test_never_fires_while_active(self, stress):
        policy = TriggerPolicy(rng=FixedRandom(draw=1))
        snap = self._snap(stress, hr=70.0, active=True)
        assert policy.decide(snap, [], SensitivityMode.DEEP) is None

    def test_positive_reinforcement_on_winning_draw(self):
        policy = TriggerPolicy(rng=FixedRandom(draw=1))
        snap = self._snap(0.1, hr=65.0)
        assert policy.decide(snap, [], SensitivityMode.MEDIUM) is HapticKind.SAFE

    def test_no_positive_reinforcement_on_other_draws(self):
        policy = TriggerPolicy(rng=FixedRandom(draw=7))
        snap = self._snap(0.1, hr=65.0)
        assert policy.decide(snap, [], SensitivityMode.MEDIUM) is None

    def test_no_positive_reinforcement_when_not_safe(self):
        policy = TriggerPolicy(rng=FixedRandom(draw=1))
        snap = self._snap(0.1, hr=85.0)  # calm, not safe
        assert policy.decide(snap, [], SensitivityMode.MEDIUM) is None
