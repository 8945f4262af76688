"""Rolling heart-rate aggregation and stress scoring.

The stress score blends two indicators computed over a short window of
the most recent samples:

* **Heart-rate elevation** — how far the newest sample sits above the
  wearer's long-window baseline, saturating at +30 bpm.
* **Low variability** — a simplified HRV proxy: the sample variance of
  the window, where variance below 20 bpm² reads as stress.

``stress = 0.7 * hr_stress + 0.3 * hrv_stress``
"""

from __future__ import annotations

import statistics
from collections import deque

import structlog

from mindful_agent.models import HeartRateSample

logger = structlog.get_logger(__name__)

WINDOW_SIZE = 10
MIN_SAMPLES_FOR_STRESS = 3
NEUTRAL_STRESS = 0.5
DEFAULT_BASELINE = 70.0

_HR_ELEVATION_SPAN = 30.0
_VARIANCE_CEILING = 20.0
_HR_WEIGHT = 0.7
_HRV_WEIGHT = 0.3


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def sample_variance(values: list[float]) -> float:
    """Sample variance (n - 1 denominator); 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return statistics.variance(values)


class SignalAggregator:
    """Sliding window of recent heart-rate samples plus a slow baseline.

    Usage::

        aggregator = SignalAggregator()
        aggregator.ingest(HeartRateSample(value=82.0))
        aggregator.current_stress   # 0.5 until three samples arrive
    """

    def __init__(
        self,
        baseline: float = DEFAULT_BASELINE,
        window_size: int = WINDOW_SIZE,
    ) -> None:
        self._recent: deque[float] = deque(maxlen=window_size)
        self._baseline = baseline
        self._current_stress = NEUTRAL_STRESS
        self._sample_count = 0

    # ── Read side ─────────────────────────────────────────────

    @property
    def recent_values(self) -> list[float]:
        """Window contents, oldest first."""
        return list(self._recent)

    @property
    def baseline(self) -> float:
        return self._baseline

    @property
    def current_stress(self) -> float:
        return self._current_stress

    @property
    def current_heart_rate(self) -> float:
        return self._recent[-1] if self._recent else 0.0

    @property
    def sample_count(self) -> int:
        """Samples ingested since start or the last reset (not bounded by the window)."""
        return self._sample_count

    # ── Write side ────────────────────────────────────────────

    def ingest(self, sample: HeartRateSample) -> float:
        """Add a sample to the window and return the recomputed stress."""
        self._recent.append(float(sample.value))
        self._sample_count += 1
        self._current_stress = self._compute_stress()
        return self._current_stress

    def recompute_baseline(self, long_window_average: float | None) -> None:
        """Replace the baseline with a long-window (7-day) average.

        Missing or non-positive averages leave the current baseline alone.
        """
        if long_window_average is None or long_window_average <= 0:
            logger.debug("signal.baseline_skipped", average=long_window_average)
            return
        self._baseline = float(long_window_average)
        logger.info("signal.baseline_updated", baseline=round(self._baseline, 1))
        # Stress depends on the baseline, keep it consistent with the window
        self._current_stress = self._compute_stress()

    def reset(self) -> None:
        self._recent.clear()
        self._current_stress = NEUTRAL_STRESS
        self._sample_count = 0

    # ── Internals ─────────────────────────────────────────────

    def _compute_stress(self) -> float:
        values = list(self._recent)
        if len(values) < MIN_SAMPLES_FOR_STRESS:
            return NEUTRAL_STRESS

        current_hr = values[-1]
        variance = sample_variance(values)

        hr_stress = _clamp((current_hr - self._baseline) / _HR_ELEVATION_SPAN)
        hrv_stress = _clamp((_VARIANCE_CEILING - variance) / _VARIANCE_CEILING)
        return _clamp(_HR_WEIGHT * hr_stress + _HRV_WEIGHT * hrv_stress)
