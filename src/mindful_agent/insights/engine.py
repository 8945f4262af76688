"""Insight engine — heuristic pattern mining over the haptic event log.

Four independent analyses run on each (throttled) pass:

=================  ==============================================  ==========
Analysis           Precondition                                    Confidence
=================  ==============================================  ==========
Timing             > 5 acknowledged events                         count-based
Response pattern   >= 10 events among the 20 newest                0.8 / 0.9
Stress pattern     > 5 stress events                               0.75 / 0.8
Recommendation     >= 10 of 30 newest, >= 5 timed acknowledgments   0.7 / 0.8
=================  ==============================================  ==========

An unmet precondition simply means "no insight this round".  Each
analysis is exception-isolated so one failure never hides the others.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Callable, Sequence

import structlog

from mindful_agent.models import AIInsight, HapticEvent, HapticKind, InsightKind

logger = structlog.get_logger(__name__)

DEFAULT_ANALYSIS_INTERVAL = 3600.0
OPTIMAL_HOURS_LIMIT = 3

_MIN_ACKNOWLEDGED_FOR_TIMING = 5
_RESPONSE_WINDOW = 20
_RECOMMENDATION_WINDOW = 30
_MIN_WINDOW_EVENTS = 10
_MIN_STRESS_EVENTS = 5
_MIN_TIMED_RESPONSES = 5
_HIGH_HR_BPM = 90.0


def format_hour(hour: int) -> str:
    """Render an hour of day as ``"9 AM"`` / ``"2 PM"``."""
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12} {suffix}"


def _hour_counts(events: Sequence[HapticEvent]) -> Counter[int]:
    return Counter(e.timestamp.hour for e in events if e.acknowledged)


def _ranked_hours(counts: Counter[int]) -> list[tuple[int, int]]:
    """(hour, count) pairs by descending count, ties by ascending hour."""
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def _mean(values: Sequence[float]) -> float | None:
    return sum(values) / len(values) if values else None


class InsightEngine:
    """Throttled batch analysis producing :class:`AIInsight` objects.

    ``analyze`` is pure with respect to the event log: it returns the new
    insights and leaves storing them to the caller.
    """

    def __init__(
        self,
        analysis_interval: float = DEFAULT_ANALYSIS_INTERVAL,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._interval = analysis_interval
        self._clock = clock
        self._last_analysis: datetime | None = None

    @property
    def last_analysis(self) -> datetime | None:
        return self._last_analysis

    def is_due(self, now: datetime | None = None) -> bool:
        if self._last_analysis is None:
            return True
        now = now or self._clock()
        return (now - self._last_analysis).total_seconds() >= self._interval

    def analyze(self, events: Sequence[HapticEvent]) -> list[AIInsight]:
        """Run every analysis unless one ran within the analysis interval.

        The last-run timestamp is stamped on entry, so a pass that yields
        nothing still counts against the throttle.  ``events`` is
        newest-first.
        """
        now = self._clock()
        if not self.is_due(now):
            return []
        self._last_analysis = now

        insights: list[AIInsight] = []
        for analysis in (
            self._timing_insights,
            self._response_insights,
            self._stress_insights,
            self._recommendation_insights,
        ):
            try:
                insights.extend(analysis(events, now))
            except Exception:
                logger.exception("insights.analysis_error", analysis=analysis.__name__)

        logger.info("insights.analyzed", events=len(events), generated=len(insights))
        return insights

    def get_optimal_reminder_times(self, events: Sequence[HapticEvent]) -> list[int]:
        """Top hours of day by acknowledged-event count (unthrottled)."""
        ranked = _ranked_hours(_hour_counts(events))
        return [hour for hour, _ in ranked[:OPTIMAL_HOURS_LIMIT]]

    # ── Analyses ──────────────────────────────────────────────

    def _timing_insights(self, events: Sequence[HapticEvent], now: datetime) -> list[AIInsight]:
        acknowledged = [e for e in events if e.acknowledged]
        if len(acknowledged) <= _MIN_ACKNOWLEDGED_FOR_TIMING:
            return []

        best_hour, count = _ranked_hours(_hour_counts(acknowledged))[0]
        return [
            AIInsight(
                message=(
                    f"You respond best to reminders around {format_hour(best_hour)}. "
                    "Consider scheduling more reminders during this time."
                ),
                confidence=min(0.9, count / len(acknowledged) + 0.3),
                timestamp=now,
                kind=InsightKind.TIMING,
            )
        ]

    def _response_insights(self, events: Sequence[HapticEvent], now: datetime) -> list[AIInsight]:
        recent = list(events[:_RESPONSE_WINDOW])
        if len(recent) < _MIN_WINDOW_EVENTS:
            return []

        rate = sum(1 for e in recent if e.acknowledged) / len(recent)
        avg_response = _mean([e.response_time for e in recent if e.response_time is not None])

        if rate < 0.3:
            return [
                AIInsight(
                    message=(
                        f"Low response rate ({int(rate * 100)}%). Try reducing frequency "
                        "or adjusting sensitivity to Light mode."
                    ),
                    confidence=0.8,
                    timestamp=now,
                    kind=InsightKind.RESPONSE,
                )
            ]
        if rate > 0.8 and avg_response is not None and avg_response < 5.0:
            return [
                AIInsight(
                    message=(
                        f"Great engagement! ({int(rate * 100)}% response rate). "
                        "You might benefit from more frequent reminders."
                    ),
                    confidence=0.9,
                    timestamp=now,
                    kind=InsightKind.RESPONSE,
                )
            ]
        return []

    def _stress_insights(self, events: Sequence[HapticEvent], now: datetime) -> list[AIInsight]:
        stress_events = [e for e in events if e.kind is HapticKind.STRESS]
        if len(stress_events) <= _MIN_STRESS_EVENTS:
            return []

        total = len(stress_events)
        insights: list[AIInsight] = []

        weekday = sum(1 for e in stress_events if e.timestamp.weekday() < 5)
        if weekday / total > 0.7:
            insights.append(
                AIInsight(
                    message=(
                        "Most stress occurs on weekdays. Consider adding more morning "
                        "mindfulness sessions before work."
                    ),
                    confidence=0.75,
                    timestamp=now,
                    kind=InsightKind.STRESS,
                )
            )

        high_hr = sum(1 for e in stress_events if e.heart_rate > _HIGH_HR_BPM)
        if high_hr / total > 0.6:
            insights.append(
                AIInsight(
                    message=(
                        "Stress often correlates with elevated heart rate. "
                        "Deep breathing exercises may help."
                    ),
                    confidence=0.8,
                    timestamp=now,
                    kind=InsightKind.STRESS,
                )
            )
        return insights

    def _recommendation_insights(
        self, events: Sequence[HapticEvent], now: datetime,
    ) -> list[AIInsight]:
        recent = list(events[:_RECOMMENDATION_WINDOW])
        if len(recent) < _MIN_WINDOW_EVENTS:
            return []

        times = [e.response_time for e in recent if e.acknowledged and e.response_time is not None]
        if len(times) < _MIN_TIMED_RESPONSES:
            return []

        avg_response = sum(times) / len(times)
        if avg_response > 10.0:
            return [
                AIInsight(
                    message=(
                        "Slow response times suggest you might benefit from gentler, "
                        "less frequent reminders."
                    ),
                    confidence=0.7,
                    timestamp=now,
                    kind=InsightKind.RECOMMENDATION,
                )
            ]
        if avg_response < 2.0:
            return [
                AIInsight(
                    message="Quick responses! You might handle more frequent mindfulness reminders well.",
                    confidence=0.8,
                    timestamp=now,
                    kind=InsightKind.RECOMMENDATION,
                )
            ]
        return []
