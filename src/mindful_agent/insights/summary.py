"""Summary helpers — pandas-based statistics over the haptic event log."""

from __future__ import annotations

from typing import Any, Sequence

import pandas as pd

from mindful_agent.models import HapticEvent, HapticKind


def events_to_dataframe(events: Sequence[HapticEvent]) -> pd.DataFrame:
    """Load haptic events into a :class:`pandas.DataFrame`.

    Columns: ``kind``, ``acknowledged``, ``response_time``, ``heart_rate``,
    ``stress_level``.  The ``timestamp`` column is set as the index and the
    frame is sorted oldest first for time-series work.
    """
    records = [
        {
            "id": e.id,
            "timestamp": e.timestamp,
            "kind": e.kind.value,
            "acknowledged": e.acknowledged,
            "response_time": e.response_time,
            "heart_rate": e.heart_rate,
            "stress_level": e.stress_level,
        }
        for e in events
    ]
    df = pd.DataFrame(records)
    if not df.empty:
        df["timestamp"] = pd.to_datetime(df["timestamp"])
        df["response_time"] = df["response_time"].astype(float)
        df = df.set_index("timestamp").sort_index()
    return df


def compute_event_summary(events: Sequence[HapticEvent]) -> dict[str, Any]:
    """Headline numbers for the activity log.

    ``response_rate_pct`` is truncated to a whole percent and
    ``avg_response_time`` is rounded to one decimal (``None`` when no event
    carries a response time).
    """
    df = events_to_dataframe(events)
    by_kind = {kind.value: 0 for kind in HapticKind}
    if df.empty:
        return {
            "count": 0,
            "acknowledged": 0,
            "response_rate_pct": 0,
            "avg_response_time": None,
            "by_kind": by_kind,
        }

    acknowledged = int(df["acknowledged"].sum())
    times = df["response_time"].dropna()
    by_kind.update({str(k): int(v) for k, v in df["kind"].value_counts().items()})

    return {
        "count": int(len(df)),
        "acknowledged": acknowledged,
        "response_rate_pct": int(acknowledged / len(df) * 100),
        "avg_response_time": round(float(times.mean()), 1) if not times.empty else None,
        "by_kind": by_kind,
    }


def stress_by_hour(events: Sequence[HapticEvent]) -> pd.DataFrame:
    """Mean stress level and event count per hour of day."""
    df = events_to_dataframe(events)
    if df.empty:
        return df
    grouped = df.groupby(df.index.hour)
    return grouped.agg(
        stress_mean=("stress_level", "mean"),
        heart_rate_mean=("heart_rate", "mean"),
        count=("stress_level", "count"),
    )
