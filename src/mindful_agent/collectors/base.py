"""Abstract base class for health data sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class HealthSource(ABC):
    """Contract that every platform health-data source must implement.

    Heart-rate samples are *pushed* into the agent (usually through the
    :class:`~mindful_agent.streaming.pipeline.StreamPipeline`); the source
    additionally answers two on-demand queries used by the core.
    """

    name: str = "base"

    @abstractmethod
    async def request_authorization(self) -> bool:
        """Ask the platform for read access.  Return ``True`` when granted."""

    @abstractmethod
    async def average_heart_rate(self, start: datetime, end: datetime) -> float | None:
        """Mean heart rate (bpm) over ``[start, end]``, or ``None`` without data.

        Parameters
        ----------
        start:
            Inclusive range start (the baseline uses a 7-day window).
        end:
            Inclusive range end, normally *now*.
        """

    @abstractmethod
    async def is_active(self, now: datetime) -> bool:
        """Whether a workout or comparable physical activity is in progress."""

    async def close(self) -> None:
        """Release any resources held by the source."""
