"""Trigger policy — decides whether (and which) haptic nudge to fire."""

from __future__ import annotations

import random
from typing import Sequence

import structlog

from mindful_agent.models import (
    HapticEvent,
    HapticKind,
    HealthSnapshot,
    SensitivityMode,
    UserStatus,
)

logger = structlog.get_logger(__name__)

DEFAULT_COOLDOWN_SECONDS = 300.0
POSITIVE_REINFORCEMENT_ODDS = 10  # one draw in ten
_SAFE_STRESS_BELOW = 0.3


class TriggerPolicy:
    """Stateless-per-call decision function with an injectable random source.

    Rules, evaluated in order:

    1. **Cooldown** — nothing fires within ``cooldown_seconds`` of the
       newest recorded event.
    2. **Activity** — nothing fires while a workout is in progress.
    3. **Stress** — fire ``STRESS`` when the stress score exceeds the
       sensitivity threshold.
    4. **Positive reinforcement** — when the wearer is ``SAFE`` with low
       stress, fire ``SAFE`` on a one-in-ten random draw.

    ``recent_events`` is expected newest-first, as held by the event store.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
    ) -> None:
        self._rng = rng or random.Random()
        self._cooldown = cooldown_seconds

    def decide(
        self,
        snapshot: HealthSnapshot,
        recent_events: Sequence[HapticEvent],
        sensitivity: SensitivityMode,
    ) -> HapticKind | None:
        now = snapshot.timestamp

        if recent_events:
            elapsed = (now - recent_events[0].timestamp).total_seconds()
            if elapsed < self._cooldown:
                logger.debug("trigger_policy.cooldown", elapsed=round(elapsed, 1))
                return None

        if snapshot.is_active:
            logger.debug("trigger_policy.suppressed_active")
            return None

        if snapshot.stress_level > sensitivity.threshold:
            logger.info(
                "trigger_policy.stress",
                stress=round(snapshot.stress_level, 3),
                threshold=sensitivity.threshold,
            )
            return HapticKind.STRESS

        if snapshot.status == UserStatus.SAFE and snapshot.stress_level < _SAFE_STRESS_BELOW:
            if self._rng.randint(1, POSITIVE_REINFORCEMENT_ODDS) == 1:
                logger.info("trigger_policy.positive_reinforcement")
                return HapticKind.SAFE

        return None
