"""Symbolic haptic patterns for each nudge kind and sensitivity.

The core never touches device waveforms: it selects an ordered list of
``(symbol, offset_seconds)`` steps and leaves playback to the driver.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from mindful_agent.models import HapticKind, SensitivityMode


class PatternSymbol(str, Enum):
    """Device-independent pulse shapes understood by haptic drivers."""

    CLICK = "click"
    NOTIFICATION = "notification"
    DIRECTION_UP = "direction_up"
    DIRECTION_DOWN = "direction_down"
    START = "start"


class PatternStep(NamedTuple):
    symbol: PatternSymbol
    offset: float  # seconds after the first pulse


_STRESS_PATTERNS: dict[SensitivityMode, tuple[PatternStep, ...]] = {
    SensitivityMode.LIGHT: (PatternStep(PatternSymbol.NOTIFICATION, 0.0),),
    SensitivityMode.MEDIUM: (
        PatternStep(PatternSymbol.DIRECTION_UP, 0.0),
        PatternStep(PatternSymbol.DIRECTION_DOWN, 0.2),
    ),
    SensitivityMode.DEEP: (
        PatternStep(PatternSymbol.DIRECTION_UP, 0.0),
        PatternStep(PatternSymbol.DIRECTION_DOWN, 0.3),
        PatternStep(PatternSymbol.CLICK, 0.6),
    ),
}

_SAFE_PATTERN = (PatternStep(PatternSymbol.CLICK, 0.0),)

_MINDFULNESS_PATTERN = (
    PatternStep(PatternSymbol.START, 0.0),
    PatternStep(PatternSymbol.CLICK, 0.5),
)


def pattern_for(kind: HapticKind, sensitivity: SensitivityMode) -> list[PatternStep]:
    """Return the pulse sequence for *kind*; only stress scales with sensitivity."""
    if kind is HapticKind.STRESS:
        return list(_STRESS_PATTERNS[sensitivity])
    if kind is HapticKind.MINDFULNESS:
        return list(_MINDFULNESS_PATTERN)
    return list(_SAFE_PATTERN)
