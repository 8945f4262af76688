"""Haptics sub-package — symbolic pulse patterns and driver fan-out."""

from mindful_agent.haptics.drivers import (
    HapticDispatcher,
    HapticDriver,
    HapticPlayer,
    create_dispatcher,
)
from mindful_agent.haptics.patterns import PatternStep, PatternSymbol, pattern_for

__all__ = [
    "HapticDispatcher",
    "HapticDriver",
    "HapticPlayer",
    "PatternStep",
    "PatternSymbol",
    "create_dispatcher",
    "pattern_for",
]
