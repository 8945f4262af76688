"""Status classification — maps stress and heart rate to a user status."""

from __future__ import annotations

from mindful_agent.models import UserStatus

RELAX_STRESS_ABOVE = 0.7
RELAX_HEART_RATE_ABOVE = 100.0
SAFE_STRESS_BELOW = 0.3
SAFE_HEART_RATE_BELOW = 80.0


def classify(stress: float, heart_rate: float) -> UserStatus:
    """Return the discrete status for a (stress, heart rate) pair.

    The relax rule is checked first: a high heart rate alone forces
    ``NEED_TO_RELAX`` even when the stress score is low.
    """
    if stress > RELAX_STRESS_ABOVE or heart_rate > RELAX_HEART_RATE_ABOVE:
        return UserStatus.NEED_TO_RELAX
    if stress < SAFE_STRESS_BELOW and heart_rate < SAFE_HEART_RATE_BELOW:
        return UserStatus.SAFE
    return UserStatus.CALM
