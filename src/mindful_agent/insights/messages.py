"""Short encouragement lines shown alongside acknowledgment prompts."""

from __future__ import annotations

import random

FALLBACK_MESSAGE = "Stay mindful! 🌟"

POSITIVE_MESSAGES = (
    "Take a deep breath 🌸",
    "You're doing great! 💪",
    "Stay present, stay calm 🧘",
    "This moment is yours ✨",
    "Breathe in peace, breathe out stress 🌊",
    "You've got this! 🌟",
    "Find your center 🎯",
    "Be kind to yourself today 💕",
)


def random_positive_message(
    rng: random.Random | None = None,
    messages: tuple[str, ...] = POSITIVE_MESSAGES,
) -> str:
    if not messages:
        return FALLBACK_MESSAGE
    return (rng or random).choice(messages)
