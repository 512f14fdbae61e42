"""
Load recommendation.

Turns the last known load and the verdict on the last exposure into the
next session's recommended load, rounded to the smallest plate step of the
exercise category.
"""

import math
from typing import Sequence

from .config import DEFAULT_POLICY, ProgressionPolicy
from .models import Classification, ExposureStats, Stage


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negatives."""
    return math.floor(value + 0.5)


def round_to_increment(load: float, increment: float) -> float:
    """
    Round a load to the nearest multiple of ``increment``, floored at zero.

    Args:
        load: Raw load in kg
        increment: Plate step in kg (must be positive)

    Returns:
        Rounded load
    """
    if increment <= 0:
        raise ValueError("increment must be positive")
    steps = max(0, round_half_up(load / increment))
    return round(steps * increment, 4)


def last_known_load(stats: Sequence[ExposureStats]) -> float | None:
    """Max load of the most recent exposure (most-recent-first) that logged any load."""
    for s in stats:
        if s.max_load is not None:
            return s.max_load
    return None


def recommend_load(
    category: str,
    stage: Stage,
    classification: Classification | None,
    last_load: float | None,
    policy: ProgressionPolicy = DEFAULT_POLICY,
) -> float | None:
    """
    Recommended load for the next session.

    Policy (first match wins):
    - upcoming deload         → last × 0.75
    - increase_load           → last + one increment
    - struggling              → last × 0.95
    - anything else           → last (rounded for consistency)

    Args:
        category: "compound" (2.5 kg steps) or "accessory" (1.25 kg steps)
        stage: Upcoming stage
        classification: Verdict on the most recent exposure (None = no history)
        last_load: Last known max load, None if never logged
        policy: Tunable factors and increments

    Returns:
        Rounded load in kg, or None without a historical load
    """
    if last_load is None:
        return None

    increment = policy.increment_for(category)

    if stage == "deload":
        raw = last_load * policy.deload_load_factor
    elif classification == "increase_load":
        raw = last_load + increment
    elif classification == "struggling":
        raw = last_load * policy.struggle_load_factor
    else:
        raw = last_load

    return round_to_increment(raw, increment)
