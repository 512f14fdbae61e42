"""
Exposure statistics.

Reduces the logged sets of one exposure to aggregate numbers.  Pure
functions; missing data degrades to None / zero, never to an error.
"""

import math
from typing import Sequence

from .models import Exposure, ExposureStats, SetRecord


def coerce_load(value: object) -> float | None:
    """
    Convert a logged load to a float.

    Args:
        value: Raw logged load (number, numeric string, or None)

    Returns:
        The load as float, or None if missing, not numeric or not finite
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _mean(values: Sequence[int]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def compute_set_stats(sets: Sequence[SetRecord], rep_ceiling: int) -> ExposureStats:
    """
    Aggregate a sequence of set rows.

    Only non-null values enter the reps / RIR / load arrays.
    ``all_sets_at_ceiling`` requires at least one logged rep count and every
    logged count ≥ rep_ceiling.  ``sets_with_data`` is the larger of the reps
    and RIR array lengths.

    Args:
        sets: Set rows of one exposure
        rep_ceiling: Base rep-range maximum of the exercise

    Returns:
        ExposureStats
    """
    reps = [s.performed_reps for s in sets if s.performed_reps is not None]
    rirs = [s.performed_rir for s in sets if s.performed_rir is not None]
    loads = [load for load in (coerce_load(s.weight) for s in sets) if load is not None]

    return ExposureStats(
        avg_reps=_mean(reps),
        min_reps=min(reps) if reps else None,
        max_reps=max(reps) if reps else None,
        avg_rir=_mean(rirs),
        min_rir=min(rirs) if rirs else None,
        max_rir=max(rirs) if rirs else None,
        all_sets_at_ceiling=bool(reps) and all(r >= rep_ceiling for r in reps),
        sets_with_data=max(len(reps), len(rirs)),
        max_load=max(loads) if loads else None,
    )


def compute_exposure_stats(exposure: Exposure, rep_ceiling: int) -> ExposureStats:
    """Aggregate the sets of one exposure (see compute_set_stats)."""
    return compute_set_stats(exposure.sets, rep_ceiling)


def set_volume(sets: Sequence[SetRecord]) -> float:
    """Sum of load × reps over sets that logged both."""
    total = 0.0
    for s in sets:
        load = coerce_load(s.weight)
        if load is not None and s.performed_reps is not None:
            total += load * s.performed_reps
    return total


def exposure_volume(exposure: Exposure) -> float:
    """Training volume of one exposure (see set_volume)."""
    return set_volume(exposure.sets)
