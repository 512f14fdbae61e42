"""
Exposure evaluation and stall detection.

Classifies how an exposure went relative to the effort-reserve target of the
stage it was trained under.  Compound lifts are judged mainly by the
reserve trend (they progress by load); accessory work is judged mainly by
whether every set reached the rep ceiling (it progresses by reps first).
"""

import logging
from typing import Callable, Sequence

from .config import DEFAULT_POLICY, INITIAL_STAGE, ProgressionPolicy
from .exercises.base import ExerciseDescriptor
from .models import Classification, Evaluation, Exposure, ExposureStats, Stage
from .stages import infer_stage, stage_effort_range
from .statistics import compute_exposure_stats

logger = logging.getLogger(__name__)


def _classify_compound(
    stats: ExposureStats,
    target: int,
    tol: float,
    rep_floor: int,
) -> Classification:
    """
    Compound rules, first match wins:

    1. avg RIR > target + tol                       → increase_load (too light)
    2. |avg RIR − target| ≤ tol, or no RIR logged   → add_reps
    3. min RIR < target − tol, or min reps < floor  → struggling
    4. otherwise                                    → add_reps
    """
    avg_rir = stats.avg_rir
    if avg_rir is not None and avg_rir > target + tol:
        return "increase_load"
    if avg_rir is None or abs(avg_rir - target) <= tol:
        return "add_reps"
    if stats.min_rir is not None and stats.min_rir < target - tol:
        return "struggling"
    if stats.min_reps is not None and stats.min_reps < rep_floor:
        return "struggling"
    return "add_reps"


def _classify_accessory(
    stats: ExposureStats,
    target: int,
    tol: float,
    rep_floor: int,
) -> Classification:
    """
    Accessory rules, first match wins:

    1. every set at the rep ceiling and avg RIR ≤ target + tol → increase_load
       (no RIR logged: reps alone decide)
    2. min reps < floor, or min RIR < target − tol             → struggling
    3. otherwise                                               → add_reps
    """
    within_reserve = stats.avg_rir is None or stats.avg_rir <= target + tol
    if stats.all_sets_at_ceiling and within_reserve:
        return "increase_load"
    if stats.min_reps is not None and stats.min_reps < rep_floor:
        return "struggling"
    if stats.min_rir is not None and stats.min_rir < target - tol:
        return "struggling"
    return "add_reps"


_CATEGORY_RULES: dict[str, Callable[[ExposureStats, int, float, int], Classification]] = {
    "compound": _classify_compound,
    "accessory": _classify_accessory,
}


def classify_stats(
    stats: ExposureStats,
    stage: Stage,
    category: str,
    rep_floor: int,
    policy: ProgressionPolicy = DEFAULT_POLICY,
) -> Classification:
    """
    Classify aggregated exposure statistics.

    Exposures without usable sets are always no_data; deload weeks are
    never judged for progression.

    Args:
        stats: Aggregated exposure statistics
        stage: Stage the exposure was trained under
        category: "compound" or "accessory" (anything else → accessory)
        rep_floor: Base rep-range minimum of the exercise
        policy: Tunable thresholds

    Returns:
        Classification
    """
    if stats.sets_with_data == 0:
        return "no_data"
    if stage == "deload":
        return "deload"

    target = stage_effort_range(stage)[0]
    rules = _CATEGORY_RULES.get(category, _classify_accessory)
    return rules(stats, target, policy.effort_tolerance, rep_floor)


def evaluate_exposure(
    exposure: Exposure,
    stage: Stage | None,
    category: str,
    exercise: ExerciseDescriptor,
    policy: ProgressionPolicy = DEFAULT_POLICY,
) -> Evaluation:
    """
    Classify one exposure.

    Args:
        exposure: Completed exposure
        stage: Stage it was trained under (None = unknown → build_1)
        category: "compound" or "accessory"
        exercise: Descriptor supplying the base rep range
        policy: Tunable thresholds

    Returns:
        Evaluation with classification, stats and the stage used
    """
    effective_stage: Stage = stage or INITIAL_STAGE  # type: ignore[assignment]
    stats = compute_exposure_stats(exposure, exercise.rep_max)
    classification = classify_stats(stats, effective_stage, category, exercise.rep_min, policy)
    logger.debug(
        "Evaluated %s in %s (%s): %s avg_rir=%s min_reps=%s",
        exposure.exercise_id,
        exposure.session_id,
        effective_stage,
        classification,
        stats.avg_rir,
        stats.min_reps,
    )
    return Evaluation(classification=classification, stats=stats, stage=effective_stage)


def evaluate_history(
    exposures: Sequence[Exposure],
    exercise: ExerciseDescriptor,
    policy: ProgressionPolicy = DEFAULT_POLICY,
) -> list[Evaluation]:
    """Evaluate each exposure (most-recent-first) against its own inferred stage."""
    category = exercise.effective_category
    return [
        evaluate_exposure(e, infer_stage(e), category, exercise, policy)
        for e in exposures
    ]


def detect_stall(
    classifications: Sequence[Classification],
    policy: ProgressionPolicy = DEFAULT_POLICY,
) -> bool:
    """
    True when the most recent exposures (most-recent-first) all struggled.

    With the default policy this means the last two classifications are both
    struggling; fewer classifications than that never count as a stall.
    """
    streak = policy.stall_streak
    recent = list(classifications[:streak])
    if len(recent) < streak:
        return False
    return all(c == "struggling" for c in recent)
