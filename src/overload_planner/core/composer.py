"""
Plan composition: the single entry point of the progression engine.

compute_plan() runs the whole pipeline for one exercise:

    exposures → stats → evaluation (per inferred stage) → stall check
              → upcoming stage → load → rep/RIR targets + goal/notes

and plan_requires_update() decides whether the stored set rows actually
need to be rewritten.  Everything here is pure; persistence belongs to
io/session_service.py.
"""

import dataclasses
import logging
from typing import Sequence

from .config import DEFAULT_POLICY, ProgressionPolicy
from .evaluation import detect_stall, evaluate_history
from .exercises.base import ExerciseDescriptor
from .loads import last_known_load, recommend_load, round_half_up
from .models import Classification, ComputedPlan, Evaluation, Exposure, SetRecord, Stage
from .stages import last_trained_stage, stage_effort_range, stage_label, upcoming_stage

logger = logging.getLogger(__name__)

_WEIGHT_EPSILON = 1e-6

_CLASSIFICATION_LABELS: dict[str, str] = {
    "increase_load": "ready for more load",
    "add_reps": "keep building reps",
    "struggling": "struggled",
    "deload": "recovery week",
    "no_data": "nothing logged",
}


# =============================================================================
# Targets
# =============================================================================


def deload_rep_range(
    rep_min: int,
    rep_max: int,
    policy: ProgressionPolicy = DEFAULT_POLICY,
) -> tuple[int, int]:
    """
    Shrunk rep range for a deload week.

    min = round(base_min × 0.6), at least 1
    max = max(min, round(base_max × 0.6))

    e.g. (8, 12) → (5, 7)
    """
    low = max(policy.deload_rep_floor, round_half_up(rep_min * policy.deload_rep_factor))
    high = max(low, round_half_up(rep_max * policy.deload_rep_factor))
    return low, high


def format_rep_range(rep_min: int, rep_max: int) -> str:
    """'8-12', or '8' when both bounds agree."""
    if rep_min == rep_max:
        return str(rep_min)
    return f"{rep_min}-{rep_max}"


def format_rir_range(rir_min: int, rir_max: int) -> str:
    """'RIR 4-5', or 'RIR 3' when both bounds agree."""
    if rir_min == rir_max:
        return f"RIR {rir_min}"
    return f"RIR {rir_min}-{rir_max}"


def format_load(load_kg: float) -> str:
    """'102.5 kg', '100 kg'."""
    return f"{load_kg:g} kg"


# =============================================================================
# Goal and notes text
# =============================================================================


def _load_phrase(recommended: float | None, exercise: ExerciseDescriptor) -> str | None:
    """Load to name in the goal: recommendation, else catalog starting load."""
    if recommended is not None:
        return format_load(recommended)
    if exercise.starting_load_kg is not None:
        return format_load(exercise.starting_load_kg)
    return None


def compose_goal(
    stage: Stage,
    classification: Classification | None,
    stall_detected: bool,
    load_text: str | None,
    reps_text: str,
    rir_text: str,
    rep_max: int,
) -> str:
    """
    Short coaching sentence selected by (upcoming stage, last verdict).

    Deload goals always start with the deload marker so the stage can be
    read back from the text alone.
    """
    load = load_text or "your current load"

    if stage == "deload":
        if stall_detected:
            return (
                f"Deload (stall detected): {load} for {reps_text} reps at {rir_text}. "
                "Two tough sessions in a row, recover before pushing again."
            )
        return f"Deload week: {load} for {reps_text} reps at {rir_text}. Keep every rep crisp."

    if classification is None:
        if load_text is None:
            return f"First session: choose a load you can lift for {reps_text} reps at {rir_text}."
        return f"First session: {load} for {reps_text} reps at {rir_text}."

    if classification == "increase_load":
        return f"Increase to {load} for {reps_text} reps at {rir_text}."
    if classification == "struggling":
        return f"Back off to {load} and own {reps_text} reps at {rir_text}."
    if classification == "add_reps":
        return f"Stay at {load} and add reps toward {rep_max} at {rir_text}."
    return f"Continue with {load} for {reps_text} reps at {rir_text}."


def compose_notes(
    stage: Stage,
    rir_text: str,
    latest: Evaluation | None,
    stall_detected: bool,
    last_load: float | None,
    recommended: float | None,
    exercise: ExerciseDescriptor,
) -> str:
    """Longer explanation: stage, last-session summary, load change, cue."""
    parts = [f"{stage_label(stage)} stage, target {rir_text}."]

    if latest is not None:
        stats = latest.stats
        summary = [f"{stats.sets_with_data} sets logged"]
        if stats.avg_reps is not None:
            summary.append(f"avg {stats.avg_reps:.1f} reps")
        if stats.avg_rir is not None:
            summary.append(f"avg RIR {stats.avg_rir:.1f}")
        parts.append(
            f"Last session ({stage_label(latest.stage)}): {', '.join(summary)}"
            f" - {_CLASSIFICATION_LABELS[latest.classification]}."
        )
    else:
        parts.append("No history for this exercise yet.")

    if stall_detected:
        parts.append("Two struggling sessions in a row forced a recovery week.")

    if recommended is not None and last_load is not None:
        if abs(recommended - last_load) > _WEIGHT_EPSILON:
            parts.append(f"Load {format_load(last_load)} -> {format_load(recommended)}.")
        else:
            parts.append(f"Load stays at {format_load(recommended)}.")

    if exercise.notes:
        parts.append(exercise.notes)

    return " ".join(parts)


# =============================================================================
# Public API
# =============================================================================


def compute_plan(
    exercise: ExerciseDescriptor,
    recent_exposures: Sequence[Exposure],
    policy: ProgressionPolicy | None = None,
) -> ComputedPlan:
    """
    Compute the next session's targets for one exercise.

    Args:
        exercise: Catalog descriptor (category and base rep range)
        recent_exposures: Completed exposures, most recent first
        policy: Tunable constants (default: DEFAULT_POLICY)

    Returns:
        ComputedPlan
    """
    if policy is None:
        policy = DEFAULT_POLICY

    exposures = list(recent_exposures)[: policy.exposure_window]
    category = exercise.effective_category

    evaluations = evaluate_history(exposures, exercise, policy)
    latest = evaluations[0] if evaluations else None
    classification = latest.classification if latest is not None else None

    stall = detect_stall([e.classification for e in evaluations], policy)
    stage = upcoming_stage(last_trained_stage(exposures), stall)

    last_load = last_known_load([e.stats for e in evaluations])
    recommended = recommend_load(category, stage, classification, last_load, policy)

    if stage == "deload":
        rep_min, rep_max = deload_rep_range(exercise.rep_min, exercise.rep_max, policy)
    else:
        rep_min, rep_max = exercise.rep_min, exercise.rep_max
    rir_min, rir_max = stage_effort_range(stage)

    reps_text = format_rep_range(rep_min, rep_max)
    rir_text = format_rir_range(rir_min, rir_max)

    goal = compose_goal(
        stage,
        classification,
        stall,
        _load_phrase(recommended, exercise),
        reps_text,
        rir_text,
        rep_max,
    )
    notes = compose_notes(stage, rir_text, latest, stall, last_load, recommended, exercise)

    logger.debug(
        "Plan for %s: stage=%s last=%s stall=%s load=%s",
        exercise.exercise_id,
        stage,
        classification,
        stall,
        recommended,
    )

    return ComputedPlan(
        stage=stage,
        classification=classification,
        stall_detected=stall,
        rep_min=rep_min,
        rep_max=rep_max,
        rir_min=rir_min,
        rir_max=rir_max,
        reps_text=reps_text,
        rir_text=rir_text,
        recommended_weight=recommended,
        last_load=last_load,
        goal=goal,
        notes=notes,
    )


def _weights_differ(a: float | None, b: float | None) -> bool:
    if a is None or b is None:
        return a is not b
    return abs(a - b) > _WEIGHT_EPSILON


def set_matches_plan(plan: ComputedPlan, s: SetRecord) -> bool:
    """True when every target field of a stored set row equals the plan."""
    return (
        s.target_reps == plan.reps_text
        and s.target_reps_min == plan.rep_min
        and s.target_reps_max == plan.rep_max
        and s.target_rir == plan.rir_text
        and s.target_rir_min == plan.rir_min
        and s.target_rir_max == plan.rir_max
        and not _weights_differ(s.recommended_weight, plan.recommended_weight)
        and s.goal == plan.goal
        and s.plan_notes == plan.notes
    )


def plan_requires_update(plan: ComputedPlan, stored_sets: Sequence[SetRecord]) -> bool:
    """
    Whether writing ``plan`` onto ``stored_sets`` would change anything.

    No rows means nothing to write.
    """
    return any(not set_matches_plan(plan, s) for s in stored_sets)


def apply_plan_to_sets(plan: ComputedPlan, sets: Sequence[SetRecord]) -> list[SetRecord]:
    """Copies of ``sets`` with every target field overwritten by the plan."""
    return [
        dataclasses.replace(
            s,
            target_reps=plan.reps_text,
            target_reps_min=plan.rep_min,
            target_reps_max=plan.rep_max,
            target_rir=plan.rir_text,
            target_rir_min=plan.rir_min,
            target_rir_max=plan.rir_max,
            recommended_weight=plan.recommended_weight,
            goal=plan.goal,
            plan_notes=plan.notes,
        )
        for s in sets
    ]
