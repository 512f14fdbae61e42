"""
Periodization stages: inference from history and cyclic sequencing.

The stage an exposure was trained under is never stored as its own field.
It is read back from the effort-reserve target written onto the exposure's
set rows at planning time, with the deload marker in the goal text as a
fallback for rows that lost their numeric targets.
"""

import logging
import re

from .config import (
    DELOAD_GOAL_MARKER,
    INITIAL_STAGE,
    STAGE_EFFORT_TARGETS,
    STAGE_LABELS,
    STAGE_SEQUENCE,
)
from .models import Exposure, SetRecord, Stage

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"\d+")


def stage_effort_range(stage: Stage) -> tuple[int, int]:
    """(min, max) reps-in-reserve target of a stage."""
    return STAGE_EFFORT_TARGETS[stage]


def stage_label(stage: Stage) -> str:
    """Human-readable stage name, e.g. 'Build 2'."""
    return STAGE_LABELS[stage]


def stage_from_target(value: int) -> Stage | None:
    """
    Map an assigned RIR target back to its stage.

    Buckets in priority order: ≥4 deload, ≤1 build_3, 2 build_2, 3 build_1.
    """
    if value >= 4:
        return "deload"
    if value <= 1:
        return "build_3"
    if value == 2:
        return "build_2"
    if value == 3:
        return "build_1"
    return None


def assigned_effort_target(s: SetRecord) -> int | None:
    """
    RIR target originally assigned to a set row.

    Prefers target_rir_min, then target_rir_max, then the first integer in
    the rendered target text (e.g. "RIR 2").
    """
    if s.target_rir_min is not None:
        return s.target_rir_min
    if s.target_rir_max is not None:
        return s.target_rir_max
    match = _INT_RE.search(s.target_rir or "")
    if match:
        return int(match.group())
    return None


def infer_stage(exposure: Exposure) -> Stage | None:
    """
    Recover the stage an exposure was trained under.

    The first set (in order) carrying a recognizable target wins.  If no set
    carries one, a deload marker in any set's goal text means deload.

    Args:
        exposure: Completed exposure

    Returns:
        Inferred stage, or None if unknown
    """
    for s in exposure.sets:
        target = assigned_effort_target(s)
        if target is None:
            continue
        stage = stage_from_target(target)
        if stage is not None:
            return stage

    marker = DELOAD_GOAL_MARKER.lower()
    if any(marker in (s.goal or "").lower() for s in exposure.sets):
        return "deload"

    logger.debug(
        "No recognizable stage on exposure %s/%s", exposure.session_id, exposure.exercise_id
    )
    return None


def next_stage(stage: Stage | None) -> Stage:
    """Cyclic successor; None (no history) starts the cycle at build_1."""
    if stage is None:
        return INITIAL_STAGE  # type: ignore[return-value]
    index = STAGE_SEQUENCE.index(stage)
    return STAGE_SEQUENCE[(index + 1) % len(STAGE_SEQUENCE)]  # type: ignore[return-value]


def last_trained_stage(exposures: list[Exposure]) -> Stage | None:
    """
    Stage of the most recent exposure.

    None when there is no history; an exposure whose stage cannot be
    recognized counts as build_1.
    """
    if not exposures:
        return None
    return infer_stage(exposures[0]) or INITIAL_STAGE  # type: ignore[return-value]


def upcoming_stage(last_stage: Stage | None, stall_detected: bool) -> Stage:
    """Stage for the next session: cyclic successor, forced to deload on a stall."""
    if stall_detected:
        return "deload"
    return next_stage(last_stage)
