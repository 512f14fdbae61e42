"""
Session planning flow around the progression engine.

Ties the session store (history and set rows) to compute_plan():
ensuring there is an upcoming session, and recomputing the targets of a
planned session.  Targets are only ever written while a session is
planned; once started, its rows belong to the lifter.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from ..core.composer import compute_plan, format_rep_range, format_rir_range, plan_requires_update
from ..core.config import DEFAULT_POLICY, ProgressionPolicy
from ..core.exercises.base import ExerciseDescriptor, SessionTemplate
from ..core.exercises.registry import (
    TEMPLATE_REGISTRY,
    find_exercise,
    get_exercise,
    get_template,
    next_template_code,
)
from ..core.models import ComputedPlan, SetRecord, TrainingSession
from .session_store import SessionStateError, SessionStore

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Outcome of recomputing a planned session's targets."""

    session: TrainingSession
    plans: dict[str, ComputedPlan] = field(default_factory=dict)
    updated_exercises: list[str] = field(default_factory=list)


@dataclass
class UpcomingSession:
    """The session the lifter should do next, with context for display."""

    session: TrainingSession
    template: SessionTemplate | None
    previous: TrainingSession | None
    plans: dict[str, ComputedPlan] = field(default_factory=dict)
    updated_exercises: list[str] = field(default_factory=list)


def build_set_rows(template: SessionTemplate) -> list[SetRecord]:
    """
    Set rows for a template, carrying the catalog's base prescription.

    Args:
        template: Workout template

    Returns:
        One SetRecord per prescribed set, in exercise order
    """
    rows: list[SetRecord] = []
    for order, exercise_id in enumerate(template.exercise_ids):
        exercise = get_exercise(exercise_id)
        for set_number in range(1, exercise.sets + 1):
            rows.append(
                SetRecord(
                    exercise_id=exercise.exercise_id,
                    set_number=set_number,
                    exercise_name=exercise.display_name,
                    exercise_order=order,
                    target_reps=format_rep_range(exercise.rep_min, exercise.rep_max),
                    target_reps_min=exercise.rep_min,
                    target_reps_max=exercise.rep_max,
                    target_rir=format_rir_range(exercise.rir_min, exercise.rir_max),
                    target_rir_min=exercise.rir_min,
                    target_rir_max=exercise.rir_max,
                    rest_seconds=exercise.rest_seconds,
                )
            )
    return rows


def _descriptor_for(exercise_id: str, rows: list[SetRecord]) -> ExerciseDescriptor | None:
    """
    Catalog descriptor, or one rebuilt from stored rows for exercises that
    left the catalog (category unknown → accessory).
    """
    exercise = find_exercise(exercise_id)
    if exercise is not None:
        return exercise

    first = rows[0] if rows else None
    if first is None or first.target_reps_min is None or first.target_reps_max is None:
        return None
    logger.warning("Exercise %s is not in the catalog; planning it as accessory", exercise_id)
    return ExerciseDescriptor(
        exercise_id=exercise_id,
        display_name=first.exercise_name or exercise_id,
        sets=len(rows),
        rep_min=max(1, first.target_reps_min),
        rep_max=max(1, first.target_reps_min, first.target_reps_max),
        rest_seconds=first.rest_seconds,
        rest_min=first.rest_seconds,
        rest_max=first.rest_seconds,
    )


def refresh_session_plan(
    store: SessionStore,
    session_id: str,
    policy: ProgressionPolicy | None = None,
) -> RefreshResult:
    """
    Recompute the targets of a planned session.

    Each exercise's rows are written only when the computed plan differs
    from what is stored.

    Args:
        store: Session store
        session_id: Session to refresh
        policy: Tunable constants (default: DEFAULT_POLICY)

    Returns:
        RefreshResult

    Raises:
        SessionStateError: If the session is not planned
        SessionNotFoundError: If the session does not exist
    """
    if policy is None:
        policy = DEFAULT_POLICY

    session = store.get_session(session_id)
    if session.status != "planned":
        raise SessionStateError(
            f"Cannot refresh targets: session {session.id} is {session.status}, expected planned"
        )

    result = RefreshResult(session=session)
    for exercise_id in session.exercise_ids():
        rows = session.sets_for(exercise_id)
        exercise = _descriptor_for(exercise_id, rows)
        if exercise is None:
            logger.warning("Skipping %s: no catalog entry and no stored rep range", exercise_id)
            continue

        exposures = store.fetch_recent_exposures(
            exercise_id,
            session_limit=policy.history_session_window,
            exposure_limit=policy.exposure_window,
        )
        plan = compute_plan(exercise, exposures, policy)
        result.plans[exercise_id] = plan

        if plan_requires_update(plan, rows):
            session = store.replace_exercise_targets(session.id, exercise_id, plan)
            result.updated_exercises.append(exercise_id)

    result.session = session
    logger.debug(
        "Refreshed session %s: %s of %s exercises written",
        session.id,
        len(result.updated_exercises),
        len(result.plans),
    )
    return result


def ensure_upcoming_session(
    store: SessionStore,
    policy: ProgressionPolicy | None = None,
    today: str | None = None,
) -> UpcomingSession:
    """
    Return the session to do next, creating and planning it if needed.

    1. An in-progress session is returned untouched.
    2. Otherwise the earliest planned session is refreshed (rows rebuilt
       from its template first if it has none).
    3. Otherwise a new planned session is created from the workout after
       the last completed one, and refreshed.

    Args:
        store: Session store
        policy: Tunable constants (default: DEFAULT_POLICY)
        today: ISO date for a newly created session (default: today)

    Returns:
        UpcomingSession
    """
    previous = store.last_completed()

    in_progress = store.find_first("in_progress")
    if in_progress is not None:
        return UpcomingSession(
            session=in_progress,
            template=TEMPLATE_REGISTRY.get(in_progress.template_code),
            previous=previous,
        )

    planned = store.find_first("planned")
    if planned is None:
        code = next_template_code(previous.template_code if previous else None)
        planned = store.create_session(
            code,
            build_set_rows(get_template(code)),
            today or date.today().isoformat(),
        )
    elif not planned.sets and planned.template_code in TEMPLATE_REGISTRY:
        planned = store.replace_sets(planned.id, build_set_rows(get_template(planned.template_code)))

    refreshed = refresh_session_plan(store, planned.id, policy)
    return UpcomingSession(
        session=refreshed.session,
        template=TEMPLATE_REGISTRY.get(refreshed.session.template_code),
        previous=previous,
        plans=refreshed.plans,
        updated_exercises=refreshed.updated_exercises,
    )
