"""Planning commands: next, refresh, explain, catalog."""

import json
from typing import Annotated

import typer

from ...core.composer import compute_plan
from ...core.engine.config_loader import load_policy
from ...core.evaluation import evaluate_history
from ...core.exercises.registry import EXERCISE_REGISTRY, TEMPLATE_REGISTRY, get_exercise
from ...core.models import ComputedPlan, TrainingSession
from ...io.serializers import ValidationError
from ...io.session_service import ensure_upcoming_session, refresh_session_plan
from ...io.session_store import SessionNotFoundError, SessionStateError
from .. import views
from ..app import StorePathOption, app, get_store
from .sessions import SessionOption, _require_store, _resolve_session


def _plan_to_dict(plan: ComputedPlan) -> dict:
    return {
        "stage": plan.stage,
        "last_classification": plan.classification,
        "stall_detected": plan.stall_detected,
        "target_reps": plan.reps_text,
        "target_rir": plan.rir_text,
        "recommended_weight": plan.recommended_weight,
        "last_load": plan.last_load,
        "goal": plan.goal,
        "notes": plan.notes,
    }


def _session_to_json(session: TrainingSession, plans: dict[str, ComputedPlan]) -> dict:
    exercises = []
    for exercise_id in session.exercise_ids():
        rows = session.sets_for(exercise_id)
        plan = plans.get(exercise_id)
        exercises.append({
            "exercise_id": exercise_id,
            "name": rows[0].exercise_name,
            "sets": len(rows),
            "target_reps": rows[0].target_reps,
            "target_rir": rows[0].target_rir,
            "recommended_weight": rows[0].recommended_weight,
            "goal": rows[0].goal,
            "plan": _plan_to_dict(plan) if plan else None,
        })
    return {
        "id": session.id,
        "template_code": session.template_code,
        "status": session.status,
        "scheduled_date": session.scheduled_date,
        "exercises": exercises,
    }


@app.command("next")
def next_session(
    store_path: StorePathOption = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Show the next workout, planning it from recent history if needed.
    """
    store = get_store(store_path)
    _require_store(store)

    try:
        upcoming = ensure_upcoming_session(store, load_policy())
    except (FileNotFoundError, ValidationError, SessionStateError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(_session_to_json(upcoming.session, upcoming.plans), indent=2))
        return

    views.print_upcoming(upcoming)


@app.command()
def refresh(
    store_path: StorePathOption = None,
    session_id: SessionOption = None,
) -> None:
    """
    Recompute the targets of a planned session from recent history.
    """
    store = get_store(store_path)
    _require_store(store)

    try:
        session = _resolve_session(store, session_id, "planned")
        result = refresh_session_plan(store, session.id, load_policy())
    except (
        FileNotFoundError,
        ValidationError,
        SessionNotFoundError,
        SessionStateError,
        ValueError,
    ) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if result.updated_exercises:
        views.print_success(
            f"Updated targets for: {', '.join(result.updated_exercises)}"
        )
    else:
        views.print_info("Targets already up to date.")
    views.print_session(
        result.session,
        TEMPLATE_REGISTRY.get(result.session.template_code),
        result.plans,
    )


@app.command()
def explain(
    exercise_id: Annotated[
        str,
        typer.Option("--exercise", "-e", help="Exercise id, e.g. machine-leg-press-standard"),
    ],
    store_path: StorePathOption = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Explain how the next targets for one exercise follow from its history.
    """
    store = get_store(store_path)
    _require_store(store)

    try:
        exercise = get_exercise(exercise_id)
        policy = load_policy()
        exposures = store.fetch_recent_exposures(
            exercise_id,
            session_limit=policy.history_session_window,
            exposure_limit=policy.exposure_window,
        )
    except (FileNotFoundError, ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    evaluations = evaluate_history(exposures, exercise, policy)
    plan = compute_plan(exercise, exposures, policy)

    if json_out:
        print(json.dumps({
            "exercise_id": exercise.exercise_id,
            "category": exercise.effective_category,
            "exposures": [
                {
                    "session_id": exposure.session_id,
                    "completed_at": exposure.completed_at,
                    "stage": ev.stage,
                    "classification": ev.classification,
                    "avg_reps": ev.stats.avg_reps,
                    "min_reps": ev.stats.min_reps,
                    "avg_rir": ev.stats.avg_rir,
                    "min_rir": ev.stats.min_rir,
                    "max_load": ev.stats.max_load,
                }
                for exposure, ev in zip(exposures, evaluations)
            ],
            "plan": _plan_to_dict(plan),
        }, indent=2))
        return

    views.print_explain(exercise, exposures, evaluations, plan)


@app.command()
def catalog() -> None:
    """
    Show the A/B/C/D workout rotation and each exercise's base prescription.
    """
    views.print_catalog(EXERCISE_REGISTRY, TEMPLATE_REGISTRY)
