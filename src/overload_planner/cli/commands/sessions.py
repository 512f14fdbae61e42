"""Session commands: init, start, log-set, complete, history, and helpers."""

from typing import Annotated, Optional

import typer

from ...core.models import TrainingSession
from ...io.serializers import ValidationError
from ...io.session_store import SessionNotFoundError, SessionStateError, SessionStore
from .. import views
from ..app import StorePathOption, app, get_store

# Shared --session option type for lifecycle commands
SessionOption = Annotated[
    Optional[str],
    typer.Option("--session", "-s", help="Session id (default: the current session)"),
]


def _require_store(store: SessionStore) -> None:
    if not store.exists():
        views.print_error(f"Sessions file not found: {store.path}")
        views.print_info("Run 'init' first to create the sessions file.")
        raise typer.Exit(1)


def _resolve_session(
    store: SessionStore,
    session_id: str | None,
    status: str,
) -> TrainingSession:
    """Session by id, or the earliest one with ``status``."""
    if session_id is not None:
        return store.get_session(session_id)
    session = store.find_first(status)
    if session is None:
        raise SessionNotFoundError(
            f"No {status.replace('_', '-')} session. Run 'next' to plan one."
        )
    return session


@app.command()
def init(
    store_path: StorePathOption = None,
) -> None:
    """
    Create the sessions file.
    """
    store = get_store(store_path)

    if store.exists():
        views.print_info(f"Sessions file already exists: {store.path}")
        return

    store.init()
    views.print_success(f"Sessions file created: {store.path}")
    views.print_info("Run 'next' to plan your first workout.")


@app.command()
def start(
    store_path: StorePathOption = None,
    session_id: SessionOption = None,
) -> None:
    """
    Start the planned session; its targets are frozen from now on.
    """
    store = get_store(store_path)
    _require_store(store)

    try:
        session = _resolve_session(store, session_id, "planned")
        session = store.start_session(session.id)
    except (FileNotFoundError, ValidationError, SessionNotFoundError, SessionStateError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Started Workout {session.template_code} ({session.id})")
    views.print_session(session)


@app.command("log-set")
def log_set(
    exercise_id: Annotated[str, typer.Argument(help="Exercise id, e.g. machine-chest-press")],
    set_number: Annotated[int, typer.Argument(help="Set number (1-based)", min=1)],
    reps: Annotated[int, typer.Argument(help="Reps performed", min=0)],
    rir: Annotated[int, typer.Argument(help="Reps in reserve at the end of the set", min=0)],
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Load used in kg", min=0),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Free-text note for this set"),
    ] = None,
    store_path: StorePathOption = None,
    session_id: SessionOption = None,
) -> None:
    """
    Record one performed set of the session in progress.
    """
    store = get_store(store_path)
    _require_store(store)

    try:
        session = _resolve_session(store, session_id, "in_progress")
        session = store.log_set(
            session.id,
            exercise_id,
            set_number,
            performed_reps=reps,
            performed_rir=rir,
            weight=weight,
            notes=notes,
        )
    except (FileNotFoundError, ValidationError, SessionNotFoundError, SessionStateError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    load = f" @ {weight:g} kg" if weight is not None else ""
    views.print_success(f"Logged {exercise_id} set {set_number}: {reps} reps{load}, RIR {rir}")
    remaining = len(session.sets) - session.logged_set_count
    if remaining:
        views.print_info(f"{remaining} set(s) left in this session.")
    else:
        views.print_info("All sets logged. Run 'complete' to finish the session.")


@app.command()
def complete(
    store_path: StorePathOption = None,
    session_id: SessionOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Complete even with unlogged sets (or not started)"),
    ] = False,
) -> None:
    """
    Complete the session in progress.
    """
    store = get_store(store_path)
    _require_store(store)

    try:
        if session_id is None and force:
            session = store.find_first("in_progress") or _resolve_session(store, None, "planned")
        else:
            session = _resolve_session(store, session_id, "in_progress")

        session = store.complete_session(session.id, force=force)
    except (FileNotFoundError, ValidationError, SessionNotFoundError, SessionStateError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    unlogged = len(session.sets) - session.logged_set_count
    views.print_success(
        f"Completed Workout {session.template_code}: "
        f"{session.logged_set_count}/{len(session.sets)} sets logged"
    )
    if unlogged:
        views.print_warning(f"{unlogged} set(s) were left unlogged.")
    views.print_info("Run 'next' to plan the following workout.")


@app.command()
def history(
    store_path: StorePathOption = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Number of completed sessions to show", min=1),
    ] = 6,
) -> None:
    """
    Show recently completed sessions with logged sets and volume.
    """
    store = get_store(store_path)
    _require_store(store)

    try:
        summaries = store.progress_summaries(limit=limit)
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_history(summaries)
