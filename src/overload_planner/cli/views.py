"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of sessions and computed plans.
"""

from rich.console import Console
from rich.table import Table

from ..core.composer import format_load
from ..core.exercises.base import ExerciseDescriptor, SessionTemplate
from ..core.models import ComputedPlan, Evaluation, Exposure, SessionProgress, TrainingSession
from ..core.stages import stage_label
from ..core.statistics import exposure_volume
from ..io.session_service import UpcomingSession

console = Console()

_STATUS_STYLE: dict[str, str] = {
    "planned": "cyan",
    "in_progress": "yellow",
    "completed": "green",
}

_CLASSIFICATION_STYLE: dict[str, str] = {
    "increase_load": "green",
    "add_reps": "cyan",
    "struggling": "red",
    "deload": "magenta",
    "no_data": "dim",
}


def _fmt_weight(weight: float | str | None) -> str:
    if weight is None or weight == "":
        return "—"
    if isinstance(weight, (int, float)):
        return format_load(float(weight))
    return str(weight)


def _fmt_opt(value: float | int | None, fmt: str = "{}") -> str:
    return "—" if value is None else fmt.format(value)


def _fmt_stage(stage: str) -> str:
    return stage_label(stage)  # type: ignore[arg-type]


def print_session(
    session: TrainingSession,
    template: SessionTemplate | None = None,
    plans: dict[str, ComputedPlan] | None = None,
) -> None:
    """
    Print a session's set rows grouped by exercise.

    Args:
        session: Session to display
        template: Its workout template (title line), if known
        plans: Freshly computed plans (adds stage / verdict columns)
    """
    plans = plans or {}
    style = _STATUS_STYLE.get(session.status, "white")
    title = template.title if template else f"Workout {session.template_code}"
    console.print()
    console.print(
        f"[bold]{title}[/bold]  [{style}]{session.status}[/{style}]"
        f"  [dim]{session.scheduled_date or ''}  id={session.id}[/dim]"
    )
    if template and template.emphasis:
        console.print(f"[dim]{template.emphasis}[/dim]")

    table = Table(show_lines=False)
    table.add_column("Exercise", style="bold")
    table.add_column("Stage", style="magenta", width=8)
    table.add_column("Sets", justify="right", width=4)
    table.add_column("Reps", justify="right", width=6)
    table.add_column("RIR", width=8)
    table.add_column("Load", justify="right", width=9)
    table.add_column("Logged", width=22)
    table.add_column("Goal")

    for exercise_id in session.exercise_ids():
        rows = session.sets_for(exercise_id)
        first = rows[0]
        plan = plans.get(exercise_id)
        stage = _fmt_stage(plan.stage) if plan else ""
        if plan and plan.stall_detected:
            stage += " !"
        logged = [
            f"{s.performed_reps}@{_fmt_weight(s.weight)}"
            for s in rows
            if s.performed_reps is not None
        ]
        table.add_row(
            first.exercise_name or exercise_id,
            stage,
            str(len(rows)),
            first.target_reps,
            first.target_rir,
            _fmt_weight(first.recommended_weight),
            ", ".join(logged) if logged else "",
            first.goal or "",
        )

    console.print(table)


def print_upcoming(upcoming: UpcomingSession) -> None:
    """Print the upcoming session plus what changed while refreshing it."""
    print_session(upcoming.session, upcoming.template, upcoming.plans)
    if upcoming.session.status == "in_progress":
        print_info("Session in progress — targets are locked until it is completed.")
    elif upcoming.updated_exercises:
        print_info(f"Updated targets for {len(upcoming.updated_exercises)} exercise(s).")
    if upcoming.previous is not None:
        console.print(
            f"[dim]Previous: Workout {upcoming.previous.template_code}"
            f" completed {upcoming.previous.completed_at}[/dim]"
        )


def print_explain(
    exercise: ExerciseDescriptor,
    exposures: list[Exposure],
    evaluations: list[Evaluation],
    plan: ComputedPlan,
) -> None:
    """
    Print how the next plan of one exercise was derived.

    Args:
        exercise: Catalog descriptor
        exposures: Recent exposures, most recent first
        evaluations: Matching evaluations
        plan: Resulting plan
    """
    console.print()
    console.print(
        f"[bold]{exercise.display_name}[/bold]  [dim]{exercise.effective_category},"
        f" base {exercise.rep_min}-{exercise.rep_max} reps[/dim]"
    )

    if exposures:
        table = Table(title="Recent exposures (newest first)")
        table.add_column("Completed", style="cyan")
        table.add_column("Stage", style="magenta")
        table.add_column("Sets", justify="right")
        table.add_column("Avg reps", justify="right")
        table.add_column("Min reps", justify="right")
        table.add_column("Avg RIR", justify="right")
        table.add_column("Min RIR", justify="right")
        table.add_column("Max load", justify="right")
        table.add_column("Volume", justify="right")
        table.add_column("Verdict")

        for exposure, ev in zip(exposures, evaluations):
            s = ev.stats
            verdict_style = _CLASSIFICATION_STYLE[ev.classification]
            table.add_row(
                exposure.completed_at[:16].replace("T", " "),
                _fmt_stage(ev.stage),
                str(s.sets_with_data),
                _fmt_opt(s.avg_reps, "{:.1f}"),
                _fmt_opt(s.min_reps),
                _fmt_opt(s.avg_rir, "{:.1f}"),
                _fmt_opt(s.min_rir),
                _fmt_weight(s.max_load),
                f"{exposure_volume(exposure):g}",
                f"[{verdict_style}]{ev.classification}[/{verdict_style}]",
            )
        console.print(table)
    else:
        console.print("[dim]No completed exposures yet.[/dim]")

    console.print(
        f"\nNext: [magenta]{_fmt_stage(plan.stage)}[/magenta]"
        f"  {plan.reps_text} reps  {plan.rir_text}"
        f"  load {_fmt_weight(plan.recommended_weight)}"
        + ("  [red](stall detected)[/red]" if plan.stall_detected else "")
    )
    console.print(f"[bold]{plan.goal}[/bold]")
    console.print(f"[dim]{plan.notes}[/dim]")


def print_history(summaries: list[SessionProgress]) -> None:
    """
    Print completed sessions with logged-set and volume totals.

    Args:
        summaries: Progress summaries, most recent first
    """
    if not summaries:
        console.print("[yellow]No completed sessions yet.[/yellow]")
        return

    table = Table(title="Training History")
    table.add_column("Completed", style="cyan")
    table.add_column("Workout", style="magenta")
    table.add_column("Logged", justify="right")
    table.add_column("Volume (kg)", justify="right", style="bold")
    table.add_column("Id", style="dim")

    for summary in summaries:
        session = summary.session
        table.add_row(
            (session.completed_at or "")[:16].replace("T", " "),
            session.template_code,
            f"{summary.logged_sets}/{summary.total_sets}",
            f"{summary.total_volume:g}",
            session.id,
        )

    console.print(table)


def print_catalog(
    exercises: dict[str, ExerciseDescriptor],
    templates: dict[str, SessionTemplate],
) -> None:
    """Print the workout rotation and each exercise's base prescription."""
    for template in templates.values():
        table = Table(title=f"{template.code}: {template.title} — {template.emphasis}")
        table.add_column("Id", style="dim")
        table.add_column("Exercise", style="bold")
        table.add_column("Category", style="magenta")
        table.add_column("Sets", justify="right")
        table.add_column("Reps", justify="right")
        table.add_column("RIR", justify="right")
        table.add_column("Rest (s)", justify="right")
        for exercise_id in template.exercise_ids:
            ex = exercises[exercise_id]
            table.add_row(
                ex.exercise_id,
                ex.display_name,
                ex.effective_category,
                str(ex.sets),
                f"{ex.rep_min}-{ex.rep_max}",
                f"{ex.rir_min}-{ex.rir_max}",
                f"{ex.rest_min}-{ex.rest_max}",
            )
        console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
