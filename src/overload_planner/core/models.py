"""
Data models for overload-planner.

Core dataclasses for logged sets, exposures, derived statistics, computed
plans and training sessions.  Logged values are nullable throughout: a set
row exists from planning time onward and is filled in when the lifter logs it.
"""

from dataclasses import dataclass, field
from typing import Literal

Stage = Literal["build_1", "build_2", "build_3", "deload"]
Classification = Literal["increase_load", "add_reps", "struggling", "deload", "no_data"]
ExerciseCategory = Literal["compound", "accessory"]
SessionStatus = Literal["planned", "in_progress", "completed"]

SESSION_STATUSES: tuple[str, ...] = ("planned", "in_progress", "completed")


@dataclass
class SetRecord:
    """
    One set row of a training session.

    Target fields are written at planning time (and overwritten whenever the
    plan is recomputed while the session is still planned).  Performed fields
    stay None until the set is logged.
    """

    exercise_id: str
    set_number: int
    exercise_name: str = ""
    exercise_order: int = 0
    target_reps: str = ""
    target_reps_min: int | None = None
    target_reps_max: int | None = None
    target_rir: str = ""
    target_rir_min: int | None = None
    target_rir_max: int | None = None
    rest_seconds: int = 0
    recommended_weight: float | None = None
    goal: str | None = None
    plan_notes: str | None = None
    performed_reps: int | None = None
    performed_rir: int | None = None
    weight: float | str | None = None  # raw as logged; coerced when aggregated
    logged_at: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if not self.exercise_id:
            raise ValueError("exercise_id must be non-empty")
        if self.set_number < 1:
            raise ValueError("set_number must be positive")
        if self.rest_seconds < 0:
            raise ValueError("rest_seconds must be non-negative")
        for name in (
            "target_reps_min",
            "target_reps_max",
            "target_rir_min",
            "target_rir_max",
            "performed_reps",
            "performed_rir",
        ):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative")
        if isinstance(self.weight, (int, float)) and self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.recommended_weight is not None and self.recommended_weight < 0:
            raise ValueError("recommended_weight must be non-negative")

    @property
    def is_logged(self) -> bool:
        """True once any performed value has been recorded."""
        return self.performed_reps is not None or self.performed_rir is not None


@dataclass(frozen=True)
class Exposure:
    """
    All sets one exercise received within one completed session.

    Sets are ordered by set number.  The targets on each set are the only
    durable record of which stage the exposure was trained under.
    """

    session_id: str
    exercise_id: str
    completed_at: str
    sets: tuple[SetRecord, ...] = ()


@dataclass(frozen=True)
class ExposureStats:
    """Aggregate numbers for one exposure; None wherever no data was logged."""

    avg_reps: float | None
    min_reps: int | None
    max_reps: int | None
    avg_rir: float | None
    min_rir: int | None
    max_rir: int | None
    all_sets_at_ceiling: bool
    sets_with_data: int
    max_load: float | None


@dataclass(frozen=True)
class Evaluation:
    """Verdict on one exposure relative to the stage it was trained under."""

    classification: Classification
    stats: ExposureStats
    stage: Stage


@dataclass(frozen=True)
class ComputedPlan:
    """
    Next-session targets for one exercise.

    classification is the verdict on the most recent exposure (None when the
    exercise has no history).
    """

    stage: Stage
    classification: Classification | None
    stall_detected: bool
    rep_min: int
    rep_max: int
    rir_min: int
    rir_max: int
    reps_text: str
    rir_text: str
    recommended_weight: float | None
    last_load: float | None
    goal: str
    notes: str

    def __post_init__(self) -> None:
        """Validate range invariants."""
        if self.rep_min < 1 or self.rep_min > self.rep_max:
            raise ValueError(f"Invalid rep range: {self.rep_min}-{self.rep_max}")
        if self.rir_min < 0 or self.rir_min > self.rir_max:
            raise ValueError(f"Invalid RIR range: {self.rir_min}-{self.rir_max}")
        if self.recommended_weight is not None and self.recommended_weight < 0:
            raise ValueError("recommended_weight must be non-negative")


@dataclass
class TrainingSession:
    """
    A training session and its set rows.

    Lifecycle: planned -> in_progress -> completed.  Only planned sessions
    may have their targets recomputed.
    """

    id: str
    template_code: str
    status: SessionStatus = "planned"
    scheduled_date: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    notes: str | None = None
    sets: list[SetRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate session data."""
        if not self.id:
            raise ValueError("session id must be non-empty")
        if self.status not in SESSION_STATUSES:
            raise ValueError(f"Invalid status: {self.status}")

    def sets_for(self, exercise_id: str) -> list[SetRecord]:
        """Sets of one exercise, ordered by set number."""
        return sorted(
            (s for s in self.sets if s.exercise_id == exercise_id),
            key=lambda s: s.set_number,
        )

    def exercise_ids(self) -> list[str]:
        """Exercise ids in session order, without duplicates."""
        seen: dict[str, int] = {}
        for s in self.sets:
            seen.setdefault(s.exercise_id, s.exercise_order)
        return sorted(seen, key=lambda ex_id: seen[ex_id])

    @property
    def logged_set_count(self) -> int:
        return sum(1 for s in self.sets if s.is_logged)


@dataclass(frozen=True)
class SessionProgress:
    """Summary of one completed session."""

    session: TrainingSession
    total_sets: int
    logged_sets: int
    total_volume: float
