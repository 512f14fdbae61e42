"""
Base types for the exercise catalog.

ExerciseDescriptor holds the static prescription for one exercise (base rep
range, base effort-reserve range, rest range) and derives the coarse
compound/accessory category the engine branches on.  SessionTemplate lists
the exercises of one rotating workout.
"""

from dataclasses import dataclass

from ..config import DEFAULT_CATEGORY


@dataclass(frozen=True)
class ExerciseDescriptor:
    """
    Static template data for one exercise.  Never mutated.

    ``category`` may be set explicitly; otherwise it is derived from the
    number of primary muscles (more than one = compound).
    """

    # Identity
    exercise_id: str            # e.g. "machine-chest-press"
    display_name: str           # e.g. "Machine Chest Press"
    primary_muscles: tuple[str, ...] = ()

    # Base prescription
    sets: int = 3
    rep_min: int = 8
    rep_max: int = 12
    rir_min: int = 1
    rir_max: int = 2
    rest_seconds: int = 120     # Default rest written onto set rows
    rest_min: int = 90
    rest_max: int = 180

    category: str | None = None            # "compound" | "accessory" | None = derive
    starting_load_kg: float | None = None  # Suggested load before any history exists
    notes: str = ""

    def __post_init__(self) -> None:
        """Validate prescription ranges."""
        if self.sets < 1:
            raise ValueError(f"{self.exercise_id}: sets must be positive")
        if self.rep_min < 1 or self.rep_min > self.rep_max:
            raise ValueError(f"{self.exercise_id}: invalid rep range {self.rep_min}-{self.rep_max}")
        if self.rir_min < 0 or self.rir_min > self.rir_max:
            raise ValueError(f"{self.exercise_id}: invalid RIR range {self.rir_min}-{self.rir_max}")
        if self.rest_min > self.rest_max:
            raise ValueError(f"{self.exercise_id}: invalid rest range")
        if self.category is not None and self.category not in ("compound", "accessory"):
            raise ValueError(f"{self.exercise_id}: invalid category {self.category!r}")

    @property
    def effective_category(self) -> str:
        """Explicit category, else compound for multi-muscle movements."""
        if self.category is not None:
            return self.category
        if len(self.primary_muscles) > 1:
            return "compound"
        return DEFAULT_CATEGORY


@dataclass(frozen=True)
class SessionTemplate:
    """One workout in the A/B/C/D rotation."""

    code: str
    title: str
    emphasis: str
    exercise_ids: tuple[str, ...]
