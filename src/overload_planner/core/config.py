"""
Policy constants for the progressive-overload engine.

All adjustable parameters are centralized here for easy tuning.  The values
are policy, not structure: they can be overridden through policy.yaml (see
core/engine/config_loader.py) without touching the decision rules.
"""

from dataclasses import dataclass, field
from typing import Final

# =============================================================================
# PERIODIZATION CYCLE
# =============================================================================

STAGE_SEQUENCE: Final[tuple[str, ...]] = ("build_1", "build_2", "build_3", "deload")
INITIAL_STAGE: Final[str] = "build_1"

# (min, max) reps-in-reserve target for each stage
STAGE_EFFORT_TARGETS: Final[dict[str, tuple[int, int]]] = {
    "build_1": (3, 3),
    "build_2": (2, 2),
    "build_3": (1, 1),
    "deload": (4, 5),
}

STAGE_LABELS: Final[dict[str, str]] = {
    "build_1": "Build 1",
    "build_2": "Build 2",
    "build_3": "Build 3",
    "deload": "Deload",
}

# Written into deload goals; read back when set rows carry no numeric target
DELOAD_GOAL_MARKER: Final[str] = "Deload"

# =============================================================================
# EVALUATION
# =============================================================================

EFFORT_TOLERANCE: Final[float] = 0.5  # RIR slack around the stage target
STALL_STREAK: Final[int] = 2  # Consecutive struggling exposures that force a deload

# =============================================================================
# LOAD RECOMMENDATION
# =============================================================================

LOAD_INCREMENT_KG: Final[dict[str, float]] = {
    "compound": 2.5,
    "accessory": 1.25,
}
DELOAD_LOAD_FACTOR: Final[float] = 0.75  # Load multiplier in a deload week
STRUGGLE_LOAD_FACTOR: Final[float] = 0.95  # Load multiplier after a struggling exposure

# =============================================================================
# DELOAD VOLUME
# =============================================================================

DELOAD_REP_FACTOR: Final[float] = 0.6  # Rep range multiplier in a deload week
DELOAD_REP_FLOOR: Final[int] = 1

# =============================================================================
# HISTORY WINDOW
# =============================================================================

HISTORY_SESSION_WINDOW: Final[int] = 20  # Completed sessions scanned per lookup
EXPOSURE_WINDOW: Final[int] = 8  # Exposures retained per exercise

# Unknown exercises fall back to the smaller-increment, rep-first policy
DEFAULT_CATEGORY: Final[str] = "accessory"


@dataclass(frozen=True)
class ProgressionPolicy:
    """Tunable numbers consumed by the engine, defaulting to the constants above."""

    effort_tolerance: float = EFFORT_TOLERANCE
    stall_streak: int = STALL_STREAK
    load_increments: dict[str, float] = field(
        default_factory=lambda: dict(LOAD_INCREMENT_KG)
    )
    deload_load_factor: float = DELOAD_LOAD_FACTOR
    struggle_load_factor: float = STRUGGLE_LOAD_FACTOR
    deload_rep_factor: float = DELOAD_REP_FACTOR
    deload_rep_floor: int = DELOAD_REP_FLOOR
    history_session_window: int = HISTORY_SESSION_WINDOW
    exposure_window: int = EXPOSURE_WINDOW

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.effort_tolerance < 0:
            raise ValueError("effort_tolerance must be non-negative")
        if self.stall_streak < 1:
            raise ValueError("stall_streak must be at least 1")
        for category in ("compound", "accessory"):
            increment = self.load_increments.get(category)
            if increment is None or increment <= 0:
                raise ValueError(f"load_increments[{category!r}] must be positive")
        if not 0 < self.deload_rep_factor <= 1:
            raise ValueError("deload_rep_factor must be in (0, 1]")
        if self.deload_rep_floor < 1:
            raise ValueError("deload_rep_floor must be at least 1")
        if self.history_session_window < 1 or self.exposure_window < 1:
            raise ValueError("history windows must be positive")

    def increment_for(self, category: str) -> float:
        """Return the load rounding increment for an exercise category."""
        return self.load_increments.get(category, self.load_increments[DEFAULT_CATEGORY])


DEFAULT_POLICY: Final[ProgressionPolicy] = ProgressionPolicy()
