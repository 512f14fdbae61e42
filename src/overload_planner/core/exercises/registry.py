"""
Exercise and workout-template registry.

Exercises and the A/B/C/D rotation are loaded from ``catalog.yaml`` at
import time.  If nothing can be loaded a RuntimeError is raised — the
application cannot plan without a catalog.

User overrides: ``~/.overload-planner/catalog.yaml``.
"""

from ..config import DEFAULT_CATEGORY
from .base import ExerciseDescriptor, SessionTemplate


def _build_registry() -> tuple[dict[str, ExerciseDescriptor], dict[str, SessionTemplate]]:
    from .loader import load_catalog_from_yaml

    exercises, templates = load_catalog_from_yaml()
    if not exercises or not templates:
        raise RuntimeError(
            "overload-planner: no exercises or workout templates could be loaded. "
            "Check that src/overload_planner/catalog.yaml is present and valid."
        )
    return exercises, templates


EXERCISE_REGISTRY, TEMPLATE_REGISTRY = _build_registry()


def get_exercise(exercise_id: str) -> ExerciseDescriptor:
    """
    Return the ExerciseDescriptor for the given exercise_id.

    Raises:
        ValueError: If exercise_id is not in the registry
    """
    if exercise_id not in EXERCISE_REGISTRY:
        valid = ", ".join(EXERCISE_REGISTRY)
        raise ValueError(f"Unknown exercise '{exercise_id}'. Valid IDs: {valid}")
    return EXERCISE_REGISTRY[exercise_id]


def find_exercise(exercise_id: str) -> ExerciseDescriptor | None:
    """Return the ExerciseDescriptor or None for unknown ids."""
    return EXERCISE_REGISTRY.get(exercise_id)


def category_for(exercise_id: str) -> str:
    """Category of an exercise; unknown exercises are treated as accessory."""
    exercise = EXERCISE_REGISTRY.get(exercise_id)
    if exercise is None:
        return DEFAULT_CATEGORY
    return exercise.effective_category


def get_template(code: str) -> SessionTemplate:
    """
    Return the SessionTemplate for a workout code.

    Raises:
        ValueError: If the code is not in the registry
    """
    if code not in TEMPLATE_REGISTRY:
        valid = ", ".join(TEMPLATE_REGISTRY)
        raise ValueError(f"Unknown workout template '{code}'. Valid codes: {valid}")
    return TEMPLATE_REGISTRY[code]


def next_template_code(last_code: str | None) -> str:
    """
    Code of the workout following ``last_code`` in the rotation.

    No previous workout, an unknown code, or the last code in the rotation
    all restart at the first template.
    """
    codes = list(TEMPLATE_REGISTRY)
    if last_code not in codes:
        return codes[0]
    index = codes.index(last_code)
    return codes[(index + 1) % len(codes)]
