"""
Exercise catalog for overload-planner.

Each exercise is described by an ExerciseDescriptor holding its base
prescription; SessionTemplates define the rotating workouts.
"""

from .base import ExerciseDescriptor, SessionTemplate
from .registry import (
    EXERCISE_REGISTRY,
    TEMPLATE_REGISTRY,
    category_for,
    get_exercise,
    get_template,
    next_template_code,
)

__all__ = [
    "ExerciseDescriptor",
    "SessionTemplate",
    "EXERCISE_REGISTRY",
    "TEMPLATE_REGISTRY",
    "category_for",
    "get_exercise",
    "get_template",
    "next_template_code",
]
