"""
YAML → ExerciseDescriptor / SessionTemplate loader.

Loads the bundled ``src/overload_planner/catalog.yaml`` (an ``exercises``
mapping keyed by exercise id and a ``templates`` mapping keyed by workout
code).  A user file at ``~/.overload-planner/catalog.yaml`` is deep-merged
over it, so only changed keys need to be listed; ids or codes absent from
the bundled file are added.

Usage (internal — called by registry.py):
    from .loader import load_catalog_from_yaml
    exercises, templates = load_catalog_from_yaml()
"""

from __future__ import annotations

import warnings
from pathlib import Path

from ..engine.config_loader import deep_merge, get_user_dir, load_user_yaml_file, load_yaml_file
from .base import ExerciseDescriptor, SessionTemplate

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {
        "display_name",
        "primary_muscles",
        "sets",
        "rep_min",
        "rep_max",
        "rir_min",
        "rir_max",
    }
)

_REQUIRED_TEMPLATE_FIELDS: frozenset[str] = frozenset({"title", "exercises"})


def exercise_from_dict(exercise_id: str, d: dict) -> ExerciseDescriptor:
    """Convert a raw dict (from YAML) to an ExerciseDescriptor.

    Raises ValueError if any required field is absent or a range is invalid.
    """
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"ExerciseDescriptor missing fields: {sorted(missing)}")

    rest_seconds = int(d.get("rest_seconds", 120))
    starting_load = d.get("starting_load_kg")
    category = d.get("category")

    return ExerciseDescriptor(
        exercise_id=str(exercise_id),
        display_name=str(d["display_name"]),
        primary_muscles=tuple(str(m) for m in d["primary_muscles"]),
        sets=int(d["sets"]),
        rep_min=int(d["rep_min"]),
        rep_max=int(d["rep_max"]),
        rir_min=int(d["rir_min"]),
        rir_max=int(d["rir_max"]),
        rest_seconds=rest_seconds,
        rest_min=int(d.get("rest_min", rest_seconds)),
        rest_max=int(d.get("rest_max", rest_seconds)),
        category=str(category) if category is not None else None,
        starting_load_kg=float(starting_load) if starting_load is not None else None,
        notes=str(d.get("notes", "") or ""),
    )


def template_from_dict(code: str, d: dict) -> SessionTemplate:
    """Convert a raw dict (from YAML) to a SessionTemplate."""
    missing = _REQUIRED_TEMPLATE_FIELDS - set(d)
    if missing:
        raise ValueError(f"SessionTemplate missing fields: {sorted(missing)}")
    return SessionTemplate(
        code=str(code),
        title=str(d["title"]),
        emphasis=str(d.get("emphasis", "")),
        exercise_ids=tuple(str(e) for e in d["exercises"]),
    )


def get_bundled_catalog_path() -> Path:
    """Return path to the bundled catalog.yaml."""
    # loader.py lives at src/overload_planner/core/exercises/loader.py
    return Path(__file__).parent.parent.parent / "catalog.yaml"


def get_user_catalog_path() -> Path | None:
    """Return ~/.overload-planner/catalog.yaml if it exists, else None."""
    p = get_user_dir() / "catalog.yaml"
    return p if p.exists() else None


def load_catalog_from_yaml(
    user_path: Path | None = None,
) -> tuple[dict[str, ExerciseDescriptor], dict[str, SessionTemplate]]:
    """Return ({exercise_id: descriptor}, {code: template}).

    Invalid entries are skipped with a warning.  Templates that reference an
    exercise missing from the catalog are skipped as well.
    """
    raw = load_yaml_file(get_bundled_catalog_path())

    user = user_path if user_path is not None else get_user_catalog_path()
    if user is not None and user.exists():
        user_raw = load_user_yaml_file(user)
        if user_raw:
            raw = deep_merge(raw, user_raw)

    exercises: dict[str, ExerciseDescriptor] = {}
    for ex_id, d in (raw.get("exercises") or {}).items():
        try:
            exercises[str(ex_id)] = exercise_from_dict(ex_id, d or {})
        except (TypeError, ValueError) as exc:
            warnings.warn(
                f"overload-planner: skipping exercise '{ex_id}' — {exc}",
                stacklevel=2,
            )

    templates: dict[str, SessionTemplate] = {}
    for code, d in (raw.get("templates") or {}).items():
        try:
            template = template_from_dict(code, d or {})
        except (TypeError, ValueError) as exc:
            warnings.warn(
                f"overload-planner: skipping template '{code}' — {exc}",
                stacklevel=2,
            )
            continue
        unknown = [e for e in template.exercise_ids if e not in exercises]
        if unknown:
            warnings.warn(
                f"overload-planner: skipping template '{code}' — unknown exercises {unknown}",
                stacklevel=2,
            )
            continue
        templates[template.code] = template

    return exercises, templates
