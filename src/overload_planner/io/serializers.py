"""
JSON serialization for session records.

Handles conversion between dataclasses and JSON-compatible dicts.
"""

import json
import re
from datetime import datetime
from typing import Any

from ..core.models import SESSION_STATUSES, SessionStatus, SetRecord, TrainingSession


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> str:
    """
    Validate an ISO date string.

    Args:
        date_str: Date string to validate

    Returns:
        The YYYY-MM-DD string

    Raises:
        ValidationError: If date format is invalid
    """
    if not isinstance(date_str, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


def validate_timestamp(value: str | None, name: str) -> str | None:
    """
    Validate an optional ISO-8601 timestamp.

    Raises:
        ValidationError: If the value is present but not ISO-8601
    """
    if value is None:
        return None
    try:
        datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {name}: {value!r}. Expected ISO-8601") from e
    return value


def validate_status(status: str) -> SessionStatus:
    """
    Validate session status.

    Raises:
        ValidationError: If status is unknown
    """
    if status not in SESSION_STATUSES:
        raise ValidationError(
            f"Invalid status: {status}. Must be one of {SESSION_STATUSES}"
        )
    return status  # type: ignore


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    try:
        result = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{key} must be an integer, got {value!r}") from e
    if result < 0:
        raise ValidationError(f"{key} must be non-negative, got {result}")
    return result


def _optional_float(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{key} must be a number, got {value!r}") from e
    if result < 0:
        raise ValidationError(f"{key} must be non-negative, got {result}")
    return result


def set_record_to_dict(s: SetRecord) -> dict[str, Any]:
    """
    Convert SetRecord to JSON-compatible dict.

    Args:
        s: SetRecord to convert

    Returns:
        Dict representation
    """
    return {
        "exercise_id": s.exercise_id,
        "exercise_name": s.exercise_name,
        "exercise_order": s.exercise_order,
        "set_number": s.set_number,
        "target_reps": s.target_reps,
        "target_reps_min": s.target_reps_min,
        "target_reps_max": s.target_reps_max,
        "target_rir": s.target_rir,
        "target_rir_min": s.target_rir_min,
        "target_rir_max": s.target_rir_max,
        "rest_seconds": s.rest_seconds,
        "recommended_weight": s.recommended_weight,
        "goal": s.goal,
        "plan_notes": s.plan_notes,
        "performed_reps": s.performed_reps,
        "performed_rir": s.performed_rir,
        "weight": s.weight,
        "logged_at": s.logged_at,
        "notes": s.notes,
    }


def dict_to_set_record(data: dict[str, Any]) -> SetRecord:
    """
    Convert dict to SetRecord.

    ``weight`` is kept as stored; non-numeric values are ignored later when
    loads are aggregated.

    Raises:
        ValidationError: If data is invalid
    """
    if not data.get("exercise_id"):
        raise ValidationError("Set row is missing exercise_id")
    set_number = _optional_int(data, "set_number")
    if not set_number:
        raise ValidationError("Set row is missing a positive set_number")

    weight = data.get("weight")
    if isinstance(weight, (int, float)) and not isinstance(weight, bool) and weight < 0:
        raise ValidationError(f"weight must be non-negative, got {weight}")

    try:
        return SetRecord(
            exercise_id=str(data["exercise_id"]),
            set_number=set_number,
            exercise_name=str(data.get("exercise_name") or ""),
            exercise_order=_optional_int(data, "exercise_order") or 0,
            target_reps=str(data.get("target_reps") or ""),
            target_reps_min=_optional_int(data, "target_reps_min"),
            target_reps_max=_optional_int(data, "target_reps_max"),
            target_rir=str(data.get("target_rir") or ""),
            target_rir_min=_optional_int(data, "target_rir_min"),
            target_rir_max=_optional_int(data, "target_rir_max"),
            rest_seconds=_optional_int(data, "rest_seconds") or 0,
            recommended_weight=_optional_float(data, "recommended_weight"),
            goal=data.get("goal"),
            plan_notes=data.get("plan_notes"),
            performed_reps=_optional_int(data, "performed_reps"),
            performed_rir=_optional_int(data, "performed_rir"),
            weight=weight,
            logged_at=validate_timestamp(data.get("logged_at"), "logged_at"),
            notes=data.get("notes"),
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def session_to_dict(session: TrainingSession) -> dict[str, Any]:
    """
    Convert TrainingSession (with its set rows) to JSON-compatible dict.

    Args:
        session: TrainingSession to convert

    Returns:
        Dict representation
    """
    return {
        "id": session.id,
        "template_code": session.template_code,
        "status": session.status,
        "scheduled_date": session.scheduled_date,
        "started_at": session.started_at,
        "completed_at": session.completed_at,
        "notes": session.notes,
        "sets": [set_record_to_dict(s) for s in session.sets],
    }


def dict_to_session(data: dict[str, Any]) -> TrainingSession:
    """
    Convert dict to TrainingSession.

    Raises:
        ValidationError: If data is invalid
    """
    if not data.get("id"):
        raise ValidationError("Session record is missing id")
    if not data.get("template_code"):
        raise ValidationError("Session record is missing template_code")
    status = validate_status(data.get("status", "planned"))
    scheduled = data.get("scheduled_date")
    if scheduled is not None:
        validate_date(scheduled)

    return TrainingSession(
        id=str(data["id"]),
        template_code=str(data["template_code"]),
        status=status,
        scheduled_date=scheduled,
        started_at=validate_timestamp(data.get("started_at"), "started_at"),
        completed_at=validate_timestamp(data.get("completed_at"), "completed_at"),
        notes=data.get("notes"),
        sets=[dict_to_set_record(s) for s in data.get("sets", [])],
    )


def session_to_json_line(session: TrainingSession) -> str:
    """Serialize a session to a single JSONL line (no trailing newline)."""
    return json.dumps(session_to_dict(session), ensure_ascii=False)
