"""
JSONL-based storage for training sessions.

Each line holds one session with its set rows embedded.  Every write
rewrites the whole file (last write wins; there is no per-field merge).
The store doubles as the exposure repository the progression engine reads
history from.
"""

import dataclasses
import json
import logging
import uuid
from datetime import datetime
from pathlib import Path

from ..core.composer import apply_plan_to_sets
from ..core.config import EXPOSURE_WINDOW, HISTORY_SESSION_WINDOW
from ..core.models import ComputedPlan, Exposure, SessionProgress, SetRecord, TrainingSession
from ..core.statistics import set_volume
from .serializers import ValidationError, dict_to_session, session_to_json_line

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """Raised when a session id is not in the store."""


class SessionStateError(Exception):
    """Raised when an operation is not allowed in the session's current status."""


def _timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).isoformat(timespec="seconds")


class SessionStore:
    """
    Manages training sessions stored in JSONL format.

    The file contains one JSON object per line, one per session, in
    creation order.
    """

    def __init__(self, path: str | Path):
        """
        Initialize the session store.

        Args:
            path: Path to the JSONL sessions file
        """
        self.path = Path(path)

    def exists(self) -> bool:
        """Check if the sessions file exists."""
        return self.path.exists()

    def init(self) -> None:
        """
        Initialize an empty sessions file if it doesn't exist.

        Creates parent directories if needed.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        if not self.path.exists():
            self.path.touch()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def load_sessions(self) -> list[TrainingSession]:
        """
        Load all sessions.

        Returns:
            Sessions in file (creation) order

        Raises:
            FileNotFoundError: If the sessions file doesn't exist
            ValidationError: If a line cannot be parsed
        """
        if not self.path.exists():
            raise FileNotFoundError(
                f"Sessions file not found: {self.path}. Run 'init' first."
            )

        sessions: list[TrainingSession] = []

        with open(self.path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    sessions.append(dict_to_session(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.path}: {e}"
                    ) from e

        return sessions

    def get_session(self, session_id: str) -> TrainingSession:
        """
        Return one session by id.

        Raises:
            SessionNotFoundError: If no session has this id
        """
        for session in self.load_sessions():
            if session.id == session_id:
                return session
        raise SessionNotFoundError(f"Session not found: {session_id}")

    def find_first(self, status: str) -> TrainingSession | None:
        """
        Earliest session with the given status.

        Planned sessions are ordered by scheduled date, in-progress ones by
        start time; ties keep creation order.
        """
        matches = [s for s in self.load_sessions() if s.status == status]
        if not matches:
            return None
        if status == "in_progress":
            return min(matches, key=lambda s: s.started_at or "")
        return min(matches, key=lambda s: s.scheduled_date or "")

    def completed_sessions(self) -> list[TrainingSession]:
        """
        Completed sessions, most recently completed first.

        Sessions completed in the same second keep the later-written one first.
        """
        done = [
            (s.completed_at or "", index, s)
            for index, s in enumerate(self.load_sessions())
            if s.status == "completed"
        ]
        done.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [s for _, _, s in done]

    def last_completed(self) -> TrainingSession | None:
        """Most recently completed session, or None."""
        done = self.completed_sessions()
        return done[0] if done else None

    def fetch_recent_exposures(
        self,
        exercise_id: str,
        session_limit: int = HISTORY_SESSION_WINDOW,
        exposure_limit: int = EXPOSURE_WINDOW,
    ) -> list[Exposure]:
        """
        Recent exposures of one exercise, most recent first.

        Scans the ``session_limit`` most recently completed sessions and keeps
        at most ``exposure_limit`` exposures.

        Args:
            exercise_id: Exercise to collect
            session_limit: Completed sessions to scan
            exposure_limit: Exposures to keep

        Returns:
            List of Exposure
        """
        exposures: list[Exposure] = []
        for session in self.completed_sessions()[:session_limit]:
            sets = session.sets_for(exercise_id)
            if not sets:
                continue
            exposures.append(
                Exposure(
                    session_id=session.id,
                    exercise_id=exercise_id,
                    completed_at=session.completed_at or "",
                    sets=tuple(sets),
                )
            )
            if len(exposures) >= exposure_limit:
                break
        logger.debug("Fetched %s exposures for %s", len(exposures), exercise_id)
        return exposures

    def progress_summaries(self, limit: int = 6) -> list[SessionProgress]:
        """
        Totals for the most recently completed sessions.

        Volume sums load × reps over sets that logged both.
        """
        summaries: list[SessionProgress] = []
        for session in self.completed_sessions()[:limit]:
            summaries.append(
                SessionProgress(
                    session=session,
                    total_sets=len(session.sets),
                    logged_sets=sum(1 for s in session.sets if s.performed_reps is not None),
                    total_volume=set_volume(session.sets),
                )
            )
        return summaries

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _write_sessions(self, sessions: list[TrainingSession]) -> None:
        """
        Write all sessions to the file.

        Args:
            sessions: Sessions to write
        """
        with open(self.path, "w", encoding="utf-8") as f:
            for session in sessions:
                f.write(session_to_json_line(session) + "\n")

    def _update(self, session_id: str, change) -> TrainingSession:
        """Apply ``change(session) -> session`` to one session and rewrite the file."""
        sessions = self.load_sessions()
        for i, session in enumerate(sessions):
            if session.id == session_id:
                sessions[i] = change(session)
                self._write_sessions(sessions)
                return sessions[i]
        raise SessionNotFoundError(f"Session not found: {session_id}")

    def create_session(
        self,
        template_code: str,
        sets: list[SetRecord],
        scheduled_date: str,
    ) -> TrainingSession:
        """
        Append a new planned session.

        Args:
            template_code: Workout code (A/B/C/D)
            sets: Initial set rows
            scheduled_date: ISO date

        Returns:
            The stored session
        """
        session = TrainingSession(
            id=uuid.uuid4().hex,
            template_code=template_code,
            status="planned",
            scheduled_date=scheduled_date,
            sets=list(sets),
        )
        sessions = self.load_sessions()
        sessions.append(session)
        self._write_sessions(sessions)
        logger.debug("Created planned session %s (%s)", session.id, template_code)
        return session

    def replace_sets(self, session_id: str, sets: list[SetRecord]) -> TrainingSession:
        """
        Replace all set rows of a planned session.

        Raises:
            SessionStateError: If the session is not planned
        """
        def change(session: TrainingSession) -> TrainingSession:
            _require_status(session, "planned", "rebuild set rows")
            return dataclasses.replace(session, sets=list(sets))

        return self._update(session_id, change)

    def replace_exercise_targets(
        self,
        session_id: str,
        exercise_id: str,
        plan: ComputedPlan,
    ) -> TrainingSession:
        """
        Overwrite the target fields of every row of one exercise.

        Raises:
            SessionStateError: If the session is not planned
        """
        def change(session: TrainingSession) -> TrainingSession:
            _require_status(session, "planned", "change targets")
            rows = [s for s in session.sets if s.exercise_id == exercise_id]
            updated = iter(apply_plan_to_sets(plan, rows))
            new_sets = [next(updated) if s.exercise_id == exercise_id else s for s in session.sets]
            return dataclasses.replace(session, sets=new_sets)

        logger.debug("Writing targets for %s onto session %s", exercise_id, session_id)
        return self._update(session_id, change)

    def start_session(self, session_id: str, now: datetime | None = None) -> TrainingSession:
        """
        Move a planned session to in_progress.

        Raises:
            SessionStateError: If the session is not planned
        """
        def change(session: TrainingSession) -> TrainingSession:
            _require_status(session, "planned", "start")
            return dataclasses.replace(session, status="in_progress", started_at=_timestamp(now))

        return self._update(session_id, change)

    def log_set(
        self,
        session_id: str,
        exercise_id: str,
        set_number: int,
        performed_reps: int,
        performed_rir: int,
        weight: float | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> TrainingSession:
        """
        Record the performed values of one set.

        Raises:
            SessionStateError: If the session is not in progress
            SessionNotFoundError: If the set row does not exist
            ValueError: If a value is negative
        """
        def change(session: TrainingSession) -> TrainingSession:
            _require_status(session, "in_progress", "log sets")
            new_sets = list(session.sets)
            for i, s in enumerate(new_sets):
                if s.exercise_id == exercise_id and s.set_number == set_number:
                    new_sets[i] = dataclasses.replace(
                        s,
                        performed_reps=performed_reps,
                        performed_rir=performed_rir,
                        weight=weight,
                        notes=notes,
                        logged_at=_timestamp(now),
                    )
                    return dataclasses.replace(session, sets=new_sets)
            raise SessionNotFoundError(
                f"No set {set_number} of {exercise_id} in session {session_id}"
            )

        return self._update(session_id, change)

    def complete_session(
        self,
        session_id: str,
        force: bool = False,
        now: datetime | None = None,
    ) -> TrainingSession:
        """
        Mark a session completed.

        Normal completion requires an in-progress session with every set
        logged.  ``force`` completes a planned or in-progress session as is.

        Raises:
            SessionStateError: If completion is not allowed
        """
        def change(session: TrainingSession) -> TrainingSession:
            if force:
                if session.status == "completed":
                    raise SessionStateError(f"Session {session.id} is already completed")
            else:
                _require_status(session, "in_progress", "complete")
                unlogged = len(session.sets) - session.logged_set_count
                if unlogged:
                    raise SessionStateError(
                        f"{unlogged} set(s) not logged yet; use force to complete anyway"
                    )
            started = session.started_at or _timestamp(now)
            return dataclasses.replace(
                session,
                status="completed",
                started_at=started,
                completed_at=_timestamp(now),
            )

        return self._update(session_id, change)

    def delete_session(self, session_id: str) -> None:
        """
        Delete a session.

        Raises:
            SessionNotFoundError: If no session has this id
        """
        sessions = self.load_sessions()
        remaining = [s for s in sessions if s.id != session_id]
        if len(remaining) == len(sessions):
            raise SessionNotFoundError(f"Session not found: {session_id}")
        self._write_sessions(remaining)


def _require_status(session: TrainingSession, status: str, action: str) -> None:
    if session.status != status:
        raise SessionStateError(
            f"Cannot {action}: session {session.id} is {session.status}, expected {status}"
        )


def get_default_store_path() -> Path:
    """Default sessions file: ~/.overload-planner/sessions.jsonl."""
    return Path.home() / ".overload-planner" / "sessions.jsonl"
