"""
CLI entry point using Typer.

Provides commands for planning and logging the A/B/C/D rotation:
- init: Create the sessions file
- next: Plan (or show) the upcoming workout
- refresh: Recompute a planned workout's targets
- explain: Show how one exercise's targets were derived
- start / log-set / complete: Session lifecycle
- history: Completed sessions with volume totals
- catalog: Exercises and workout templates
"""

from .app import app
from .commands import planning, sessions  # noqa: F401  (registers commands)

__all__ = ["app"]


if __name__ == "__main__":
    app()
