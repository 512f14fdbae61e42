"""
Minimal smoke tests for overload-planner CLI.

Tests basic functionality:
- App runs without errors
- Sessions file creates
- Upcoming workout is planned
- Sets can be logged and the session completed
- History, explain and catalog are shown
"""

import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from overload_planner.cli.main import app


runner = CliRunner()


@pytest.fixture
def temp_store_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _init(store_path: Path) -> None:
    result = runner.invoke(app, ["init", "-p", str(store_path)])
    assert result.exit_code == 0


def _next_json(store_path: Path) -> dict:
    result = runner.invoke(app, ["next", "-p", str(store_path), "--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestCLISmoke:
    """Smoke tests for CLI commands."""

    def test_app_help(self):
        """Test that help is displayed."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "next" in result.output
        assert "log-set" in result.output

    def test_init_creates_store(self, temp_store_dir):
        store_path = temp_store_dir / "sessions.jsonl"

        result = runner.invoke(app, ["init", "-p", str(store_path)])

        assert result.exit_code == 0
        assert store_path.exists()

        result = runner.invoke(app, ["init", "-p", str(store_path)])
        assert result.exit_code == 0
        assert "already exists" in result.output

    def test_next_requires_init(self, temp_store_dir):
        store_path = temp_store_dir / "missing.jsonl"
        result = runner.invoke(app, ["next", "-p", str(store_path)])
        assert result.exit_code == 1
        assert "Run 'init' first" in result.output

    def test_next_plans_workout_a(self, temp_store_dir):
        store_path = temp_store_dir / "sessions.jsonl"
        _init(store_path)

        data = _next_json(store_path)

        assert data["template_code"] == "A"
        assert data["status"] == "planned"
        chest = data["exercises"][0]
        assert chest["exercise_id"] == "machine-chest-press"
        assert chest["sets"] == 3
        assert chest["target_reps"] == "8-12"
        assert chest["target_rir"] == "RIR 3"
        assert chest["plan"]["stage"] == "build_1"

        # Same session on the second call
        assert _next_json(store_path)["id"] == data["id"]

    def test_next_table_output(self, temp_store_dir):
        store_path = temp_store_dir / "sessions.jsonl"
        _init(store_path)

        result = runner.invoke(app, ["next", "-p", str(store_path)])

        assert result.exit_code == 0
        assert "Workout A" in result.output
        assert "planned" in result.output

    def test_session_lifecycle(self, temp_store_dir):
        store_path = temp_store_dir / "sessions.jsonl"
        p = ["-p", str(store_path)]
        _init(store_path)
        _next_json(store_path)

        # Logging before start is refused
        result = runner.invoke(app, ["log-set", "machine-chest-press", "1", "10", "3", *p])
        assert result.exit_code == 1

        result = runner.invoke(app, ["start", *p])
        assert result.exit_code == 0
        assert "Started Workout A" in result.output

        result = runner.invoke(
            app, ["log-set", "machine-chest-press", "1", "10", "3", "-w", "60", *p]
        )
        assert result.exit_code == 0, result.output
        assert "Logged machine-chest-press set 1" in result.output

        # Unknown set number
        result = runner.invoke(app, ["log-set", "machine-chest-press", "9", "10", "3", *p])
        assert result.exit_code == 1

        # Not every set logged yet
        result = runner.invoke(app, ["complete", *p])
        assert result.exit_code == 1
        assert "not logged" in result.output

        result = runner.invoke(app, ["complete", "--force", *p])
        assert result.exit_code == 0
        assert "Completed Workout A" in result.output

        result = runner.invoke(app, ["history", *p])
        assert result.exit_code == 0
        assert "Training History" in result.output

        data = _next_json(store_path)
        assert data["template_code"] == "B"

    def test_explain_after_session(self, temp_store_dir):
        store_path = temp_store_dir / "sessions.jsonl"
        p = ["-p", str(store_path)]
        _init(store_path)
        _next_json(store_path)
        runner.invoke(app, ["start", *p])
        runner.invoke(app, ["log-set", "machine-chest-press", "1", "10", "3", "-w", "60", *p])
        runner.invoke(app, ["complete", "--force", *p])

        result = runner.invoke(app, ["explain", "-e", "machine-chest-press", "--json", *p])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)

        [exposure] = data["exposures"]
        # one set logged at RIR 3 under build_1 (target 3) → add_reps
        assert exposure["stage"] == "build_1"
        assert exposure["classification"] == "add_reps"
        assert exposure["max_load"] == 60.0
        assert data["plan"]["stage"] == "build_2"
        assert data["plan"]["recommended_weight"] == 60.0

        result = runner.invoke(app, ["explain", "-e", "machine-chest-press", *p])
        assert result.exit_code == 0
        assert "Machine Chest Press" in result.output

    def test_explain_unknown_exercise(self, temp_store_dir):
        store_path = temp_store_dir / "sessions.jsonl"
        _init(store_path)
        result = runner.invoke(app, ["explain", "-e", "nope", "-p", str(store_path)])
        assert result.exit_code == 1
        assert "Unknown exercise" in result.output

    def test_refresh(self, temp_store_dir):
        store_path = temp_store_dir / "sessions.jsonl"
        p = ["-p", str(store_path)]
        _init(store_path)

        # Nothing planned yet
        result = runner.invoke(app, ["refresh", *p])
        assert result.exit_code == 1

        _next_json(store_path)
        result = runner.invoke(app, ["refresh", *p])
        assert result.exit_code == 0
        assert "already up to date" in result.output

        runner.invoke(app, ["start", *p])
        result = runner.invoke(app, ["refresh", *p])
        assert result.exit_code == 1

    def test_catalog(self):
        result = runner.invoke(app, ["catalog"])
        assert result.exit_code == 0
        assert "Workout A" in result.output

    def test_verbose_flag(self, temp_store_dir):
        store_path = temp_store_dir / "sessions.jsonl"
        _init(store_path)
        result = runner.invoke(app, ["-v", "history", "-p", str(store_path)])
        assert result.exit_code == 0
        assert "No completed sessions yet" in result.output

    def test_refresh_with_invalid_policy_override(self, temp_store_dir, monkeypatch):
        store_path = temp_store_dir / "sessions.jsonl"
        p = ["-p", str(store_path)]
        _init(store_path)
        _next_json(store_path)

        home = temp_store_dir / "home"
        (home / ".overload-planner").mkdir(parents=True)
        (home / ".overload-planner" / "policy.yaml").write_text(
            "evaluation:\n  stall_streak: 0\n"
        )
        monkeypatch.setenv("HOME", str(home))

        result = runner.invoke(app, ["refresh", *p])
        assert result.exit_code == 1
        assert "stall_streak must be at least 1" in result.output

        result = runner.invoke(app, ["next", *p])
        assert result.exit_code == 1
        assert "stall_streak must be at least 1" in result.output
