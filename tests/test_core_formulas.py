"""
Rule-focused unit tests for the progression engine.

Each test pins one rule of the pipeline:
  statistics → stage inference → evaluation → stall → loads → targets

Values are hand-computed from the rules so the tests document them.
"""

import pytest

from overload_planner.core.composer import (
    compose_goal,
    deload_rep_range,
    format_load,
    format_rep_range,
    format_rir_range,
)
from overload_planner.core.config import (
    DEFAULT_POLICY,
    EFFORT_TOLERANCE,
    LOAD_INCREMENT_KG,
    STAGE_EFFORT_TARGETS,
    STAGE_SEQUENCE,
    ProgressionPolicy,
)
from overload_planner.core.engine.config_loader import load_policy, policy_from_dict
from overload_planner.core.evaluation import classify_stats, detect_stall, evaluate_exposure
from overload_planner.core.exercises.base import ExerciseDescriptor
from overload_planner.core.exercises.loader import load_catalog_from_yaml
from overload_planner.core.exercises.registry import (
    TEMPLATE_REGISTRY,
    category_for,
    get_exercise,
    get_template,
    next_template_code,
)
from overload_planner.core.loads import (
    last_known_load,
    recommend_load,
    round_half_up,
    round_to_increment,
)
from overload_planner.core.models import Exposure, SetRecord
from overload_planner.core.stages import (
    assigned_effort_target,
    infer_stage,
    last_trained_stage,
    next_stage,
    stage_from_target,
    upcoming_stage,
)
from overload_planner.core.statistics import (
    coerce_load,
    compute_exposure_stats,
    compute_set_stats,
    exposure_volume,
)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

COMPOUND = ExerciseDescriptor(
    exercise_id="press",
    display_name="Press",
    primary_muscles=("chest", "triceps"),
    rep_min=8,
    rep_max=12,
)

ACCESSORY = ExerciseDescriptor(
    exercise_id="raise",
    display_name="Raise",
    primary_muscles=("shoulders",),
    rep_min=12,
    rep_max=15,
)


def _row(
    reps: int | None,
    rir: int | None,
    weight: float | str | None = None,
    *,
    set_number: int = 1,
    exercise_id: str = "press",
    rir_min: int | None = None,
    rir_max: int | None = None,
    rir_text: str = "",
    goal: str | None = None,
) -> SetRecord:
    return SetRecord(
        exercise_id=exercise_id,
        set_number=set_number,
        target_rir=rir_text,
        target_rir_min=rir_min,
        target_rir_max=rir_max,
        goal=goal,
        performed_reps=reps,
        performed_rir=rir,
        weight=weight,
    )


def _exposure(rows: list[SetRecord], exercise_id: str = "press") -> Exposure:
    return Exposure(
        session_id="s1",
        exercise_id=exercise_id,
        completed_at="2026-01-05T18:00:00",
        sets=tuple(rows),
    )


def _stats(reps: list[int | None], rirs: list[int | None], ceiling: int):
    rows = [_row(r, i, set_number=n + 1) for n, (r, i) in enumerate(zip(reps, rirs))]
    return compute_set_stats(rows, ceiling)


# ---------------------------------------------------------------------------
# Exposure statistics
# ---------------------------------------------------------------------------


class TestExposureStatistics:
    """Aggregation over the logged sets of one exposure."""

    def test_nulls_are_excluded_from_each_array(self):
        rows = [
            _row(10, 2, 60, set_number=1),
            _row(8, 1, "62.5", set_number=2),
            _row(None, None, "abc", set_number=3),
        ]
        s = compute_set_stats(rows, rep_ceiling=12)
        assert s.avg_reps == pytest.approx(9.0)
        assert s.min_reps == 8
        assert s.max_reps == 10
        assert s.avg_rir == pytest.approx(1.5)
        assert s.min_rir == 1
        assert s.max_rir == 2
        assert s.sets_with_data == 2
        assert s.max_load == 62.5
        assert s.all_sets_at_ceiling is False

    def test_all_sets_at_ceiling(self):
        s = _stats([12, 12, 13], [2, 2, 2], ceiling=12)
        assert s.all_sets_at_ceiling is True

    def test_ceiling_requires_at_least_one_rep_count(self):
        s = _stats([None, None], [2, 3], ceiling=12)
        assert s.all_sets_at_ceiling is False
        # sets_with_data = max(len(reps)=0, len(rirs)=2)
        assert s.sets_with_data == 2
        assert s.avg_reps is None

    def test_empty_exposure(self):
        s = compute_exposure_stats(_exposure([]), rep_ceiling=12)
        assert s.sets_with_data == 0
        assert s.avg_reps is None
        assert s.avg_rir is None
        assert s.max_load is None

    def test_coerce_load(self):
        assert coerce_load(80) == 80.0
        assert coerce_load("72.5") == 72.5
        assert coerce_load("heavy") is None
        assert coerce_load("") is None
        assert coerce_load(None) is None
        assert coerce_load(True) is None
        assert coerce_load("nan") is None
        assert coerce_load("inf") is None
        assert coerce_load(float("-inf")) is None

    def test_exposure_volume(self):
        # 60×10 + 62.5×8 = 600 + 500 = 1100; the non-numeric load is skipped
        exposure = _exposure([
            _row(10, 2, 60, set_number=1),
            _row(8, 1, "62.5", set_number=2),
            _row(9, 1, "abc", set_number=3),
        ])
        assert exposure_volume(exposure) == pytest.approx(1100.0)


# ---------------------------------------------------------------------------
# Stage inference and sequencing
# ---------------------------------------------------------------------------


class TestStageInference:
    """Recovering the trained stage from assigned RIR targets."""

    @pytest.mark.parametrize(
        "target,stage",
        [(0, "build_3"), (1, "build_3"), (2, "build_2"), (3, "build_1"), (4, "deload"), (5, "deload")],
    )
    def test_stage_from_target(self, target, stage):
        assert stage_from_target(target) == stage

    def test_stage_targets_round_trip(self):
        for stage in STAGE_SEQUENCE:
            assert stage_from_target(STAGE_EFFORT_TARGETS[stage][0]) == stage

    def test_assigned_target_prefers_min_then_max_then_text(self):
        assert assigned_effort_target(_row(None, None, rir_min=2, rir_max=3, rir_text="RIR 4")) == 2
        assert assigned_effort_target(_row(None, None, rir_max=3, rir_text="RIR 4")) == 3
        assert assigned_effort_target(_row(None, None, rir_text="RIR 4-5")) == 4
        assert assigned_effort_target(_row(None, None)) is None

    def test_first_recognizable_set_wins(self):
        exposure = _exposure([
            _row(10, 2, set_number=1),
            _row(10, 2, set_number=2, rir_min=2, rir_max=2),
            _row(10, 2, set_number=3, rir_min=1, rir_max=1),
        ])
        assert infer_stage(exposure) == "build_2"

    def test_deload_goal_marker_fallback(self):
        exposure = _exposure([_row(6, 4, goal="deload week: 75 kg for 5-7 reps")])
        assert infer_stage(exposure) == "deload"

    def test_unknown_stage(self):
        assert infer_stage(_exposure([_row(10, 2, goal="Continue")])) is None

    def test_next_stage_is_cyclic(self):
        assert next_stage(None) == "build_1"
        assert next_stage("build_1") == "build_2"
        assert next_stage("build_2") == "build_3"
        assert next_stage("build_3") == "deload"
        assert next_stage("deload") == "build_1"

    def test_last_trained_stage(self):
        assert last_trained_stage([]) is None
        # Unrecognizable exposure counts as build_1
        assert last_trained_stage([_exposure([_row(10, 2)])]) == "build_1"
        assert last_trained_stage([_exposure([_row(10, 2, rir_min=1)])]) == "build_3"

    def test_stall_overrides_sequence(self):
        assert upcoming_stage("build_1", stall_detected=True) == "deload"
        assert upcoming_stage("build_1", stall_detected=False) == "build_2"


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


class TestCompoundEvaluation:
    """Compound rules at build_2: target RIR 2, tolerance 0.5, rep floor 8."""

    def _classify(self, reps, rirs):
        return classify_stats(_stats(reps, rirs, ceiling=12), "build_2", "compound", 8)

    def test_reserve_above_band_increases_load(self):
        # avg RIR 3.0 > 2 + 0.5
        assert self._classify([10, 10, 10], [3, 3, 3]) == "increase_load"

    def test_reserve_on_band_edge_adds_reps(self):
        # |2.5 − 2| = 0.5 ≤ 0.5
        assert self._classify([10, 10], [3, 2]) == "add_reps"

    def test_reserve_below_band_struggles(self):
        # avg RIR 0.67, min RIR 0 < 1.5
        assert self._classify([8, 7, 6], [1, 1, 0]) == "struggling"

    def test_no_rir_logged_adds_reps(self):
        assert self._classify([6, 6, 6], [None, None, None]) == "add_reps"

    def test_no_data(self):
        assert self._classify([None, None], [None, None]) == "no_data"

    def test_deload_stage_is_never_judged(self):
        stats = _stats([5, 5, 5], [0, 0, 0], ceiling=12)
        assert classify_stats(stats, "deload", "compound", 8) == "deload"

    def test_no_data_wins_over_deload(self):
        stats = _stats([None], [None], ceiling=12)
        assert classify_stats(stats, "deload", "compound", 8) == "no_data"


class TestAccessoryEvaluation:
    """Accessory rules at build_1: target RIR 3, tolerance 0.5, range 12-15."""

    def _classify(self, reps, rirs, category="accessory"):
        return classify_stats(_stats(reps, rirs, ceiling=15), "build_1", category, 12)

    def test_all_sets_at_ceiling_increase_load(self):
        assert self._classify([15, 15, 16], [3, 3, 3]) == "increase_load"

    def test_ceiling_but_too_much_reserve_adds_reps(self):
        # avg RIR 4 > 3.5
        assert self._classify([15, 15, 15], [4, 4, 4]) == "add_reps"

    def test_ceiling_without_rir_increase_load(self):
        assert self._classify([15, 15, 15], [None, None, None]) == "increase_load"

    def test_reps_below_floor_struggle(self):
        assert self._classify([11, 13, 13], [3, 3, 3]) == "struggling"

    def test_reserve_below_band_struggles(self):
        # min RIR 2 < 3 − 0.5
        assert self._classify([13, 13, 13], [2, 2, 2]) == "struggling"

    def test_in_range_adds_reps(self):
        assert self._classify([13, 14, 13], [3, 3, 3]) == "add_reps"

    def test_unknown_category_uses_accessory_rules(self):
        assert self._classify([15, 15, 15], [3, 3, 3], category="cable") == "increase_load"


class TestEvaluateExposure:
    def test_unknown_stage_evaluated_as_build_1(self):
        ev = evaluate_exposure(_exposure([_row(10, 3)]), None, "compound", COMPOUND)
        assert ev.stage == "build_1"
        # avg RIR 3 within build_1 target 3 ± 0.5
        assert ev.classification == "add_reps"
        assert ev.stats.avg_reps == 10


class TestStallDetection:
    """Two consecutive struggling exposures (most-recent-first) is a stall."""

    def test_two_struggling(self):
        assert detect_stall(["struggling", "struggling"]) is True

    def test_older_struggles_do_not_count(self):
        assert detect_stall(["add_reps", "struggling", "struggling"]) is False

    def test_interrupted_streak(self):
        assert detect_stall(["struggling", "add_reps", "struggling"]) is False

    def test_single_exposure_never_stalls(self):
        assert detect_stall(["struggling"]) is False
        assert detect_stall([]) is False

    def test_longer_streak_policy(self):
        policy = ProgressionPolicy(stall_streak=3)
        assert detect_stall(["struggling", "struggling"], policy) is False
        assert detect_stall(["struggling"] * 3, policy) is True


# ---------------------------------------------------------------------------
# Loads
# ---------------------------------------------------------------------------


class TestLoadRecommendation:
    """Recommended load, rounded to the category increment."""

    def test_increments(self):
        assert LOAD_INCREMENT_KG["compound"] == 2.5
        assert LOAD_INCREMENT_KG["accessory"] == 1.25

    def test_increase_load_adds_one_increment(self):
        assert recommend_load("compound", "build_2", "increase_load", 100.0) == 102.5
        assert recommend_load("accessory", "build_2", "increase_load", 20.0) == 21.25

    def test_deload_takes_three_quarters(self):
        assert recommend_load("compound", "deload", "add_reps", 100.0) == 75.0
        # 20 × 0.75 = 15 = 12 × 1.25
        assert recommend_load("accessory", "deload", "increase_load", 20.0) == 15.0

    def test_struggling_backs_off_five_percent(self):
        assert recommend_load("compound", "build_3", "struggling", 100.0) == 95.0
        # 62.5 × 0.95 = 59.375 → 23.75 steps → 24 × 2.5 = 60
        assert recommend_load("compound", "build_3", "struggling", 62.5) == 60.0

    def test_other_verdicts_keep_load_rounded(self):
        # 61 / 2.5 = 24.4 → 24 steps
        assert recommend_load("compound", "build_2", "add_reps", 61.0) == 60.0
        assert recommend_load("compound", "build_2", "no_data", 60.0) == 60.0
        assert recommend_load("compound", "build_1", None, 60.0) == 60.0

    def test_no_history_load(self):
        assert recommend_load("compound", "build_2", "increase_load", None) is None

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(4.8) == 5
        assert round_half_up(7.2) == 7

    def test_round_to_increment(self):
        assert round_to_increment(1.25, 2.5) == 2.5
        assert round_to_increment(-5.0, 2.5) == 0.0
        with pytest.raises(ValueError):
            round_to_increment(10.0, 0)

    def test_last_known_load_skips_exposures_without_load(self):
        no_load = _stats([10], [2], ceiling=12)
        loaded = compute_set_stats([_row(10, 2, 50), _row(9, 1, 52.5, set_number=2)], 12)
        assert last_known_load([no_load, loaded]) == 52.5
        assert last_known_load([no_load]) is None


# ---------------------------------------------------------------------------
# Targets and text
# ---------------------------------------------------------------------------


class TestTargets:
    def test_deload_rep_range(self):
        # round(8 × 0.6) = round(4.8) = 5; round(12 × 0.6) = round(7.2) = 7
        assert deload_rep_range(8, 12) == (5, 7)
        # round(7.2) = 7; round(9.0) = 9
        assert deload_rep_range(12, 15) == (7, 9)

    def test_deload_rep_range_floor(self):
        assert deload_rep_range(1, 2) == (1, 1)
        assert deload_rep_range(1, 1) == (1, 1)

    def test_formatters(self):
        assert format_rep_range(8, 12) == "8-12"
        assert format_rep_range(8, 8) == "8"
        assert format_rir_range(4, 5) == "RIR 4-5"
        assert format_rir_range(3, 3) == "RIR 3"
        assert format_load(102.5) == "102.5 kg"
        assert format_load(100.0) == "100 kg"

    def test_stall_deload_goal(self):
        goal = compose_goal("deload", "struggling", True, "75 kg", "5-7", "RIR 4-5", 7)
        assert goal.startswith("Deload (stall detected): 75 kg")

    def test_first_session_goal_without_load(self):
        goal = compose_goal("build_1", None, False, None, "8-12", "RIR 3", 12)
        assert goal.startswith("First session: choose a load")


# ---------------------------------------------------------------------------
# Catalog and policy configuration
# ---------------------------------------------------------------------------


class TestCatalog:
    def test_category_from_muscle_count(self):
        assert COMPOUND.effective_category == "compound"
        assert ACCESSORY.effective_category == "accessory"

    def test_explicit_category(self):
        assert category_for("machine-seated-row") == "compound"
        assert category_for("machine-chest-press") == "compound"
        assert category_for("machine-lateral-raise") == "accessory"
        assert category_for("not-in-catalog") == "accessory"

    def test_invalid_rep_range_rejected(self):
        with pytest.raises(ValueError):
            ExerciseDescriptor("x", "X", rep_min=12, rep_max=8)

    def test_rotation(self):
        assert list(TEMPLATE_REGISTRY) == ["A", "B", "C", "D"]
        assert next_template_code(None) == "A"
        assert next_template_code("A") == "B"
        assert next_template_code("D") == "A"
        assert next_template_code("Z") == "A"

    def test_templates_reference_catalog(self):
        template = get_template("A")
        assert template.exercise_ids[0] == "machine-chest-press"
        assert len(template.exercise_ids) == 5

    def test_unknown_exercise(self):
        with pytest.raises(ValueError, match="Unknown exercise"):
            get_exercise("nope")

    def test_user_override_is_merged(self, tmp_path):
        override = tmp_path / "catalog.yaml"
        override.write_text(
            "exercises:\n"
            "  machine-chest-press:\n"
            "    rep_min: 6\n"
            "    rep_max: 10\n"
        )
        exercises, templates = load_catalog_from_yaml(user_path=override)
        assert exercises["machine-chest-press"].rep_min == 6
        assert exercises["machine-chest-press"].display_name == "Machine Chest Press"
        assert set(templates) == {"A", "B", "C", "D"}

    def test_template_with_unknown_exercise_skipped(self, tmp_path):
        override = tmp_path / "catalog.yaml"
        override.write_text(
            "templates:\n"
            "  E:\n"
            "    title: Workout E\n"
            "    exercises: [does-not-exist]\n"
        )
        with pytest.warns(UserWarning, match="unknown exercises"):
            _, templates = load_catalog_from_yaml(user_path=override)
        assert "E" not in templates

    def test_unknown_keys_are_ignored(self, tmp_path):
        override = tmp_path / "catalog.yaml"
        override.write_text(
            "exercises:\n"
            "  machine-chest-press:\n"
            "    cues: [elbows tucked]\n"
            "    notes: Seat at handle height\n"
        )
        exercises, _ = load_catalog_from_yaml(user_path=override)
        press = exercises["machine-chest-press"]
        assert press.notes == "Seat at handle height"
        assert not hasattr(press, "cues")


class TestPolicyConfig:
    def test_bundled_policy_matches_defaults(self, tmp_path):
        missing = tmp_path / "none.yaml"
        policy = load_policy(user_path=missing)
        assert policy == DEFAULT_POLICY
        assert policy.effort_tolerance == EFFORT_TOLERANCE

    def test_user_override(self, tmp_path):
        override = tmp_path / "policy.yaml"
        override.write_text(
            "loads:\n"
            "  increments_kg:\n"
            "    compound: 5.0\n"
            "evaluation:\n"
            "  stall_streak: 3\n"
        )
        policy = load_policy(user_path=override)
        assert policy.increment_for("compound") == 5.0
        assert policy.increment_for("accessory") == 1.25
        assert policy.stall_streak == 3
        assert policy.effort_tolerance == 0.5

    def test_broken_user_file_warns(self, tmp_path):
        override = tmp_path / "policy.yaml"
        override.write_text("loads: [unclosed\n")
        with pytest.warns(UserWarning, match="ignoring unreadable override"):
            policy = load_policy(user_path=override)
        assert policy == DEFAULT_POLICY

    def test_invalid_values_rejected(self):
        with pytest.raises(ValueError):
            policy_from_dict({"evaluation": {"stall_streak": 0}})
        with pytest.raises(ValueError):
            ProgressionPolicy(load_increments={"compound": 2.5})

    def test_unknown_category_increment(self):
        assert DEFAULT_POLICY.increment_for("cable") == 1.25
