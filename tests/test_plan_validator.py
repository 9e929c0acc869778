"""Tests for structural plan validation."""
from class_plan_normalizer.errors import INCOMPLETE_STRUCTURE_MESSAGE
from class_plan_normalizer.models import NormalizedType, Plan
from class_plan_normalizer.services.plan_validator import (
    NO_COOLDOWN_WARNING,
    NO_MAIN_WARNING,
    NO_WARMUP_WARNING,
    validate_plan,
)

from factories import make_block, make_plan


def full_plan():
    return make_plan(
        make_block("warmup", NormalizedType.WARMUP, [(300, "March")]),
        make_block("main", NormalizedType.AMRAP, [(600, "Burpees")]),
        make_block("cooldown", NormalizedType.COOLDOWN, [(300, "Stretch")]),
        duration_min=20,
    )


class TestCriticalFailure:
    """Only missing structure is fatal."""

    def test_no_blocks(self):
        report = validate_plan(Plan(), 2700)
        assert report.is_valid is False
        assert report.outcome == "critical_failure"
        assert report.errors == [INCOMPLETE_STRUCTURE_MESSAGE]

    def test_every_timeline_empty(self):
        plan = make_plan(make_block("a", NormalizedType.INTERVAL, []), make_block("b", NormalizedType.COOLDOWN, []))
        assert validate_plan(plan, 600).outcome == "critical_failure"


class TestWarnings:
    """Structural warnings never block success."""

    def test_complete_plan_is_ok(self):
        report = validate_plan(full_plan(), 1200)
        assert report.is_valid is True
        assert report.outcome == "ok"
        assert report.warnings == []

    def test_missing_warmup_and_cooldown(self):
        plan = make_plan(make_block("main", NormalizedType.INTERVAL, [(600, "Run")]), duration_min=10)
        report = validate_plan(plan, 600)
        assert report.outcome == "ok_with_warnings"
        assert report.warnings == [NO_WARMUP_WARNING, NO_COOLDOWN_WARNING]

    def test_no_main_content(self):
        plan = make_plan(
            make_block("warmup", NormalizedType.WARMUP, [(60, "March")]),
            make_block("transition", NormalizedType.TRANSITION, [(15, "Transition to next block")]),
            make_block("cooldown", NormalizedType.COOLDOWN, [(60, "Stretch")]),
        )
        assert NO_MAIN_WARNING in validate_plan(plan, 135).warnings

    def test_large_duration_drift(self):
        report = validate_plan(full_plan(), 2700)
        assert len(report.warnings) == 1
        assert "differs significantly" in report.warnings[0]

    def test_moderate_drift_is_fine(self):
        assert validate_plan(full_plan(), 1500).warnings == []
