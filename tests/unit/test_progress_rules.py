"""
Unit tests for domain/services/progress_rules.py
"""

from datetime import datetime, timedelta, timezone

import pytest

from domain.models import ProgressUpdate, UserProgress
from domain.services.progress_rules import (
    ProgressRule,
    ProgressUpdateValidator,
    RuleSeverity,
    UpdateContext,
)
from tests.fakes import make_program, make_progress

pytestmark = pytest.mark.unit

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def program():
    return make_program([3, 4])


@pytest.fixture
def validator():
    return ProgressUpdateValidator()


def context(program, existing, **proposed):
    return UpdateContext(program=program, existing=existing, proposed=ProgressUpdate(**proposed), now=NOW)


def rule_ids(findings):
    return [f.rule_id for f in findings]


class TestValidatorBasics:
    def test_default_rule_order(self, validator):
        assert validator.rule_ids == [
            "program-enrollment",
            "milestone-bounds",
            "day-bounds",
            "progress-direction",
            "workout-count-consistency",
            "time-sequence",
            "exercise-completion-integrity",
            "data-type-validation",
            "concurrent-update-detection",
            "business-rule-validation",
        ]

    def test_clean_update_scores_100(self, validator, program):
        result = validator.validate(context(program, make_progress(0, 1), milestone_index=0, day_index=2))
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []
        assert result.validation_score == 100

    def test_warnings_do_not_invalidate(self, validator, program):
        result = validator.validate(context(program, make_progress(1, 2), milestone_index=1, day_index=0))
        assert result.is_valid
        assert rule_ids(result.warnings) == ["progress-direction"]
        assert result.validation_score == 90

    def test_raising_rule_becomes_error(self, program):
        def boom(ctx):
            raise RuntimeError("boom")

        validator = ProgressUpdateValidator([ProgressRule("explodes", "Explodes", RuleSeverity.WARNING, boom)])
        result = validator.validate(context(program, make_progress(), milestone_index=0, day_index=0))
        assert not result.is_valid
        assert result.error_messages == ["Validation rule execution failed: boom"]
        assert result.validation_score == 0

    def test_add_and_remove_rule(self, validator):
        validator.add_rule(ProgressRule("custom", "Custom", RuleSeverity.INFO, lambda ctx: "note"))
        assert validator.rule_ids[-1] == "custom"
        assert validator.remove_rule("custom") is True
        assert validator.remove_rule("custom") is False
        assert "custom" not in validator.rule_ids

    def test_info_findings_count_as_passed(self, program):
        validator = ProgressUpdateValidator([ProgressRule("note", "Note", RuleSeverity.INFO, lambda ctx: "fyi")])
        result = validator.validate(context(program, make_progress(), milestone_index=0, day_index=0))
        assert result.is_valid
        assert result.info[0].message == "fyi"
        assert result.validation_score == 100


class TestStructuralRules:
    def test_not_enrolled(self, validator, program):
        existing = make_progress(0, 0, program_id="other")
        result = validator.validate(context(program, existing, milestone_index=0, day_index=1))
        assert "program-enrollment" in rule_ids(result.errors)

    def test_missing_program(self, validator):
        result = validator.validate(context(None, make_progress(), milestone_index=0, day_index=0))
        assert "program-enrollment" in rule_ids(result.errors)
        assert "milestone-bounds" in rule_ids(result.errors)

    def test_milestone_out_of_range(self, validator, program):
        result = validator.validate(context(program, make_progress(1, 0), milestone_index=5, day_index=0))
        messages = result.error_messages
        assert "Milestone index 5 is outside valid range (0-1)" in messages
        assert "Milestone 5 has no days for validation" in messages

    def test_day_out_of_range(self, validator, program):
        result = validator.validate(context(program, make_progress(0, 0), milestone_index=0, day_index=3))
        assert "Day index 3 is outside valid range (0-2) for milestone 0" in result.error_messages

    def test_negative_index_is_a_type_error(self, validator, program):
        result = validator.validate(context(program, make_progress(0, 0), milestone_index=0, day_index=-1))
        assert "data-type-validation" in rule_ids(result.errors)

    def test_workout_total_too_large(self, validator, program):
        result = validator.validate(
            context(program, make_progress(0, 0), milestone_index=0, day_index=0, total_workouts_completed=20000)
        )
        assert any("reasonable maximum" in m for m in result.error_messages)


class TestConsistencyRules:
    def test_workout_count_inconsistency(self, validator, program):
        result = validator.validate(
            context(program, make_progress(0, 2), milestone_index=1, day_index=0, total_workouts_completed=20)
        )
        assert "workout-count-consistency" in rule_ids(result.warnings)
        assert result.is_valid

    def test_workout_count_within_tolerance(self, validator, program):
        result = validator.validate(
            context(program, make_progress(0, 2), milestone_index=1, day_index=0, total_workouts_completed=4)
        )
        assert "workout-count-consistency" not in rule_ids(result.warnings)

    def test_total_workouts_decreasing(self, validator, program):
        existing = make_progress(0, 1, total_workouts_completed=5)
        result = validator.validate(
            context(program, existing, milestone_index=0, day_index=2, total_workouts_completed=3)
        )
        assert any("Total workouts decreasing" in m for m in result.warning_messages)

    def test_completion_integrity(self, validator, program):
        ctx = UpdateContext(
            program=program,
            existing=make_progress(1, 2),
            proposed=ProgressUpdate(milestone_index=1, day_index=3),
            completed_day_keys=frozenset(),
        )
        result = validator.validate(ctx)
        assert not result.is_valid
        assert "exercise-completion-integrity" in rule_ids(result.errors)

    def test_completion_integrity_passes_with_logged_days(self, validator, program):
        keys = frozenset([(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)])
        ctx = UpdateContext(
            program=program,
            existing=make_progress(1, 2),
            proposed=ProgressUpdate(milestone_index=1, day_index=3),
            completed_day_keys=keys,
        )
        assert validator.validate(ctx).is_valid

    def test_concurrent_update_detected(self, validator, program):
        ctx = UpdateContext(
            program=program,
            existing=make_progress(0, 1),
            proposed=ProgressUpdate(milestone_index=0, day_index=2),
            stored_snapshot=make_progress(1, 0),
        )
        result = validator.validate(ctx)
        assert not result.is_valid
        assert result.error_messages == [
            "Concurrent update detected - user progress has been modified by another session"
        ]


class TestTimeAndBusinessRules:
    def test_future_workout_date(self, validator, program):
        existing = UserProgress(user_id="u", current_program_id="prog-1", last_workout_date=NOW - timedelta(days=1))
        result = validator.validate(
            context(program, existing, milestone_index=0, day_index=1, last_workout_date=NOW + timedelta(days=1))
        )
        assert any("cannot be in the future" in m for m in result.warning_messages)

    def test_backdated_workout_date(self, validator, program):
        existing = UserProgress(user_id="u", current_program_id="prog-1", last_workout_date=NOW)
        result = validator.validate(
            context(program, existing, milestone_index=0, day_index=1, last_workout_date=NOW - timedelta(days=10))
        )
        assert any("moving too far backwards" in m for m in result.warning_messages)

    def test_skipping_milestones(self, validator):
        program = make_program([3, 4, 2])
        result = validator.validate(context(program, make_progress(0, 0), milestone_index=2, day_index=0))
        assert "Skipping 2 milestones in one update" in result.warning_messages

    def test_skipping_days(self, validator):
        program = make_program([6])
        result = validator.validate(context(program, make_progress(0, 0), milestone_index=0, day_index=5))
        assert "Skipping 5 days in one update" in result.warning_messages

    def test_high_workout_frequency(self, validator, program):
        existing = UserProgress(
            user_id="u",
            current_program_id="prog-1",
            current_day_index=1,
            total_workouts_completed=1,
            last_workout_date=NOW - timedelta(days=1),
        )
        result = validator.validate(
            context(
                program,
                existing,
                milestone_index=0,
                day_index=2,
                total_workouts_completed=11,
                last_workout_date=NOW,
            )
        )
        assert any("High workout frequency detected" in m for m in result.warning_messages)
