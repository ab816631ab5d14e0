"""
Unit tests for domain/services/progress_validation.py

Covers consistency checks, repair selection and the user-facing validation
result, including repair idempotence: applying a repair action yields a
position that validates cleanly.
"""

import pytest

from domain.models import Day, ErrorType, Milestone, Program, RepairActionType
from domain.services.progress_validation import (
    REPAIR_DESCRIPTION_ADJUST,
    REPAIR_DESCRIPTION_FALLBACK,
    REPAIR_DESCRIPTION_RESET,
    SUGGEST_CORRECT_CORRUPTED,
    ConsistencyCode,
    ProgressWarningType,
    find_valid_progress_position,
    get_progress_error_message,
    get_repair_instructions,
    is_valid_progress_position,
    select_repair_action,
    validate_program_structure,
    validate_progress_consistency,
    validate_user_progress,
)
from tests.fakes import make_program, make_progress

pytestmark = pytest.mark.unit


@pytest.fixture
def program():
    return make_program([3, 4])


class TestValidateProgressConsistency:
    def test_valid_position(self, program):
        result = validate_progress_consistency(program, make_progress(1, 2))
        assert result.is_valid
        assert result.errors == []

    def test_completion_sentinel_is_valid(self, program):
        assert validate_progress_consistency(program, make_progress(2, 0)).is_valid

    def test_missing_program_is_single_error(self):
        result = validate_progress_consistency(None, make_progress(-1, -1))
        assert result.errors == ["Program not found"]
        assert len(result.issues) == 1

    def test_day_overflow(self, program):
        result = validate_progress_consistency(program, make_progress(0, 10))
        assert result.errors == ["Current day index 10 exceeds milestone days (3)"]

    def test_milestone_overflow(self, program):
        result = validate_progress_consistency(program, make_progress(10, 0))
        assert result.errors == ["Current milestone index 10 exceeds program milestones (2)"]

    def test_negative_indices_accumulate(self, program):
        result = validate_progress_consistency(program, make_progress(-1, -1))
        assert result.has(ConsistencyCode.NEGATIVE_MILESTONE)
        assert result.has(ConsistencyCode.NEGATIVE_DAY)
        assert len(result.errors) == 2

    def test_unpublished_is_warning(self):
        program = make_program([2], published=False)
        result = validate_progress_consistency(program, make_progress(0, 0))
        assert result.is_valid
        assert result.warnings == ["User is assigned to an unpublished program"]

    def test_empty_milestone_is_warning(self):
        program = make_program([3, 0])
        result = validate_progress_consistency(program, make_progress(1, 0))
        assert result.is_valid
        assert result.warnings == ["Milestone 1 has no days defined"]

    def test_program_without_milestones(self):
        result = validate_progress_consistency(Program(id="p", is_published=True), make_progress(0, 0))
        assert result.has(ConsistencyCode.NO_MILESTONES)
        assert not result.is_valid


class TestPositionHelpers:
    def test_is_valid_progress_position(self, program):
        assert is_valid_progress_position(program, 1, 3)
        assert not is_valid_progress_position(program, 1, 4)
        assert not is_valid_progress_position(program, 2, 0)
        assert not is_valid_progress_position(None, 0, 0)

    @pytest.mark.parametrize(
        "position,expected",
        [
            ((1, 2), (1, 2)),
            ((0, 10), (0, 2)),
            ((10, 0), (1, 3)),
            ((-1, 2), (0, 0)),
            ((1, -5), (0, 0)),
        ],
    )
    def test_find_valid_progress_position(self, program, position, expected):
        target = find_valid_progress_position(program, make_progress(*position))
        assert (target.milestone_index, target.day_index) == expected


class TestSelectRepairAction:
    def test_valid_position_needs_no_repair(self, program):
        assert select_repair_action(program, make_progress(0, 1)) is None

    def test_day_overflow_adjusts_within_milestone(self, program):
        action = select_repair_action(program, make_progress(0, 10))
        assert action.type == RepairActionType.ADJUST_TO_VALID_POSITION
        assert (action.new_milestone, action.new_day) == (0, 2)
        assert action.description == REPAIR_DESCRIPTION_ADJUST

    def test_milestone_overflow_moves_to_last_day(self, program):
        action = select_repair_action(program, make_progress(10, 0))
        assert (action.new_milestone, action.new_day) == (1, 3)

    def test_negative_indices_reset_to_start(self, program):
        action = select_repair_action(program, make_progress(-1, -1))
        assert action.type == RepairActionType.RESET_TO_START
        assert (action.new_milestone, action.new_day) == (0, 0)
        assert action.description == REPAIR_DESCRIPTION_RESET

    def test_overflowing_milestone_with_negative_day_resets(self, program):
        """Several simultaneous causes collapse into one reset."""
        action = select_repair_action(program, make_progress(10, -1))
        assert action.type == RepairActionType.RESET_TO_START

    def test_missing_program_asks_for_new_program(self):
        action = select_repair_action(None, make_progress(0, 0))
        assert action.type == RepairActionType.ASSIGN_NEW_PROGRAM
        assert action.target is None
        assert not action.is_auto_applicable

    def test_invalid_target_falls_back_to_start(self):
        """The last milestone is empty, so the computed target does not exist."""
        program = make_program([3, 0])
        action = select_repair_action(program, make_progress(5, 0))
        assert action.type == RepairActionType.RESET_TO_START
        assert (action.new_milestone, action.new_day) == (0, 0)
        assert action.description == REPAIR_DESCRIPTION_FALLBACK

    @pytest.mark.parametrize(
        "position",
        [(0, 10), (0, 3), (10, 0), (-1, -1), (-3, 2), (1, 99)],
    )
    def test_repair_target_validates_cleanly(self, program, position):
        progress = make_progress(*position)
        action = select_repair_action(program, progress)
        assert action is not None
        repaired = progress.at(action.new_milestone, action.new_day)

        assert validate_progress_consistency(program, repaired).is_valid
        assert select_repair_action(program, repaired) is None


class TestValidateUserProgress:
    def test_day_index_invalid(self, program):
        result = validate_user_progress(program, make_progress(0, 10))
        assert not result.is_valid
        assert result.primary_error.type == ErrorType.DAY_INDEX_INVALID
        assert result.primary_repair_action.type == RepairActionType.ADJUST_TO_VALID_POSITION
        assert result.primary_repair_action.target.milestone_index == 0
        assert result.primary_repair_action.target.day_index == 2
        assert result.can_be_repaired

    def test_milestone_index_invalid(self, program):
        result = validate_user_progress(program, make_progress(10, 0))
        assert result.primary_error.type == ErrorType.MILESTONE_INDEX_INVALID
        assert result.primary_error.suggested_action == SUGGEST_CORRECT_CORRUPTED
        assert (result.primary_repair_action.new_milestone, result.primary_repair_action.new_day) == (1, 3)

    def test_negative_indices_are_corrupted(self, program):
        result = validate_user_progress(program, make_progress(-1, -1))
        assert all(e.type == ErrorType.CORRUPTED_PROGRESS for e in result.errors)
        assert result.primary_repair_action.type == RepairActionType.RESET_TO_START
        assert len(result.repair_actions) == 1

    def test_missing_program(self):
        result = validate_user_progress(None, make_progress(0, 0), "prog-gone")
        assert result.primary_error.type == ErrorType.PROGRAM_STRUCTURE_CHANGED
        assert "prog-gone" in result.primary_error.message
        assert result.primary_repair_action.type == RepairActionType.ASSIGN_NEW_PROGRAM
        assert not result.can_be_repaired

    def test_unpublished_program_warns(self):
        program = make_program([2], published=False)
        result = validate_user_progress(program, make_progress(0, 1))
        assert result.is_valid
        assert result.warnings[0].type == ProgressWarningType.PROGRAM_UNPUBLISHED
        assert result.repair_actions == []

    def test_valid_position_has_no_actions(self, program):
        result = validate_user_progress(program, make_progress(1, 3))
        assert result.is_valid
        assert result.primary_repair_action is None
        assert result.primary_error is None


class TestMessages:
    def test_error_message_prefers_critical(self, program):
        errors = validate_user_progress(program, make_progress(10, -1)).errors
        assert errors[0].type == ErrorType.CORRUPTED_PROGRESS
        assert get_progress_error_message(errors) == errors[0].user_friendly_message

    def test_missing_program_message(self):
        errors = validate_user_progress(None, make_progress()).errors
        assert get_progress_error_message(errors) == "Your selected program is no longer available."

    def test_empty_lists(self):
        assert get_progress_error_message([]) == ""
        assert get_repair_instructions([]) == ""

    def test_repair_instructions(self, program):
        reset = select_repair_action(program, make_progress(-1, -1))
        adjust = select_repair_action(program, make_progress(0, 9))
        assign = select_repair_action(None, make_progress())
        assert get_repair_instructions([reset]) == (
            "Your progress will be reset to the beginning of your program."
        )
        assert get_repair_instructions([adjust]) == (
            "Your progress will be adjusted to the nearest valid position."
        )
        assert "select a new program" in get_repair_instructions([assign])


class TestValidateProgramStructure:
    def test_valid(self, program):
        assert validate_program_structure(program) is None

    def test_no_milestones(self):
        assert validate_program_structure(Program(id="p")) == "Program must have at least one milestone."

    def test_empty_milestone(self):
        assert validate_program_structure(make_program([2, 0])) == (
            "Milestone 2 must have at least one day."
        )

    def test_workout_day_without_exercises(self):
        program = Program(id="p", milestones=[Milestone(days=[Day()])])
        assert validate_program_structure(program) == (
            "Workout day 1 in milestone 1 must have at least one exercise."
        )

    def test_amrap_and_rest_days_need_no_exercises(self):
        program = Program(
            id="p",
            milestones=[Milestone(days=[Day(is_amrap=True, amrap_duration_minutes=10), Day(day_type="rest")])],
        )
        assert validate_program_structure(program) is None
