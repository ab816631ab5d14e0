"""
Unit tests for the domain models: curriculum accessors, progress updates and
the bounded exercise completion inputs.
"""

from datetime import datetime, timezone

import pytest

from domain.models import (
    CompleteExerciseInput,
    ExerciseCompletionInput,
    InputValidationError,
    Position,
    ProgressUpdate,
    RepairAction,
    RepairActionType,
    UserProgress,
)
from tests.fakes import make_program, make_progress


def completion(**overrides) -> ExerciseCompletionInput:
    data = dict(exercise_id="ex-1", program_id="prog-1", milestone_index=0, day_index=0)
    data.update(overrides)
    return ExerciseCompletionInput(**data)


@pytest.mark.unit
class TestProgram:
    def test_counts(self):
        program = make_program([3, 4], rest_days=[(1, 0)])
        assert program.milestone_count == 2
        assert program.total_days == 7
        assert program.milestones[1].rest_day_count == 1
        assert program.milestones[1].workout_day_count == 3

    def test_get_day_out_of_range(self):
        program = make_program([3])
        assert program.get_day(0, 2) is not None
        assert program.get_day(0, 3) is None
        assert program.get_day(-1, 0) is None
        assert program.get_milestone(1) is None


@pytest.mark.unit
class TestUserProgress:
    def test_allows_out_of_range_indices(self):
        progress = UserProgress(current_milestone_index=-4, current_day_index=99)
        assert progress.position == Position(milestone_index=-4, day_index=99)

    def test_position_str(self):
        assert str(Position(milestone_index=1, day_index=2)) == "M1D2"

    def test_at_returns_copy(self):
        progress = make_progress(0, 0)
        moved = progress.at(1, 2)
        assert moved.position == Position(milestone_index=1, day_index=2)
        assert progress.position == Position(milestone_index=0, day_index=0)

    def test_has_program(self):
        assert make_progress().has_program
        assert not UserProgress(user_id="u").has_program


@pytest.mark.unit
class TestProgressUpdate:
    def test_as_dict_drops_none(self):
        update = ProgressUpdate.position(1, 2)
        assert update.as_dict() == {"current_milestone_index": 1, "current_day_index": 2}

    def test_as_dict_serializes_date(self):
        when = datetime(2024, 3, 1, tzinfo=timezone.utc)
        update = ProgressUpdate(last_workout_date=when, program_id="p2")
        assert update.as_dict() == {
            "last_workout_date": when.isoformat(),
            "current_program_id": "p2",
        }

    def test_apply_to(self):
        progress = make_progress(0, 1, total_workouts_completed=3)
        updated = ProgressUpdate.position(0, 2, total_workouts_completed=4).apply_to(progress)
        assert updated.current_day_index == 2
        assert updated.total_workouts_completed == 4
        assert updated.current_program_id == progress.current_program_id

    def test_from_progress_restores_everything(self):
        progress = make_progress(1, 3, total_workouts_completed=6)
        restored = ProgressUpdate.from_progress(progress).apply_to(make_progress(0, 0))
        assert restored == progress


@pytest.mark.unit
class TestRepairAction:
    def test_assign_new_program_is_not_auto_applicable(self):
        action = RepairAction(type=RepairActionType.ASSIGN_NEW_PROGRAM, description="pick one")
        assert not action.is_auto_applicable
        assert action.target is None

    def test_target(self):
        action = RepairAction(
            type=RepairActionType.RESET_TO_START, new_milestone=0, new_day=0, description="reset"
        )
        assert action.is_auto_applicable
        assert action.target == Position(milestone_index=0, day_index=0)


@pytest.mark.unit
class TestExerciseCompletionInput:
    def test_valid_input(self):
        assert completion(sets=3, reps=10, weight=50.5, notes="felt good").validate() == []

    @pytest.mark.parametrize(
        "field,value,message",
        [
            ("sets", 0, "Sets must be between 1 and 99"),
            ("sets", 100, "Sets must be between 1 and 99"),
            ("reps", 1000, "Reps must be between 1 and 999"),
            ("weight", -1, "Weight must be between 0 and 1000"),
            ("weight", 1000.5, "Weight must be between 0 and 1000"),
            ("time", 1000, "Time must be between 0 and 999"),
            ("distance", 1000, "Distance must be between 0 and 999"),
            ("milestone_index", -1, "Milestone index must be 0 or greater"),
        ],
    )
    def test_bounds(self, field, value, message):
        assert message in completion(**{field: value}).validate()

    def test_bounds_are_inclusive(self):
        assert completion(sets=99, reps=999, weight=1000, time=999, distance=999).validate() == []
        assert completion(sets=1, reps=1, weight=0, time=0, distance=0).validate() == []

    def test_notes_length(self):
        assert completion(notes="x" * 500).validate() == []
        assert "Notes must be 500 characters or fewer" in completion(notes="x" * 501).validate()

    def test_distance_unit(self):
        assert completion(distance=5, distance_unit="miles").validate() == []
        assert "Distance unit must be 'meters' or 'miles'" in completion(distance_unit="feet").validate()

    def test_required_ids(self):
        errors = completion(exercise_id="", program_id="").validate()
        assert "Exercise ID is required" in errors
        assert "Program ID is required" in errors

    def test_ensure_valid_raises_with_all_errors(self):
        with pytest.raises(InputValidationError) as exc_info:
            completion(sets=0, reps=0).ensure_valid()
        assert len(exc_info.value.errors) == 2

    def test_meaningful_data(self):
        assert not completion().has_meaningful_data
        assert not completion(sets=0, notes="   ").has_meaningful_data
        assert completion(reps=5).has_meaningful_data
        assert completion(notes="form check").has_meaningful_data

    def test_to_record(self):
        when = datetime(2024, 1, 2, tzinfo=timezone.utc)
        record = completion(distance=3, distance_unit="meters").to_record(when)
        assert record["distance_unit"] == "meters"
        assert record["completed_at"] == when.isoformat()
        assert "exercise_id" not in record

    def test_key_for(self):
        key = completion(milestone_index=1, day_index=2).key_for("user-9")
        assert key.as_dict() == {
            "user_id": "user-9",
            "exercise_id": "ex-1",
            "program_id": "prog-1",
            "milestone_index": 1,
            "day_index": 2,
        }


@pytest.mark.unit
class TestCompleteExerciseInput:
    def test_checks_nested_completion(self):
        data = CompleteExerciseInput(completion=completion(reps=0), current_exercise_index=-1)
        errors = data.validate()
        assert "Reps must be between 1 and 999" in errors
        assert "Current exercise index must be 0 or greater" in errors

    def test_amrap_time_must_be_number(self):
        data = CompleteExerciseInput(
            completion=completion(), current_exercise_index=0, amrap_time_remaining="soon"
        )
        assert "AMRAP time remaining must be a number" in data.validate()
