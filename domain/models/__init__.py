"""
Domain models for the Progress API.

Pure models independent of infrastructure (database, HTTP, sync transport):
- Program / Milestone / Day / ExerciseSlot: the read-only curriculum
- UserProgress / Position: a user's pointer into a program
- RepairAction: computed correction for an inconsistent position
- ExerciseCompletionInput / CompleteExerciseInput: bounded boundary inputs
- ErrorType: error taxonomy for operation results

Usage:
    >>> from domain.models import Program, Milestone, Day, UserProgress

    >>> program = Program(id="p1", milestones=[Milestone(days=[Day()])])
    >>> progress = UserProgress(current_program_id="p1")
"""

from domain.models.completion import (
    ROUNDS_MAX,
    CompleteExerciseInput,
    DistanceUnit,
    ExerciseCompletionInput,
    ExerciseCompletionKey,
    InputValidationError,
)
from domain.models.errors import CONSISTENCY_ERROR_TYPES, ErrorType
from domain.models.program import Day, DayType, ExerciseSlot, Milestone, Program
from domain.models.progress import Position, ProgressUpdate, UserProgress
from domain.models.repair import RepairAction, RepairActionType

__all__ = [
    # Curriculum
    "Program",
    "Milestone",
    "Day",
    "DayType",
    "ExerciseSlot",
    # Progress
    "UserProgress",
    "Position",
    "ProgressUpdate",
    # Repair
    "RepairAction",
    "RepairActionType",
    # Inputs
    "ExerciseCompletionInput",
    "ExerciseCompletionKey",
    "CompleteExerciseInput",
    "DistanceUnit",
    "InputValidationError",
    "ROUNDS_MAX",
    # Errors
    "ErrorType",
    "CONSISTENCY_ERROR_TYPES",
]
