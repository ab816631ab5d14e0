"""
Exercise completion input structs and their bounds.

Inputs arriving at the boundary are plain typed structs checked by explicit
range checks (``validate()``), not parsed through a schema. The bounds below
are the documented limits for a single logged exercise.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# Bounds
# =============================================================================

SETS_MIN, SETS_MAX = 1, 99
REPS_MIN, REPS_MAX = 1, 999
WEIGHT_MIN, WEIGHT_MAX = 0, 1000
TIME_MIN, TIME_MAX = 0, 999
DISTANCE_MIN, DISTANCE_MAX = 0, 999
ROUNDS_MIN, ROUNDS_MAX = 0, 99
NOTES_MAX_LENGTH = 500


class DistanceUnit(str, Enum):
    METERS = "meters"
    MILES = "miles"


class InputValidationError(Exception):
    """Raised when a boundary input struct fails its range/shape checks."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


def _check_range(
    errors: List[str],
    name: str,
    value: Optional[float],
    minimum: float,
    maximum: float,
) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.append(f"{name} must be a number")
        return
    if value < minimum or value > maximum:
        errors.append(f"{name} must be between {minimum} and {maximum}")


def _check_index(errors: List[str], name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"{name} must be an integer")
    elif value < 0:
        errors.append(f"{name} must be 0 or greater")


# =============================================================================
# Keys and inputs
# =============================================================================


@dataclass(frozen=True)
class ExerciseCompletionKey:
    """Composite identity of a completion: one latest record per key."""

    user_id: str
    exercise_id: str
    program_id: str
    milestone_index: int
    day_index: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "exercise_id": self.exercise_id,
            "program_id": self.program_id,
            "milestone_index": self.milestone_index,
            "day_index": self.day_index,
        }


@dataclass(frozen=True)
class ExerciseCompletionInput:
    """Performance data for one exercise at one program position."""

    exercise_id: str
    program_id: str
    milestone_index: int
    day_index: int
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight: Optional[float] = None
    time: Optional[float] = None
    distance: Optional[float] = None
    distance_unit: Optional[DistanceUnit] = None
    notes: Optional[str] = None

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the input is acceptable."""
        errors: List[str] = []
        if not self.exercise_id:
            errors.append("Exercise ID is required")
        if not self.program_id:
            errors.append("Program ID is required")
        _check_index(errors, "Milestone index", self.milestone_index)
        _check_index(errors, "Day index", self.day_index)
        _check_range(errors, "Sets", self.sets, SETS_MIN, SETS_MAX)
        _check_range(errors, "Reps", self.reps, REPS_MIN, REPS_MAX)
        _check_range(errors, "Weight", self.weight, WEIGHT_MIN, WEIGHT_MAX)
        _check_range(errors, "Time", self.time, TIME_MIN, TIME_MAX)
        _check_range(errors, "Distance", self.distance, DISTANCE_MIN, DISTANCE_MAX)
        if self.sets is not None and isinstance(self.sets, float):
            errors.append("Sets must be an integer")
        if self.reps is not None and isinstance(self.reps, float):
            errors.append("Reps must be an integer")
        if self.distance_unit is not None:
            try:
                DistanceUnit(self.distance_unit)
            except ValueError:
                errors.append("Distance unit must be 'meters' or 'miles'")
        if self.notes is not None and len(self.notes) > NOTES_MAX_LENGTH:
            errors.append(f"Notes must be {NOTES_MAX_LENGTH} characters or fewer")
        return errors

    def ensure_valid(self) -> None:
        errors = self.validate()
        if errors:
            raise InputValidationError("Invalid exercise completion data", errors)

    def key_for(self, user_id: str) -> ExerciseCompletionKey:
        return ExerciseCompletionKey(
            user_id=user_id,
            exercise_id=self.exercise_id,
            program_id=self.program_id,
            milestone_index=self.milestone_index,
            day_index=self.day_index,
        )

    @property
    def has_meaningful_data(self) -> bool:
        """True when at least one performance value was actually entered."""
        values = (self.sets, self.reps, self.weight, self.time, self.distance)
        if any(v is not None and v > 0 for v in values):
            return True
        return bool(self.notes and self.notes.strip())

    def to_record(self, completed_at: Optional[datetime] = None) -> Dict[str, Any]:
        """Row payload (without key columns) for the completion store."""
        unit = self.distance_unit
        return {
            "sets": self.sets,
            "reps": self.reps,
            "weight": self.weight,
            "time": self.time,
            "distance": self.distance,
            "distance_unit": DistanceUnit(unit).value if unit is not None else None,
            "notes": self.notes,
            "completed_at": (completed_at or datetime.now(timezone.utc)).isoformat(),
        }


@dataclass(frozen=True)
class CompleteExerciseInput:
    """
    Input for completing one exercise and moving to the next.

    ``exercises_completed_in_session`` counts completions already logged in
    the current AMRAP session; the round counter is derived from it.
    """

    completion: ExerciseCompletionInput
    current_exercise_index: int
    is_amrap_day: bool = False
    amrap_time_remaining: Optional[float] = None
    exercises_completed_in_session: int = 0
    completed_exercise_ids: List[str] = field(default_factory=list)

    def validate(self) -> List[str]:
        errors = list(self.completion.validate())
        _check_index(errors, "Current exercise index", self.current_exercise_index)
        _check_index(errors, "Exercises completed", self.exercises_completed_in_session)
        if self.amrap_time_remaining is not None:
            if isinstance(self.amrap_time_remaining, bool) or not isinstance(
                self.amrap_time_remaining, (int, float)
            ):
                errors.append("AMRAP time remaining must be a number")
        return errors

    def ensure_valid(self) -> None:
        errors = self.validate()
        if errors:
            raise InputValidationError("Invalid input data", errors)
