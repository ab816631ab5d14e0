"""
User progress models.

UserProgress is the user's pointer into a program. Indices are plain ints
with no range constraint: out-of-range and negative values are corruption
states that the validation engine diagnoses and repairs, so the model has to
be able to hold them.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Position(BaseModel):
    """A (milestone, day) coordinate inside a program."""

    milestone_index: int
    day_index: int

    def __str__(self) -> str:
        return f"M{self.milestone_index}D{self.day_index}"

    model_config = {"frozen": True}


class UserProgress(BaseModel):
    """
    A user's position in their current program.

    ``current_milestone_index == len(program.milestones)`` is the completion
    sentinel, not an error.
    """

    user_id: Optional[str] = None
    current_program_id: Optional[str] = None
    current_milestone_index: int = 0
    current_day_index: int = 0
    total_workouts_completed: int = Field(default=0, ge=0)
    last_workout_date: Optional[datetime] = None

    @property
    def position(self) -> Position:
        return Position(
            milestone_index=self.current_milestone_index,
            day_index=self.current_day_index,
        )

    @property
    def has_program(self) -> bool:
        return bool(self.current_program_id)

    def at(self, milestone_index: int, day_index: int) -> "UserProgress":
        """Copy of this progress moved to another position."""
        return self.model_copy(
            update={
                "current_milestone_index": milestone_index,
                "current_day_index": day_index,
            }
        )

    model_config = {"frozen": True}


@dataclass(frozen=True)
class ProgressUpdate:
    """
    Partial change to a user's progress row.

    Fields left as None are not written. ``program_id`` is only set when the
    update changes the enrolled program (assignment).
    """

    milestone_index: Optional[int] = None
    day_index: Optional[int] = None
    total_workouts_completed: Optional[int] = None
    last_workout_date: Optional[datetime] = None
    program_id: Optional[str] = None

    @classmethod
    def position(cls, milestone_index: int, day_index: int, **kwargs) -> "ProgressUpdate":
        return cls(milestone_index=milestone_index, day_index=day_index, **kwargs)

    @classmethod
    def from_progress(cls, progress: UserProgress) -> "ProgressUpdate":
        """Update that restores every tracked field of ``progress``."""
        return cls(
            milestone_index=progress.current_milestone_index,
            day_index=progress.current_day_index,
            total_workouts_completed=progress.total_workouts_completed,
            last_workout_date=progress.last_workout_date,
        )

    def as_dict(self) -> Dict[str, Any]:
        """Column mapping for the user_progress table, Nones dropped."""
        columns = {
            "current_milestone_index": self.milestone_index,
            "current_day_index": self.day_index,
            "total_workouts_completed": self.total_workouts_completed,
            "last_workout_date": (
                self.last_workout_date.isoformat() if self.last_workout_date else None
            ),
            "current_program_id": self.program_id,
        }
        return {k: v for k, v in columns.items() if v is not None}

    def apply_to(self, progress: UserProgress) -> UserProgress:
        """Return ``progress`` with this update applied."""
        changes: Dict[str, Any] = {}
        if self.milestone_index is not None:
            changes["current_milestone_index"] = self.milestone_index
        if self.day_index is not None:
            changes["current_day_index"] = self.day_index
        if self.total_workouts_completed is not None:
            changes["total_workouts_completed"] = self.total_workouts_completed
        if self.last_workout_date is not None:
            changes["last_workout_date"] = self.last_workout_date
        if self.program_id is not None:
            changes["current_program_id"] = self.program_id
        return progress.model_copy(update=changes)
