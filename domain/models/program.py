"""
Curriculum models: Program, Milestone, Day and ExerciseSlot.

A program is an ordered list of milestones, a milestone an ordered list of
days, and a workout day an ordered list of exercise slots (or an AMRAP block
bounded by time instead of a fixed exercise count).

These are value objects: the curriculum is owned by the content side and is
only ever read by the progress engine.
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class DayType(str, Enum):
    """
    Kind of day inside a milestone.

    - WORKOUT: the user performs exercises
    - REST: recovery day, nothing to complete
    """

    WORKOUT = "workout"
    REST = "rest"


class ExerciseSlot(BaseModel):
    """
    A prescribed exercise within a workout day.

    Examples:
        >>> slot = ExerciseSlot(exercise_id="ex-squat", sets=5, reps=5, weight=100)
        >>> slot.is_timed
        False
    """

    exercise_id: str = Field(..., min_length=1, description="Referenced exercise ID")
    sets: Optional[int] = Field(default=None, ge=1, description="Target sets")
    reps: Optional[int] = Field(default=None, ge=1, description="Target reps per set")
    weight: Optional[float] = Field(default=None, ge=0, description="Target weight")
    duration_seconds: Optional[int] = Field(
        default=None, ge=0, description="Target duration for timed exercises"
    )
    distance: Optional[float] = Field(default=None, ge=0, description="Target distance")
    distance_unit: Optional[Literal["meters", "miles"]] = Field(
        default=None, description="Unit for distance"
    )
    rest_seconds: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @property
    def is_timed(self) -> bool:
        return self.duration_seconds is not None

    model_config = {"frozen": True}


class Day(BaseModel):
    """
    A single day of a milestone.

    Workout days carry exercise slots. An AMRAP day cycles through its
    exercises until ``amrap_duration_minutes`` runs out, so it has no fixed
    round count.
    """

    title: Optional[str] = None
    day_type: DayType = Field(default=DayType.WORKOUT, description="workout or rest")
    exercises: List[ExerciseSlot] = Field(default_factory=list)
    is_amrap: bool = Field(default=False, description="As many rounds as possible")
    amrap_duration_minutes: Optional[int] = Field(
        default=None, ge=1, description="Total AMRAP time budget in minutes"
    )

    @property
    def is_workout(self) -> bool:
        return self.day_type == DayType.WORKOUT

    @property
    def is_rest(self) -> bool:
        return self.day_type == DayType.REST

    @property
    def exercise_count(self) -> int:
        return len(self.exercises)

    model_config = {"frozen": True}


class Milestone(BaseModel):
    """A phase of a program made of ordered days."""

    id: Optional[str] = None
    name: Optional[str] = None
    days: List[Day] = Field(default_factory=list)

    @property
    def day_count(self) -> int:
        return len(self.days)

    @property
    def workout_day_count(self) -> int:
        return sum(1 for day in self.days if day.is_workout)

    @property
    def rest_day_count(self) -> int:
        return sum(1 for day in self.days if day.is_rest)

    model_config = {"frozen": True}


class Program(BaseModel):
    """
    Top-level curriculum.

    Only published programs are offered to end users. A program that was
    unpublished after enrollment is still readable so the user's progress can
    be diagnosed.

    Examples:
        >>> program = Program(
        ...     id="prog-1",
        ...     name="Foundations",
        ...     is_published=True,
        ...     milestones=[Milestone(days=[Day(day_type=DayType.REST)])],
        ... )
        >>> program.total_days
        1
    """

    id: str = Field(..., min_length=1)
    name: str = Field(default="")
    description: Optional[str] = None
    is_published: bool = Field(default=False)
    milestones: List[Milestone] = Field(default_factory=list)

    @property
    def milestone_count(self) -> int:
        return len(self.milestones)

    @property
    def total_days(self) -> int:
        return sum(m.day_count for m in self.milestones)

    def get_milestone(self, index: int) -> Optional[Milestone]:
        """Return the milestone at ``index`` or None when out of range (negatives included)."""
        if 0 <= index < len(self.milestones):
            return self.milestones[index]
        return None

    def get_day(self, milestone_index: int, day_index: int) -> Optional[Day]:
        """Return the day at a position or None when the position does not exist."""
        milestone = self.get_milestone(milestone_index)
        if milestone is None or not 0 <= day_index < len(milestone.days):
            return None
        return milestone.days[day_index]

    model_config = {"frozen": True}
