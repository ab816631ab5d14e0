"""
Progress Calculator for program curricula.

Pure functions over an immutable Program and a UserProgress position:
- Day totals (all / workout / rest)
- Absolute day position within the program
- Completed days by type and per-milestone breakdowns
- Milestone and program completion percentages
- Program analytics with an estimated completion date

Every function is O(total days), never mutates its inputs, and never raises
on out-of-range positions.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from domain.models import Program, UserProgress


# =============================================================================
# Result DTOs
# =============================================================================


@dataclass(frozen=True)
class DayTypeCounts:
    """Workout/rest day counts."""
    workout_days: int = 0
    rest_days: int = 0


@dataclass(frozen=True)
class MilestoneProgress:
    """Progress inside the current milestone only."""
    current_milestone_index: int
    current_day_index: int
    total_days_in_current_milestone: int
    current_milestone_completion_percentage: int
    current_milestone_name: str
    is_current_milestone_complete: bool


@dataclass(frozen=True)
class ProgramProgress:
    """
    Overall program progress.

    ``completion_percentage`` is intentionally not clamped: positions outside
    the normal range produce values above 100 or below 0 so callers can spot
    them.
    """
    current_milestone: int
    current_day: int
    total_milestones: int
    total_days: int
    completion_percentage: int
    milestone_progress: MilestoneProgress
    is_complete: bool
    days_remaining: int
    milestones_remaining: int


@dataclass(frozen=True)
class ProgramAnalytics:
    """Workout/rest breakdown and timing estimates for a program run."""
    total_workout_days_completed: int
    total_rest_days_completed: int
    workout_days_remaining: int
    rest_days_remaining: int
    current_milestone_workout_days: int
    current_milestone_rest_days: int
    estimated_completion_date: Optional[datetime]
    program_start_date: Optional[datetime]


# =============================================================================
# Totals
# =============================================================================


def total_days(program: Program) -> int:
    """Total number of days across all milestones."""
    return sum(len(m.days) for m in program.milestones)


def total_workout_days(program: Program) -> int:
    return sum(m.workout_day_count for m in program.milestones)


def total_rest_days(program: Program) -> int:
    return sum(m.rest_day_count for m in program.milestones)


# =============================================================================
# Positions
# =============================================================================


def _days_before_milestone(program: Program, milestone_index: int) -> int:
    """Days in all milestones before ``milestone_index`` (clamped to the program)."""
    end = min(milestone_index, len(program.milestones))
    return sum(len(program.milestones[i].days) for i in range(max(end, 0)))


def absolute_day_position(program: Program, milestone_index: int, day_index: int) -> int:
    """
    1-based absolute position of a day in the program.

    Counts the days strictly before the given day and adds 1. Returns 0 for a
    program without milestones.

    Examples:
        Milestones of 3 and 4 days: (0, 0) -> 1, (1, 0) -> 4, (1, 3) -> 7.
    """
    if not program.milestones:
        return 0
    return _days_before_milestone(program, milestone_index) + day_index + 1


def days_completed_before_position(
    program: Program, milestone_index: int, day_index: int
) -> int:
    """Days strictly before a position; 0 for an empty program."""
    if not program.milestones:
        return 0
    return absolute_day_position(program, milestone_index, day_index) - 1


def completed_days_by_type(
    program: Program, milestone_index: int, day_index: int
) -> DayTypeCounts:
    """
    Count workout and rest days strictly before a position.

    Used for analytics, never for gating advancement.
    """
    workout = 0
    rest = 0
    for m in program.milestones[: max(min(milestone_index, len(program.milestones)), 0)]:
        workout += m.workout_day_count
        rest += m.rest_day_count

    current = program.get_milestone(milestone_index)
    if current is not None:
        for day in current.days[: max(day_index, 0)]:
            if day.is_workout:
                workout += 1
            elif day.is_rest:
                rest += 1

    return DayTypeCounts(workout_days=workout, rest_days=rest)


def milestone_day_breakdown(program: Program, milestone_index: int) -> DayTypeCounts:
    """Workout/rest counts for one milestone; zeros when the index is out of range."""
    milestone = program.get_milestone(milestone_index)
    if milestone is None:
        return DayTypeCounts()
    return DayTypeCounts(
        workout_days=milestone.workout_day_count,
        rest_days=milestone.rest_day_count,
    )


# =============================================================================
# Progress
# =============================================================================


def calculate_milestone_progress(
    program: Program, milestone_index: int, day_index: int
) -> MilestoneProgress:
    """
    Completion within the current milestone.

    A sentinel or overflowing milestone index is clamped to the last real
    milestone and reported as 100% complete.
    """
    milestones = program.milestones

    if milestone_index >= len(milestones):
        last = milestones[-1] if milestones else None
        last_day_count = len(last.days) if last is not None else 0
        return MilestoneProgress(
            current_milestone_index=len(milestones) - 1,
            current_day_index=(last_day_count or 1) - 1,
            total_days_in_current_milestone=last_day_count,
            current_milestone_completion_percentage=100,
            current_milestone_name=(last.name if last is not None and last.name else "Completed"),
            is_current_milestone_complete=True,
        )

    milestone = program.get_milestone(milestone_index)
    day_count = len(milestone.days) if milestone is not None else 0
    percentage = round((day_index + 1) / day_count * 100) if day_count > 0 else 0
    name = milestone.name if milestone is not None and milestone.name else None

    return MilestoneProgress(
        current_milestone_index=milestone_index,
        current_day_index=day_index,
        total_days_in_current_milestone=day_count,
        current_milestone_completion_percentage=percentage,
        current_milestone_name=name or f"Milestone {milestone_index + 1}",
        is_current_milestone_complete=day_index >= day_count - 1,
    )


def calculate_program_progress(program: Program, progress: UserProgress) -> ProgramProgress:
    """Overall progress for a user's position in a program."""
    milestone_index = progress.current_milestone_index
    day_index = progress.current_day_index

    total_milestones = len(program.milestones)
    days = total_days(program)
    completed = days_completed_before_position(program, milestone_index, day_index)

    # Not clamped on purpose; see ProgramProgress.
    percentage = round(completed / days * 100) if days > 0 else 0

    return ProgramProgress(
        current_milestone=milestone_index,
        current_day=day_index,
        total_milestones=total_milestones,
        total_days=days,
        completion_percentage=percentage,
        milestone_progress=calculate_milestone_progress(program, milestone_index, day_index),
        is_complete=milestone_index >= total_milestones,
        days_remaining=max(0, days - completed),
        milestones_remaining=max(0, total_milestones - milestone_index - 1),
    )


def calculate_program_analytics(
    program: Program,
    progress: UserProgress,
    start_date: Optional[datetime] = None,
) -> ProgramAnalytics:
    """
    Workout/rest analytics for a program run.

    ``estimated_completion_date`` is ``start_date + total_days`` calendar days,
    or None when no start date is given.
    """
    completed = completed_days_by_type(
        program, progress.current_milestone_index, progress.current_day_index
    )
    current = milestone_day_breakdown(program, progress.current_milestone_index)

    estimated = None
    if start_date is not None:
        estimated = start_date + timedelta(days=total_days(program))

    return ProgramAnalytics(
        total_workout_days_completed=completed.workout_days,
        total_rest_days_completed=completed.rest_days,
        workout_days_remaining=max(0, total_workout_days(program) - completed.workout_days),
        rest_days_remaining=max(0, total_rest_days(program) - completed.rest_days),
        current_milestone_workout_days=current.workout_days,
        current_milestone_rest_days=current.rest_days,
        estimated_completion_date=estimated,
        program_start_date=start_date,
    )
