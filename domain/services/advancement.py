"""
Advancement transitions.

Pure position arithmetic for moving forward through a program one day, one
milestone or one exercise at a time. Committing the result is the job of the
use cases; nothing here touches storage.

Day order inside a milestone is linear. Exercise order inside a workout day is
linear, except on AMRAP days where the exercise list repeats until the time
budget runs out.
"""

from dataclasses import dataclass
from typing import Optional

from domain.models import ROUNDS_MAX, Day, Position, Program


@dataclass(frozen=True)
class DayTransition:
    """Result of moving one day forward."""

    from_position: Position
    to_position: Position
    milestone_completed: bool
    program_completed: bool
    left_workout_day: bool


@dataclass(frozen=True)
class ExerciseAdvancement:
    """Result of completing one exercise inside a day."""

    exercise_completed: bool
    next_exercise_index: Optional[int]
    day_completed: bool
    round_completed: bool = False
    amrap_time_expired: bool = False
    rounds_completed: int = 0


def is_program_complete(program: Program, milestone_index: int) -> bool:
    """True at or past the completion sentinel."""
    return milestone_index >= len(program.milestones)


def next_day_position(program: Program, milestone_index: int, day_index: int) -> DayTransition:
    """
    Position after the given day.

    Moves to the next day of the same milestone or to day 0 of the next
    milestone. Moving past the last day of the last milestone lands on the
    completion sentinel ``(len(milestones), 0)``. A milestone without days is
    passed through to the next milestone.

    Raises:
        ValueError: If the given position does not address a real day.
    """
    milestone = program.get_milestone(milestone_index)
    day = program.get_day(milestone_index, day_index)
    if milestone is None or (day is None and milestone.days):
        raise ValueError(f"No day at M{milestone_index}D{day_index}")

    day_count = len(milestone.days)
    next_day = day_index + 1

    if next_day < day_count:
        target = Position(milestone_index=milestone_index, day_index=next_day)
        milestone_completed = False
    else:
        target = Position(milestone_index=milestone_index + 1, day_index=0)
        milestone_completed = True

    return DayTransition(
        from_position=Position(milestone_index=milestone_index, day_index=day_index),
        to_position=target,
        milestone_completed=milestone_completed,
        program_completed=is_program_complete(program, target.milestone_index),
        left_workout_day=day is not None and day.is_workout,
    )


def next_milestone_position(program: Program, milestone_index: int) -> Optional[Position]:
    """Day 0 of the next milestone, or None when there is no next milestone."""
    next_index = milestone_index + 1
    if next_index < 0 or next_index >= len(program.milestones):
        return None
    return Position(milestone_index=next_index, day_index=0)


def rounds_completed(exercise_count: int, exercises_completed: int) -> int:
    """
    Full AMRAP rounds contained in a completion count.

    The round counter is derived from how many exercises were completed in the
    session and never stored on its own. Capped at ROUNDS_MAX.
    """
    if exercise_count <= 0 or exercises_completed <= 0:
        return 0
    return min(exercises_completed // exercise_count, ROUNDS_MAX)


def advance_exercise(
    day: Day,
    current_index: int,
    *,
    is_amrap: bool = False,
    amrap_time_remaining: Optional[float] = None,
    exercises_completed_in_session: int = 0,
) -> ExerciseAdvancement:
    """
    Next exercise after completing the one at ``current_index``.

    Linear day: the last exercise completes the day, otherwise the index moves
    by one.

    AMRAP day: no time left (or no remaining time reported) completes the
    day; otherwise the last exercise wraps to index 0 and closes a round.
    ``exercises_completed_in_session`` counts completions before this one.
    """
    exercise_count = day.exercise_count
    is_last = current_index >= exercise_count - 1

    if not (is_amrap or day.is_amrap):
        return ExerciseAdvancement(
            exercise_completed=True,
            next_exercise_index=None if is_last else current_index + 1,
            day_completed=is_last,
        )

    rounds = rounds_completed(exercise_count, exercises_completed_in_session + 1)

    if (amrap_time_remaining or 0) <= 0:
        return ExerciseAdvancement(
            exercise_completed=True,
            next_exercise_index=None,
            day_completed=True,
            amrap_time_expired=True,
            rounds_completed=rounds,
        )

    return ExerciseAdvancement(
        exercise_completed=True,
        next_exercise_index=0 if is_last else current_index + 1,
        day_completed=False,
        round_completed=is_last,
        rounds_completed=rounds,
    )
