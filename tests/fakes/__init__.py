"""
Fake Repository Implementations for Testing.

In-memory implementations of the progress ports for fast, isolated tests.
No database or network required.

Features:
- All fakes implement the same Protocol interfaces as the Supabase adapters
- Supports seeding with test data and reset() for isolation
- Failure injection (``fail_with`` / ``fail_next_update``) for error paths
- Factory functions for common curricula and enrollments

Usage:
    from tests.fakes import make_program, create_progress_repo

    program = make_program([3, 4])
    progress_repo = create_progress_repo(user_id="user-1", program_id=program.id)
"""
from typing import Dict, Iterable, List, Optional, Sequence

from domain.models import Day, DayType, ExerciseSlot, Milestone, Program, UserProgress

from tests.fakes.audit_repository import FakeProgressAuditRepository
from tests.fakes.completion_repository import FakeExerciseCompletionRepository
from tests.fakes.connectivity import FakeConnectivityMonitor
from tests.fakes.curriculum_repository import FakeCurriculumRepository
from tests.fakes.user_progress_repository import FakeUserProgressRepository

DEFAULT_PROGRAM_ID = "prog-1"
DEFAULT_USER_ID = "user-1"


# =============================================================================
# Curriculum Factories
# =============================================================================


def make_workout_day(num_exercises: int = 2, *, amrap_minutes: Optional[int] = None, title: Optional[str] = None) -> Day:
    exercises = [
        ExerciseSlot(exercise_id=f"ex-{i + 1}", sets=3, reps=10) for i in range(num_exercises)
    ]
    return Day(
        title=title,
        day_type=DayType.WORKOUT,
        exercises=exercises,
        is_amrap=amrap_minutes is not None,
        amrap_duration_minutes=amrap_minutes,
    )


def make_rest_day() -> Day:
    return Day(title="Rest", day_type=DayType.REST)


def make_program(
    milestone_day_counts: Sequence[int],
    *,
    program_id: str = DEFAULT_PROGRAM_ID,
    name: str = "Foundations",
    published: bool = True,
    rest_days: Iterable[tuple] = (),
    amrap_days: Optional[Dict[tuple, int]] = None,
) -> Program:
    """
    Build a program from per-milestone day counts.

    Args:
        milestone_day_counts: e.g. [3, 4] for two milestones of 3 and 4 days
        rest_days: (milestone, day) positions that are rest days
        amrap_days: {(milestone, day): minutes} for AMRAP workout days

    Every other day is a workout day with two exercises.
    """
    rest = set(rest_days)
    amrap = amrap_days or {}
    milestones: List[Milestone] = []
    for m, count in enumerate(milestone_day_counts):
        days = []
        for d in range(count):
            if (m, d) in rest:
                days.append(make_rest_day())
            elif (m, d) in amrap:
                days.append(make_workout_day(3, amrap_minutes=amrap[(m, d)]))
            else:
                days.append(make_workout_day())
        milestones.append(Milestone(id=f"ms-{m + 1}", name=f"Phase {m + 1}", days=days))
    return Program(
        id=program_id,
        name=name,
        description=f"{name} program",
        is_published=published,
        milestones=milestones,
    )


def make_progress(
    milestone_index: int = 0,
    day_index: int = 0,
    *,
    user_id: str = DEFAULT_USER_ID,
    program_id: Optional[str] = DEFAULT_PROGRAM_ID,
    total_workouts_completed: int = 0,
) -> UserProgress:
    return UserProgress(
        user_id=user_id,
        current_program_id=program_id,
        current_milestone_index=milestone_index,
        current_day_index=day_index,
        total_workouts_completed=total_workouts_completed,
    )


# =============================================================================
# Repository Factories
# =============================================================================


def create_curriculum_repo(*programs: Program) -> FakeCurriculumRepository:
    repo = FakeCurriculumRepository()
    repo.seed(list(programs))
    return repo


def create_progress_repo(
    *,
    user_id: str = DEFAULT_USER_ID,
    program_id: Optional[str] = DEFAULT_PROGRAM_ID,
    milestone_index: int = 0,
    day_index: int = 0,
    total_workouts_completed: int = 0,
) -> FakeUserProgressRepository:
    """Create a FakeUserProgressRepository with one enrolled user."""
    repo = FakeUserProgressRepository()
    repo.seed(
        [
            make_progress(
                milestone_index,
                day_index,
                user_id=user_id,
                program_id=program_id,
                total_workouts_completed=total_workouts_completed,
            )
        ]
    )
    return repo


def create_completion_repo(
    program: Program,
    *,
    user_id: str = DEFAULT_USER_ID,
    through: Optional[tuple] = None,
) -> FakeExerciseCompletionRepository:
    """
    Create a completion repo with one completion per workout day before
    ``through`` (a (milestone, day) position, exclusive).
    """
    repo = FakeExerciseCompletionRepository()
    if through is None:
        return repo
    rows = []
    for m, milestone in enumerate(program.milestones):
        for d, day in enumerate(milestone.days):
            if (m, d) >= through:
                break
            if day.is_workout:
                rows.append(
                    {
                        "user_id": user_id,
                        "exercise_id": day.exercises[0].exercise_id if day.exercises else "ex-1",
                        "program_id": program.id,
                        "milestone_index": m,
                        "day_index": d,
                    }
                )
    repo.seed(rows)
    return repo


__all__ = [
    "FakeCurriculumRepository",
    "FakeUserProgressRepository",
    "FakeExerciseCompletionRepository",
    "FakeProgressAuditRepository",
    "FakeConnectivityMonitor",
    "DEFAULT_PROGRAM_ID",
    "DEFAULT_USER_ID",
    "make_program",
    "make_progress",
    "make_workout_day",
    "make_rest_day",
    "create_curriculum_repo",
    "create_progress_repo",
    "create_completion_repo",
]
