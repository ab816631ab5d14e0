"""
Application Use Cases for the Progress API.

This package contains application-level use cases that orchestrate domain
logic and coordinate between ports/adapters. Use cases are the entry points
for progress operations.

Architecture follows Clean Architecture / Hexagonal pattern:
- Use cases orchestrate domain services and repository ports
- Dependencies are injected via constructors for testability
- Use cases return result envelopes (success / error / error_type /
  repair_action), never raise

Usage:
    from application.use_cases import AdvanceToNextDayUseCase

    advance = AdvanceToNextDayUseCase(
        curriculum_repo=curriculum_repo,
        progress_repo=progress_repo,
        audit_repo=audit_repo,
    )
    result = advance.execute("user-123")
    if not result.success:
        print(result.error_type, result.error)
"""

from application.use_cases.advance_progress import (
    AdvanceResult,
    AdvanceToNextDayUseCase,
    AdvanceToNextMilestoneUseCase,
)
from application.use_cases.assign_program import AssignProgramResult, AssignProgramUseCase
from application.use_cases.complete_exercise_and_advance import (
    CompleteExerciseAndAdvanceUseCase,
    CompleteExerciseResult,
)
from application.use_cases.get_progress_overview import (
    GetProgressOverviewUseCase,
    ProgressOverviewResult,
)
from application.use_cases.progress_commit import CommitOutcome, ProgressCommitter
from application.use_cases.repair_progress import RepairOutcome, RepairProgressUseCase
from application.use_cases.results import ProgressResult
from application.use_cases.rollback_progress import RollbackProgressUseCase, RollbackResult
from application.use_cases.save_exercise_completion import (
    AutoSaveResult,
    SaveCompletionResult,
    SaveExerciseCompletionUseCase,
)
from application.use_cases.update_user_progress import (
    UpdateProgressResult,
    UpdateUserProgressUseCase,
)
from application.use_cases.validate_user_progress import (
    ValidateProgressResult,
    ValidateUserProgressUseCase,
)

__all__ = [
    "ProgressResult",
    # Commit / repair
    "ProgressCommitter",
    "CommitOutcome",
    "RepairProgressUseCase",
    "RepairOutcome",
    # Validation
    "ValidateUserProgressUseCase",
    "ValidateProgressResult",
    # Advancement
    "AdvanceToNextDayUseCase",
    "AdvanceToNextMilestoneUseCase",
    "AdvanceResult",
    # Set progress
    "UpdateUserProgressUseCase",
    "UpdateProgressResult",
    # Enrollment
    "AssignProgramUseCase",
    "AssignProgramResult",
    # Completions
    "SaveExerciseCompletionUseCase",
    "SaveCompletionResult",
    "AutoSaveResult",
    "CompleteExerciseAndAdvanceUseCase",
    "CompleteExerciseResult",
    # Rollback
    "RollbackProgressUseCase",
    "RollbackResult",
    # Overview
    "GetProgressOverviewUseCase",
    "ProgressOverviewResult",
]
