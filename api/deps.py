"""
FastAPI Dependency Providers for the Progress API.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) rather than concrete implementations, so tests
can swap in fakes through ``app.dependency_overrides``.

Architecture:
- Settings and Supabase client are cached per-process (lru_cache)
- Repository providers create new instances per-request
- Use case providers are assembled from the repository providers

Usage in routers:
    from api.deps import get_advance_day_use_case, get_current_user

    @router.post("/progress/advance-day")
    def advance_day(
        user_id: str = Depends(get_current_user),
        use_case: AdvanceToNextDayUseCase = Depends(get_advance_day_use_case),
    ):
        return use_case.execute(user_id)

Testing:
    app.dependency_overrides[get_user_progress_repo] = lambda: FakeUserProgressRepository()
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException
from supabase import Client, create_client

# Protocol types (interfaces)
from application.ports import (
    CurriculumRepository,
    ExerciseCompletionRepository,
    ProgressAuditRepository,
    UserProgressRepository,
)
from application.use_cases import (
    AdvanceToNextDayUseCase,
    AdvanceToNextMilestoneUseCase,
    AssignProgramUseCase,
    CompleteExerciseAndAdvanceUseCase,
    GetProgressOverviewUseCase,
    RepairProgressUseCase,
    RollbackProgressUseCase,
    SaveExerciseCompletionUseCase,
    UpdateUserProgressUseCase,
    ValidateUserProgressUseCase,
)

# Concrete implementations
from infrastructure.db import (
    SupabaseCurriculumRepository,
    SupabaseExerciseCompletionRepository,
    SupabaseProgressAuditRepository,
    SupabaseUserProgressRepository,
)

from backend.auth import get_current_user
from backend.settings import Settings, get_settings as _get_settings


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """Get cached Settings instance from backend.settings."""
    return _get_settings()


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance (cached).

    Returns:
        Client: Supabase client instance, or None if not configured
    """
    settings = _get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        return None

    return create_client(settings.supabase_url, settings.supabase_key)


def get_supabase_client_required() -> Client:
    """
    Get Supabase client instance, raising if not configured.

    Raises:
        HTTPException: 503 if Supabase is not configured
    """
    client = get_supabase_client()
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Database not available. Supabase credentials not configured.",
        )
    return client


# =============================================================================
# Repository Providers
# =============================================================================


def get_curriculum_repo(
    client: Client = Depends(get_supabase_client_required),
) -> CurriculumRepository:
    """Read-only program access."""
    return SupabaseCurriculumRepository(client)


def get_user_progress_repo(
    client: Client = Depends(get_supabase_client_required),
) -> UserProgressRepository:
    return SupabaseUserProgressRepository(client)


def get_completion_repo(
    client: Client = Depends(get_supabase_client_required),
) -> ExerciseCompletionRepository:
    return SupabaseExerciseCompletionRepository(client)


def get_audit_repo(
    client: Client = Depends(get_supabase_client_required),
) -> ProgressAuditRepository:
    return SupabaseProgressAuditRepository(client)


# =============================================================================
# Use Case Providers
# =============================================================================


def get_repair_use_case(
    progress_repo: UserProgressRepository = Depends(get_user_progress_repo),
    audit_repo: ProgressAuditRepository = Depends(get_audit_repo),
) -> RepairProgressUseCase:
    return RepairProgressUseCase(progress_repo, audit_repo)


def get_validate_progress_use_case(
    curriculum_repo: CurriculumRepository = Depends(get_curriculum_repo),
    progress_repo: UserProgressRepository = Depends(get_user_progress_repo),
    repair: RepairProgressUseCase = Depends(get_repair_use_case),
) -> ValidateUserProgressUseCase:
    return ValidateUserProgressUseCase(curriculum_repo, progress_repo, repair)


def get_advance_day_use_case(
    curriculum_repo: CurriculumRepository = Depends(get_curriculum_repo),
    progress_repo: UserProgressRepository = Depends(get_user_progress_repo),
    audit_repo: ProgressAuditRepository = Depends(get_audit_repo),
) -> AdvanceToNextDayUseCase:
    return AdvanceToNextDayUseCase(curriculum_repo, progress_repo, audit_repo)


def get_advance_milestone_use_case(
    curriculum_repo: CurriculumRepository = Depends(get_curriculum_repo),
    progress_repo: UserProgressRepository = Depends(get_user_progress_repo),
    audit_repo: ProgressAuditRepository = Depends(get_audit_repo),
) -> AdvanceToNextMilestoneUseCase:
    return AdvanceToNextMilestoneUseCase(curriculum_repo, progress_repo, audit_repo)


def get_update_progress_use_case(
    curriculum_repo: CurriculumRepository = Depends(get_curriculum_repo),
    progress_repo: UserProgressRepository = Depends(get_user_progress_repo),
    audit_repo: ProgressAuditRepository = Depends(get_audit_repo),
    completion_repo: ExerciseCompletionRepository = Depends(get_completion_repo),
) -> UpdateUserProgressUseCase:
    return UpdateUserProgressUseCase(
        curriculum_repo,
        progress_repo,
        audit_repo=audit_repo,
        completion_repo=completion_repo,
    )


def get_assign_program_use_case(
    curriculum_repo: CurriculumRepository = Depends(get_curriculum_repo),
    progress_repo: UserProgressRepository = Depends(get_user_progress_repo),
    audit_repo: ProgressAuditRepository = Depends(get_audit_repo),
) -> AssignProgramUseCase:
    return AssignProgramUseCase(curriculum_repo, progress_repo, audit_repo)


def get_save_completion_use_case(
    completion_repo: ExerciseCompletionRepository = Depends(get_completion_repo),
) -> SaveExerciseCompletionUseCase:
    return SaveExerciseCompletionUseCase(completion_repo)


def get_complete_exercise_use_case(
    curriculum_repo: CurriculumRepository = Depends(get_curriculum_repo),
    save_completion: SaveExerciseCompletionUseCase = Depends(get_save_completion_use_case),
) -> CompleteExerciseAndAdvanceUseCase:
    return CompleteExerciseAndAdvanceUseCase(curriculum_repo, save_completion)


def get_rollback_use_case(
    progress_repo: UserProgressRepository = Depends(get_user_progress_repo),
    audit_repo: ProgressAuditRepository = Depends(get_audit_repo),
) -> RollbackProgressUseCase:
    return RollbackProgressUseCase(progress_repo, audit_repo)


def get_progress_overview_use_case(
    curriculum_repo: CurriculumRepository = Depends(get_curriculum_repo),
    progress_repo: UserProgressRepository = Depends(get_user_progress_repo),
) -> GetProgressOverviewUseCase:
    return GetProgressOverviewUseCase(curriculum_repo, progress_repo)


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    "get_supabase_client_required",
    # Repositories
    "get_curriculum_repo",
    "get_user_progress_repo",
    "get_completion_repo",
    "get_audit_repo",
    # Use cases
    "get_repair_use_case",
    "get_validate_progress_use_case",
    "get_advance_day_use_case",
    "get_advance_milestone_use_case",
    "get_update_progress_use_case",
    "get_assign_program_use_case",
    "get_save_completion_use_case",
    "get_complete_exercise_use_case",
    "get_rollback_use_case",
    "get_progress_overview_use_case",
    # Auth
    "get_current_user",
]
