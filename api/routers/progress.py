"""
Progress router.

Endpoints operating on the current user's position in their program:
- GET  /progress                     overview (position, percentage, analytics)
- POST /progress/validate            consistency check with optional auto-repair
- POST /progress/advance-day         complete the current day
- POST /progress/advance-milestone   skip to the next milestone
- PUT  /progress                     set an explicit position
- POST /progress/rollback            restore the state before an audited change
- GET  /progress/audit               recent audited changes

Failed operations return the result envelope with a 4xx/5xx status; the
``error`` field is always safe to show to the user.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import (
    get_advance_day_use_case,
    get_advance_milestone_use_case,
    get_audit_repo,
    get_current_user,
    get_progress_overview_use_case,
    get_rollback_use_case,
    get_update_progress_use_case,
    get_validate_progress_use_case,
)
from api.schemas import (
    AdvanceResponse,
    AuditEntryResponse,
    ProgressOverviewResponse,
    RollbackRequest,
    RollbackResponse,
    SetProgressRequest,
    UpdateProgressResponse,
    ValidateProgressResponse,
    envelope_response,
)
from application.ports import ProgressAuditRepository, RepositoryError
from application.use_cases import (
    AdvanceToNextDayUseCase,
    AdvanceToNextMilestoneUseCase,
    GetProgressOverviewUseCase,
    RollbackProgressUseCase,
    UpdateUserProgressUseCase,
    ValidateUserProgressUseCase,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/progress",
    tags=["Progress"],
)


# =============================================================================
# Read
# =============================================================================


@router.get("", response_model=ProgressOverviewResponse)
def get_progress(
    start_date: Optional[datetime] = Query(
        None, description="Program start date; enables weekly analytics"
    ),
    user_id: str = Depends(get_current_user),
    use_case: GetProgressOverviewUseCase = Depends(get_progress_overview_use_case),
):
    """Current position, completion percentage and analytics."""
    result = use_case.execute(user_id, start_date=start_date)
    return envelope_response(
        ProgressOverviewResponse.from_result(result), result.success, result.error_type
    )


@router.get("/audit", response_model=List[AuditEntryResponse])
def list_audit_entries(
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_current_user),
    audit_repo: ProgressAuditRepository = Depends(get_audit_repo),
) -> List[AuditEntryResponse]:
    """Most recent audited progress changes, newest first."""
    try:
        entries = audit_repo.list_for_user(user_id, limit=limit)
    except RepositoryError as e:
        logger.error(f"Failed to list audit entries for {user_id}: {e.message}")
        raise HTTPException(status_code=500, detail="Unable to load progress history")
    return [AuditEntryResponse.from_entry(entry) for entry in entries]


# =============================================================================
# Validation
# =============================================================================


@router.post("/validate", response_model=ValidateProgressResponse)
def validate_progress(
    auto_repair: bool = Query(True, description="Repair an invalid position in place"),
    user_id: str = Depends(get_current_user),
    use_case: ValidateUserProgressUseCase = Depends(get_validate_progress_use_case),
):
    """
    Check the stored position against the program structure.

    With ``auto_repair`` an invalid position is corrected and audited; the
    response then carries ``repaired=true`` and the repair description.
    """
    result = use_case.execute(user_id, auto_repair=auto_repair)
    return envelope_response(
        ValidateProgressResponse.from_result(result), result.success, result.error_type
    )


# =============================================================================
# Advancement
# =============================================================================


@router.post("/advance-day", response_model=AdvanceResponse)
def advance_day(
    user_id: str = Depends(get_current_user),
    use_case: AdvanceToNextDayUseCase = Depends(get_advance_day_use_case),
):
    """Complete the current day and move to the next one."""
    result = use_case.execute(user_id)
    if result.success:
        logger.info(
            f"User {user_id} advanced {result.from_position} -> {result.to_position}"
        )
    return envelope_response(AdvanceResponse.from_result(result), result.success, result.error_type)


@router.post("/advance-milestone", response_model=AdvanceResponse)
def advance_milestone(
    user_id: str = Depends(get_current_user),
    use_case: AdvanceToNextMilestoneUseCase = Depends(get_advance_milestone_use_case),
):
    """Move to the first day of the next milestone."""
    result = use_case.execute(user_id)
    return envelope_response(AdvanceResponse.from_result(result), result.success, result.error_type)


# =============================================================================
# Set / Rollback
# =============================================================================


@router.put("", response_model=UpdateProgressResponse)
def set_progress(
    request: SetProgressRequest,
    user_id: str = Depends(get_current_user),
    use_case: UpdateUserProgressUseCase = Depends(get_update_progress_use_case),
):
    """
    Set an explicit position in the enrolled program.

    Send ``expected_*`` fields with the position the client last saw to get
    a 409 instead of overwriting a concurrent change.
    """
    result = use_case.execute(
        user_id,
        request.program_id,
        request.milestone_index,
        request.day_index,
        total_workouts_completed=request.total_workouts_completed,
        last_workout_date=request.last_workout_date,
        expected_progress=request.expected_progress(user_id),
        metadata=request.metadata,
    )
    return envelope_response(
        UpdateProgressResponse.from_result(result), result.success, result.error_type
    )


@router.post("/rollback", response_model=RollbackResponse)
def rollback_progress(
    request: RollbackRequest,
    user_id: str = Depends(get_current_user),
    use_case: RollbackProgressUseCase = Depends(get_rollback_use_case),
):
    """Restore the state recorded before an audited change."""
    result = use_case.execute(user_id, request.audit_id, request.reason)
    return envelope_response(RollbackResponse.from_result(result), result.success, result.error_type)
