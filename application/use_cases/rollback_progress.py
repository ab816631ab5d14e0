"""
RollbackProgress Use Case.

Restores the state recorded before an audited progress change. Users can
only roll back their own entries. The rollback itself is audited too.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from application.ports import (
    AuditAction,
    AuditState,
    ProgressAuditRepository,
    RepositoryError,
    UserProgressRepository,
)
from application.use_cases.progress_commit import ProgressCommitter
from application.use_cases.results import ProgressResult, classify_repository_failure
from domain.models import ErrorType, ProgressUpdate, UserProgress
from domain.services.error_messages import (
    ADVANCE_AUTH_REQUIRED,
    ROLLBACK_NOT_ALLOWED,
    ROLLBACK_NOT_FOUND,
    ROLLBACK_SYSTEM_ERROR,
)

logger = logging.getLogger(__name__)


@dataclass
class RollbackResult(ProgressResult):
    """Result of the RollbackProgress use case."""

    rolled_back_to: Optional[AuditState] = None
    audit_id: Optional[str] = None


class RollbackProgressUseCase:
    """
    Roll a user's progress back to an audit entry's previous state.

    Usage:
        >>> use_case = RollbackProgressUseCase(progress_repo, audit_repo)
        >>> result = use_case.execute("user-1", "audit-42", reason="Advanced by mistake")
        >>> result.rolled_back_to.milestone
        0
    """

    def __init__(
        self,
        progress_repo: UserProgressRepository,
        audit_repo: ProgressAuditRepository,
    ) -> None:
        self._progress_repo = progress_repo
        self._audit_repo = audit_repo
        self._committer = ProgressCommitter(progress_repo, audit_repo)

    def execute(self, user_id: Optional[str], audit_id: str, reason: str) -> RollbackResult:
        try:
            if not user_id:
                return RollbackResult(
                    success=False,
                    error=ADVANCE_AUTH_REQUIRED,
                    error_type=ErrorType.AUTHENTICATION,
                )
            if not audit_id or not reason or not reason.strip():
                return RollbackResult(
                    success=False,
                    error="Rollback requires an audit entry ID and a reason.",
                    error_type=ErrorType.VALIDATION,
                )

            entry = self._audit_repo.get(audit_id)
            if entry is None:
                return RollbackResult(
                    success=False,
                    error=ROLLBACK_NOT_FOUND,
                    error_type=ErrorType.NOT_FOUND,
                )
            if entry.user_id != user_id:
                logger.warning(f"User {user_id} attempted to roll back audit entry {audit_id} of another user")
                return RollbackResult(
                    success=False,
                    error=ROLLBACK_NOT_ALLOWED,
                    error_type=ErrorType.AUTHENTICATION,
                )

            current = self._progress_repo.get_progress(user_id) or UserProgress(user_id=user_id)
            restore = entry.previous_state

            try:
                outcome = self._committer.commit(
                    user_id,
                    current,
                    ProgressUpdate(
                        milestone_index=restore.milestone,
                        day_index=restore.day,
                        total_workouts_completed=restore.total_workouts,
                    ),
                    AuditAction.ROLLBACK,
                    metadata={"original_audit_id": audit_id, "rollback_reason": reason},
                )
            except RepositoryError as e:
                error_type, message = classify_repository_failure(
                    e, auth_message=ADVANCE_AUTH_REQUIRED, system_message=ROLLBACK_SYSTEM_ERROR
                )
                return RollbackResult(success=False, progress=current, error=message, error_type=error_type)

            logger.info(
                f"Rolled back user {user_id} to M{restore.milestone}D{restore.day} (audit {audit_id})"
            )
            return RollbackResult(
                success=True,
                progress=outcome.progress,
                rolled_back_to=restore,
                audit_id=outcome.audit_id,
            )

        except RepositoryError as e:
            logger.error(f"Rollback could not load data for user {user_id}: {e.message}")
            return RollbackResult(
                success=False,
                error=ROLLBACK_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )

        except Exception as e:
            logger.exception(f"RollbackProgress use case failed: {e}")
            return RollbackResult(
                success=False,
                error=ROLLBACK_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )
