"""
RepairProgress Use Case.

Executes a computed RepairAction by committing its target position. A repair
is never recursive: the target was already checked when the action was
selected, and a failed commit simply means no repair is available.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from application.ports import (
    AuditAction,
    ProgressAuditRepository,
    RepositoryError,
    UserProgressRepository,
)
from application.use_cases.progress_commit import ProgressCommitter
from domain.models import ProgressUpdate, RepairAction, UserProgress

logger = logging.getLogger(__name__)


@dataclass
class RepairOutcome:
    """An applied repair."""

    milestone: int
    day: int
    description: str
    progress: UserProgress
    audit_id: Optional[str] = None


class RepairProgressUseCase:
    """
    Apply a repair action to a user's stored progress.

    Usage:
        >>> repair = RepairProgressUseCase(progress_repo, audit_repo)
        >>> outcome = repair.execute("user-1", progress, action)
        >>> if outcome is None:
        ...     # surface the original validation error
    """

    def __init__(
        self,
        progress_repo: UserProgressRepository,
        audit_repo: Optional[ProgressAuditRepository] = None,
    ) -> None:
        self._committer = ProgressCommitter(progress_repo, audit_repo)

    def execute(
        self,
        user_id: str,
        progress: UserProgress,
        action: Optional[RepairAction],
    ) -> Optional[RepairOutcome]:
        """
        Commit the action's target position.

        Returns:
            RepairOutcome, or None when the action cannot be applied
            automatically or the commit failed.
        """
        if action is None or not action.is_auto_applicable:
            return None

        target = action.target
        try:
            outcome = self._committer.commit(
                user_id,
                progress,
                ProgressUpdate.position(target.milestone_index, target.day_index),
                AuditAction.PROGRESS_UPDATE,
                metadata={
                    "repair_action": action.type.value,
                    "from_position": str(progress.position),
                },
                rollback_on_failure=False,
            )
        except RepositoryError as e:
            logger.error(f"Progress repair failed for user {user_id}: {e.message}")
            return None

        logger.info(
            f"Repaired progress for user {user_id}: {progress.position} -> {target} ({action.type.value})"
        )
        return RepairOutcome(
            milestone=target.milestone_index,
            day=target.day_index,
            description=action.description,
            progress=outcome.progress,
            audit_id=outcome.audit_id,
        )
