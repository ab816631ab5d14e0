"""
Progress commits with audit recording and best-effort rollback.

Every mutating transition goes through ProgressCommitter.commit(): one
"set position" call on the position store, followed by an audit entry. When
the call fails, a failed audit entry is recorded and the pre-transition state
is written back. Neither the audit write nor the rollback ever raises.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from application.ports import (
    AuditAction,
    AuditState,
    ProgressAuditEntry,
    ProgressAuditRepository,
    RepositoryError,
    UserProgressRepository,
)
from domain.models import ProgressUpdate, UserProgress

logger = logging.getLogger(__name__)


@dataclass
class CommitOutcome:
    progress: UserProgress
    audit_id: Optional[str] = None


class ProgressCommitter:
    """Commits progress updates through the position store."""

    def __init__(
        self,
        progress_repo: UserProgressRepository,
        audit_repo: Optional[ProgressAuditRepository] = None,
    ) -> None:
        self._progress_repo = progress_repo
        self._audit_repo = audit_repo

    def commit(
        self,
        user_id: str,
        previous: UserProgress,
        update: ProgressUpdate,
        action: AuditAction,
        *,
        metadata: Optional[Dict[str, Any]] = None,
        rollback_on_failure: bool = True,
    ) -> CommitOutcome:
        """
        Apply ``update`` and record it.

        Raises:
            RepositoryError: If the position store rejects the update. The
                rollback has already been attempted when this propagates.
        """
        try:
            stored = self._progress_repo.update_position(user_id, update)
        except RepositoryError as e:
            logger.error(f"Progress commit failed for user {user_id} ({action.value}): {e.message}")
            self.record(
                user_id,
                action,
                previous,
                update.apply_to(previous),
                success=False,
                error_message=e.message,
                metadata=metadata,
            )
            if rollback_on_failure:
                self.restore(user_id, previous)
            raise

        audit_id = self.record(user_id, action, previous, stored, metadata=metadata)
        return CommitOutcome(progress=stored, audit_id=audit_id)

    def restore(self, user_id: str, previous: UserProgress) -> bool:
        """Write ``previous`` back. Failure is logged and reported as False."""
        try:
            self._progress_repo.update_position(user_id, ProgressUpdate.from_progress(previous))
            logger.info(f"Restored progress for user {user_id} to {previous.position}")
            return True
        except Exception as e:
            logger.error(f"Rollback to {previous.position} failed for user {user_id}: {e}")
            return False

    def record(
        self,
        user_id: str,
        action: AuditAction,
        previous: UserProgress,
        new: UserProgress,
        *,
        success: bool = True,
        error_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """Best-effort audit write; returns the entry ID or None."""
        if self._audit_repo is None:
            return None
        entry = ProgressAuditEntry(
            user_id=user_id,
            action=action,
            previous_state=AuditState.of(previous),
            new_state=AuditState.of(new),
            success=success,
            error_message=error_message,
            metadata=dict(metadata or {}),
        )
        try:
            return self._audit_repo.record(entry)
        except Exception as e:
            logger.warning(f"Failed to record audit entry for user {user_id}: {e}")
            return None
