"""
Progress Audit Repository Interface (Port).

Every committed progress change is recorded with the state before and after
it, so a change can be inspected later and rolled back.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from domain.models import UserProgress


class AuditAction(str, Enum):
    PROGRESS_UPDATE = "progress_update"
    MILESTONE_ADVANCE = "milestone_advance"
    DAY_COMPLETE = "day_complete"
    PROGRAM_COMPLETE = "program_complete"
    ROLLBACK = "rollback"


@dataclass(frozen=True)
class AuditState:
    """Snapshot of the audited progress fields."""

    milestone: int
    day: int
    total_workouts: int

    @classmethod
    def of(cls, progress: UserProgress) -> "AuditState":
        return cls(
            milestone=progress.current_milestone_index,
            day=progress.current_day_index,
            total_workouts=progress.total_workouts_completed,
        )

    def as_dict(self) -> Dict[str, int]:
        return {"milestone": self.milestone, "day": self.day, "total_workouts": self.total_workouts}


@dataclass
class ProgressAuditEntry:
    """One recorded progress change."""

    user_id: str
    action: AuditAction
    previous_state: AuditState
    new_state: AuditState
    success: bool = True
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: Optional[str] = None


class ProgressAuditRepository(Protocol):
    """Abstract interface for the progress audit trail."""

    def record(self, entry: ProgressAuditEntry) -> str:
        """
        Store an audit entry.

        Returns:
            The entry ID.

        Raises:
            RepositoryError: If the write fails.
        """
        ...

    def get(self, entry_id: str) -> Optional[ProgressAuditEntry]:
        """Get an entry by ID, or None when it does not exist."""
        ...

    def list_for_user(self, user_id: str, limit: int = 50) -> List[ProgressAuditEntry]:
        """A user's entries, newest first."""
        ...
