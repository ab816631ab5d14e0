"""
Shared result envelope for progress operations.

Every progress use case returns a dataclass derived from ProgressResult
instead of raising: ``success`` plus, on failure, a fixed user-facing
``error`` message, a machine-readable ``error_type`` and, for consistency
errors, the ``repair_action`` hint.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from application.ports import RepositoryError
from domain.models import ErrorType, RepairAction, UserProgress
from domain.services.error_messages import UPDATE_DATA_CONFLICT, classify_collaborator_error


@dataclass
class ProgressResult:
    """Base envelope shared by all progress use cases."""

    success: bool
    progress: Optional[UserProgress] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
    repair_action: Optional[RepairAction] = None
    validation_errors: List[str] = field(default_factory=list)


def classify_repository_failure(
    error: RepositoryError,
    *,
    auth_message: str,
    system_message: str,
    duplicate_message: Optional[str] = None,
) -> Tuple[ErrorType, str]:
    """
    Pick the (error_type, message) pair for a failed repository call.

    The raw error text is only inspected, never returned.
    """
    error_type = classify_collaborator_error(error.message)
    if error_type == ErrorType.AUTHENTICATION:
        return ErrorType.AUTHENTICATION, auth_message
    if error_type == ErrorType.ALREADY_ASSIGNED and duplicate_message is not None:
        return ErrorType.ALREADY_ASSIGNED, duplicate_message
    if error_type == ErrorType.DATA_CONFLICT:
        return ErrorType.DATA_CONFLICT, UPDATE_DATA_CONFLICT
    return ErrorType.SYSTEM_ERROR, system_message
