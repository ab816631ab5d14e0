"""
SaveExerciseCompletion Use Case.

Stores the performance data for one exercise at one program position. The
composite key makes saving idempotent per position: saving again updates the
existing record.

auto_save() is the lenient variant used while the user is still typing: it
only writes when there is meaningful data, drops empty fields instead of
overwriting stored ones, and fails quietly.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from application.ports import ExerciseCompletionRepository, RepositoryError
from domain.models import ErrorType, ExerciseCompletionInput, InputValidationError
from domain.services.error_messages import (
    COMPLETION_AUTH_REQUIRED,
    COMPLETION_SYSTEM_ERROR,
    classify_collaborator_error,
)

logger = logging.getLogger(__name__)


@dataclass
class SaveCompletionResult:
    """Result of SaveExerciseCompletion.execute()."""

    success: bool
    completion_id: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
    validation_errors: List[str] = field(default_factory=list)


@dataclass
class AutoSaveResult:
    """Result of SaveExerciseCompletion.auto_save()."""

    success: bool
    saved: bool = False
    completion_id: Optional[str] = None
    error: Optional[str] = None


class SaveExerciseCompletionUseCase:
    """
    Save exercise completion data.

    Usage:
        >>> use_case = SaveExerciseCompletionUseCase(completion_repo)
        >>> result = use_case.execute("user-1", ExerciseCompletionInput(...))
        >>> result.completion_id
        'c-123'
    """

    def __init__(self, completion_repo: ExerciseCompletionRepository) -> None:
        self._completion_repo = completion_repo

    def execute(
        self,
        user_id: Optional[str],
        completion: ExerciseCompletionInput,
        *,
        completed_at: Optional[datetime] = None,
    ) -> SaveCompletionResult:
        try:
            if not user_id:
                return SaveCompletionResult(
                    success=False,
                    error=COMPLETION_AUTH_REQUIRED,
                    error_type=ErrorType.AUTHENTICATION,
                )

            completion.ensure_valid()

            key = completion.key_for(user_id)
            completion_id = self._completion_repo.upsert(key, completion.to_record(completed_at))

            logger.info(
                f"Saved completion {completion_id} for {completion.exercise_id} "
                f"at M{completion.milestone_index}D{completion.day_index}"
            )
            return SaveCompletionResult(success=True, completion_id=completion_id)

        except InputValidationError as e:
            logger.warning(f"Exercise completion rejected: {e.errors}")
            return SaveCompletionResult(
                success=False,
                error=e.message,
                error_type=ErrorType.VALIDATION,
                validation_errors=e.errors,
            )

        except RepositoryError as e:
            logger.error(f"Failed to save exercise completion for user {user_id}: {e.message}")
            if classify_collaborator_error(e.message) == ErrorType.AUTHENTICATION:
                return SaveCompletionResult(
                    success=False,
                    error=COMPLETION_AUTH_REQUIRED,
                    error_type=ErrorType.AUTHENTICATION,
                )
            return SaveCompletionResult(
                success=False,
                error=COMPLETION_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )

        except Exception as e:
            logger.exception(f"SaveExerciseCompletion use case failed: {e}")
            return SaveCompletionResult(
                success=False,
                error=COMPLETION_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )

    def auto_save(self, user_id: Optional[str], completion: ExerciseCompletionInput) -> AutoSaveResult:
        """
        Save partial data without interrupting the user.

        Returns success with ``saved=False`` when there is nothing meaningful
        to store.
        """
        try:
            if not user_id:
                return AutoSaveResult(success=False, error="Authentication required for auto-save")

            if not completion.has_meaningful_data:
                return AutoSaveResult(success=True, saved=False)

            errors = completion.validate()
            if errors:
                logger.debug(f"Auto-save skipped, invalid data: {errors}")
                return AutoSaveResult(success=False, error="Auto-save skipped: invalid data")

            record = {k: v for k, v in completion.to_record().items() if v is not None}
            completion_id = self._completion_repo.upsert(completion.key_for(user_id), record)
            return AutoSaveResult(success=True, saved=True, completion_id=completion_id)

        except Exception as e:
            logger.warning(f"Auto-save failed for user {user_id}: {e}")
            return AutoSaveResult(success=False, error="Auto-save failed silently")
