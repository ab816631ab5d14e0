"""
ValidateUserProgress Use Case.

Loads a user's progress and program, runs the validation engine and, when
allowed, applies the primary repair action.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from application.ports import CurriculumRepository, RepositoryError, UserProgressRepository
from application.use_cases.repair_progress import RepairOutcome, RepairProgressUseCase
from application.use_cases.results import ProgressResult
from domain.models import ErrorType
from domain.services.error_messages import ADVANCE_NO_PROGRAM, VALIDATION_SYSTEM_ERROR
from domain.services.progress_validation import (
    ProgressValidationResult,
    get_progress_error_message,
    get_repair_instructions,
    validate_user_progress,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidateProgressResult(ProgressResult):
    """Result of the ValidateUserProgress use case."""

    is_valid: bool = False
    validation: Optional[ProgressValidationResult] = None
    repaired: bool = False
    repair: Optional[RepairOutcome] = None
    repair_instructions: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


class ValidateUserProgressUseCase:
    """
    Validate (and optionally repair) a user's stored progress.

    Usage:
        >>> use_case = ValidateUserProgressUseCase(curriculum_repo, progress_repo, repair)
        >>> result = use_case.execute("user-1", auto_repair=True)
        >>> if result.repaired:
        ...     print(result.repair.description)
    """

    def __init__(
        self,
        curriculum_repo: CurriculumRepository,
        progress_repo: UserProgressRepository,
        repair: RepairProgressUseCase,
    ) -> None:
        self._curriculum_repo = curriculum_repo
        self._progress_repo = progress_repo
        self._repair = repair

    def execute(self, user_id: str, *, auto_repair: bool = True) -> ValidateProgressResult:
        """
        Validate the user's current position.

        A valid position, or one that was repaired successfully, is a
        success. An invalid position that was not repaired comes back with the
        primary error type and the repair action as a hint.
        """
        try:
            progress = self._progress_repo.get_progress(user_id)
            if progress is None or not progress.has_program:
                return ValidateProgressResult(
                    success=False,
                    progress=progress,
                    error=ADVANCE_NO_PROGRAM,
                    error_type=ErrorType.NO_ACTIVE_PROGRAM,
                )

            program = self._curriculum_repo.get_program(progress.current_program_id)
            validation = validate_user_progress(program, progress, progress.current_program_id)
            warnings = [w.message for w in validation.warnings]
            for warning in warnings:
                logger.warning(f"Progress warning for user {user_id}: {warning}")

            if validation.is_valid:
                return ValidateProgressResult(
                    success=True,
                    progress=progress,
                    is_valid=True,
                    validation=validation,
                    warnings=warnings,
                )

            logger.warning(
                f"Invalid progress for user {user_id} at {progress.position}: "
                f"{[e.message for e in validation.errors]}"
            )

            instructions = get_repair_instructions(validation.repair_actions)
            if auto_repair and validation.can_be_repaired:
                outcome = self._repair.execute(user_id, progress, validation.primary_repair_action)
                if outcome is not None:
                    return ValidateProgressResult(
                        success=True,
                        progress=outcome.progress,
                        is_valid=False,
                        validation=validation,
                        repaired=True,
                        repair=outcome,
                        repair_action=validation.primary_repair_action,
                        repair_instructions=instructions,
                        warnings=warnings,
                    )

            primary = validation.primary_error
            return ValidateProgressResult(
                success=False,
                progress=progress,
                error=get_progress_error_message(validation.errors),
                error_type=primary.type if primary else ErrorType.VALIDATION,
                repair_action=validation.primary_repair_action,
                validation_errors=[e.message for e in validation.errors],
                is_valid=False,
                validation=validation,
                repair_instructions=instructions,
                warnings=warnings,
            )

        except RepositoryError as e:
            logger.error(f"Progress validation could not load data for user {user_id}: {e.message}")
            return ValidateProgressResult(
                success=False,
                error=VALIDATION_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )

        except Exception as e:
            logger.exception(f"ValidateUserProgress use case failed: {e}")
            return ValidateProgressResult(
                success=False,
                error=VALIDATION_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )
