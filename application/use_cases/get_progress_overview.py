"""
GetProgressOverview Use Case.

Read-only dashboard view: the user's progress, their program, completion
percentages, workout/rest analytics and the validation status. Nothing is
repaired here.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from application.ports import CurriculumRepository, RepositoryError, UserProgressRepository
from application.use_cases.results import ProgressResult
from domain.models import ErrorType, Program
from domain.services.error_messages import ADVANCE_NO_PROGRAM, VALIDATION_SYSTEM_ERROR
from domain.services.progress_calculator import (
    ProgramAnalytics,
    ProgramProgress,
    calculate_program_analytics,
    calculate_program_progress,
)
from domain.services.progress_validation import ProgressValidationResult, validate_user_progress

logger = logging.getLogger(__name__)


@dataclass
class ProgressOverviewResult(ProgressResult):
    program: Optional[Program] = None
    program_progress: Optional[ProgramProgress] = None
    analytics: Optional[ProgramAnalytics] = None
    validation: Optional[ProgressValidationResult] = None


class GetProgressOverviewUseCase:
    def __init__(
        self,
        curriculum_repo: CurriculumRepository,
        progress_repo: UserProgressRepository,
    ) -> None:
        self._curriculum_repo = curriculum_repo
        self._progress_repo = progress_repo

    def execute(self, user_id: str, *, start_date: Optional[datetime] = None) -> ProgressOverviewResult:
        try:
            progress = self._progress_repo.get_progress(user_id)
            if progress is None or not progress.has_program:
                return ProgressOverviewResult(
                    success=False,
                    progress=progress,
                    error=ADVANCE_NO_PROGRAM,
                    error_type=ErrorType.NO_ACTIVE_PROGRAM,
                )

            program = self._curriculum_repo.get_program(progress.current_program_id)
            validation = validate_user_progress(program, progress, progress.current_program_id)

            if program is None:
                primary = validation.primary_error
                return ProgressOverviewResult(
                    success=False,
                    progress=progress,
                    error=primary.user_friendly_message,
                    error_type=primary.type,
                    repair_action=validation.primary_repair_action,
                    validation=validation,
                )

            return ProgressOverviewResult(
                success=True,
                progress=progress,
                program=program,
                program_progress=calculate_program_progress(program, progress),
                analytics=calculate_program_analytics(program, progress, start_date),
                validation=validation,
                repair_action=validation.primary_repair_action,
            )

        except RepositoryError as e:
            logger.error(f"Progress overview could not load data for user {user_id}: {e.message}")
            return ProgressOverviewResult(
                success=False,
                error=VALIDATION_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )

        except Exception as e:
            logger.exception(f"GetProgressOverview use case failed: {e}")
            return ProgressOverviewResult(
                success=False,
                error=VALIDATION_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )
