"""
CompleteExerciseAndAdvance Use Case.

Saves one exercise completion and tells the client which exercise comes next.
The user's day position is not changed here; finishing the day goes through
AdvanceToNextDay.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from application.ports import CurriculumRepository, RepositoryError
from application.use_cases.save_exercise_completion import SaveExerciseCompletionUseCase
from domain.models import CompleteExerciseInput, ErrorType, InputValidationError
from domain.services.advancement import ExerciseAdvancement, advance_exercise
from domain.services.error_messages import (
    COMPLETION_AUTH_REQUIRED,
    COMPLETION_EMPTY_MILESTONE,
    COMPLETION_INVALID_DAY,
    COMPLETION_INVALID_INPUT,
    COMPLETION_INVALID_MILESTONE,
    COMPLETION_NO_MILESTONES,
    COMPLETION_SYSTEM_ERROR,
)

logger = logging.getLogger(__name__)


@dataclass
class CompleteExerciseResult:
    """Result of the CompleteExerciseAndAdvance use case."""

    success: bool
    completion_id: Optional[str] = None
    advancement: Optional[ExerciseAdvancement] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
    validation_errors: List[str] = field(default_factory=list)


class CompleteExerciseAndAdvanceUseCase:
    """
    Complete an exercise and compute the next one.

    The target day must exist and be a workout day. On AMRAP days the
    exercise list cycles until time runs out; the round counter is derived
    from ``exercises_completed_in_session``.
    """

    def __init__(
        self,
        curriculum_repo: CurriculumRepository,
        save_completion: SaveExerciseCompletionUseCase,
    ) -> None:
        self._curriculum_repo = curriculum_repo
        self._save_completion = save_completion

    def execute(self, user_id: Optional[str], data: CompleteExerciseInput) -> CompleteExerciseResult:
        try:
            if not user_id:
                return CompleteExerciseResult(
                    success=False,
                    error=COMPLETION_AUTH_REQUIRED,
                    error_type=ErrorType.AUTHENTICATION,
                )

            data.ensure_valid()
            completion = data.completion

            # Step 1: Resolve the target day
            program = self._curriculum_repo.get_program(completion.program_id)
            if program is None:
                return CompleteExerciseResult(
                    success=False, error="Program not found", error_type=ErrorType.NOT_FOUND
                )
            mismatch = None
            day = None
            milestone = program.get_milestone(completion.milestone_index)
            if not program.milestones:
                mismatch = COMPLETION_NO_MILESTONES
            elif milestone is None:
                mismatch = COMPLETION_INVALID_MILESTONE
            elif not milestone.days:
                mismatch = COMPLETION_EMPTY_MILESTONE
            else:
                day = program.get_day(completion.milestone_index, completion.day_index)
                if day is None or not day.is_workout:
                    mismatch = COMPLETION_INVALID_DAY
            if mismatch:
                logger.warning(
                    f"Completion target mismatch for program {program.id} at "
                    f"M{completion.milestone_index}D{completion.day_index}: {mismatch}"
                )
                return CompleteExerciseResult(
                    success=False, error=mismatch, error_type=ErrorType.PROGRAM_MISMATCH
                )

            # Step 2: Save the completion
            saved = self._save_completion.execute(user_id, completion)
            if not saved.success:
                return CompleteExerciseResult(
                    success=False,
                    error=saved.error,
                    error_type=saved.error_type or ErrorType.SYSTEM_ERROR,
                    validation_errors=saved.validation_errors,
                )

            # Step 3: Compute the next exercise
            advancement = advance_exercise(
                day,
                data.current_exercise_index,
                is_amrap=data.is_amrap_day,
                amrap_time_remaining=data.amrap_time_remaining,
                exercises_completed_in_session=data.exercises_completed_in_session,
            )
            return CompleteExerciseResult(
                success=True,
                completion_id=saved.completion_id,
                advancement=advancement,
            )

        except InputValidationError as e:
            logger.warning(f"Complete exercise input rejected: {e.errors}")
            return CompleteExerciseResult(
                success=False,
                error=f"{COMPLETION_INVALID_INPUT}: {', '.join(e.errors)}",
                error_type=ErrorType.VALIDATION,
                validation_errors=e.errors,
            )

        except RepositoryError as e:
            logger.error(f"CompleteExerciseAndAdvance could not load program: {e.message}")
            return CompleteExerciseResult(
                success=False,
                error=COMPLETION_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )

        except Exception as e:
            logger.exception(f"CompleteExerciseAndAdvance use case failed: {e}")
            return CompleteExerciseResult(
                success=False,
                error=COMPLETION_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )
