"""
AdvanceToNextDay and AdvanceToNextMilestone Use Cases.

Both commit through ProgressCommitter in a single "set position" call. Day
advancement validates the current position first: a corrupted position is
repaired (when possible) instead of advanced, and the caller is told what was
corrected.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

from application.ports import (
    AuditAction,
    CurriculumRepository,
    ProgressAuditRepository,
    RepositoryError,
    UserProgressRepository,
)
from application.use_cases.progress_commit import ProgressCommitter
from application.use_cases.repair_progress import RepairOutcome, RepairProgressUseCase
from application.use_cases.results import ProgressResult, classify_repository_failure
from domain.models import (
    ErrorType,
    Position,
    Program,
    ProgressUpdate,
    RepairAction,
    RepairActionType,
    UserProgress,
)
from domain.services.advancement import (
    is_program_complete,
    next_day_position,
    next_milestone_position,
)
from domain.services.error_messages import (
    ADVANCE_AUTH_REQUIRED,
    ADVANCE_FINAL_MILESTONE,
    ADVANCE_NO_PROGRAM,
    ADVANCE_PROGRAM_COMPLETED,
    ADVANCE_PROGRAM_UNAVAILABLE,
    ADVANCE_SYSTEM_ERROR,
)
from domain.services.progress_validation import (
    REPAIR_DESCRIPTION_NEW_PROGRAM,
    get_progress_error_message,
    get_repair_instructions,
    validate_user_progress,
)

logger = logging.getLogger(__name__)


@dataclass
class AdvanceResult(ProgressResult):
    """Result of an advancement use case."""

    from_position: Optional[Position] = None
    to_position: Optional[Position] = None
    milestone_completed: bool = False
    program_completed: bool = False
    repaired: bool = False
    repair: Optional[RepairOutcome] = None
    repair_instructions: Optional[str] = None
    audit_id: Optional[str] = None


def _load_enrollment(
    user_id: Optional[str],
    curriculum_repo: CurriculumRepository,
    progress_repo: UserProgressRepository,
) -> Union[AdvanceResult, Tuple[UserProgress, Program]]:
    """Progress and program for an advancement, or the failure to return."""
    if not user_id:
        return AdvanceResult(
            success=False,
            error=ADVANCE_AUTH_REQUIRED,
            error_type=ErrorType.AUTHENTICATION,
        )

    progress = progress_repo.get_progress(user_id)
    if progress is None or not progress.has_program:
        return AdvanceResult(
            success=False,
            progress=progress,
            error=ADVANCE_NO_PROGRAM,
            error_type=ErrorType.NO_ACTIVE_PROGRAM,
        )

    program = curriculum_repo.get_program(progress.current_program_id)
    if program is None or not program.is_published:
        logger.warning(
            f"User {user_id} is enrolled in unavailable program {progress.current_program_id}"
        )
        return AdvanceResult(
            success=False,
            progress=progress,
            error=ADVANCE_PROGRAM_UNAVAILABLE,
            error_type=ErrorType.NOT_FOUND,
            repair_action=RepairAction(
                type=RepairActionType.ASSIGN_NEW_PROGRAM,
                description=REPAIR_DESCRIPTION_NEW_PROGRAM,
            ),
        )

    return progress, program


def _commit_failure(e: RepositoryError, progress: UserProgress) -> AdvanceResult:
    error_type, message = classify_repository_failure(
        e, auth_message=ADVANCE_AUTH_REQUIRED, system_message=ADVANCE_SYSTEM_ERROR
    )
    return AdvanceResult(success=False, progress=progress, error=message, error_type=error_type)


class AdvanceToNextDayUseCase:
    """
    Move a user forward by one day.

    Leaving a workout day increments ``total_workouts_completed`` and stamps
    ``last_workout_date`` in the same commit. Leaving the last day of the last
    milestone lands on the completion sentinel.

    Usage:
        >>> use_case = AdvanceToNextDayUseCase(curriculum_repo, progress_repo, audit_repo)
        >>> result = use_case.execute("user-1")
        >>> result.to_position
        Position(milestone_index=1, day_index=0)
    """

    def __init__(
        self,
        curriculum_repo: CurriculumRepository,
        progress_repo: UserProgressRepository,
        audit_repo: Optional[ProgressAuditRepository] = None,
    ) -> None:
        self._curriculum_repo = curriculum_repo
        self._progress_repo = progress_repo
        self._committer = ProgressCommitter(progress_repo, audit_repo)
        self._repair = RepairProgressUseCase(progress_repo, audit_repo)

    def execute(self, user_id: Optional[str], *, now: Optional[datetime] = None) -> AdvanceResult:
        progress: Optional[UserProgress] = None
        try:
            loaded = _load_enrollment(user_id, self._curriculum_repo, self._progress_repo)
            if isinstance(loaded, AdvanceResult):
                return loaded
            progress, program = loaded

            # Step 1: Validate the current position before moving it
            validation = validate_user_progress(program, progress, program.id)
            if not validation.is_valid:
                return self._repair_instead(user_id, progress, validation)

            # Step 2: Completion sentinel cannot advance
            if is_program_complete(program, progress.current_milestone_index):
                return AdvanceResult(
                    success=False,
                    progress=progress,
                    error=ADVANCE_PROGRAM_COMPLETED,
                    error_type=ErrorType.VALIDATION,
                    program_completed=True,
                )

            # Step 3: Compute and commit the transition
            transition = next_day_position(
                program, progress.current_milestone_index, progress.current_day_index
            )
            target = transition.to_position
            if transition.left_workout_day:
                update = ProgressUpdate.position(
                    target.milestone_index,
                    target.day_index,
                    total_workouts_completed=progress.total_workouts_completed + 1,
                    last_workout_date=now or datetime.now(timezone.utc),
                )
            else:
                update = ProgressUpdate.position(target.milestone_index, target.day_index)

            if transition.program_completed:
                action = AuditAction.PROGRAM_COMPLETE
            elif transition.milestone_completed:
                action = AuditAction.MILESTONE_ADVANCE
            else:
                action = AuditAction.DAY_COMPLETE

            try:
                outcome = self._committer.commit(
                    user_id,
                    progress,
                    update,
                    action,
                    metadata={"program_id": program.id},
                )
            except RepositoryError as e:
                return _commit_failure(e, progress)

            logger.info(
                f"User {user_id} advanced {transition.from_position} -> {target}"
                + (" (program complete)" if transition.program_completed else "")
            )
            return AdvanceResult(
                success=True,
                progress=outcome.progress,
                from_position=transition.from_position,
                to_position=target,
                milestone_completed=transition.milestone_completed,
                program_completed=transition.program_completed,
                audit_id=outcome.audit_id,
            )

        except RepositoryError as e:
            return _commit_failure(e, progress)

        except Exception as e:
            logger.exception(f"AdvanceToNextDay use case failed: {e}")
            return AdvanceResult(
                success=False,
                progress=progress,
                error=ADVANCE_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )

    def _repair_instead(self, user_id, progress, validation) -> AdvanceResult:
        """Repair a corrupted position and report it as a non-success."""
        primary = validation.primary_error
        action = validation.primary_repair_action
        outcome = None
        if validation.can_be_repaired:
            outcome = self._repair.execute(user_id, progress, action)

        if outcome is not None:
            logger.warning(
                f"Advance for user {user_id} replaced by repair to M{outcome.milestone}D{outcome.day}"
            )
        return AdvanceResult(
            success=False,
            progress=outcome.progress if outcome is not None else progress,
            error=get_progress_error_message(validation.errors),
            error_type=primary.type if primary else ErrorType.VALIDATION,
            repair_action=action,
            validation_errors=[e.message for e in validation.errors],
            repaired=outcome is not None,
            repair=outcome,
            repair_instructions=get_repair_instructions(validation.repair_actions),
        )


class AdvanceToNextMilestoneUseCase:
    """Move a user to day 0 of the next milestone."""

    def __init__(
        self,
        curriculum_repo: CurriculumRepository,
        progress_repo: UserProgressRepository,
        audit_repo: Optional[ProgressAuditRepository] = None,
    ) -> None:
        self._curriculum_repo = curriculum_repo
        self._progress_repo = progress_repo
        self._committer = ProgressCommitter(progress_repo, audit_repo)

    def execute(self, user_id: Optional[str]) -> AdvanceResult:
        progress: Optional[UserProgress] = None
        try:
            loaded = _load_enrollment(user_id, self._curriculum_repo, self._progress_repo)
            if isinstance(loaded, AdvanceResult):
                return loaded
            progress, program = loaded

            target = next_milestone_position(program, progress.current_milestone_index)
            if target is None:
                return AdvanceResult(
                    success=False,
                    progress=progress,
                    error=ADVANCE_FINAL_MILESTONE,
                    error_type=ErrorType.VALIDATION,
                )

            try:
                outcome = self._committer.commit(
                    user_id,
                    progress,
                    ProgressUpdate.position(target.milestone_index, target.day_index),
                    AuditAction.MILESTONE_ADVANCE,
                    metadata={"program_id": program.id},
                )
            except RepositoryError as e:
                return _commit_failure(e, progress)

            logger.info(f"User {user_id} advanced to milestone {target.milestone_index}")
            return AdvanceResult(
                success=True,
                progress=outcome.progress,
                from_position=progress.position,
                to_position=target,
                milestone_completed=True,
                audit_id=outcome.audit_id,
            )

        except RepositoryError as e:
            return _commit_failure(e, progress)

        except Exception as e:
            logger.exception(f"AdvanceToNextMilestone use case failed: {e}")
            return AdvanceResult(
                success=False,
                progress=progress,
                error=ADVANCE_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )
