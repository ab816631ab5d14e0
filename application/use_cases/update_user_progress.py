"""
UpdateUserProgress Use Case (set-progress).

Sets a user's position directly. The target is checked twice before anything
is written:

1. Consistency: the target must be a valid position in the program. When it
   is not, the repair instructions come back as guidance and nothing is
   applied.
2. Update rules: ProgressUpdateValidator checks bounds, direction, counters,
   dates, completion integrity and concurrent modification.

A successful update is audited so it can be rolled back later.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from application.ports import (
    AuditAction,
    CurriculumRepository,
    ExerciseCompletionRepository,
    ProgressAuditRepository,
    RepositoryError,
    UserProgressRepository,
)
from application.use_cases.progress_commit import ProgressCommitter
from application.use_cases.results import ProgressResult, classify_repository_failure
from domain.models import ErrorType, ProgressUpdate, UserProgress
from domain.services.error_messages import (
    ADVANCE_AUTH_REQUIRED,
    UPDATE_DATA_CONFLICT,
    UPDATE_INVALID_VALUES,
    UPDATE_PROGRAM_MISMATCH,
    UPDATE_SYSTEM_ERROR,
)
from domain.services.progress_rules import ProgressUpdateValidator, UpdateContext
from domain.services.progress_validation import (
    get_progress_error_message,
    get_repair_instructions,
    validate_user_progress,
)

logger = logging.getLogger(__name__)

CONCURRENT_UPDATE_RULE = "concurrent-update-detection"


@dataclass
class UpdateProgressResult(ProgressResult):
    """Result of the UpdateUserProgress use case."""

    previous_progress: Optional[UserProgress] = None
    audit_id: Optional[str] = None
    rollback_available: bool = False
    repair_instructions: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    validation_score: Optional[int] = None


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class UpdateUserProgressUseCase:
    """
    Set a user's position after validating it.

    Usage:
        >>> use_case = UpdateUserProgressUseCase(curriculum_repo, progress_repo, audit_repo)
        >>> result = use_case.execute("user-1", "prog-1", milestone_index=1, day_index=2)
        >>> if not result.success and result.repair_action:
        ...     print(result.repair_instructions)
    """

    def __init__(
        self,
        curriculum_repo: CurriculumRepository,
        progress_repo: UserProgressRepository,
        audit_repo: Optional[ProgressAuditRepository] = None,
        completion_repo: Optional[ExerciseCompletionRepository] = None,
        validator: Optional[ProgressUpdateValidator] = None,
    ) -> None:
        self._curriculum_repo = curriculum_repo
        self._progress_repo = progress_repo
        self._completion_repo = completion_repo
        self._validator = validator or ProgressUpdateValidator()
        self._committer = ProgressCommitter(progress_repo, audit_repo)

    def execute(
        self,
        user_id: Optional[str],
        program_id: str,
        milestone_index: int,
        day_index: int,
        *,
        total_workouts_completed: Optional[int] = None,
        last_workout_date: Optional[datetime] = None,
        expected_progress: Optional[UserProgress] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> UpdateProgressResult:
        """
        Validate and commit a new position.

        Args:
            user_id: Authenticated user ID
            program_id: Program the caller believes the user is enrolled in
            milestone_index: Target milestone
            day_index: Target day
            total_workouts_completed: Optional new counter value
            last_workout_date: Optional new last workout date
            expected_progress: State the caller based its change on; a
                mismatch with the stored row is a data conflict
            metadata: Extra audit metadata

        Returns:
            UpdateProgressResult with previous and new progress on success
        """
        progress: Optional[UserProgress] = None
        try:
            if not user_id:
                return UpdateProgressResult(
                    success=False,
                    error=ADVANCE_AUTH_REQUIRED,
                    error_type=ErrorType.AUTHENTICATION,
                )

            if not _is_index(milestone_index) or not _is_index(day_index):
                logger.warning(f"Rejected progress values for user {user_id}: {milestone_index}, {day_index}")
                return UpdateProgressResult(
                    success=False,
                    error=UPDATE_INVALID_VALUES,
                    error_type=ErrorType.VALIDATION,
                )

            progress = self._progress_repo.get_progress(user_id)
            if progress is None or progress.current_program_id != program_id:
                return UpdateProgressResult(
                    success=False,
                    progress=progress,
                    error=UPDATE_PROGRAM_MISMATCH,
                    error_type=ErrorType.PROGRAM_MISMATCH,
                )

            program = self._curriculum_repo.get_program(program_id)

            # Step 1: Target must be a consistent position
            target = progress.at(milestone_index, day_index)
            consistency = validate_user_progress(program, target, program_id)
            if not consistency.is_valid:
                primary = consistency.primary_error
                logger.warning(
                    f"Rejected progress target {target.position} for user {user_id}: "
                    f"{[e.message for e in consistency.errors]}"
                )
                return UpdateProgressResult(
                    success=False,
                    progress=progress,
                    error=get_progress_error_message(consistency.errors),
                    error_type=primary.type if primary else ErrorType.VALIDATION,
                    repair_action=consistency.primary_repair_action,
                    repair_instructions=get_repair_instructions(consistency.repair_actions),
                    validation_errors=[e.message for e in consistency.errors],
                )

            # Step 2: Update rules
            update = ProgressUpdate(
                milestone_index=milestone_index,
                day_index=day_index,
                total_workouts_completed=total_workouts_completed,
                last_workout_date=last_workout_date,
            )
            rules = self._validator.validate(
                UpdateContext(
                    program=program,
                    existing=expected_progress or progress,
                    proposed=update,
                    completed_day_keys=self._completed_day_keys(user_id, program_id),
                    stored_snapshot=progress if expected_progress is not None else None,
                )
            )
            warnings = rules.warning_messages
            for warning in warnings:
                logger.warning(f"Progress update warning for user {user_id}: {warning}")

            if not rules.is_valid:
                if any(f.rule_id == CONCURRENT_UPDATE_RULE for f in rules.errors):
                    return UpdateProgressResult(
                        success=False,
                        progress=progress,
                        error=UPDATE_DATA_CONFLICT,
                        error_type=ErrorType.DATA_CONFLICT,
                        validation_errors=rules.error_messages,
                        validation_score=rules.validation_score,
                    )
                return UpdateProgressResult(
                    success=False,
                    progress=progress,
                    error=f"Progress validation failed: {', '.join(rules.error_messages)}",
                    error_type=ErrorType.VALIDATION,
                    validation_errors=rules.error_messages,
                    warnings=warnings,
                    validation_score=rules.validation_score,
                )

            # Step 3: Commit
            try:
                outcome = self._committer.commit(
                    user_id,
                    progress,
                    update,
                    AuditAction.PROGRESS_UPDATE,
                    metadata={"program_id": program_id, **(metadata or {})},
                )
            except RepositoryError as e:
                error_type, message = classify_repository_failure(
                    e, auth_message=ADVANCE_AUTH_REQUIRED, system_message=UPDATE_SYSTEM_ERROR
                )
                return UpdateProgressResult(
                    success=False, progress=progress, error=message, error_type=error_type
                )

            logger.info(f"Progress set for user {user_id}: {progress.position} -> {target.position}")
            return UpdateProgressResult(
                success=True,
                progress=outcome.progress,
                previous_progress=progress,
                audit_id=outcome.audit_id,
                rollback_available=outcome.audit_id is not None,
                warnings=warnings,
                validation_score=rules.validation_score,
            )

        except RepositoryError as e:
            error_type, message = classify_repository_failure(
                e, auth_message=ADVANCE_AUTH_REQUIRED, system_message=UPDATE_SYSTEM_ERROR
            )
            return UpdateProgressResult(success=False, progress=progress, error=message, error_type=error_type)

        except Exception as e:
            logger.exception(f"UpdateUserProgress use case failed: {e}")
            return UpdateProgressResult(
                success=False,
                progress=progress,
                error=UPDATE_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )

    def _completed_day_keys(self, user_id: str, program_id: str):
        if self._completion_repo is None:
            return None
        records = self._completion_repo.list_for_program(user_id, program_id)
        return frozenset(
            (int(r["milestone_index"]), int(r["day_index"]))
            for r in records
            if r.get("milestone_index") is not None and r.get("day_index") is not None
        )
