"""
AssignProgram Use Case.

Enrolls a user in a published program and resets their position to the
first day of the first milestone.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from application.ports import (
    AuditAction,
    CurriculumRepository,
    ProgressAuditRepository,
    RepositoryError,
    UserProgressRepository,
)
from application.use_cases.progress_commit import ProgressCommitter
from application.use_cases.results import ProgressResult, classify_repository_failure
from domain.models import ErrorType, Program, ProgressUpdate, UserProgress
from domain.services.error_messages import (
    ASSIGN_ALREADY_ENROLLED,
    ASSIGN_AUTH_REQUIRED,
    ASSIGN_CONFLICT,
    ASSIGN_PROGRAM_NOT_FOUND,
    ASSIGN_PROGRAM_UNAVAILABLE,
    ASSIGN_SYSTEM_ERROR,
)
from domain.services.progress_validation import validate_program_structure

logger = logging.getLogger(__name__)


@dataclass
class AssignProgramResult(ProgressResult):
    """Result of the AssignProgram use case."""

    program: Optional[Program] = None
    audit_id: Optional[str] = None


class AssignProgramUseCase:
    """
    Enroll a user in a program.

    Workflow:
    1. Resolve the program; it must exist and be published
    2. Check the program structure can be followed
    3. Reject re-enrolling in the current program
    4. Commit program + position (0, 0)
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

    def execute(self, user_id: Optional[str], program_id: str) -> AssignProgramResult:
        try:
            if not user_id:
                return AssignProgramResult(
                    success=False,
                    error=ASSIGN_AUTH_REQUIRED,
                    error_type=ErrorType.AUTHENTICATION,
                )

            program = self._curriculum_repo.get_program(program_id)
            if program is None:
                return AssignProgramResult(
                    success=False,
                    error=ASSIGN_PROGRAM_NOT_FOUND,
                    error_type=ErrorType.NOT_FOUND,
                )
            if not program.is_published:
                return AssignProgramResult(
                    success=False,
                    error=ASSIGN_PROGRAM_UNAVAILABLE,
                    error_type=ErrorType.NOT_FOUND,
                )

            structure_error = validate_program_structure(program)
            if structure_error:
                logger.warning(f"Program {program_id} failed structure validation: {structure_error}")
                return AssignProgramResult(
                    success=False,
                    program=program,
                    error=f"Program structure validation failed: {structure_error}",
                    error_type=ErrorType.VALIDATION,
                )

            current = self._progress_repo.get_progress(user_id) or UserProgress(user_id=user_id)
            if current.current_program_id == program_id:
                return AssignProgramResult(
                    success=False,
                    progress=current,
                    program=program,
                    error=ASSIGN_ALREADY_ENROLLED,
                    error_type=ErrorType.ALREADY_ASSIGNED,
                )

            try:
                outcome = self._committer.commit(
                    user_id,
                    current,
                    ProgressUpdate.position(0, 0, program_id=program_id),
                    AuditAction.PROGRESS_UPDATE,
                    metadata={
                        "program_id": program_id,
                        "previous_program_id": current.current_program_id,
                    },
                )
            except RepositoryError as e:
                error_type, message = classify_repository_failure(
                    e,
                    auth_message=ASSIGN_AUTH_REQUIRED,
                    system_message=ASSIGN_SYSTEM_ERROR,
                    duplicate_message=ASSIGN_CONFLICT,
                )
                return AssignProgramResult(
                    success=False, progress=current, error=message, error_type=error_type
                )

            logger.info(f"User {user_id} enrolled in program {program_id}")
            return AssignProgramResult(
                success=True,
                progress=outcome.progress,
                program=program,
                audit_id=outcome.audit_id,
            )

        except RepositoryError as e:
            error_type, message = classify_repository_failure(
                e,
                auth_message=ASSIGN_AUTH_REQUIRED,
                system_message=ASSIGN_SYSTEM_ERROR,
                duplicate_message=ASSIGN_CONFLICT,
            )
            return AssignProgramResult(success=False, error=message, error_type=error_type)

        except Exception as e:
            logger.exception(f"AssignProgram use case failed: {e}")
            return AssignProgramResult(
                success=False,
                error=ASSIGN_SYSTEM_ERROR,
                error_type=ErrorType.SYSTEM_ERROR,
            )
