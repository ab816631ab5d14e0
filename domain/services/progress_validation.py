"""
Progress validation and repair engine.

Detects inconsistent or stale progress positions (for example the curriculum
was edited after the user started) and computes exactly one safe corrective
action per validation pass.

Two entry points:
- validate_progress_consistency(): structural check returning plain error and
  warning strings
- validate_user_progress(): user-facing variant with typed errors, friendly
  messages and the primary RepairAction
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from domain.models import (
    ErrorType,
    Position,
    Program,
    RepairAction,
    RepairActionType,
    UserProgress,
)

logger = logging.getLogger(__name__)


class ValidationSeverity(str, Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Position cannot be used as-is
    WARNING = "warning"  # Usable, but worth surfacing


class ConsistencyCode(str, Enum):
    """Machine-readable code for each consistency check."""

    PROGRAM_NOT_FOUND = "program_not_found"
    NEGATIVE_MILESTONE = "negative_milestone"
    NEGATIVE_DAY = "negative_day"
    NO_MILESTONES = "no_milestones"
    MILESTONE_OVERFLOW = "milestone_overflow"
    EMPTY_MILESTONE = "empty_milestone"
    DAY_OVERFLOW = "day_overflow"
    UNPUBLISHED = "unpublished"


@dataclass
class ConsistencyIssue:
    """A single consistency finding."""

    code: ConsistencyCode
    message: str
    severity: ValidationSeverity


@dataclass
class ConsistencyResult:
    """Result of validate_progress_consistency()."""

    issues: List[ConsistencyIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [i.message for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> List[str]:
        return [i.message for i in self.issues if i.severity == ValidationSeverity.WARNING]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def has(self, code: ConsistencyCode) -> bool:
        return any(i.code == code for i in self.issues)


# =============================================================================
# Consistency check
# =============================================================================


def validate_progress_consistency(
    program: Optional[Program], progress: UserProgress
) -> ConsistencyResult:
    """
    Check a position against the program structure.

    All checks run and accumulate, except that a missing program yields a
    single error and nothing else. The completion sentinel
    (milestone == len(milestones)) is valid.
    """
    result = ConsistencyResult()

    def error(code: ConsistencyCode, message: str) -> None:
        result.issues.append(ConsistencyIssue(code, message, ValidationSeverity.ERROR))

    def warning(code: ConsistencyCode, message: str) -> None:
        result.issues.append(ConsistencyIssue(code, message, ValidationSeverity.WARNING))

    if program is None:
        error(ConsistencyCode.PROGRAM_NOT_FOUND, "Program not found")
        return result

    m = progress.current_milestone_index
    d = progress.current_day_index
    milestone_count = len(program.milestones)

    if m < 0:
        error(ConsistencyCode.NEGATIVE_MILESTONE, "Current milestone index cannot be negative")
    if d < 0:
        error(ConsistencyCode.NEGATIVE_DAY, "Current day index cannot be negative")
    if milestone_count == 0:
        error(ConsistencyCode.NO_MILESTONES, "Program has no milestones")
    if m > milestone_count:
        error(
            ConsistencyCode.MILESTONE_OVERFLOW,
            f"Current milestone index {m} exceeds program milestones ({milestone_count})",
        )

    milestone = program.get_milestone(m)
    if milestone is not None:
        if not milestone.days:
            warning(ConsistencyCode.EMPTY_MILESTONE, f"Milestone {m} has no days defined")
        elif d >= len(milestone.days):
            error(
                ConsistencyCode.DAY_OVERFLOW,
                f"Current day index {d} exceeds milestone days ({len(milestone.days)})",
            )

    if not program.is_published:
        warning(ConsistencyCode.UNPUBLISHED, "User is assigned to an unpublished program")

    return result


# =============================================================================
# Position helpers
# =============================================================================


def is_valid_progress_position(program: Optional[Program], milestone_index: int, day_index: int) -> bool:
    """True when (milestone, day) addresses an existing day."""
    if program is None:
        return False
    return program.get_day(milestone_index, day_index) is not None


def find_valid_progress_position(program: Program, progress: UserProgress) -> Position:
    """
    Nearest valid position for a progress record.

    Keeps a valid position unchanged, clamps an overflowing day to the last day
    of the same milestone, moves an overflowing milestone to the last day of
    the last milestone, and otherwise returns (0, 0).
    """
    m = progress.current_milestone_index
    d = progress.current_day_index
    milestones = program.milestones

    if m < 0 or d < 0:
        return Position(milestone_index=0, day_index=0)

    if m < len(milestones):
        days = len(milestones[m].days)
        if d < days:
            return Position(milestone_index=m, day_index=d)
        return Position(milestone_index=m, day_index=days - 1)

    if milestones:
        last_days = len(milestones[-1].days)
        return Position(milestone_index=len(milestones) - 1, day_index=max(0, last_days - 1))

    return Position(milestone_index=0, day_index=0)


def validate_program_structure(program: Program) -> Optional[str]:
    """
    Check that a program can be enrolled in.

    Returns:
        None when the structure is valid, otherwise a description of the
        first problem found.
    """
    if not program.milestones:
        return "Program must have at least one milestone."

    for i, milestone in enumerate(program.milestones):
        if not milestone.days:
            return f"Milestone {i + 1} must have at least one day."
        for j, day in enumerate(milestone.days):
            if day.is_workout and not day.is_amrap and not day.exercises:
                return f"Workout day {j + 1} in milestone {i + 1} must have at least one exercise."

    return None


# =============================================================================
# User-facing validation
# =============================================================================

SUGGEST_RESET = "Your progress will be reset to the beginning."
SUGGEST_CORRECT_CORRUPTED = "Your progress appears to be corrupted and will be corrected."
SUGGEST_AUTO_CORRECT = "Your progress will be automatically corrected."
SUGGEST_NEW_PROGRAM = "Please select a new program to continue."

REPAIR_DESCRIPTION_ADJUST = "Adjust progress to nearest valid position"
REPAIR_DESCRIPTION_RESET = "Reset progress to beginning of program"
REPAIR_DESCRIPTION_FALLBACK = "Reset progress to beginning (fallback)."
REPAIR_DESCRIPTION_NEW_PROGRAM = "Select a new program from available options"


class ProgressWarningType(str, Enum):
    PROGRAM_UNPUBLISHED = "program_unpublished"
    MILESTONE_MISSING = "milestone_missing"


@dataclass
class ProgressValidationError:
    """A typed, user-presentable validation error."""

    type: ErrorType
    message: str
    user_friendly_message: str
    suggested_action: str
    can_auto_repair: bool


@dataclass
class ProgressValidationWarning:
    type: ProgressWarningType
    message: str
    user_friendly_message: str


@dataclass
class ProgressValidationResult:
    """Result of validate_user_progress()."""

    is_valid: bool
    errors: List[ProgressValidationError] = field(default_factory=list)
    warnings: List[ProgressValidationWarning] = field(default_factory=list)
    repair_actions: List[RepairAction] = field(default_factory=list)

    @property
    def primary_repair_action(self) -> Optional[RepairAction]:
        return self.repair_actions[0] if self.repair_actions else None

    @property
    def can_be_repaired(self) -> bool:
        action = self.primary_repair_action
        return action is not None and action.is_auto_applicable

    @property
    def primary_error(self) -> Optional[ProgressValidationError]:
        return self.errors[0] if self.errors else None


def _program_unavailable_error(program_id: Optional[str]) -> ProgressValidationError:
    return ProgressValidationError(
        type=ErrorType.PROGRAM_STRUCTURE_CHANGED,
        message=f"Program with ID {program_id or 'unknown'} not found",
        user_friendly_message="Your selected program is no longer available.",
        suggested_action=SUGGEST_NEW_PROGRAM,
        can_auto_repair=False,
    )


def _error_from_issue(issue: ConsistencyIssue) -> ProgressValidationError:
    if issue.code in (ConsistencyCode.NEGATIVE_MILESTONE, ConsistencyCode.NEGATIVE_DAY):
        return ProgressValidationError(
            type=ErrorType.CORRUPTED_PROGRESS,
            message=issue.message,
            user_friendly_message="There's an issue with your current progress position.",
            suggested_action=SUGGEST_RESET,
            can_auto_repair=True,
        )
    if issue.code == ConsistencyCode.MILESTONE_OVERFLOW:
        return ProgressValidationError(
            type=ErrorType.MILESTONE_INDEX_INVALID,
            message=issue.message,
            user_friendly_message="There's an issue with your current progress position.",
            suggested_action=SUGGEST_CORRECT_CORRUPTED,
            can_auto_repair=True,
        )
    if issue.code == ConsistencyCode.NO_MILESTONES:
        return ProgressValidationError(
            type=ErrorType.PROGRAM_STRUCTURE_CHANGED,
            message=issue.message,
            user_friendly_message="Your current program has been updated and may have structural changes.",
            suggested_action=SUGGEST_NEW_PROGRAM,
            can_auto_repair=False,
        )
    return ProgressValidationError(
        type=ErrorType.DAY_INDEX_INVALID,
        message=issue.message,
        user_friendly_message="There's an issue with your current progress position.",
        suggested_action=SUGGEST_AUTO_CORRECT,
        can_auto_repair=True,
    )


def _warning_from_issue(issue: ConsistencyIssue) -> ProgressValidationWarning:
    if issue.code == ConsistencyCode.UNPUBLISHED:
        return ProgressValidationWarning(
            type=ProgressWarningType.PROGRAM_UNPUBLISHED,
            message=issue.message,
            user_friendly_message="Your current program is temporarily unavailable.",
        )
    return ProgressValidationWarning(
        type=ProgressWarningType.MILESTONE_MISSING,
        message=issue.message,
        user_friendly_message="There may be an issue with your program structure.",
    )


def select_repair_action(program: Optional[Program], progress: UserProgress) -> Optional[RepairAction]:
    """
    Primary repair strategy for a position, or None when it is valid.

    Exactly one action is returned. An unresolvable program asks for a new
    program; an overflowing day is clamped inside the same milestone; an
    overflowing milestone moves to the last day of the program; negative or
    otherwise unrecoverable combinations reset to the start. A computed target
    that is itself invalid falls back to (0, 0).
    """
    if program is None or not program.milestones:
        return RepairAction(
            type=RepairActionType.ASSIGN_NEW_PROGRAM,
            description=REPAIR_DESCRIPTION_NEW_PROGRAM,
        )

    if validate_progress_consistency(program, progress).is_valid:
        return None

    m = progress.current_milestone_index
    d = progress.current_day_index

    if m < 0 or d < 0:
        action = RepairAction(
            type=RepairActionType.RESET_TO_START,
            new_milestone=0,
            new_day=0,
            description=REPAIR_DESCRIPTION_RESET,
        )
    else:
        target = find_valid_progress_position(program, progress)
        action = RepairAction(
            type=RepairActionType.ADJUST_TO_VALID_POSITION,
            new_milestone=target.milestone_index,
            new_day=target.day_index,
            description=REPAIR_DESCRIPTION_ADJUST,
        )

    if not is_valid_progress_position(program, action.new_milestone, action.new_day):
        logger.warning(
            "Repair target M%sD%s is not valid for program %s, falling back to start",
            action.new_milestone,
            action.new_day,
            program.id,
        )
        action = RepairAction(
            type=RepairActionType.RESET_TO_START,
            new_milestone=0,
            new_day=0,
            description=REPAIR_DESCRIPTION_FALLBACK,
        )

    return action


def validate_user_progress(
    program: Optional[Program],
    progress: UserProgress,
    program_id: Optional[str] = None,
) -> ProgressValidationResult:
    """
    Validate a user's progress and compute the primary repair action.

    Args:
        program: The resolved program, or None when it could not be found
        progress: The user's stored progress
        program_id: Program ID used for messages when the program is missing

    Returns:
        ProgressValidationResult with typed errors, warnings and at most one
        repair action.
    """
    if program is None:
        return ProgressValidationResult(
            is_valid=False,
            errors=[_program_unavailable_error(program_id or progress.current_program_id)],
            repair_actions=[select_repair_action(None, progress)],
        )

    consistency = validate_progress_consistency(program, progress)

    errors = [
        _error_from_issue(issue)
        for issue in consistency.issues
        if issue.severity == ValidationSeverity.ERROR
    ]
    warnings = [
        _warning_from_issue(issue)
        for issue in consistency.issues
        if issue.severity == ValidationSeverity.WARNING
    ]

    action = select_repair_action(program, progress) if errors else None

    return ProgressValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        repair_actions=[action] if action is not None else [],
    )


_CRITICAL_ERROR_TYPES = (
    ErrorType.PROGRAM_STRUCTURE_CHANGED,
    ErrorType.CORRUPTED_PROGRESS,
)


def get_progress_error_message(errors: List[ProgressValidationError]) -> str:
    """Friendly message for a list of errors, preferring critical ones."""
    if not errors:
        return ""
    for err in errors:
        if err.type in _CRITICAL_ERROR_TYPES:
            return err.user_friendly_message
    return errors[0].user_friendly_message


def get_repair_instructions(repair_actions: List[RepairAction]) -> str:
    """Plain-language instruction for the primary repair action."""
    if not repair_actions:
        return ""
    action_type = repair_actions[0].type
    if action_type == RepairActionType.RESET_TO_START:
        return "Your progress will be reset to the beginning of your program."
    if action_type == RepairActionType.ADJUST_TO_VALID_POSITION:
        return "Your progress will be adjusted to the nearest valid position."
    if action_type == RepairActionType.ASSIGN_NEW_PROGRAM:
        return "Please select a new program to continue your fitness journey."
    return "Your progress will be automatically corrected."
