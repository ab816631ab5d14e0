"""
Rule-based validation for proposed progress updates.

ProgressUpdateValidator runs an ordered list of named rules over a proposed
change and produces errors, warnings and info findings plus an integrity
score. Each rule is a plain function returning None when it passes or a
message when it does not; the rule's severity decides where the message goes.

Usage:
    validator = ProgressUpdateValidator()
    result = validator.validate(
        UpdateContext(
            program=program,
            existing=progress,
            proposed=ProgressUpdate(milestone_index=1, day_index=0),
        )
    )
    if not result.is_valid:
        ...
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, FrozenSet, List, Optional, Tuple

from domain.models import Program, ProgressUpdate, UserProgress

logger = logging.getLogger(__name__)

MAX_TOTAL_WORKOUTS = 10000
WORKOUT_COUNT_MIN_TOLERANCE = 2
WORKOUT_COUNT_TOLERANCE_RATIO = 0.1
COMPLETION_INTEGRITY_TOLERANCE = 2
MAX_BACKDATE_DAYS = 7
MAX_MILESTONE_JUMP = 1
MAX_DAY_JUMP = 3
MAX_WORKOUTS_PER_DAY = 3


class RuleSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class UpdateContext:
    """
    Everything the rules look at.

    ``completed_day_keys`` is the set of (milestone, day) pairs with logged
    completions; ``stored_snapshot`` is a fresh read of the progress row.
    Rules that need them pass when they are not provided.
    """

    program: Optional[Program]
    existing: UserProgress
    proposed: ProgressUpdate
    completed_day_keys: Optional[FrozenSet[Tuple[int, int]]] = None
    stored_snapshot: Optional[UserProgress] = None
    now: Optional[datetime] = None

    @property
    def target_milestone(self) -> int:
        if self.proposed.milestone_index is not None:
            return self.proposed.milestone_index
        return self.existing.current_milestone_index

    @property
    def target_day(self) -> int:
        if self.proposed.day_index is not None:
            return self.proposed.day_index
        return self.existing.current_day_index

    @property
    def current_time(self) -> datetime:
        return self.now or datetime.now(timezone.utc)


RuleCheck = Callable[[UpdateContext], Optional[str]]


@dataclass
class ProgressRule:
    id: str
    name: str
    severity: RuleSeverity
    check: RuleCheck


@dataclass
class RuleFinding:
    rule_id: str
    message: str


@dataclass
class UpdateValidationResult:
    """Outcome of a validation run."""

    is_valid: bool = True
    errors: List[RuleFinding] = field(default_factory=list)
    warnings: List[RuleFinding] = field(default_factory=list)
    info: List[RuleFinding] = field(default_factory=list)
    validation_score: int = 100

    @property
    def error_messages(self) -> List[str]:
        return [f.message for f in self.errors]

    @property
    def warning_messages(self) -> List[str]:
        return [f.message for f in self.warnings]


# =============================================================================
# Helpers
# =============================================================================


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _workout_days_before(program: Program, milestone_index: int, day_index: int, inclusive: bool) -> int:
    count = 0
    for milestone in program.milestones[: max(milestone_index, 0)]:
        count += milestone.workout_day_count
    current = program.get_milestone(milestone_index)
    if current is not None:
        end = day_index + 1 if inclusive else day_index
        count += sum(1 for day in current.days[: max(end, 0)] if day.is_workout)
    return count


# =============================================================================
# Rules
# =============================================================================


def check_program_enrollment(ctx: UpdateContext) -> Optional[str]:
    if ctx.program is None:
        return "Missing user or program context for enrollment validation"
    if ctx.existing.current_program_id != ctx.program.id:
        return f"User is not enrolled in program {ctx.program.id}"
    return None


def check_milestone_bounds(ctx: UpdateContext) -> Optional[str]:
    m = ctx.proposed.milestone_index
    if m is None:
        return None
    if ctx.program is None or not ctx.program.milestones:
        return "Program has no milestones for validation"
    count = len(ctx.program.milestones)
    if m < 0 or m >= count:
        return f"Milestone index {m} is outside valid range (0-{count - 1})"
    return None


def check_day_bounds(ctx: UpdateContext) -> Optional[str]:
    d = ctx.proposed.day_index
    if d is None:
        return None
    m = ctx.target_milestone
    milestone = ctx.program.get_milestone(m) if ctx.program is not None else None
    if milestone is None or not milestone.days:
        return f"Milestone {m} has no days for validation"
    if d < 0 or d >= len(milestone.days):
        return f"Day index {d} is outside valid range (0-{len(milestone.days) - 1}) for milestone {m}"
    return None


def check_progress_direction(ctx: UpdateContext) -> Optional[str]:
    problems = []
    existing = ctx.existing
    proposed = ctx.proposed

    if proposed.milestone_index is not None and proposed.milestone_index < existing.current_milestone_index:
        problems.append(
            f"Milestone moving backwards from {existing.current_milestone_index} to {proposed.milestone_index}"
        )
    if (
        proposed.day_index is not None
        and ctx.target_milestone == existing.current_milestone_index
        and proposed.day_index < existing.current_day_index
    ):
        problems.append(
            f"Day moving backwards from {existing.current_day_index} to {proposed.day_index}"
        )
    if (
        proposed.total_workouts_completed is not None
        and proposed.total_workouts_completed < existing.total_workouts_completed
    ):
        problems.append(
            f"Total workouts decreasing from {existing.total_workouts_completed} "
            f"to {proposed.total_workouts_completed}"
        )
    return "; ".join(problems) or None


def check_workout_count(ctx: UpdateContext) -> Optional[str]:
    actual = ctx.proposed.total_workouts_completed
    if actual is None or ctx.program is None:
        return None
    expected = _workout_days_before(ctx.program, ctx.target_milestone, ctx.target_day, inclusive=True)
    difference = abs(expected - actual)
    tolerance = max(WORKOUT_COUNT_MIN_TOLERANCE, int(expected * WORKOUT_COUNT_TOLERANCE_RATIO))
    if difference > tolerance:
        return (
            f"Workout count inconsistency: expected ~{expected}, got {actual} "
            f"(difference: {difference})"
        )
    return None


def check_time_sequence(ctx: UpdateContext) -> Optional[str]:
    proposed = ctx.proposed.last_workout_date
    existing = ctx.existing.last_workout_date
    if proposed is None or existing is None:
        return None
    proposed = _aware(proposed)
    if proposed > ctx.current_time:
        return f"Last workout date cannot be in the future: {proposed.isoformat()}"
    backwards = _aware(existing) - proposed
    if backwards > timedelta(days=MAX_BACKDATE_DAYS):
        return f"Last workout date moving too far backwards: {backwards.total_seconds() / 86400:.1f} days"
    return None


def check_completion_integrity(ctx: UpdateContext) -> Optional[str]:
    if ctx.completed_day_keys is None or ctx.program is None:
        return None
    expected = _workout_days_before(ctx.program, ctx.target_milestone, ctx.target_day, inclusive=False)
    actual = len(ctx.completed_day_keys)
    if abs(expected - actual) > COMPLETION_INTEGRITY_TOLERANCE:
        return (
            f"Exercise completion inconsistency: expected ~{expected} completed days, "
            f"found {actual}"
        )
    return None


def check_data_types(ctx: UpdateContext) -> Optional[str]:
    problems = []
    proposed = ctx.proposed

    def non_negative_int(value) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0

    if proposed.milestone_index is not None and not non_negative_int(proposed.milestone_index):
        problems.append("Milestone index must be a non-negative integer")
    if proposed.day_index is not None and not non_negative_int(proposed.day_index):
        problems.append("Day index must be a non-negative integer")
    total = proposed.total_workouts_completed
    if total is not None:
        if not non_negative_int(total):
            problems.append("Total workouts completed must be a non-negative integer")
        elif total > MAX_TOTAL_WORKOUTS:
            problems.append(
                f"Total workouts completed exceeds reasonable maximum ({MAX_TOTAL_WORKOUTS})"
            )
    if proposed.last_workout_date is not None and not isinstance(proposed.last_workout_date, datetime):
        problems.append("Last workout date is not a valid date")
    return "; ".join(problems) or None


def check_concurrent_update(ctx: UpdateContext) -> Optional[str]:
    stored = ctx.stored_snapshot
    if stored is None:
        return None
    existing = ctx.existing
    if (
        stored.current_milestone_index != existing.current_milestone_index
        or stored.current_day_index != existing.current_day_index
        or stored.total_workouts_completed != existing.total_workouts_completed
    ):
        return "Concurrent update detected - user progress has been modified by another session"
    return None


def check_business_rules(ctx: UpdateContext) -> Optional[str]:
    problems = []
    existing = ctx.existing
    proposed = ctx.proposed

    if proposed.milestone_index is not None:
        jump = proposed.milestone_index - existing.current_milestone_index
        if jump > MAX_MILESTONE_JUMP:
            problems.append(f"Skipping {jump} milestones in one update")

    if proposed.day_index is not None and ctx.target_milestone == existing.current_milestone_index:
        jump = proposed.day_index - existing.current_day_index
        if jump > MAX_DAY_JUMP:
            problems.append(f"Skipping {jump} days in one update")

    if (
        proposed.total_workouts_completed is not None
        and proposed.last_workout_date is not None
        and existing.last_workout_date is not None
    ):
        increase = proposed.total_workouts_completed - existing.total_workouts_completed
        if increase > 0:
            elapsed = _aware(proposed.last_workout_date) - _aware(existing.last_workout_date)
            days = elapsed.total_seconds() / 86400
            per_day = increase / max(days, 1)
            if per_day > MAX_WORKOUTS_PER_DAY:
                problems.append(
                    f"High workout frequency detected: {per_day:.1f} workouts per day over {days:.1f} days"
                )
    return "; ".join(problems) or None


def default_rules() -> List[ProgressRule]:
    return [
        ProgressRule("program-enrollment", "Program Enrollment", RuleSeverity.ERROR, check_program_enrollment),
        ProgressRule("milestone-bounds", "Milestone Bounds", RuleSeverity.ERROR, check_milestone_bounds),
        ProgressRule("day-bounds", "Day Bounds", RuleSeverity.ERROR, check_day_bounds),
        ProgressRule("progress-direction", "Progress Direction", RuleSeverity.WARNING, check_progress_direction),
        ProgressRule("workout-count-consistency", "Workout Count", RuleSeverity.WARNING, check_workout_count),
        ProgressRule("time-sequence", "Time Sequence", RuleSeverity.WARNING, check_time_sequence),
        ProgressRule(
            "exercise-completion-integrity",
            "Exercise Completion Integrity",
            RuleSeverity.ERROR,
            check_completion_integrity,
        ),
        ProgressRule("data-type-validation", "Data Types", RuleSeverity.ERROR, check_data_types),
        ProgressRule("concurrent-update-detection", "Concurrent Updates", RuleSeverity.ERROR, check_concurrent_update),
        ProgressRule("business-rule-validation", "Business Rules", RuleSeverity.WARNING, check_business_rules),
    ]


# =============================================================================
# Validator
# =============================================================================


class ProgressUpdateValidator:
    """Runs progress rules in order and scores the result."""

    def __init__(self, rules: Optional[List[ProgressRule]] = None):
        self._rules = list(rules) if rules is not None else default_rules()

    @property
    def rule_ids(self) -> List[str]:
        return [rule.id for rule in self._rules]

    def add_rule(self, rule: ProgressRule) -> None:
        self._rules.append(rule)

    def remove_rule(self, rule_id: str) -> bool:
        for i, rule in enumerate(self._rules):
            if rule.id == rule_id:
                del self._rules[i]
                return True
        return False

    def validate(self, ctx: UpdateContext) -> UpdateValidationResult:
        result = UpdateValidationResult()
        passed = 0

        for rule in self._rules:
            try:
                message = rule.check(ctx)
            except Exception as e:
                logger.exception("Progress rule %s failed to execute", rule.id)
                result.errors.append(RuleFinding(rule.id, f"Validation rule execution failed: {e}"))
                result.is_valid = False
                continue

            if message is None:
                passed += 1
            elif rule.severity == RuleSeverity.ERROR:
                result.errors.append(RuleFinding(rule.id, message))
                result.is_valid = False
            elif rule.severity == RuleSeverity.WARNING:
                result.warnings.append(RuleFinding(rule.id, message))
            else:
                result.info.append(RuleFinding(rule.id, message))
                passed += 1

        total = len(self._rules)
        result.validation_score = round(passed / total * 100) if total else 0
        return result
