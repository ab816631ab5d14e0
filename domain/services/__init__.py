"""
Domain services: pure functions over curriculum and progress models.

- progress_calculator: totals, positions, percentages, analytics
- progress_validation: consistency checks and repair selection
- progress_rules: rule-based validation of proposed updates
- advancement: day / milestone / exercise transitions
- error_messages: fixed user-facing texts and collaborator error mapping
"""

from domain.services.advancement import (
    DayTransition,
    ExerciseAdvancement,
    advance_exercise,
    next_day_position,
    next_milestone_position,
)
from domain.services.progress_calculator import (
    calculate_milestone_progress,
    calculate_program_analytics,
    calculate_program_progress,
)
from domain.services.progress_rules import ProgressUpdateValidator, UpdateContext
from domain.services.progress_validation import (
    ProgressValidationResult,
    select_repair_action,
    validate_progress_consistency,
    validate_user_progress,
)

__all__ = [
    "DayTransition",
    "ExerciseAdvancement",
    "advance_exercise",
    "next_day_position",
    "next_milestone_position",
    "calculate_milestone_progress",
    "calculate_program_analytics",
    "calculate_program_progress",
    "ProgressUpdateValidator",
    "UpdateContext",
    "ProgressValidationResult",
    "select_repair_action",
    "validate_progress_consistency",
    "validate_user_progress",
]
