"""
Error taxonomy shared by the progress operations.

Every operation result carries one of these as a machine-readable
``error_type`` next to a plain, user-facing message.
"""

from enum import Enum


class ErrorType(str, Enum):
    AUTHENTICATION = "authentication"
    NO_ACTIVE_PROGRAM = "no_active_program"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    ALREADY_ASSIGNED = "already_assigned"
    PROGRAM_MISMATCH = "program_mismatch"
    DATA_CONFLICT = "data_conflict"
    INVALID_DAY_TYPE = "invalid_day_type"
    # Consistency errors (repairable)
    CORRUPTED_PROGRESS = "corrupted_progress"
    MILESTONE_INDEX_INVALID = "milestone_index_invalid"
    DAY_INDEX_INVALID = "day_index_invalid"
    PROGRAM_STRUCTURE_CHANGED = "program_structure_changed"
    SYSTEM_ERROR = "system_error"


CONSISTENCY_ERROR_TYPES = frozenset(
    [
        ErrorType.CORRUPTED_PROGRESS,
        ErrorType.MILESTONE_INDEX_INVALID,
        ErrorType.DAY_INDEX_INVALID,
        ErrorType.PROGRAM_STRUCTURE_CHANGED,
    ]
)
