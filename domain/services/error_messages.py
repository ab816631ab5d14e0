"""
User-facing messages for progress operations.

Operation results never expose raw collaborator text. Collaborator errors are
only inspected to pick an error type (see classify_collaborator_error), and
the matching fixed message below is shown instead.
"""

from typing import Optional

from domain.models import ErrorType

# Assignment
ASSIGN_AUTH_REQUIRED = "You must be logged in to select a program. Please sign in and try again."
ASSIGN_PROGRAM_NOT_FOUND = "The selected program could not be found. Please choose a different program."
ASSIGN_PROGRAM_UNAVAILABLE = (
    "The selected program is not available for enrollment. Please choose a different program."
)
ASSIGN_ALREADY_ENROLLED = (
    "You are already enrolled in this program. Continue with your current workouts!"
)
ASSIGN_CONFLICT = "There was a conflict with your program assignment. Please refresh and try again."
ASSIGN_SYSTEM_ERROR = "We encountered an issue assigning your program. Please try again in a moment."

# Advancement
ADVANCE_AUTH_REQUIRED = "You must be logged in to advance your progress. Please sign in and try again."
ADVANCE_NO_PROGRAM = (
    "You need to select a program before advancing progress. Please choose a program first."
)
ADVANCE_PROGRAM_UNAVAILABLE = "Your current program is no longer available. Please select a new program."
ADVANCE_PROGRAM_COMPLETED = "Program completed! You have finished all milestones."
ADVANCE_FINAL_MILESTONE = "You are already on the final milestone of your program."
ADVANCE_SYSTEM_ERROR = "We encountered an issue advancing your progress. Please try again in a moment."

# Set progress
UPDATE_INVALID_VALUES = "Invalid progress values. Please check your milestone and day numbers."
UPDATE_SYSTEM_ERROR = "We encountered an issue updating your progress. Please try again in a moment."
UPDATE_DATA_CONFLICT = (
    "Data conflict detected. Another session may have updated your progress. "
    "Please refresh and try again."
)
UPDATE_PROGRAM_MISMATCH = "Program mismatch. User is not enrolled in the specified program."

# Exercise completion
COMPLETION_AUTH_REQUIRED = "You must be logged in to save exercise data. Please sign in and try again."
COMPLETION_INVALID_INPUT = "Invalid input data"
COMPLETION_NO_MILESTONES = "Program has no milestones"
COMPLETION_INVALID_MILESTONE = "Invalid milestone index"
COMPLETION_EMPTY_MILESTONE = "Milestone has no days"
COMPLETION_INVALID_DAY = "Invalid day index or day is not a workout day"
COMPLETION_SYSTEM_ERROR = "We encountered an issue saving your exercise data. Please try again in a moment."

# Rollback / audit
ROLLBACK_NOT_FOUND = "The requested progress history entry could not be found."
ROLLBACK_NOT_ALLOWED = "You can only roll back your own progress."
ROLLBACK_SYSTEM_ERROR = "We encountered an issue restoring your progress. Please try again in a moment."

# Validation
VALIDATION_SYSTEM_ERROR = "We encountered an issue checking your progress. Please try again in a moment."


def classify_collaborator_error(message: Optional[str]) -> Optional[ErrorType]:
    """
    Map raw collaborator error text to an error type.

    Returns None when the text carries no recognizable signal.
    """
    if not message:
        return None
    lowered = message.lower()
    if "unauthorized" in lowered:
        return ErrorType.AUTHENTICATION
    if "duplicate" in lowered:
        return ErrorType.ALREADY_ASSIGNED
    if "version" in lowered:
        return ErrorType.DATA_CONFLICT
    return None
