"""
Pydantic schemas for API requests and responses.

Organized by feature/domain:
- progress: programs, progress operations and exercise completions
"""

from api.schemas.progress import (
    AdvanceResponse,
    AssignProgramResponse,
    AuditEntryResponse,
    AutoSaveResponse,
    CompleteExerciseRequest,
    CompleteExerciseResponse,
    ExerciseCompletionRequest,
    ProgramSummary,
    ProgressEnvelope,
    ProgressOverviewResponse,
    RollbackRequest,
    RollbackResponse,
    SaveCompletionResponse,
    SetProgressRequest,
    UpdateProgressResponse,
    ValidateProgressResponse,
    envelope_response,
    status_for,
)

__all__ = [
    "ProgramSummary",
    "ProgressEnvelope",
    "AssignProgramResponse",
    "ValidateProgressResponse",
    "AdvanceResponse",
    "UpdateProgressResponse",
    "RollbackResponse",
    "ProgressOverviewResponse",
    "AuditEntryResponse",
    "SetProgressRequest",
    "RollbackRequest",
    "ExerciseCompletionRequest",
    "CompleteExerciseRequest",
    "SaveCompletionResponse",
    "AutoSaveResponse",
    "CompleteExerciseResponse",
    "envelope_response",
    "status_for",
]
