"""
Request/response models for the progress, program and completion endpoints.

Use case results are dataclass envelopes; the response models here mirror
them field by field and are built with ``from_result`` classmethods.
Failed operations keep the envelope as the body and only change the status
code (see ``status_for``).
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from application.ports import ProgressAuditEntry
from application.use_cases import (
    AdvanceResult,
    AssignProgramResult,
    AutoSaveResult,
    CompleteExerciseResult,
    ProgressOverviewResult,
    ProgressResult,
    RollbackResult,
    SaveCompletionResult,
    UpdateProgressResult,
    ValidateProgressResult,
)
from domain.models import (
    CONSISTENCY_ERROR_TYPES,
    CompleteExerciseInput,
    ErrorType,
    ExerciseCompletionInput,
    Position,
    Program,
    RepairAction,
    UserProgress,
)


# =============================================================================
# Status mapping
# =============================================================================

_STATUS_BY_ERROR_TYPE = {
    ErrorType.AUTHENTICATION: 401,
    ErrorType.NOT_FOUND: 404,
    ErrorType.NO_ACTIVE_PROGRAM: 404,
    ErrorType.ALREADY_ASSIGNED: 409,
    ErrorType.DATA_CONFLICT: 409,
    ErrorType.VALIDATION: 422,
    ErrorType.PROGRAM_MISMATCH: 422,
    ErrorType.INVALID_DAY_TYPE: 422,
    ErrorType.SYSTEM_ERROR: 500,
}


def status_for(error_type: Optional[ErrorType]) -> int:
    """HTTP status for a failed envelope."""
    if error_type is None:
        return 500
    if error_type in CONSISTENCY_ERROR_TYPES:
        return 422
    return _STATUS_BY_ERROR_TYPE.get(error_type, 500)


def envelope_response(body: BaseModel, success: bool, error_type: Optional[ErrorType]) -> Any:
    """Return ``body`` as-is on success, or with the mapped status on failure."""
    if success:
        return body
    return JSONResponse(status_code=status_for(error_type), content=body.model_dump(mode="json"))


# =============================================================================
# Programs
# =============================================================================


class ProgramSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    milestone_count: int
    total_days: int

    @classmethod
    def from_program(cls, program: Program) -> "ProgramSummary":
        return cls(
            id=program.id,
            name=program.name,
            description=program.description,
            milestone_count=program.milestone_count,
            total_days=program.total_days,
        )


# =============================================================================
# Envelopes
# =============================================================================


class ProgressEnvelope(BaseModel):
    """Fields shared by every progress operation response."""

    success: bool
    progress: Optional[UserProgress] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
    repair_action: Optional[RepairAction] = None
    validation_errors: List[str] = Field(default_factory=list)

    @classmethod
    def _base(cls, result: ProgressResult) -> Dict[str, Any]:
        return {
            "success": result.success,
            "progress": result.progress,
            "error": result.error,
            "error_type": result.error_type,
            "repair_action": result.repair_action,
            "validation_errors": list(result.validation_errors),
        }


class AssignProgramResponse(ProgressEnvelope):
    program: Optional[ProgramSummary] = None
    audit_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: AssignProgramResult) -> "AssignProgramResponse":
        return cls(
            **cls._base(result),
            program=ProgramSummary.from_program(result.program) if result.program else None,
            audit_id=result.audit_id,
        )


class RepairSummary(BaseModel):
    milestone: int
    day: int
    description: str
    audit_id: Optional[str] = None


class ValidateProgressResponse(ProgressEnvelope):
    is_valid: bool = False
    repaired: bool = False
    repair: Optional[RepairSummary] = None
    repair_instructions: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ValidateProgressResult) -> "ValidateProgressResponse":
        repair = result.repair
        return cls(
            **cls._base(result),
            is_valid=result.is_valid,
            repaired=result.repaired,
            repair=(
                RepairSummary(
                    milestone=repair.milestone,
                    day=repair.day,
                    description=repair.description,
                    audit_id=repair.audit_id,
                )
                if repair
                else None
            ),
            repair_instructions=result.repair_instructions,
            warnings=list(result.warnings),
        )


class AdvanceResponse(ProgressEnvelope):
    from_position: Optional[Position] = None
    to_position: Optional[Position] = None
    milestone_completed: bool = False
    program_completed: bool = False
    repaired: bool = False
    repair_instructions: Optional[str] = None
    audit_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: AdvanceResult) -> "AdvanceResponse":
        return cls(
            **cls._base(result),
            from_position=result.from_position,
            to_position=result.to_position,
            milestone_completed=result.milestone_completed,
            program_completed=result.program_completed,
            repaired=result.repaired,
            repair_instructions=result.repair_instructions,
            audit_id=result.audit_id,
        )


class UpdateProgressResponse(ProgressEnvelope):
    previous_progress: Optional[UserProgress] = None
    audit_id: Optional[str] = None
    rollback_available: bool = False
    repair_instructions: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    validation_score: Optional[int] = None

    @classmethod
    def from_result(cls, result: UpdateProgressResult) -> "UpdateProgressResponse":
        return cls(
            **cls._base(result),
            previous_progress=result.previous_progress,
            audit_id=result.audit_id,
            rollback_available=result.rollback_available,
            repair_instructions=result.repair_instructions,
            warnings=list(result.warnings),
            validation_score=result.validation_score,
        )


class RollbackResponse(ProgressEnvelope):
    rolled_back_to: Optional[Dict[str, int]] = None
    audit_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: RollbackResult) -> "RollbackResponse":
        return cls(
            **cls._base(result),
            rolled_back_to=result.rolled_back_to.as_dict() if result.rolled_back_to else None,
            audit_id=result.audit_id,
        )


class ProgressOverviewResponse(ProgressEnvelope):
    program: Optional[ProgramSummary] = None
    program_progress: Optional[Dict[str, Any]] = None
    analytics: Optional[Dict[str, Any]] = None
    is_valid: Optional[bool] = None

    @classmethod
    def from_result(cls, result: ProgressOverviewResult) -> "ProgressOverviewResponse":
        return cls(
            **cls._base(result),
            program=ProgramSummary.from_program(result.program) if result.program else None,
            program_progress=asdict(result.program_progress) if result.program_progress else None,
            analytics=asdict(result.analytics) if result.analytics else None,
            is_valid=result.validation.is_valid if result.validation else None,
        )


class AuditEntryResponse(BaseModel):
    id: Optional[str] = None
    action: str
    previous_state: Dict[str, int]
    new_state: Dict[str, int]
    success: bool
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: ProgressAuditEntry) -> "AuditEntryResponse":
        return cls(
            id=entry.id,
            action=entry.action.value,
            previous_state=entry.previous_state.as_dict(),
            new_state=entry.new_state.as_dict(),
            success=entry.success,
            error_message=entry.error_message,
            metadata=entry.metadata,
            timestamp=entry.timestamp,
        )


# =============================================================================
# Progress requests
# =============================================================================


class SetProgressRequest(BaseModel):
    """
    Body of PUT /progress.

    Indices are not range-checked here; out-of-range values are reported by
    the progress validation with a repair hint.
    """

    program_id: str = Field(..., min_length=1)
    milestone_index: int
    day_index: int
    total_workouts_completed: Optional[int] = None
    last_workout_date: Optional[datetime] = None
    expected_milestone_index: Optional[int] = Field(
        None, description="Position the client last saw; enables conflict detection"
    )
    expected_day_index: Optional[int] = None
    expected_total_workouts_completed: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def expected_progress(self, user_id: str) -> Optional[UserProgress]:
        if self.expected_milestone_index is None and self.expected_day_index is None:
            return None
        return UserProgress(
            user_id=user_id,
            current_program_id=self.program_id,
            current_milestone_index=self.expected_milestone_index or 0,
            current_day_index=self.expected_day_index or 0,
            total_workouts_completed=self.expected_total_workouts_completed or 0,
        )


class RollbackRequest(BaseModel):
    audit_id: str
    reason: str


# =============================================================================
# Completion requests/responses
# =============================================================================


class ExerciseCompletionRequest(BaseModel):
    """Performance data for one exercise; bounds are checked by the use case."""

    exercise_id: str
    program_id: str
    milestone_index: int
    day_index: int
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight: Optional[float] = None
    time: Optional[float] = None
    distance: Optional[float] = None
    distance_unit: Optional[str] = None
    notes: Optional[str] = None

    def to_input(self) -> ExerciseCompletionInput:
        return ExerciseCompletionInput(
            exercise_id=self.exercise_id,
            program_id=self.program_id,
            milestone_index=self.milestone_index,
            day_index=self.day_index,
            sets=self.sets,
            reps=self.reps,
            weight=self.weight,
            time=self.time,
            distance=self.distance,
            distance_unit=self.distance_unit,
            notes=self.notes,
        )


class CompleteExerciseRequest(ExerciseCompletionRequest):
    current_exercise_index: int
    is_amrap_day: bool = False
    amrap_time_remaining: Optional[float] = Field(None, description="Seconds left on the AMRAP clock")
    exercises_completed_in_session: int = 0
    completed_exercise_ids: List[str] = Field(default_factory=list)

    def to_complete_input(self) -> CompleteExerciseInput:
        return CompleteExerciseInput(
            completion=self.to_input(),
            current_exercise_index=self.current_exercise_index,
            is_amrap_day=self.is_amrap_day,
            amrap_time_remaining=self.amrap_time_remaining,
            exercises_completed_in_session=self.exercises_completed_in_session,
            completed_exercise_ids=list(self.completed_exercise_ids),
        )


class SaveCompletionResponse(BaseModel):
    success: bool
    completion_id: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
    validation_errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: SaveCompletionResult) -> "SaveCompletionResponse":
        return cls(
            success=result.success,
            completion_id=result.completion_id,
            error=result.error,
            error_type=result.error_type,
            validation_errors=list(result.validation_errors),
        )


class AutoSaveResponse(BaseModel):
    success: bool
    saved: bool = False
    completion_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: AutoSaveResult) -> "AutoSaveResponse":
        return cls(
            success=result.success,
            saved=result.saved,
            completion_id=result.completion_id,
            error=result.error,
        )


class ExerciseAdvancementResponse(BaseModel):
    exercise_completed: bool
    next_exercise_index: Optional[int] = None
    day_completed: bool
    round_completed: bool = False
    amrap_time_expired: bool = False
    rounds_completed: int = 0


class CompleteExerciseResponse(SaveCompletionResponse):
    advancement: Optional[ExerciseAdvancementResponse] = None

    @classmethod
    def from_result(cls, result: CompleteExerciseResult) -> "CompleteExerciseResponse":
        return cls(
            success=result.success,
            completion_id=result.completion_id,
            error=result.error,
            error_type=result.error_type,
            validation_errors=list(result.validation_errors),
            advancement=(
                ExerciseAdvancementResponse(**asdict(result.advancement))
                if result.advancement
                else None
            ),
        )
