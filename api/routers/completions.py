"""
Exercise completions router.

This router provides:
- POST /exercise-completions                      save one exercise's results
- POST /exercise-completions/autosave             best-effort save of partial results
- POST /exercise-completions/complete-and-advance save and compute the next exercise
"""

import logging

from fastapi import APIRouter, Depends

from api.deps import (
    get_complete_exercise_use_case,
    get_current_user,
    get_save_completion_use_case,
)
from api.schemas import (
    AutoSaveResponse,
    CompleteExerciseRequest,
    CompleteExerciseResponse,
    ExerciseCompletionRequest,
    SaveCompletionResponse,
    envelope_response,
)
from application.use_cases import (
    CompleteExerciseAndAdvanceUseCase,
    SaveExerciseCompletionUseCase,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/exercise-completions",
    tags=["Completions"],
)


@router.post("", response_model=SaveCompletionResponse)
def save_completion(
    request: ExerciseCompletionRequest,
    user_id: str = Depends(get_current_user),
    use_case: SaveExerciseCompletionUseCase = Depends(get_save_completion_use_case),
):
    """
    Save (or overwrite) the results of one exercise on one program day.

    Out-of-range values are rejected with 422 and the list of problems.
    """
    result = use_case.execute(user_id, request.to_input())
    return envelope_response(
        SaveCompletionResponse.from_result(result), result.success, result.error_type
    )


@router.post("/autosave", response_model=AutoSaveResponse)
def autosave_completion(
    request: ExerciseCompletionRequest,
    user_id: str = Depends(get_current_user),
    use_case: SaveExerciseCompletionUseCase = Depends(get_save_completion_use_case),
) -> AutoSaveResponse:
    """
    Save partial results while an exercise is in progress.

    Always 200: a failed auto-save is reported in the body and never
    interrupts the workout.
    """
    result = use_case.auto_save(user_id, request.to_input())
    if not result.saved:
        logger.debug(f"Auto-save skipped for {user_id}: {result.error}")
    return AutoSaveResponse.from_result(result)


@router.post("/complete-and-advance", response_model=CompleteExerciseResponse)
def complete_and_advance(
    request: CompleteExerciseRequest,
    user_id: str = Depends(get_current_user),
    use_case: CompleteExerciseAndAdvanceUseCase = Depends(get_complete_exercise_use_case),
):
    """Save an exercise and report the next exercise, round and day state."""
    result = use_case.execute(user_id, request.to_complete_input())
    return envelope_response(
        CompleteExerciseResponse.from_result(result), result.success, result.error_type
    )
