"""
Programs router.

This router provides:
- Listing of published programs
- Program details
- Enrollment of the current user in a program
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_assign_program_use_case, get_curriculum_repo, get_current_user
from api.schemas import AssignProgramResponse, ProgramSummary, envelope_response
from application.ports import CurriculumRepository, RepositoryError
from application.use_cases import AssignProgramUseCase
from domain.models import Program

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/programs",
    tags=["Programs"],
)


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=List[ProgramSummary])
def list_programs(
    user_id: str = Depends(get_current_user),
    curriculum_repo: CurriculumRepository = Depends(get_curriculum_repo),
) -> List[ProgramSummary]:
    """List programs offered for enrollment."""
    try:
        programs = curriculum_repo.list_published()
    except RepositoryError as e:
        logger.error(f"Failed to list programs for {user_id}: {e.message}")
        raise HTTPException(status_code=500, detail="Unable to load programs")
    return [ProgramSummary.from_program(p) for p in programs]


@router.get("/{program_id}", response_model=Program)
def get_program(
    program_id: str,
    user_id: str = Depends(get_current_user),
    curriculum_repo: CurriculumRepository = Depends(get_curriculum_repo),
) -> Program:
    """
    Get a published program with its full milestone/day structure.

    Unpublished programs are reported as missing.
    """
    try:
        program = curriculum_repo.get_program(program_id)
    except RepositoryError as e:
        logger.error(f"Failed to load program {program_id}: {e.message}")
        raise HTTPException(status_code=500, detail="Unable to load program")

    if program is None or not program.is_published:
        raise HTTPException(status_code=404, detail="Program not found")
    return program


@router.post("/{program_id}/assign", response_model=AssignProgramResponse)
def assign_program(
    program_id: str,
    user_id: str = Depends(get_current_user),
    use_case: AssignProgramUseCase = Depends(get_assign_program_use_case),
):
    """
    Enroll the current user in a program, starting at its first day.

    Returns 409 when the user is already enrolled in this program.
    """
    result = use_case.execute(user_id, program_id)
    return envelope_response(
        AssignProgramResponse.from_result(result), result.success, result.error_type
    )
