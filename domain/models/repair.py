"""
Repair actions for inconsistent progress positions.

A RepairAction is computed from a validation pass and never stored as-is;
executing one commits the target position through the progress store.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from domain.models.progress import Position


class RepairActionType(str, Enum):
    ADJUST_TO_VALID_POSITION = "adjust_to_valid_position"
    RESET_TO_START = "reset_to_start"
    ASSIGN_NEW_PROGRAM = "assign_new_program"


class RepairAction(BaseModel):
    """
    Corrective position change.

    ``new_milestone``/``new_day`` are None only for ASSIGN_NEW_PROGRAM, which
    cannot be applied automatically.
    """

    type: RepairActionType
    new_milestone: Optional[int] = None
    new_day: Optional[int] = None
    description: str

    @property
    def is_auto_applicable(self) -> bool:
        return (
            self.type != RepairActionType.ASSIGN_NEW_PROGRAM
            and self.new_milestone is not None
            and self.new_day is not None
        )

    @property
    def target(self) -> Optional[Position]:
        if self.new_milestone is None or self.new_day is None:
            return None
        return Position(milestone_index=self.new_milestone, day_index=self.new_day)

    model_config = {"frozen": True}
