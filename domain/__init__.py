"""
Domain layer for the Progress API.

Pure models and services with no infrastructure dependencies:
- models/: curriculum, progress position, repair actions, bounded inputs
- services/: progress calculators, validation & repair, update rules,
  advancement transitions, user-facing error messages
- converters/: database row <-> model conversion
"""

from domain.models import (
    Day,
    DayType,
    ExerciseSlot,
    Milestone,
    Position,
    Program,
    RepairAction,
    RepairActionType,
    UserProgress,
)

__all__ = [
    "Day",
    "DayType",
    "ExerciseSlot",
    "Milestone",
    "Position",
    "Program",
    "RepairAction",
    "RepairActionType",
    "UserProgress",
]
