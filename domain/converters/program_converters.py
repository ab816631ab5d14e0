"""
Converters: Database rows <-> domain curriculum and progress models.

Database schema (programs table):
- id: UUID
- name, description: Text
- is_published: Boolean
- milestones: JSONB array of {id?, name?, days: [...]}
  with each day {title?, day_type | dayType, exercises[], is_amrap | isAmrap,
  amrap_duration_minutes | amrapDuration}

Database schema (user_progress table):
- user_id: Clerk user ID (unique)
- current_program_id: Program UUID or NULL
- current_milestone_index, current_day_index: Integers (unconstrained)
- total_workouts_completed: Integer
- last_workout_date: Timestamp or NULL
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from domain.models import Day, DayType, ExerciseSlot, Milestone, Program, UserProgress


def _parse_datetime(value: Any) -> Optional[datetime]:
    """Parse datetime from various formats."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            if value.endswith("Z"):
                value = value[:-1] + "+00:00"
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def _pick(data: Dict[str, Any], *names: str, default: Any = None) -> Any:
    """First present key among snake_case / camelCase spellings."""
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return default


def _day_from_dict(data: Dict[str, Any]) -> Day:
    raw_type = _pick(data, "day_type", "dayType", default=DayType.WORKOUT.value)
    exercises = [
        ExerciseSlot(
            exercise_id=str(_pick(ex, "exercise_id", "exerciseId", "exercise", default="")),
            sets=_pick(ex, "sets"),
            reps=_pick(ex, "reps"),
            weight=_pick(ex, "weight"),
            duration_seconds=_pick(ex, "duration_seconds", "durationSeconds"),
            distance=_pick(ex, "distance"),
            distance_unit=_pick(ex, "distance_unit", "distanceUnit"),
            rest_seconds=_pick(ex, "rest_seconds", "restSeconds"),
            notes=_pick(ex, "notes"),
        )
        for ex in (data.get("exercises") or [])
    ]
    return Day(
        title=_pick(data, "title"),
        day_type=DayType(raw_type),
        exercises=exercises,
        is_amrap=bool(_pick(data, "is_amrap", "isAmrap", default=False)),
        amrap_duration_minutes=_pick(data, "amrap_duration_minutes", "amrapDuration"),
    )


def _milestones_from_value(value: Any) -> List[Milestone]:
    if isinstance(value, str):
        value = json.loads(value)
    milestones = []
    for item in value or []:
        milestones.append(
            Milestone(
                id=_pick(item, "id"),
                name=_pick(item, "name"),
                days=[_day_from_dict(day) for day in (item.get("days") or [])],
            )
        )
    return milestones


def db_row_to_program(row: Dict[str, Any]) -> Program:
    """
    Convert a programs table row to a domain Program.

    Raises:
        ValueError: If the row has no id or the milestones JSON is malformed.
    """
    if not row.get("id"):
        raise ValueError("Program row is missing 'id'")
    return Program(
        id=str(row["id"]),
        name=row.get("name") or "",
        description=row.get("description"),
        is_published=bool(row.get("is_published", False)),
        milestones=_milestones_from_value(row.get("milestones")),
    )


def program_to_db_row(program: Program) -> Dict[str, Any]:
    """Convert a domain Program to a programs table row."""
    return {
        "id": program.id,
        "name": program.name,
        "description": program.description,
        "is_published": program.is_published,
        "milestones": [m.model_dump(mode="json") for m in program.milestones],
    }


def db_row_to_user_progress(row: Dict[str, Any]) -> UserProgress:
    """Convert a user_progress row to UserProgress, defaulting missing counters to 0."""
    return UserProgress(
        user_id=row.get("user_id"),
        current_program_id=row.get("current_program_id"),
        current_milestone_index=int(row.get("current_milestone_index") or 0),
        current_day_index=int(row.get("current_day_index") or 0),
        total_workouts_completed=int(row.get("total_workouts_completed") or 0),
        last_workout_date=_parse_datetime(row.get("last_workout_date")),
    )
