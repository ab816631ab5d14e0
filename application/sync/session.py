"""
Client-side progress session state.

ProgressSessionContext is the explicit owner of everything the optimistic
update manager and the conflict resolution service share for one user: the
last server-confirmed progress, the queue of optimistic updates, the in-memory
workout session and the conflict registries. Nothing here is module-global;
each session creates its own context and hands it to the services.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from domain.models import UserProgress

if TYPE_CHECKING:
    from application.sync.conflict_resolution import ConflictData, ConflictResolution


class ProgressState(BaseModel):
    """
    The progress fields an optimistic update may patch.

    Examples:
        >>> state = ProgressState(current_milestone_index=0, current_day_index=2)
        >>> state.apply({"current_day_index": 3}).current_day_index
        3
    """

    current_program_id: Optional[str] = None
    current_milestone_index: int = 0
    current_day_index: int = 0
    total_workouts_completed: int = 0
    last_workout_date: Optional[datetime] = None

    @classmethod
    def from_progress(cls, progress: UserProgress) -> "ProgressState":
        return cls(
            current_program_id=progress.current_program_id,
            current_milestone_index=progress.current_milestone_index,
            current_day_index=progress.current_day_index,
            total_workouts_completed=progress.total_workouts_completed,
            last_workout_date=progress.last_workout_date,
        )

    def apply(self, patch: Mapping[str, Any]) -> "ProgressState":
        """Return a copy with ``patch`` merged in; unknown keys are ignored."""
        known = {k: v for k, v in patch.items() if k in type(self).model_fields}
        if not known:
            return self
        return type(self).model_validate({**self.model_dump(), **known})

    model_config = {"frozen": True}


class UpdateType(str, Enum):
    PROGRESS_UPDATE = "progress_update"
    EXERCISE_COMPLETE = "exercise_complete"
    DAY_ADVANCE = "day_advance"
    MILESTONE_ADVANCE = "milestone_advance"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class UpdateStatus(str, Enum):
    PENDING = "pending"
    RETRYING = "retrying"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    REVERTED = "reverted"


@dataclass
class OptimisticUpdate:
    """A locally applied change waiting for server confirmation."""

    id: str
    type: UpdateType
    patch: Dict[str, Any]
    status: UpdateStatus = UpdateStatus.PENDING
    retry_count: int = 0
    max_retries: int = 3
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def can_retry(self) -> bool:
        return self.retry_count < self.max_retries


@dataclass
class WorkoutSessionState:
    """In-progress workout data for the current day."""

    exercise_progress: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    completed_exercises: List[str] = field(default_factory=list)
    current_exercise_index: int = 0
    day_completed: bool = False
    day_completed_at: Optional[datetime] = None
    session_start_time: Optional[datetime] = None

    def update_exercise_progress(self, exercise_id: str, data: Mapping[str, Any]) -> None:
        self.exercise_progress[exercise_id] = {**self.exercise_progress.get(exercise_id, {}), **data}

    def complete_exercise(self, exercise_id: str) -> None:
        if exercise_id not in self.completed_exercises:
            self.completed_exercises.append(exercise_id)

    def set_current_exercise(self, index: int) -> None:
        self.current_exercise_index = max(0, index)

    def reset(self) -> None:
        self.exercise_progress.clear()
        self.completed_exercises.clear()
        self.current_exercise_index = 0
        self.day_completed = False
        self.day_completed_at = None


@dataclass
class ProgressSessionContext:
    """
    State of one user's progress session.

    ``updates`` keeps submission order; confirmed, dismissed and reverted
    updates are removed from it, so the visible state is always the fold of
    ``original_state`` with every update still listed.
    """

    user_id: Optional[str] = None
    original_state: ProgressState = field(default_factory=ProgressState)
    updates: Dict[str, OptimisticUpdate] = field(default_factory=dict)
    workout: WorkoutSessionState = field(default_factory=WorkoutSessionState)
    active_conflicts: Dict[str, "ConflictData"] = field(default_factory=dict)
    resolved_conflicts: Dict[str, "ConflictResolution"] = field(default_factory=dict)
    is_online: bool = True
    last_sync_time: Optional[datetime] = None

    @property
    def visible_state(self) -> ProgressState:
        state = self.original_state
        for update in self.updates.values():
            state = state.apply(update.patch)
        return state

    def set_position(self, milestone_index: int, day_index: int) -> None:
        self.original_state = self.original_state.apply(
            {"current_milestone_index": milestone_index, "current_day_index": day_index}
        )

    def snapshot(self) -> Dict[str, Any]:
        """Local view used for conflict detection against a server snapshot."""
        state = self.visible_state
        return {
            "exercise_progress": {k: dict(v) for k, v in self.workout.exercise_progress.items()},
            "completed_exercises": list(self.workout.completed_exercises),
            "day_completed": self.workout.day_completed,
            "day_completed_at": self.workout.day_completed_at,
            "current_exercise_index": self.workout.current_exercise_index,
            "current_milestone_index": state.current_milestone_index,
            "current_day_index": state.current_day_index,
            "total_workouts_completed": state.total_workouts_completed,
            "last_workout_date": state.last_workout_date,
        }
