"""
Conflict resolution between local session data and a server snapshot.

When the same workout data was changed on two devices (or the server moved on
while the client was offline), the differing parts are turned into
ConflictData entries and resolved by prioritised resolvers. The
highest-priority resolver that can handle a conflict wins; when none can,
the conflict is left for the user to decide.

Default resolvers (priority):
- milestone_progress_advance (10): the most advanced position wins
- day_completion_merge (9): union of completed exercises, latest day status
- exercise_progress_timestamp (8): latest completion wins
- user_progress_merge (7): maximum of the counters, latest workout date
- generic_timestamp (1): newest timestamp / updated_at wins
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from application.sync.session import ProgressSessionContext

logger = logging.getLogger(__name__)


class ConflictType(str, Enum):
    EXERCISE_PROGRESS = "exercise_progress"
    DAY_COMPLETION = "day_completion"
    MILESTONE_ADVANCEMENT = "milestone_advancement"
    USER_PROGRESS = "user_progress"


class ResolutionStrategy(str, Enum):
    LOCAL_WINS = "local_wins"
    REMOTE_WINS = "remote_wins"
    MERGE = "merge"
    USER_DECIDES = "user_decides"


class BatchStrategy(str, Enum):
    AUTO = "auto"
    LOCAL_WINS_ALL = "local_wins_all"
    REMOTE_WINS_ALL = "remote_wins_all"


@dataclass(frozen=True)
class ConflictData:
    conflict_id: str
    conflict_type: ConflictType
    local: Dict[str, Any]
    remote: Dict[str, Any]
    field_path: Tuple[str, ...] = ()
    last_sync_time: Optional[datetime] = None


@dataclass
class ConflictResolution:
    conflict_id: str
    strategy: ResolutionStrategy
    resolved_data: Optional[Dict[str, Any]]
    method: str
    field_path: Tuple[str, ...] = ()
    user_choice: bool = False
    merge_details: List[str] = field(default_factory=list)
    resolved_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def requires_user(self) -> bool:
        return self.strategy == ResolutionStrategy.USER_DECIDES


@dataclass(frozen=True)
class ConflictResolver:
    name: str
    priority: int
    can_resolve: Callable[[ConflictData], bool]
    resolve: Callable[[ConflictData], ConflictResolution]


UserChoice = Union[str, Mapping[str, Any]]


def _timestamp(value: Any) -> float:
    """Seconds since the epoch for numbers, datetimes and ISO strings; 0 otherwise."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, str):
        try:
            return _timestamp(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return 0.0
    return 0.0


def _is_time_key(key: str) -> bool:
    return key.endswith(("_at", "_date")) or key == "timestamp"


def _comparable(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of ``data`` with datetimes and ISO strings under time keys reduced to epoch seconds."""
    result = dict(data)
    for key, value in result.items():
        if _is_time_key(key) and isinstance(value, (datetime, str)):
            stamp = _timestamp(value)
            if stamp:
                result[key] = stamp
    return result


def _first_time(data: Mapping[str, Any], *keys: str) -> float:
    for key in keys:
        stamp = _timestamp(data.get(key))
        if stamp:
            return stamp
    return 0.0


def _winner(conflict: ConflictData, use_local: bool) -> Tuple[ResolutionStrategy, Dict[str, Any]]:
    if use_local:
        return ResolutionStrategy.LOCAL_WINS, conflict.local
    return ResolutionStrategy.REMOTE_WINS, conflict.remote


# =============================================================================
# Default resolvers
# =============================================================================


def _resolve_milestone_progress(conflict: ConflictData) -> ConflictResolution:
    local, remote = conflict.local, conflict.remote
    local_pos = (local.get("current_milestone_index") or 0, local.get("current_day_index") or 0)
    remote_pos = (remote.get("current_milestone_index") or 0, remote.get("current_day_index") or 0)
    strategy, data = _winner(conflict, local_pos > remote_pos)
    return ConflictResolution(
        conflict_id=conflict.conflict_id,
        strategy=strategy,
        resolved_data=dict(data),
        method="progress_advancement",
        field_path=conflict.field_path,
        merge_details=[
            f"Chose {'local' if strategy == ResolutionStrategy.LOCAL_WINS else 'remote'} progress",
            f"Milestone {data.get('current_milestone_index')}, Day {data.get('current_day_index')}",
        ],
    )


def _resolve_day_completion(conflict: ConflictData) -> ConflictResolution:
    local, remote = conflict.local, conflict.remote
    merged_exercises = list(local.get("completed_exercises") or [])
    for exercise_id in remote.get("completed_exercises") or []:
        if exercise_id not in merged_exercises:
            merged_exercises.append(exercise_id)

    local_done_at = _timestamp(local.get("day_completed_at"))
    remote_done_at = _timestamp(remote.get("day_completed_at"))
    use_local_status = local_done_at > remote_done_at

    resolved = {
        **local,
        **remote,
        "completed_exercises": merged_exercises,
        "day_completed": local.get("day_completed") if use_local_status else remote.get("day_completed"),
        "day_completed_at": (
            local.get("day_completed_at") if use_local_status else remote.get("day_completed_at")
        ),
        "current_exercise_index": max(
            local.get("current_exercise_index") or 0,
            remote.get("current_exercise_index") or 0,
        ),
    }
    return ConflictResolution(
        conflict_id=conflict.conflict_id,
        strategy=ResolutionStrategy.MERGE,
        resolved_data=resolved,
        method="smart_merge",
        field_path=conflict.field_path,
        merge_details=[
            f"Merged {len(merged_exercises)} completed exercises",
            f"Used {'local' if use_local_status else 'remote'} day completion status",
            f"Advanced to exercise index {resolved['current_exercise_index']}",
        ],
    )


def _resolve_exercise_progress(conflict: ConflictData) -> ConflictResolution:
    local_time = _first_time(conflict.local, "completed_at", "timestamp")
    remote_time = _first_time(conflict.remote, "completed_at", "timestamp")
    use_local = local_time > remote_time
    strategy, data = _winner(conflict, use_local)
    return ConflictResolution(
        conflict_id=conflict.conflict_id,
        strategy=strategy,
        resolved_data=dict(data),
        method="timestamp_based",
        field_path=conflict.field_path,
        merge_details=[
            f"Chose {'local' if use_local else 'remote'} data based on timestamp "
            f"({local_time if use_local else remote_time})"
        ],
    )


def _resolve_user_progress(conflict: ConflictData) -> ConflictResolution:
    local, remote = conflict.local, conflict.remote
    resolved = {**remote, **local}
    for counter in ("total_workouts_completed", "total_exercises_completed", "total_workout_time"):
        if counter in local or counter in remote:
            resolved[counter] = max(local.get(counter) or 0, remote.get(counter) or 0)

    if "current_milestone_index" in local or "current_milestone_index" in remote:
        local_pos = (local.get("current_milestone_index") or 0, local.get("current_day_index") or 0)
        remote_pos = (remote.get("current_milestone_index") or 0, remote.get("current_day_index") or 0)
        milestone, day = max(local_pos, remote_pos)
        resolved["current_milestone_index"] = milestone
        resolved["current_day_index"] = day

    if "last_workout_date" in local or "last_workout_date" in remote:
        local_date, remote_date = local.get("last_workout_date"), remote.get("last_workout_date")
        resolved["last_workout_date"] = (
            local_date if _timestamp(local_date) > _timestamp(remote_date) else remote_date
        )

    return ConflictResolution(
        conflict_id=conflict.conflict_id,
        strategy=ResolutionStrategy.MERGE,
        resolved_data=resolved,
        method="stats_merge",
        field_path=conflict.field_path,
        merge_details=[
            f"Total workouts: {resolved.get('total_workouts_completed', 0)}",
            f"Last workout: {resolved.get('last_workout_date')}",
        ],
    )


def _has_generic_timestamp(conflict: ConflictData) -> bool:
    return any(
        side.get(key) for side in (conflict.local, conflict.remote) for key in ("timestamp", "updated_at")
    )


def _resolve_generic_timestamp(conflict: ConflictData) -> ConflictResolution:
    local_time = _first_time(conflict.local, "timestamp", "updated_at")
    remote_time = _first_time(conflict.remote, "timestamp", "updated_at")
    use_local = local_time > remote_time
    strategy, data = _winner(conflict, use_local)
    return ConflictResolution(
        conflict_id=conflict.conflict_id,
        strategy=strategy,
        resolved_data=dict(data),
        method="generic_timestamp",
        field_path=conflict.field_path,
        merge_details=[f"Used {'local' if use_local else 'remote'} data (newer timestamp)"],
    )


def default_resolvers() -> List[ConflictResolver]:
    return [
        ConflictResolver(
            name="milestone_progress_advance",
            priority=10,
            can_resolve=lambda c: c.conflict_type == ConflictType.MILESTONE_ADVANCEMENT,
            resolve=_resolve_milestone_progress,
        ),
        ConflictResolver(
            name="day_completion_merge",
            priority=9,
            can_resolve=lambda c: c.conflict_type == ConflictType.DAY_COMPLETION,
            resolve=_resolve_day_completion,
        ),
        ConflictResolver(
            name="exercise_progress_timestamp",
            priority=8,
            can_resolve=lambda c: c.conflict_type == ConflictType.EXERCISE_PROGRESS,
            resolve=_resolve_exercise_progress,
        ),
        ConflictResolver(
            name="user_progress_merge",
            priority=7,
            can_resolve=lambda c: c.conflict_type == ConflictType.USER_PROGRESS,
            resolve=_resolve_user_progress,
        ),
        ConflictResolver(
            name="generic_timestamp",
            priority=1,
            can_resolve=_has_generic_timestamp,
            resolve=_resolve_generic_timestamp,
        ),
    ]


# =============================================================================
# Service
# =============================================================================


class ConflictResolutionService:
    """
    Detects, resolves and applies conflicts for one progress session.

    Active and resolved conflicts are kept in the session context, so a
    service can be rebuilt at any time without losing them.
    """

    def __init__(
        self,
        context: ProgressSessionContext,
        resolvers: Optional[List[ConflictResolver]] = None,
    ) -> None:
        self._context = context
        self._resolvers: Dict[str, ConflictResolver] = {}
        for resolver in resolvers if resolvers is not None else default_resolvers():
            self.register_resolver(resolver)

    def register_resolver(self, resolver: ConflictResolver) -> None:
        self._resolvers[resolver.name] = resolver

    @property
    def resolver_count(self) -> int:
        return len(self._resolvers)

    @property
    def active_conflicts(self) -> List[ConflictData]:
        return list(self._context.active_conflicts.values())

    @property
    def resolved_conflicts(self) -> List[ConflictResolution]:
        return list(self._context.resolved_conflicts.values())

    @property
    def has_unresolved_conflicts(self) -> bool:
        return bool(self._context.active_conflicts)

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def detect_conflict(
        self,
        local: Mapping[str, Any],
        remote: Mapping[str, Any],
        conflict_type: ConflictType,
        field_path: Tuple[str, ...] = (),
    ) -> Optional[ConflictData]:
        """Return a conflict when the two sides differ, None when they are equal."""
        if _comparable(local) == _comparable(remote):
            return None
        path = ".".join(field_path)
        return ConflictData(
            conflict_id=f"{conflict_type.value}_{path}_{uuid.uuid4().hex[:8]}",
            conflict_type=conflict_type,
            local=dict(local),
            remote=dict(remote),
            field_path=tuple(field_path),
            last_sync_time=self._context.last_sync_time,
        )

    def detect_workout_conflicts(
        self,
        local: Mapping[str, Any],
        remote: Mapping[str, Any],
    ) -> List[ConflictData]:
        """
        Compare two workout snapshots (see ProgressSessionContext.snapshot).

        Exercise progress is compared per exercise present on both sides;
        day completion, position and totals are compared as groups.
        """
        conflicts: List[ConflictData] = []

        local_progress = local.get("exercise_progress") or {}
        remote_progress = remote.get("exercise_progress") or {}
        for exercise_id, local_entry in local_progress.items():
            if exercise_id in remote_progress:
                conflict = self.detect_conflict(
                    local_entry,
                    remote_progress[exercise_id],
                    ConflictType.EXERCISE_PROGRESS,
                    ("exercise_progress", exercise_id),
                )
                if conflict:
                    conflicts.append(conflict)

        groups = (
            (
                ConflictType.DAY_COMPLETION,
                ("completed_exercises", "day_completed", "day_completed_at", "current_exercise_index"),
            ),
            (ConflictType.MILESTONE_ADVANCEMENT, ("current_milestone_index", "current_day_index")),
            (ConflictType.USER_PROGRESS, ("total_workouts_completed", "last_workout_date")),
        )
        for conflict_type, keys in groups:
            if not any(key in remote for key in keys):
                continue
            conflict = self.detect_conflict(
                {key: local.get(key) for key in keys},
                {key: remote.get(key) for key in keys},
                conflict_type,
            )
            if conflict:
                conflicts.append(conflict)

        return conflicts

    def check_for_conflicts(self, remote: Mapping[str, Any]) -> List[ConflictData]:
        """Detect conflicts between the session and ``remote`` and register them."""
        conflicts = self.detect_workout_conflicts(self._context.snapshot(), remote)
        for conflict in conflicts:
            self.add_active_conflict(conflict)
        if conflicts:
            logger.info(f"Detected {len(conflicts)} conflict(s) for user {self._context.user_id}")
        return conflicts

    def add_active_conflict(self, conflict: ConflictData) -> None:
        self._context.active_conflicts[conflict.conflict_id] = conflict

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve_conflict(
        self,
        conflict: ConflictData,
        user_choice: Optional[UserChoice] = None,
        *,
        apply: bool = True,
    ) -> ConflictResolution:
        """
        Resolve one conflict.

        ``user_choice`` ("local", "remote" or the data to keep) overrides the
        resolvers. A ``user_decides`` result is returned but not stored, and
        the conflict stays active.
        """
        existing = self._context.resolved_conflicts.get(conflict.conflict_id)
        if existing is not None:
            return existing

        if user_choice is not None:
            resolution = self._user_choice_resolution(conflict, user_choice, method="user_choice")
        else:
            resolution = self._auto_resolution(conflict)

        if resolution.requires_user:
            self.add_active_conflict(conflict)
            return resolution

        self._context.resolved_conflicts[conflict.conflict_id] = resolution
        self._context.active_conflicts.pop(conflict.conflict_id, None)
        if apply:
            self.apply_resolution(resolution)
        return resolution

    def _auto_resolution(self, conflict: ConflictData) -> ConflictResolution:
        applicable = sorted(
            (r for r in self._resolvers.values() if r.can_resolve(conflict)),
            key=lambda r: r.priority,
            reverse=True,
        )
        if not applicable:
            logger.info(f"No resolver for conflict {conflict.conflict_id}; user must decide")
            return ConflictResolution(
                conflict_id=conflict.conflict_id,
                strategy=ResolutionStrategy.USER_DECIDES,
                resolved_data=None,
                method="user_decision_required",
                field_path=conflict.field_path,
            )
        resolver = applicable[0]
        logger.debug(f"Resolving {conflict.conflict_id} with {resolver.name}")
        return resolver.resolve(conflict)

    def _user_choice_resolution(
        self,
        conflict: ConflictData,
        choice: UserChoice,
        *,
        method: str,
    ) -> ConflictResolution:
        if choice == "local":
            strategy, data = ResolutionStrategy.LOCAL_WINS, dict(conflict.local)
        elif choice == "remote":
            strategy, data = ResolutionStrategy.REMOTE_WINS, dict(conflict.remote)
        elif isinstance(choice, Mapping):
            strategy, data = ResolutionStrategy.MERGE, dict(choice)
        else:
            raise ValueError(f"Unsupported conflict choice: {choice!r}")
        return ConflictResolution(
            conflict_id=conflict.conflict_id,
            strategy=strategy,
            resolved_data=data,
            method=method,
            field_path=conflict.field_path,
            user_choice=True,
        )

    def resolve_batch(
        self,
        conflicts: List[ConflictData],
        strategy: BatchStrategy = BatchStrategy.AUTO,
        *,
        apply: bool = True,
    ) -> List[ConflictResolution]:
        strategy = BatchStrategy(strategy)
        if strategy == BatchStrategy.AUTO:
            return [self.resolve_conflict(c, apply=apply) for c in conflicts]

        side = "local" if strategy == BatchStrategy.LOCAL_WINS_ALL else "remote"
        results = []
        for conflict in conflicts:
            resolution = self._user_choice_resolution(conflict, side, method="batch_resolution")
            self._context.resolved_conflicts[conflict.conflict_id] = resolution
            self._context.active_conflicts.pop(conflict.conflict_id, None)
            if apply:
                self.apply_resolution(resolution)
            results.append(resolution)
        return results

    def apply_resolution(self, resolution: ConflictResolution) -> bool:
        """
        Write resolved data into the session context.

        Returns False for ``user_decides`` and for resolutions without data.
        """
        if resolution.requires_user or resolution.resolved_data is None:
            return False

        data = resolution.resolved_data
        workout = self._context.workout

        if len(resolution.field_path) == 2 and resolution.field_path[0] == "exercise_progress":
            workout.exercise_progress[resolution.field_path[1]] = dict(data)

        for exercise_id, progress in (data.get("exercise_progress") or {}).items():
            workout.update_exercise_progress(exercise_id, progress)

        completed = data.get("completed_exercises")
        if isinstance(completed, list):
            for exercise_id in completed:
                workout.complete_exercise(exercise_id)

        if data.get("current_exercise_index") is not None:
            workout.set_current_exercise(data["current_exercise_index"])

        if data.get("day_completed") is not None:
            workout.day_completed = bool(data["day_completed"])

        milestone, day = data.get("current_milestone_index"), data.get("current_day_index")
        if milestone is not None and day is not None:
            self._context.set_position(milestone, day)

        return True

    def apply_resolutions(self, resolutions: List[ConflictResolution]) -> bool:
        """Apply several resolutions; False when any could not be applied."""
        all_applied = True
        for resolution in resolutions:
            if resolution.requires_user:
                logger.warning(f"Cannot apply {resolution.conflict_id} automatically; user must decide")
                all_applied = False
                continue
            if not self.apply_resolution(resolution):
                all_applied = False
        return all_applied

    def clear_resolved(self) -> None:
        """Forget resolved conflicts; active ones are kept."""
        self._context.resolved_conflicts.clear()

    def export_state(self) -> Dict[str, Any]:
        return {
            "active": self.active_conflicts,
            "resolved": self.resolved_conflicts,
            "resolver_count": self.resolver_count,
        }
