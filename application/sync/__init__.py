"""
Client-side progress sync: optimistic updates, retries and conflict resolution.

Everything here runs on asyncio within one user session. Session state is
held by an explicit ProgressSessionContext passed to each service.
"""

from application.sync.conflict_resolution import (
    BatchStrategy,
    ConflictData,
    ConflictResolution,
    ConflictResolutionService,
    ConflictResolver,
    ConflictType,
    ResolutionStrategy,
    default_resolvers,
)
from application.sync.optimistic_updates import (
    OptimisticUpdateManager,
    RecoveryAction,
    RecoveryActionType,
    ServerResponse,
    SubmitResult,
    optimistic_retry_policy,
)
from application.sync.retry import (
    WORKOUT_RETRY_POLICIES,
    CancellationToken,
    OperationError,
    RetryCancelledError,
    RetryOutcome,
    RetryPolicy,
    execute_with_retry,
    get_retry_policy,
    is_retryable_error,
    schedule_retry,
)
from application.sync.session import (
    OptimisticUpdate,
    ProgressSessionContext,
    ProgressState,
    UpdateStatus,
    UpdateType,
    WorkoutSessionState,
)

__all__ = [
    # Session
    "ProgressSessionContext",
    "ProgressState",
    "WorkoutSessionState",
    "OptimisticUpdate",
    "UpdateType",
    "UpdateStatus",
    # Optimistic updates
    "OptimisticUpdateManager",
    "ServerResponse",
    "SubmitResult",
    "RecoveryAction",
    "RecoveryActionType",
    "optimistic_retry_policy",
    # Retry
    "RetryPolicy",
    "RetryOutcome",
    "CancellationToken",
    "RetryCancelledError",
    "OperationError",
    "WORKOUT_RETRY_POLICIES",
    "get_retry_policy",
    "is_retryable_error",
    "schedule_retry",
    "execute_with_retry",
    # Conflicts
    "ConflictResolutionService",
    "ConflictData",
    "ConflictResolution",
    "ConflictResolver",
    "ConflictType",
    "ResolutionStrategy",
    "BatchStrategy",
    "default_resolvers",
]
