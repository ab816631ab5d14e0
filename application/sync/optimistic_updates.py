"""
Optimistic progress updates.

Changes are applied to the session's visible state immediately and confirmed
by a server operation in the background. Failed operations are retried with
exponential backoff; when retries run out the update stays failed and the
client is offered recovery actions instead.

Usage:
    context = ProgressSessionContext(user_id="user-1", original_state=state)
    manager = OptimisticUpdateManager(context)

    result = await manager.optimistic_update(
        UpdateType.DAY_ADVANCE,
        {"current_day_index": 3},
        lambda: client.advance_day(),
    )
    context.visible_state.current_day_index  # 3, whatever the server says
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from application.ports import ConnectivityMonitor
from application.sync.retry import (
    CancellationToken,
    RetryCancelledError,
    RetryPolicy,
    schedule_retry,
)
from application.sync.session import (
    OptimisticUpdate,
    ProgressSessionContext,
    ProgressState,
    UpdateStatus,
    UpdateType,
)

logger = logging.getLogger(__name__)

OFFLINE_QUEUED_MESSAGE = "Update saved locally. Will sync when connection is restored."
DEFAULT_REJECTION_MESSAGE = "Unknown error"


@dataclass
class ServerResponse:
    """What a server operation reports back."""

    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


ServerOperation = Callable[[], Awaitable[Union[ServerResponse, Dict[str, Any], None]]]
ErrorCallback = Callable[[str, str], None]
SuccessCallback = Callable[[str], None]


@dataclass
class SubmitResult:
    """Result of OptimisticUpdateManager.optimistic_update()."""

    update_id: str
    queued: bool = False
    message: Optional[str] = None
    update: Optional[OptimisticUpdate] = None


class RecoveryActionType(str, Enum):
    RETRY = "retry"
    DISMISS = "dismiss"
    REVERT_ALL = "revert_all"


@dataclass(frozen=True)
class RecoveryAction:
    id: str
    label: str
    type: RecoveryActionType
    update_id: Optional[str] = None


@dataclass
class _ScheduledRetry:
    task: "asyncio.Task[Any]"
    token: CancellationToken = field(default_factory=CancellationToken)


def optimistic_retry_policy(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: Optional[float] = None,
) -> RetryPolicy:
    """
    Doubling backoff without jitter: ``base_delay * 2 ** retry_count``.

    Uncapped unless ``max_delay`` is given.
    """
    return RetryPolicy(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=max_delay if max_delay is not None else base_delay * 2 ** max(max_retries, 0),
        multiplier=2.0,
        jitter=False,
    )


class OptimisticUpdateManager:
    """
    Applies progress changes locally before the server confirms them.

    All state lives in the given ProgressSessionContext; the manager only
    keeps runtime handles (server operations and scheduled retries).
    """

    def __init__(
        self,
        context: ProgressSessionContext,
        *,
        policy: Optional[RetryPolicy] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
        on_error: Optional[ErrorCallback] = None,
        on_success: Optional[SuccessCallback] = None,
    ) -> None:
        self._context = context
        self._policy = policy or optimistic_retry_policy()
        self._on_error = on_error
        self._on_success = on_success
        self._operations: Dict[str, ServerOperation] = {}
        self._retries: Dict[str, _ScheduledRetry] = {}
        self._in_flight: Set[str] = set()
        self._background: Set["asyncio.Task[Any]"] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None

        if connectivity is not None:
            context.is_online = connectivity.is_online
            self._unsubscribe = connectivity.subscribe(self.handle_connectivity_change)

    # =========================================================================
    # Views
    # =========================================================================

    @property
    def context(self) -> ProgressSessionContext:
        return self._context

    @property
    def visible_state(self) -> ProgressState:
        return self._context.visible_state

    @property
    def pending_updates(self) -> List[OptimisticUpdate]:
        return list(self._context.updates.values())

    @property
    def failed_updates(self) -> List[OptimisticUpdate]:
        return [u for u in self._context.updates.values() if u.status == UpdateStatus.FAILED]

    @property
    def has_errors(self) -> bool:
        return bool(self.failed_updates)

    @property
    def has_pending_updates(self) -> bool:
        return bool(self._context.updates)

    def has_scheduled_retry(self, update_id: str) -> bool:
        return update_id in self._retries

    # =========================================================================
    # Submitting
    # =========================================================================

    async def optimistic_update(
        self,
        update_type: UpdateType,
        patch: Dict[str, Any],
        server_operation: ServerOperation,
    ) -> SubmitResult:
        """
        Apply ``patch`` immediately and confirm it with ``server_operation``.

        Offline, the operation is parked until connectivity returns and the
        result says it was queued.
        """
        update = OptimisticUpdate(
            id=f"{update_type.value}-{uuid.uuid4().hex[:12]}",
            type=UpdateType(update_type),
            patch=dict(patch),
            max_retries=self._policy.max_retries,
        )
        self._context.updates[update.id] = update
        self._operations[update.id] = server_operation

        if not self._context.is_online:
            logger.info(f"Offline: queued optimistic update {update.id}")
            return SubmitResult(
                update_id=update.id,
                queued=True,
                message=OFFLINE_QUEUED_MESSAGE,
                update=update,
            )

        await self._attempt(update)
        return SubmitResult(update_id=update.id, update=update)

    async def retry_update(self, update_id: str, *, manual: bool = False) -> bool:
        """
        Re-run the server operation of an update.

        Scheduled retries stop once ``max_retries`` is reached; a manual
        retry (a user pressing "retry") is always allowed.

        Returns:
            True when the operation was attempted.
        """
        update = self._context.updates.get(update_id)
        if update is None or update_id not in self._operations:
            logger.warning(f"Retry requested for unknown update {update_id}")
            return False
        if update_id in self._in_flight:
            return False
        if not manual and not update.can_retry:
            return False
        if not self._context.is_online:
            logger.info(f"Offline: retry of {update_id} deferred until reconnect")
            return False

        self._discard_retry(update_id)
        update.status = UpdateStatus.RETRYING
        update.retry_count += 1
        update.error_message = None
        logger.info(f"Retrying update {update_id} (attempt {update.retry_count}/{update.max_retries})")

        await self._attempt(update)
        return True

    async def _attempt(self, update: OptimisticUpdate) -> None:
        operation = self._operations[update.id]
        self._in_flight.add(update.id)
        try:
            response = await operation()
        except Exception as e:
            logger.warning(f"Server operation for {update.id} raised: {e}")
            if self._is_current(update):
                self._handle_failure(update, str(e) or type(e).__name__)
            return
        finally:
            self._in_flight.discard(update.id)

        if not self._is_current(update):
            logger.info(f"Update {update.id} settled after it was removed; ignoring result")
            return

        if isinstance(response, ServerResponse):
            if response.success:
                self._confirm(update, response.data)
            else:
                self._handle_failure(update, response.error or DEFAULT_REJECTION_MESSAGE)
        else:
            self._confirm(update, response)

    def _is_current(self, update: OptimisticUpdate) -> bool:
        return self._context.updates.get(update.id) is update

    def _confirm(self, update: OptimisticUpdate, server_data: Optional[Dict[str, Any]]) -> None:
        update.status = UpdateStatus.CONFIRMED
        update.error_message = None
        self._context.original_state = self._context.original_state.apply(
            {**update.patch, **(server_data or {})}
        )
        self._context.last_sync_time = datetime.now(timezone.utc)
        self._forget(update.id)
        logger.info(f"Confirmed update {update.id} after {update.retry_count} retries")
        if self._on_success:
            self._on_success(update.id)

    def _handle_failure(self, update: OptimisticUpdate, message: str) -> None:
        update.status = UpdateStatus.FAILED
        if update.can_retry:
            update.error_message = message
            self._schedule(update)
        else:
            update.error_message = f"Max retries exceeded: {message}" if update.retry_count else message
            logger.error(f"Update {update.id} failed: {update.error_message}")
        if self._on_error:
            self._on_error(update.error_message, update.id)

    def _schedule(self, update: OptimisticUpdate) -> None:
        token = CancellationToken()
        update_id = update.id
        task = schedule_retry(
            lambda: self.retry_update(update_id),
            update_id,
            self._policy,
            retry_count=update.retry_count,
            token=token,
        )
        self._retries[update_id] = _ScheduledRetry(task=task, token=token)
        task.add_done_callback(lambda t: self._on_retry_done(update_id, t))
        self._track(task)

    def _track(self, task: "asyncio.Task[Any]") -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _on_retry_done(self, update_id: str, task: "asyncio.Task[Any]") -> None:
        scheduled = self._retries.get(update_id)
        if scheduled is not None and scheduled.task is task:
            del self._retries[update_id]
        if task.cancelled():
            return
        error = task.exception()
        if isinstance(error, RetryCancelledError):
            logger.debug(f"Scheduled retry of {update_id} cancelled")
        elif error is not None:
            logger.error(f"Scheduled retry of {update_id} crashed: {error}")

    def _discard_retry(self, update_id: str) -> bool:
        scheduled = self._retries.pop(update_id, None)
        if scheduled is None:
            return False
        scheduled.token.cancel()
        return True

    def _forget(self, update_id: str) -> None:
        self._context.updates.pop(update_id, None)
        self._operations.pop(update_id, None)
        self._discard_retry(update_id)

    # =========================================================================
    # Recovery
    # =========================================================================

    def dismiss_update(self, update_id: str) -> bool:
        """Drop an update; the visible state is replayed without it."""
        if update_id not in self._context.updates:
            return False
        self._forget(update_id)
        logger.info(f"Dismissed update {update_id}")
        return True

    def cancel_retry(self, update_id: str) -> bool:
        """Cancel a scheduled retry and revert its update."""
        if not self._discard_retry(update_id):
            return False
        update = self._context.updates.get(update_id)
        if update is not None:
            update.status = UpdateStatus.REVERTED
        self._forget(update_id)
        logger.info(f"Cancelled scheduled retry of {update_id}")
        return True

    def revert_to_original(self) -> None:
        """Throw away every optimistic update and cancel their retries."""
        for update_id, update in list(self._context.updates.items()):
            update.status = UpdateStatus.REVERTED
            self._forget(update_id)
        logger.info("Reverted all optimistic updates")

    def clear_errors(self) -> int:
        failed = [u.id for u in self.failed_updates]
        for update_id in failed:
            self._forget(update_id)
        return len(failed)

    def get_recovery_actions(self) -> List[RecoveryAction]:
        actions: List[RecoveryAction] = []
        for update in self.failed_updates:
            actions.append(
                RecoveryAction(
                    id=f"retry-{update.id}",
                    label=f"Retry {update.type.label}",
                    type=RecoveryActionType.RETRY,
                    update_id=update.id,
                )
            )
            actions.append(
                RecoveryAction(
                    id=f"remove-{update.id}",
                    label=f"Dismiss {update.type.label}",
                    type=RecoveryActionType.DISMISS,
                    update_id=update.id,
                )
            )
        if actions:
            actions.append(
                RecoveryAction(
                    id="revert-all",
                    label="Revert all changes",
                    type=RecoveryActionType.REVERT_ALL,
                )
            )
        return actions

    async def run_recovery_action(self, action: RecoveryAction) -> bool:
        if action.type == RecoveryActionType.RETRY and action.update_id:
            return await self.retry_update(action.update_id, manual=True)
        if action.type == RecoveryActionType.DISMISS and action.update_id:
            return self.dismiss_update(action.update_id)
        if action.type == RecoveryActionType.REVERT_ALL:
            self.revert_to_original()
            return True
        return False

    # =========================================================================
    # Connectivity and server sync
    # =========================================================================

    def handle_connectivity_change(self, online: bool) -> None:
        was_online = self._context.is_online
        self._context.is_online = online
        if online and not was_online:
            logger.info("Connection restored; replaying queued updates")
            task = asyncio.get_running_loop().create_task(self.replay_pending())
            self._track(task)
        elif not online and was_online:
            logger.info("Connection lost; new updates will be queued")

    async def replay_pending(self) -> int:
        """Attempt every pending or failed update once. Returns how many ran."""
        replayed = 0
        for update in list(self._context.updates.values()):
            if update.id in self._in_flight or not self._is_current(update):
                continue
            if update.status == UpdateStatus.PENDING:
                await self._attempt(update)
                replayed += 1
            elif update.status == UpdateStatus.FAILED:
                if await self.retry_update(update.id, manual=True):
                    replayed += 1
        return replayed

    def sync_with_server(self, state: ProgressState) -> None:
        """Replace the confirmed baseline with a fresh server state."""
        self._context.original_state = state
        self._context.last_sync_time = datetime.now(timezone.utc)

    async def drain(self) -> None:
        """Wait until no retry or replay task is outstanding."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
            # Done callbacks run on the next loop iteration
            await asyncio.sleep(0)

    def close(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        for update_id in list(self._retries):
            self._discard_retry(update_id)
        for task in list(self._background):
            task.cancel()
