"""Retry scheduling for progress sync operations with exponential backoff."""
import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
RetryCondition = Callable[[BaseException], bool]

# Default retry configuration
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 10.0
DEFAULT_MULTIPLIER = 2.0


class OperationError(Exception):
    """A server operation was rejected, optionally with an HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RetryCancelledError(Exception):
    """A scheduled retry was cancelled before it ran."""
    pass


# =============================================================================
# Error classification
# =============================================================================


def _status_code(exception: BaseException) -> Optional[int]:
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code
    status = getattr(exception, "status_code", None)
    return status if isinstance(status, int) else None


def is_server_error(exception: BaseException) -> bool:
    status = _status_code(exception)
    return status is not None and status >= 500


def is_timeout_error(exception: BaseException) -> bool:
    if isinstance(exception, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return True
    if _status_code(exception) == 408:
        return True
    error_str = str(exception).lower()
    return "timeout" in error_str or "timed out" in error_str


def is_network_error(exception: BaseException) -> bool:
    if isinstance(exception, (httpx.NetworkError, ConnectionError)):
        return True
    error_str = str(exception).lower()
    return "network" in error_str or "connection" in error_str or "fetch failed" in error_str


def is_rate_limited(exception: BaseException) -> bool:
    if _status_code(exception) == 429:
        return True
    error_str = str(exception).lower()
    return "rate" in error_str and "limit" in error_str


def is_retryable_error(exception: BaseException) -> bool:
    """
    Determine if an exception is retryable.

    The HTTP status is checked first when the exception carries one; after
    that the exception type, then its message.

    Retryable errors include:
    - Server errors (5xx)
    - Request timeout (408) and rate limiting (429)
    - Timeout and connection errors, DNS failures

    Non-retryable errors include:
    - Any other 4xx (validation, authentication, not found)
    - Cancelled retries
    """
    if isinstance(exception, RetryCancelledError):
        return False

    status = _status_code(exception)
    if status is not None:
        return status >= 500 or status in (408, 429)

    if isinstance(exception, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exception, (asyncio.TimeoutError, TimeoutError, ConnectionError)):
        return True

    error_str = str(exception).lower()

    if is_rate_limited(exception):
        return True
    if any(code in error_str for code in ["500", "502", "503", "504"]):
        return True
    if "timeout" in error_str or "timed out" in error_str:
        return True
    if "connection" in error_str or "network" in error_str:
        return True

    # DNS resolution failures are transient network issues
    if "name or service not known" in error_str:
        return True
    if "temporary failure in name resolution" in error_str:
        return True

    if any(code in error_str for code in ["400", "401", "403", "404"]):
        return False
    if "authentication" in error_str or "unauthorized" in error_str:
        return False

    return False


def _any_of(*conditions: RetryCondition) -> RetryCondition:
    def condition(exception: BaseException) -> bool:
        return any(check(exception) for check in conditions)

    return condition


# =============================================================================
# Policies
# =============================================================================


def _validate_retry_params(
    max_retries: int,
    base_delay: float,
    max_delay: float,
    multiplier: float,
) -> None:
    """
    Validate retry parameters.

    Raises:
        ValueError: If any parameter is invalid
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {max_retries}")
    if base_delay < 0:
        raise ValueError(f"base_delay must not be negative, got {base_delay}")
    if max_delay < 0:
        raise ValueError(f"max_delay must not be negative, got {max_delay}")
    if base_delay > max_delay:
        raise ValueError(
            f"base_delay ({base_delay}) cannot exceed max_delay ({max_delay})"
        )
    if multiplier < 1:
        raise ValueError(f"multiplier must be >= 1, got {multiplier}")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff configuration for one kind of operation.

    ``max_retries`` counts retries, not attempts: a policy with 3 retries
    calls the operation at most 4 times.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS
    multiplier: float = DEFAULT_MULTIPLIER
    jitter: bool = True
    retry_condition: RetryCondition = is_retryable_error

    def __post_init__(self) -> None:
        _validate_retry_params(self.max_retries, self.base_delay, self.max_delay, self.multiplier)

    def delay_for(self, retry_count: int, rng: Callable[[], float] = random.random) -> float:
        """
        Seconds to wait before retry number ``retry_count + 1``.

        Jitter scales the capped delay into [50%, 100%) of its value.
        """
        delay = min(self.base_delay * self.multiplier ** retry_count, self.max_delay)
        if self.jitter:
            delay *= 0.5 + rng() * 0.5
        return delay


WORKOUT_RETRY_POLICIES: Dict[str, RetryPolicy] = {
    "exercise_completion": RetryPolicy(
        max_retries=5,
        base_delay=1.0,
        max_delay=8.0,
        multiplier=1.5,
        retry_condition=_any_of(is_server_error, is_network_error, is_timeout_error),
    ),
    "day_progression": RetryPolicy(
        max_retries=3,
        base_delay=2.0,
        max_delay=10.0,
        multiplier=2.0,
        retry_condition=_any_of(is_server_error, is_network_error),
    ),
    "data_persistence": RetryPolicy(
        max_retries=10,
        base_delay=0.5,
        max_delay=30.0,
        multiplier=1.8,
        jitter=True,
        retry_condition=_any_of(is_server_error, is_rate_limited, is_network_error, is_timeout_error),
    ),
    "milestone_progression": RetryPolicy(
        max_retries=2,
        base_delay=3.0,
        max_delay=15.0,
        multiplier=2.5,
        retry_condition=is_server_error,
    ),
}


def get_retry_policy(name: str) -> RetryPolicy:
    """Named workout policy; unknown names get the default policy."""
    return WORKOUT_RETRY_POLICIES.get(name, RetryPolicy())


# =============================================================================
# Cancellation
# =============================================================================


class CancellationToken:
    """
    Cancels pending retry delays.

    A token can be shared by several scheduled retries; cancelling it wakes
    every sleeper with RetryCancelledError.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, delay: float) -> None:
        if self.cancelled:
            raise RetryCancelledError("Retry cancelled")
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise RetryCancelledError("Retry cancelled")


# =============================================================================
# Scheduling
# =============================================================================


def schedule_retry(
    operation: Operation,
    key: str,
    policy: RetryPolicy,
    *,
    retry_count: int = 0,
    token: Optional[CancellationToken] = None,
    rng: Callable[[], float] = random.random,
) -> "asyncio.Task[Any]":
    """
    Run ``operation`` once after the backoff delay for ``retry_count``.

    Must be called from a running event loop. The returned task raises
    RetryCancelledError when ``token`` is cancelled during the delay.

    Raises:
        ValueError: If retry_count is negative
    """
    if retry_count < 0:
        raise ValueError(f"retry_count must be >= 0, got {retry_count}")

    token = token or CancellationToken()
    delay = policy.delay_for(retry_count, rng)

    async def _run() -> Any:
        await token.sleep(delay)
        return await operation()

    logger.info(f"Scheduling retry {retry_count + 1} for {key} in {delay:.2f}s")
    loop = asyncio.get_running_loop()
    return loop.create_task(_run(), name=f"retry:{key}:{retry_count + 1}")


@dataclass
class RetryOutcome:
    """Result of execute_with_retry()."""

    success: bool
    data: Any = None
    error: Optional[BaseException] = None
    attempts: int = 0
    total_time: float = 0.0
    cancelled: bool = False


def _policy_wait(policy: RetryPolicy, rng: Callable[[], float]) -> Callable[[RetryCallState], float]:
    def wait(retry_state: RetryCallState) -> float:
        return policy.delay_for(retry_state.attempt_number - 1, rng)

    return wait


async def execute_with_retry(
    operation: Operation,
    key: str,
    policy: RetryPolicy,
    *,
    token: Optional[CancellationToken] = None,
    rng: Callable[[], float] = random.random,
) -> RetryOutcome:
    """
    Call ``operation`` until it succeeds, the policy gives up, or the token
    is cancelled.

    Errors rejected by ``policy.retry_condition`` end the loop immediately.
    Never raises; the last error is returned in the outcome.
    """
    start = time.monotonic()
    attempts = 0

    retrying = AsyncRetrying(
        sleep=token.sleep if token else asyncio.sleep,
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=_policy_wait(policy, rng),
        retry=retry_if_exception(policy.retry_condition),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                attempts = attempt.retry_state.attempt_number
                data = await operation()
        return RetryOutcome(
            success=True,
            data=data,
            attempts=attempts,
            total_time=time.monotonic() - start,
        )
    except RetryCancelledError as e:
        logger.info(f"Retries for {key} cancelled after {attempts} attempt(s)")
        return RetryOutcome(
            success=False,
            error=e,
            attempts=attempts,
            total_time=time.monotonic() - start,
            cancelled=True,
        )
    except Exception as e:
        logger.error(f"Operation {key} failed after {attempts} attempt(s): {e}")
        return RetryOutcome(
            success=False,
            error=e,
            attempts=attempts,
            total_time=time.monotonic() - start,
        )
