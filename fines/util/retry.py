"""Retry helpers with exponential backoff.

Nothing in the package retries implicitly; callers opt in by wrapping a
store call. The delay before attempt ``n + 1`` is
``min(delay * backoff_multiplier ** (n - 1), max_delay)`` seconds.
"""

from typing import Awaitable, Callable, TypeVar

import logfire
from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from fines.domain.service.comment_store import StoreResult

T = TypeVar("T")

RetryCallback = Callable[[int, BaseException], None]
MaxAttemptsCallback = Callable[[BaseException], None]


class RetryPolicy(BaseModel):
    """Backoff parameters for a retried operation."""

    max_attempts: int = Field(default=3, ge=1)
    delay: float = Field(default=1.0, ge=0)  # seconds
    backoff_multiplier: float = Field(default=2.0, ge=1)
    max_delay: float = Field(default=10.0, ge=0)  # seconds

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return min(self.delay * self.backoff_multiplier ** (attempt - 1), self.max_delay)

    def wait(self) -> wait_exponential:
        return wait_exponential(
            multiplier=self.delay, exp_base=self.backoff_multiplier, max=self.max_delay
        )


DEFAULT_RETRY_POLICY = RetryPolicy()

# Gentler preset for API-facing calls
API_RETRY_POLICY = RetryPolicy(
    max_attempts=3, delay=1.0, backoff_multiplier=1.5, max_delay=5.0
)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    on_retry: RetryCallback | None = None,
    on_max_attempts_reached: MaxAttemptsCallback | None = None,
) -> T:
    """Run an operation, retrying whenever it raises.

    Args:
        operation: Zero-argument coroutine factory
        policy: Backoff parameters
        on_retry: Called with the failed attempt number and its error before
            each wait
        on_max_attempts_reached: Called with the last error when giving up

    Returns:
        The operation's result

    Raises:
        Exception: The last error once all attempts failed
    """

    def before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        logfire.warn(
            "Retry attempt {attempt} failed",
            attempt=state.attempt_number,
            max_attempts=policy.max_attempts,
            error=str(error),
        )
        if on_retry is not None and error is not None:
            on_retry(state.attempt_number, error)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=policy.wait(),
        before_sleep=before_sleep,
        reraise=True,
    )
    async def attempt() -> T:
        return await operation()

    try:
        return await retrying(attempt)
    except Exception as e:
        logfire.error(
            "Max retry attempts reached",
            max_attempts=policy.max_attempts,
            error=str(e),
            error_type=type(e).__name__,
        )
        if on_max_attempts_reached is not None:
            on_max_attempts_reached(e)
        raise


def _is_retryable_result(result: StoreResult) -> bool:
    return result.error is not None and result.error.retryable


async def retry_store_call(
    operation: Callable[[], Awaitable[StoreResult[T]]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> StoreResult[T]:
    """Repeat a store call while it fails with a retryable error.

    Store calls never raise, so the decision is made on the returned
    result. Non-retryable errors are returned immediately.

    Args:
        operation: Zero-argument coroutine factory returning a StoreResult
        policy: Backoff parameters

    Returns:
        The first successful or non-retryable result, or the last result
        once all attempts are used up
    """

    def before_sleep(state: RetryCallState) -> None:
        result = state.outcome.result() if state.outcome else None
        logfire.warn(
            "Retrying store call after {error_type} error",
            error_type=result.error.type.value if result and result.error else None,
            attempt=state.attempt_number,
            max_attempts=policy.max_attempts,
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=policy.wait(),
        retry=retry_if_result(_is_retryable_result),
        before_sleep=before_sleep,
        retry_error_callback=lambda state: state.outcome.result(),
    )

    async def attempt() -> StoreResult[T]:
        return await operation()

    return await retrying(attempt)
