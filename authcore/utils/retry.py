"""Retry utilities for asynchronous operations using Tenacity."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """Exception raised when all retry attempts have been exhausted."""

    def __init__(self, message: str, attempts: int, final_exception: BaseException | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.final_exception = final_exception


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logging.debug(
        f"🔁 Retrying after {type(exc).__name__} attempt={retry_state.attempt_number}"
    )


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    base_delay: float,
    max_delay: float,
    retry_on: type[BaseException] | tuple[type[BaseException], ...],
) -> T:
    """Retry an asynchronous operation with exponential backoff using Tenacity.

    Args:
        operation: Zero-argument async callable to run.
        max_attempts: Maximum number of attempts (>= 1).
        base_delay: Multiplier for the exponential wait between attempts.
        max_delay: Upper bound for a single wait.
        retry_on: Exception type(s) that trigger another attempt. Anything
            else propagates immediately.

    Returns:
        The result from operation if successful.

    Raises:
        RetryExhaustedError: If all attempts fail with a retryable exception.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=base_delay, max=max_delay),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry,
        reraise=True,
    )

    try:
        return await retrying(operation)
    except retry_on as e:
        raise RetryExhaustedError(
            f"Operation failed after {max_attempts} attempts",
            attempts=max_attempts,
            final_exception=e,
        ) from e
