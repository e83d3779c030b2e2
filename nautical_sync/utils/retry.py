"""Bounded exponential-backoff retry for remote calls."""

import time
from typing import Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import (
    AuthenticationError,
    ConfigError,
    GraphQLError,
    RetryExhaustedError,
    ValidationError,
)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 1000

# Errors that will fail the same way on every attempt.
NON_RETRYABLE = (AuthenticationError, ValidationError, ConfigError, GraphQLError)


def is_retryable(error: BaseException) -> bool:
    """Return True when *error* is worth another attempt."""
    return not isinstance(error, NON_RETRYABLE)


def with_retry(
    operation: Callable[[], T],
    logger,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
    operation_name: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run *operation* with bounded exponential backoff.

    The delay before attempt ``i`` (``i >= 2``) is
    ``base_delay_ms * 2 ** (i - 2)``, without jitter. Every failed attempt
    is reported to *logger* before sleeping.

    Args:
        operation: Zero-argument callable performing the remote call
        logger: ``SyncLogger``-like collaborator
        max_attempts: Total number of attempts, including the first
        base_delay_ms: Delay before the second attempt, in milliseconds
        operation_name: Name used in log lines and errors
        sleep: Sleep function, in seconds

    Returns:
        Whatever *operation* returns on its first successful attempt

    Raises:
        RetryExhaustedError: After ``max_attempts`` retryable failures
        AuthenticationError, ValidationError, GraphQLError, ConfigError:
            Immediately, without retrying
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def _report(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        delay_ms = int(round(retry_state.next_action.sleep * 1000))
        logger.warn(
            f"{operation_name} attempt {retry_state.attempt_number}/{max_attempts} failed, "
            f"retrying in {delay_ms}ms",
            operation=operation_name,
            attempt=retry_state.attempt_number,
            error=str(error),
        )

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay_ms / 1000, exp_base=2, min=0),
        retry=retry_if_exception(is_retryable),
        before_sleep=_report,
        sleep=sleep,
    )

    try:
        return retrying(operation)
    except RetryError as e:
        last_error: Optional[BaseException] = e.last_attempt.exception()
        logger.error(
            f"{operation_name} failed after {max_attempts} attempts",
            error=last_error,
            operation=operation_name,
        )
        raise RetryExhaustedError(
            f"{operation_name} failed after {max_attempts} attempts: {last_error}",
            last_error=last_error,
            attempts=max_attempts,
        ) from last_error
