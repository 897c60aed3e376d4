"""Retry and polling helpers using tenacity.

Catalog queries are never retried. These helpers serve the migration
workflow, which has to wait for asynchronous platform operations
(provisioning, task runs) and tolerate flaky read-only cf commands.
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
    wait_fixed,
)

from mysql_tools.client.exceptions import CommandError, MigrationError
from mysql_tools.utils.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def retry_on_command_error(
    max_attempts: int = 3, min_wait: int = 1, max_wait: int = 10
) -> Callable[[F], F]:
    """Retry decorator for idempotent cf commands.

    When the decorated function is a method of an object with a ``_sleep``
    attribute, waits between attempts go through that callable.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time in seconds
        max_wait: Maximum wait time in seconds

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: F) -> F:
        def _log_retry(retry_state: Any) -> None:
            logger.warning(
                "command_retrying",
                function=func.__name__,
                attempt=retry_state.attempt_number,
                max_attempts=max_attempts,
                error=str(retry_state.outcome.exception()),
            )

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            sleep = getattr(args[0], "_sleep", None) if args else None
            retryer = Retrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
                retry=retry_if_exception_type(CommandError),
                before_sleep=_log_retry,
                reraise=True,
                sleep=sleep or time.sleep,
            )
            return retryer(func, *args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def wait_until(
    condition: Callable[[], bool],
    description: str,
    timeout: float,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll ``condition`` until it returns True.

    Exceptions raised by ``condition`` are not retried; they propagate
    immediately.

    Args:
        condition: Callable returning True once the awaited state is reached
        description: What is being waited for (used in logs and errors)
        timeout: Maximum seconds to wait
        interval: Seconds between polls
        sleep: Sleep function

    Raises:
        MigrationError: If the timeout expires first
    """
    retryer = Retrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda done: not done),
        sleep=sleep,
    )

    logger.debug("waiting", description=description, timeout=timeout, interval=interval)

    try:
        retryer(condition)
    except RetryError as e:
        logger.error("wait_timed_out", description=description, timeout=timeout)
        raise MigrationError(f"Timed out after {timeout}s waiting for {description}") from e
