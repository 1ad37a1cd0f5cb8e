"""Fixed-interval polling.

Replaces event notifications with a repeated status check: the
condition is called every ``interval`` seconds until it returns True.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from tenacity import (
    RetryCallState,
    RetryError,
    retry,
    retry_if_result,
    stop_after_attempt,
    stop_never,
    wait_fixed,
)

from .constants import POLL_INTERVAL, POLL_MAX_ATTEMPTS
from .exceptions import PollTimeoutError


def _not_ready(ready: bool) -> bool:
    return not ready


def wait_for(
    condition: Callable[[], bool],
    *,
    interval: float = POLL_INTERVAL,
    max_attempts: int | None = POLL_MAX_ATTEMPTS,
    description: str = "condition",
) -> None:
    """Block until ``condition`` returns True.

    Args:
        condition: Zero-argument check, called once per attempt.
        interval: Seconds to sleep between attempts.
        max_attempts: Attempts before giving up. None polls forever.
        description: Used in log lines and the timeout error.

    Raises:
        PollTimeoutError: If ``max_attempts`` is exhausted.

    Exceptions raised by ``condition`` are not retried; they propagate.
    """

    def _log_attempt(state: RetryCallState) -> None:
        logger.debug(f"Waiting for {description} (attempt {state.attempt_number})")

    @retry(
        stop=stop_after_attempt(max_attempts) if max_attempts is not None else stop_never,
        wait=wait_fixed(interval),
        retry=retry_if_result(_not_ready),
        before_sleep=_log_attempt,
    )
    def _poll() -> bool:
        return condition()

    try:
        _poll()
    except RetryError as e:
        raise PollTimeoutError(description, max_attempts or 0) from e
