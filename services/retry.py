"""Exponential backoff for calls into the vector index."""
from __future__ import annotations

import functools
import logging
import random
import time
from collections.abc import Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    OSError,
)


def backoff_delay(attempt: int, base_delay: float, max_delay: float, jitter: bool) -> float:
    """Delay before retry number ``attempt`` (0-based), capped at ``max_delay``."""
    delay = min(base_delay * (2.0**attempt), max_delay)
    if jitter:
        # ±25% so concurrent query variants do not retry in lockstep
        delay = delay * (0.75 + random.random() * 0.5)
    return delay


def retry_with_backoff(
    max_retries: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 5.0,
    jitter: bool = True,
    retry_on: tuple[type[Exception], ...] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry the decorated function on transient errors.

    Args:
        max_retries: Attempts after the first one (0 = call once)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay
        jitter: Randomize each delay by ±25%
        retry_on: Exception types worth retrying (default: connection/timeout/OS errors)
        sleep: Sleep function (default: time.sleep)

    The last exception is re-raised once retries are exhausted.
    """
    exceptions_to_catch = retry_on or TRANSIENT_ERRORS

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions_to_catch as exc:
                    if attempt >= max_retries:
                        logger.error(
                            "[retry] %s failed after %s attempts: %s",
                            func.__name__,
                            attempt + 1,
                            exc,
                        )
                        raise
                    delay = backoff_delay(attempt, base_delay, max_delay, jitter)
                    logger.warning(
                        "[retry] %s attempt %s/%s failed: %s. Retrying in %.2fs",
                        func.__name__,
                        attempt + 1,
                        max_retries + 1,
                        exc,
                        delay,
                    )
                    (sleep or time.sleep)(delay)
                    attempt += 1

        return wrapper

    return decorator


index_retry = retry_with_backoff(max_retries=2, base_delay=0.5, max_delay=5.0)
