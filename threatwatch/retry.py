"""Retry helpers with pluggable backoff."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryError(RuntimeError):
    """Raised when every attempt failed; ``__cause__`` is the last error."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


def quadratic_backoff(attempt: int) -> float:
    """1s, 4s, 9s, ... after attempt 1, 2, 3."""
    return float(attempt * attempt)


def linear_backoff(attempt: int) -> float:
    return float(attempt)


def retry_call(
    func: Callable[[], T],
    *,
    attempts: int = 3,
    backoff: Callable[[int], float] = quadratic_backoff,
    sleep: Callable[[float], None] = time.sleep,
    label: Optional[str] = None,
) -> T:
    """Call ``func`` until it succeeds or ``attempts`` calls have failed.

    No delay follows the final attempt.
    """
    name = label or getattr(func, "__name__", "operation")
    last_exc: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except Exception as e:
            last_exc = e
            if attempt == attempts:
                break
            delay = backoff(attempt)
            logger.warning(f"{name} attempt {attempt}/{attempts} failed: {e}. Retrying in {delay:.1f}s")
            sleep(delay)
    raise RetryError(f"{name} failed after {attempts} attempts: {last_exc}", attempts) from last_exc


def retry_with_backoff(
    attempts: int = 3,
    backoff: Callable[[int], float] = quadratic_backoff,
    sleep: Callable[[float], None] = time.sleep,
):
    """Decorator form of :func:`retry_call`."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            return retry_call(
                lambda: func(*args, **kwargs),
                attempts=attempts,
                backoff=backoff,
                sleep=sleep,
                label=func.__name__,
            )

        return wrapper

    return decorator
