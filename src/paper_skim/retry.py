"""Caller-side retry with exponential backoff for transient failures."""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from .errors import PaperSkimError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(exc: BaseException) -> bool:
    """Only network/timeout fetch errors and unreachable/rate-limited analysis errors."""

    return isinstance(exc, PaperSkimError) and exc.retryable


def call_with_retry(
    fn: Callable[[], T],
    attempts: int = 3,
    backoff_seconds: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call `fn`, retrying retryable pipeline errors.

    Waits `backoff_seconds`, then doubles the wait after every failure. Any
    other exception, and the last retryable one, propagates.
    """

    delay = backoff_seconds
    for attempt in range(1, max(1, attempts) + 1):
        try:
            return fn()
        except PaperSkimError as exc:
            if not exc.retryable or attempt >= attempts:
                raise
            logger.warning("Attempt %d/%d failed (%s), retrying in %.1fs", attempt, attempts, exc.kind.value, delay)
            sleep(delay)
            delay *= 2
    raise AssertionError("unreachable")
