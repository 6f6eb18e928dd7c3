from __future__ import annotations

"""Retry helper shared by the archive client loops.

Both loops use the same classification: :class:`RetryableTransportError`
is attempted again, anything else propagates unchanged.  They differ only in
the wait strategy (fixed for whole-request retries, exponential for job
polling).
"""

import logging
import threading
import time
from typing import Callable, Optional, TypeVar

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)
from tenacity.wait import wait_base

from archivebot.core.errors import ArchiveCancelled, RetriesExhausted, RetryableTransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fixed_delay(seconds: float) -> wait_base:
    return wait_fixed(seconds)


def backoff_delay(initial: float, maximum: float) -> wait_base:
    """Doubling delay starting at *initial* seconds, capped at *maximum*."""
    return wait_exponential(multiplier=initial, min=initial, max=maximum)


def call_with_retry(
    func: Callable[[], T],
    *,
    attempts: int,
    wait: wait_base,
    cancel: Optional[threading.Event] = None,
    sleep: Optional[Callable[[float], None]] = None,
    label: str = "archive request",
) -> T:
    """Run *func* up to *attempts* times (at least once).

    Raises :class:`RetriesExhausted` with the last retryable error once the
    budget is spent, and :class:`ArchiveCancelled` if *cancel* gets set.
    """
    total = max(attempts, 1)
    if sleep is None:
        # Event.wait returns early when the event is set
        sleep = cancel.wait if cancel is not None else time.sleep

    def _attempt() -> T:
        if cancel is not None and cancel.is_set():
            raise ArchiveCancelled(f"{label} cancelled")
        return func()

    def _log_retry(retry_state) -> None:  # noqa: ANN001
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.debug(f"{label}: attempt {retry_state.attempt_number}/{total} failed, retrying: {exc}")

    retrying = Retrying(
        stop=stop_after_attempt(total),
        wait=wait,
        retry=retry_if_exception_type(RetryableTransportError),
        sleep=sleep,
        before_sleep=_log_retry,
        reraise=False,
    )
    try:
        return retrying(_attempt)
    except RetryError as exc:
        last = exc.last_attempt.exception()
        raise RetriesExhausted(last, total) from last
