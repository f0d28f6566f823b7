"""Bounded polling used by every wait in the harness.

The overlay re-renders asynchronously after input events, so waits sample the
live page repeatedly instead of sleeping for a fixed latency. Each iteration
performs one complete sample before the predicate is evaluated; samples never
overlap.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import FatalSampleError, PollTimeoutError
from .trace import HarnessTrace

log = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_INTERVAL_MS = 200


async def poll_until(
    sample: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    *,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    interval_ms: int = DEFAULT_INTERVAL_MS,
    subject: str,
    description: str = "Condition was not satisfied",
    trace: Optional[HarnessTrace] = None,
) -> T:
    """Sample until ``predicate`` accepts a value or the deadline passes.

    Exceptions raised by ``sample`` count as "not yet satisfied" unless they
    derive from :class:`FatalSampleError`, which propagates immediately. At
    least one sample is always taken.
    """

    started = time.monotonic()
    deadline = started + max(timeout_ms, 0) / 1000
    interval = max(interval_ms, 0) / 1000
    attempts = 0
    last_value: Optional[T] = None
    last_error: Optional[BaseException] = None

    while True:
        attempts += 1
        try:
            value = await sample()
        except FatalSampleError as exc:
            _record(trace, description, subject, "error", attempts, started, error=str(exc))
            raise
        except Exception as exc:
            log.debug("Sample %d for %s failed: %s", attempts, subject, exc)
            last_error = exc
        else:
            last_value = value
            last_error = None
            if predicate(value):
                _record(trace, description, subject, "satisfied", attempts, started)
                return value

        if time.monotonic() + interval >= deadline:
            break
        await asyncio.sleep(interval)

    error = PollTimeoutError(
        subject,
        description,
        timeout_ms=timeout_ms,
        attempts=attempts,
        last_value=last_value,
        last_error=last_error,
    )
    _record(trace, description, subject, "timeout", attempts, started, error=str(error))
    raise error


def _record(
    trace: Optional[HarnessTrace],
    description: str,
    subject: str,
    outcome: str,
    attempts: int,
    started: float,
    *,
    error: Optional[str] = None,
) -> None:
    if trace is None:
        return
    trace.log_event(
        operation="poll",
        subject=subject,
        outcome=outcome,
        attempts=attempts,
        elapsed_ms=(time.monotonic() - started) * 1000,
        error=error,
        metadata={"description": description},
    )
