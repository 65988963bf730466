"""
Bounded retry with backoff for every flaky step of the pipeline:
navigation, screenshots, section clips and oracle calls.

`execute()` never raises for a failed operation. It returns a `RetryFailed`
marker and the caller picks the fallback.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional


Backoff = Callable[[int], float]


@dataclass(frozen=True)
class RetryFailed:
    """Marker returned when every attempt of an operation failed."""
    label: str
    attempts: int
    last_error: Optional[BaseException] = None

    @property
    def reason(self) -> str:
        if self.last_error is None:
            return "no attempts made"
        return f"{type(self.last_error).__name__}: {self.last_error}"


def constant_backoff(delay: float) -> Backoff:
    """Same delay before every retry."""
    return lambda attempt: delay


def linear_backoff(unit: float) -> Backoff:
    """Delay grows by `unit` per failed attempt: unit, 2*unit, 3*unit..."""
    return lambda attempt: attempt * unit


async def execute(
    operation: Callable[[], Awaitable],
    max_attempts: int,
    backoff: Backoff,
    label: str = "operation",
    sleep: Callable[[float], Awaitable] = asyncio.sleep,
):
    """
    Run `operation` up to `max_attempts` times.

    Args:
        operation: zero-argument coroutine function. Raising any Exception
            counts as a failed attempt.
        max_attempts: upper bound on calls to `operation`.
        backoff: maps the 1-based number of the failed attempt to the delay
            in seconds before the next one. No delay follows the last attempt.
        label: tag used in log lines and on the failure marker.
        sleep: injectable for tests.

    Returns:
        The operation's result, or a RetryFailed marker.
    """
    last_error = None
    attempts = max(0, max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            if attempt < attempts:
                wait = backoff(attempt)
                print(f"  [{label}] Attempt {attempt}/{attempts} failed: {e}, retrying in {wait:g}s...")
                await sleep(wait)
            else:
                print(f"  [{label}] Attempt {attempt}/{attempts} failed: {e}, giving up")

    return RetryFailed(label=label, attempts=attempts, last_error=last_error)
