"""Cancellable asyncio waits used by throttling and backoff."""

import asyncio
import logging
import time
from typing import Optional

from .exceptions import CancellationError

logger = logging.getLogger(__name__)


def deadline_from_timeout(timeout: Optional[float]) -> Optional[float]:
    """Convert a relative timeout in seconds into a monotonic deadline."""
    if timeout is None:
        return None
    return time.monotonic() + timeout


def check_cancelled(
    cancel_event: Optional[asyncio.Event] = None,
    deadline: Optional[float] = None,
) -> None:
    """Raise CancellationError if the signal already fired or the deadline passed."""
    if cancel_event is not None and cancel_event.is_set():
        raise CancellationError("Request cancelled before waiting", waited=0.0)
    if deadline is not None and time.monotonic() >= deadline:
        raise CancellationError("Deadline exceeded before waiting", waited=0.0)


async def cancellable_sleep(
    seconds: float,
    cancel_event: Optional[asyncio.Event] = None,
    deadline: Optional[float] = None,
) -> None:
    """Sleep without blocking the event loop, aborting on cancel or deadline.

    Args:
        seconds: Time to wait
        cancel_event: Event that aborts the wait once set
        deadline: Monotonic time after which the wait is aborted

    Raises:
        CancellationError: If the event fires or the deadline passes first
    """
    seconds = max(seconds, 0.0)
    started = time.monotonic()

    if cancel_event is not None and cancel_event.is_set():
        raise CancellationError("Request cancelled before waiting", waited=0.0)

    budget = seconds
    expires = False
    if deadline is not None:
        remaining = deadline - started
        if remaining < seconds:
            budget = max(remaining, 0.0)
            expires = True

    if cancel_event is None:
        await asyncio.sleep(budget)
    else:
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=budget)
        except asyncio.TimeoutError:
            pass
        else:
            waited = time.monotonic() - started
            logger.info(f"Wait cancelled after {waited:.3f}s of {seconds:.3f}s")
            raise CancellationError("Request cancelled while waiting", waited=waited)

    if expires:
        waited = time.monotonic() - started
        logger.info(f"Deadline reached after {waited:.3f}s of a {seconds:.3f}s wait")
        raise CancellationError("Deadline exceeded while waiting", waited=waited)


async def wait_for_rate_limit(seconds: float = 60) -> None:
    """Wait for a server-side rate limit window to reset."""
    logger.info(f"Waiting {seconds} seconds for rate limit to reset...")
    await asyncio.sleep(seconds)
