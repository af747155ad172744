"""Per-identifier request throttling.

Concurrency model: one asyncio event loop. The spacing check awaits a
sleep, so each identifier gets its own asyncio.Lock; the timestamp is
written before the lock is released. Not safe to share across threads.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from .waiting import cancellable_sleep, check_cancelled

logger = logging.getLogger(__name__)


class Throttler:
    """Enforces a minimum interval between calls sharing an identifier.

    Args:
        min_interval: Minimum spacing in milliseconds
        clock: Monotonic clock returning seconds

    Attributes:
        min_interval: Minimum spacing in milliseconds
    """

    def __init__(self, min_interval: float = 100, clock: Callable[[], float] = time.monotonic):
        self.min_interval = min_interval
        self._clock = clock
        self._last_request: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, identifier: str) -> asyncio.Lock:
        lock = self._locks.get(identifier)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[identifier] = lock
        return lock

    async def throttle(
        self,
        identifier: str,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> float:
        """Wait until ``identifier`` may issue its next request.

        Args:
            identifier: Bucket key, typically host + path
            cancel_event: Aborts the wait once set
            deadline: Monotonic deadline for the wait

        Returns:
            Seconds spent waiting

        Raises:
            CancellationError: If cancelled or the deadline passes before or during the wait
        """
        check_cancelled(cancel_event, deadline)
        async with self._lock_for(identifier):
            now = self._clock()
            last = self._last_request.get(identifier)
            wait_time = 0.0
            if last is not None:
                elapsed_ms = (now - last) * 1000
                if elapsed_ms < self.min_interval:
                    wait_time = (self.min_interval - elapsed_ms) / 1000
                    logger.debug(f"Throttling '{identifier}' for {wait_time * 1000:.0f}ms")
                    await cancellable_sleep(wait_time, cancel_event=cancel_event, deadline=deadline)

            # Never move a timestamp backwards, even with a coarse clock
            self._last_request[identifier] = max(self._clock(), last or 0.0)
            return wait_time

    def last_request_times(self) -> Dict[str, float]:
        """Copy of identifier -> last request timestamp."""
        return dict(self._last_request)

    def reset(self) -> None:
        """Forget every recorded timestamp and drop idle locks."""
        # Held locks stay: a caller may still be waiting on one
        self._last_request.clear()
        self._locks = {
            identifier: lock for identifier, lock in self._locks.items() if lock.locked()
        }
