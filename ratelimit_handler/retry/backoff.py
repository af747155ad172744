"""Exponential backoff delays with jitter."""

import math
import random
from typing import Callable, Optional

import tenacity

from .classifier import get_retry_after
from .config import RetryConfig


class BackoffCalculator:
    """Computes the wait before the next retry, in milliseconds.

    Server hints win: a positive Retry-After is used as-is (capped at
    max_delay). Otherwise the delay grows by backoff_multiplier per retry,
    gets up to jitter_ratio of random jitter, and is capped at max_delay.
    """

    def __init__(self, config: RetryConfig, rng: Callable[[], float] = random.random):
        self.config = config
        self._rng = rng

    def base_delay_for(self, attempt: int) -> float:
        """Jitter-free delay for a 1-indexed retry attempt."""
        exponent = max(attempt - 1, 0)
        try:
            delay = self.config.base_delay * math.pow(self.config.backoff_multiplier, exponent)
        except OverflowError:
            delay = math.inf
        return min(delay, self.config.max_delay)

    def calculate_delay(self, attempt: int, retry_after: Optional[float] = None) -> int:
        """Calculate the delay before retry number ``attempt``.

        Args:
            attempt: Retries already made, starting at 1
            retry_after: Server-provided wait in seconds, if any

        Returns:
            Delay in milliseconds within [0, max_delay]
        """
        if retry_after is not None and retry_after > 0:
            return int(min(retry_after * 1000, self.config.max_delay))

        delay = self.base_delay_for(attempt)
        jitter = self._rng() * self.config.jitter_ratio * delay
        return int(min(math.floor(delay + jitter), self.config.max_delay))


class BackoffWaitStrategy:
    """Tenacity wait strategy backed by a BackoffCalculator.

    Honours the ``retry_after`` hint carried by the last rate limit error.
    """

    def __init__(self, calculator: BackoffCalculator):
        self.calculator = calculator

    def __call__(self, retry_state: tenacity.RetryCallState) -> float:
        """Return the wait in seconds, as tenacity expects."""
        retry_after = None
        if retry_state.outcome is not None and retry_state.outcome.failed:
            retry_after = get_retry_after(retry_state.outcome.exception())

        delay_ms = self.calculator.calculate_delay(retry_state.attempt_number, retry_after)
        return delay_ms / 1000.0
