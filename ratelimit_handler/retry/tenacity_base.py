"""Tenacity integration utilities for retry logic."""

import logging
from typing import Any, Awaitable, Callable, Optional

import tenacity
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt

from .backoff import BackoffCalculator, BackoffWaitStrategy
from .classifier import is_rate_limit_error

logger = logging.getLogger(__name__)


def get_wait_strategy(calculator: BackoffCalculator) -> BackoffWaitStrategy:
    """Create a Retry-After aware exponential jitter wait strategy.

    Args:
        calculator: BackoffCalculator holding the delay parameters

    Returns:
        Wait strategy returning seconds
    """
    return BackoffWaitStrategy(calculator)


def get_stop_strategy(max_retries: int):
    """Create stop strategy allowing the initial attempt plus ``max_retries``.

    Args:
        max_retries: Retries allowed after the first attempt

    Returns:
        Configured stop_after_attempt strategy
    """
    return stop_after_attempt(max_retries + 1)


def get_retry_strategy():
    """Create retry strategy that only retries rate limit errors."""
    return retry_if_exception(is_rate_limit_error)


def before_sleep_log(
    retry_state: tenacity.RetryCallState,
    max_retries: int,
    logger: logging.Logger = logger,
) -> None:
    """Log before each backoff sleep.

    Args:
        retry_state: Current retry state from tenacity
        max_retries: Retry budget of the call, for the log line
        logger: Logger instance to use
    """
    if retry_state.outcome is None or retry_state.next_action is None:
        return

    delay_ms = round(retry_state.next_action.sleep * 1000)
    logger.warning(
        f"Rate limit hit (attempt {retry_state.attempt_number}/{max_retries}). "
        f"Waiting {delay_ms}ms before retry..."
    )


def get_async_retrying(
    calculator: BackoffCalculator,
    max_retries: int,
    sleep: Callable[[float], Awaitable[None]],
    before_sleep: Optional[Callable[[tenacity.RetryCallState], Any]] = None,
) -> AsyncRetrying:
    """Create a complete tenacity AsyncRetrying controller.

    Non-rate-limit errors are re-raised unchanged; exhaustion surfaces as
    tenacity.RetryError for the caller to translate.

    Args:
        calculator: Backoff delay source
        max_retries: Retries allowed after the first attempt
        sleep: Awaitable sleep used between attempts
        before_sleep: Optional hook run before each sleep

    Returns:
        Configured AsyncRetrying instance
    """
    def _before_sleep(retry_state: tenacity.RetryCallState) -> None:
        before_sleep_log(retry_state, max_retries)
        if before_sleep is not None:
            before_sleep(retry_state)

    return AsyncRetrying(
        wait=get_wait_strategy(calculator),
        stop=get_stop_strategy(max_retries),
        retry=get_retry_strategy(),
        sleep=sleep,
        before_sleep=_before_sleep,
        reraise=False,
    )
