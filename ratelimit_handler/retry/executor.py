"""Retry executor combining throttling, classification and backoff."""

import asyncio
import functools
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import tenacity

from ..config import DEFAULT_IDENTIFIER
from .backoff import BackoffCalculator
from .config import RetryConfig
from .exceptions import CancellationError, RetryExhaustedError
from .stats import AttemptOutcome, ExecutionAttempt, StatsRegistry, StatsSnapshot
from .tenacity_base import get_async_retrying
from .throttle import Throttler
from .waiting import cancellable_sleep, deadline_from_timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


class RetryExecutor:
    """Runs async operations with throttling and rate limit retries.

    Only rate limit errors are retried. Every other failure propagates on
    first occurrence. Each executor owns its throttle state and counters;
    construct one per backend and pass it to the code that needs it.

    Args:
        config: Retry configuration (defaults read ENABLE_RATE_LIMITING)
        throttler: Optional throttler, built from config.min_interval if omitted
        calculator: Optional backoff calculator, built from config if omitted
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        throttler: Optional[Throttler] = None,
        calculator: Optional[BackoffCalculator] = None,
    ):
        self.config = config or RetryConfig()
        self.throttler = throttler or Throttler(min_interval=self.config.min_interval)
        self.calculator = calculator or BackoffCalculator(self.config)
        self.stats = StatsRegistry(self.throttler)

        logger.info(
            f"{type(self).__name__} initialized: max_retries={self.config.max_retries}, "
            f"base_delay={self.config.base_delay}ms, max_delay={self.config.max_delay}ms, "
            f"multiplier={self.config.backoff_multiplier}, "
            f"skip_rate_limiting={self.config.skip_rate_limiting}"
        )

    async def execute_with_retry(
        self,
        operation: Operation,
        identifier: Optional[str] = None,
        max_retries: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """Execute an async operation, retrying rate limit failures.

        Args:
            operation: Zero-argument coroutine function to run
            identifier: Throttle/retry bucket (default: "default")
            max_retries: Retry budget override; None uses the configured value
            cancel_event: Aborts throttle and backoff waits once set
            timeout: Seconds after which throttle and backoff waits abort

        Returns:
            The operation's result

        Raises:
            RetryExhaustedError: If every attempt hit a rate limit
            CancellationError: If cancelled or timed out during a wait
            Exception: Any non-rate-limit error from the operation, unchanged
        """
        if self.config.skip_rate_limiting:
            return await operation()

        identifier = identifier or DEFAULT_IDENTIFIER
        budget = self.config.max_retries if max_retries is None else max_retries
        if budget < 0:
            raise ValueError(f"max_retries must be >= 0, got {budget}")

        deadline = deadline_from_timeout(timeout)
        sleep = functools.partial(cancellable_sleep, cancel_event=cancel_event, deadline=deadline)

        retrying = get_async_retrying(
            self.calculator,
            budget,
            sleep=sleep,
            before_sleep=self._log_backoff,
        )

        attempt_number = 1
        try:
            async for attempt in retrying:
                attempt_number = attempt.retry_state.attempt_number
                with attempt:
                    await self.throttler.throttle(
                        identifier, cancel_event=cancel_event, deadline=deadline
                    )
                    self.stats.record_request(identifier)
                    result = await operation()
        except CancellationError:
            self._log_attempt(
                ExecutionAttempt(
                    attempt_number=attempt_number,
                    delay_applied=0,
                    outcome=AttemptOutcome.CANCELLED,
                )
            )
            raise
        except tenacity.RetryError as e:
            last_error = e.last_attempt.exception()
            logger.error(
                f"Rate limit retries exhausted for '{identifier}' after "
                f"{e.last_attempt.attempt_number} attempts: {last_error}"
            )
            raise RetryExhaustedError(
                attempts=e.last_attempt.attempt_number,
                max_retries=budget,
                last_error=last_error,
            ) from last_error
        except Exception:
            self._log_attempt(
                ExecutionAttempt(
                    attempt_number=attempt_number,
                    delay_applied=0,
                    outcome=AttemptOutcome.FAILED,
                )
            )
            raise

        self.stats.clear_failures(identifier)
        self._log_attempt(
            ExecutionAttempt(
                attempt_number=attempt_number,
                delay_applied=0,
                outcome=AttemptOutcome.SUCCEEDED,
            )
        )
        return result

    def _log_backoff(self, retry_state: tenacity.RetryCallState) -> None:
        delay_ms = round(retry_state.next_action.sleep * 1000) if retry_state.next_action else 0
        self._log_attempt(
            ExecutionAttempt(
                attempt_number=retry_state.attempt_number,
                delay_applied=delay_ms,
                outcome=AttemptOutcome.RATE_LIMITED,
            )
        )

    def _log_attempt(self, attempt: ExecutionAttempt) -> None:
        logger.debug(
            f"Attempt {attempt.attempt_number}: {attempt.outcome.value} "
            f"(delay {attempt.delay_applied}ms)"
        )

    def reset(self) -> None:
        """Reset request counters and throttle timestamps."""
        self.stats.reset()

    def get_stats(self) -> StatsSnapshot:
        """Current request statistics and configuration."""
        return self.stats.snapshot(self.config)
