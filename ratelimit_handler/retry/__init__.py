"""Retry module for rate limited HTTP and backend calls with exponential backoff."""

from .config import RetryConfig
from .exceptions import (
    ErrorKind,
    RateLimitHandlerError,
    RateLimitError,
    NonRetryableError,
    RetryExhaustedError,
    CancellationError,
)
from .classifier import (
    RATE_LIMIT_STATUS,
    is_rate_limit_error,
    classify_error,
    parse_retry_after,
    get_retry_after,
)
from .backoff import BackoffCalculator, BackoffWaitStrategy
from .throttle import Throttler
from .waiting import cancellable_sleep, wait_for_rate_limit
from .stats import AttemptOutcome, ExecutionAttempt, StatsRegistry, StatsSnapshot
from .tenacity_base import get_async_retrying
from .executor import RetryExecutor
from .adapters import (
    RateLimitHandler,
    RateLimitedBackendClient,
    get_url_identifier,
    raise_for_rate_limit,
)
from .decorators import with_rate_limit_retry

__all__ = [
    "RetryConfig",
    "ErrorKind",
    "RateLimitHandlerError",
    "RateLimitError",
    "NonRetryableError",
    "RetryExhaustedError",
    "CancellationError",
    "RATE_LIMIT_STATUS",
    "is_rate_limit_error",
    "classify_error",
    "parse_retry_after",
    "get_retry_after",
    "BackoffCalculator",
    "BackoffWaitStrategy",
    "Throttler",
    "cancellable_sleep",
    "wait_for_rate_limit",
    "AttemptOutcome",
    "ExecutionAttempt",
    "StatsRegistry",
    "StatsSnapshot",
    "get_async_retrying",
    "RetryExecutor",
    "RateLimitHandler",
    "RateLimitedBackendClient",
    "get_url_identifier",
    "raise_for_rate_limit",
    "with_rate_limit_retry",
]

__version__ = "0.1.0"
