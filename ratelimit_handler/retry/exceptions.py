"""Custom exceptions for the retry module."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of failure kinds the retry loop distinguishes."""

    RATE_LIMIT = "rate_limit"
    NON_RETRYABLE = "non_retryable"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class RateLimitHandlerError(Exception):
    """Base exception for rate limit handling errors."""

    kind: ErrorKind = ErrorKind.NON_RETRYABLE

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class RateLimitError(RateLimitHandlerError):
    """Raised when a server signals a rate limit (HTTP 429)."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        status: int = 429,
        retry_after: Optional[int] = None,
    ):
        super().__init__(message)
        self.status = status
        self.retry_after = retry_after

    def __str__(self) -> str:
        if self.retry_after is not None:
            return f"{self.message} (status: {self.status}, retry_after: {self.retry_after}s)"
        return f"{self.message} (status: {self.status})"


class NonRetryableError(RateLimitHandlerError):
    """Marks a failure that must never be retried, whatever its status."""

    kind = ErrorKind.NON_RETRYABLE

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RetryExhaustedError(RateLimitHandlerError):
    """Raised when all retry attempts have been spent on rate limit errors."""

    kind = ErrorKind.EXHAUSTED

    def __init__(self, attempts: int, max_retries: int, last_error: Exception):
        self.attempts = attempts
        self.max_retries = max_retries
        self.last_error = last_error
        last_message = getattr(last_error, "message", None) or str(last_error)
        super().__init__(
            f"Rate limit exceeded after {max_retries} retries. Last error: {last_message}"
        )

    def __str__(self) -> str:
        return f"{self.message} (attempts: {self.attempts})"


class CancellationError(RateLimitHandlerError):
    """Raised when a deadline or cancel signal fires during a throttle or backoff wait."""

    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Request cancelled while waiting", waited: float = 0.0):
        super().__init__(message)
        self.waited = waited
