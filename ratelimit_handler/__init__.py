from .retry import (
    RetryConfig,
    RetryExecutor,
    RateLimitHandler,
    RateLimitedBackendClient,
    RateLimitError,
    NonRetryableError,
    RetryExhaustedError,
    CancellationError,
)

__all__ = [
    "RetryConfig",
    "RetryExecutor",
    "RateLimitHandler",
    "RateLimitedBackendClient",
    "RateLimitError",
    "NonRetryableError",
    "RetryExhaustedError",
    "CancellationError",
]
