"""Retry decorator utilities."""

import asyncio
from functools import wraps
from typing import Any, Awaitable, Callable, Optional

from .executor import RetryExecutor


def with_rate_limit_retry(
    handler: RetryExecutor,
    identifier: Optional[str] = None,
    max_retries: Optional[int] = None,
    cancel_event: Optional[asyncio.Event] = None,
    timeout: Optional[float] = None,
) -> Callable:
    """Decorator to run a coroutine function through a retry executor.

    Args:
        handler: Executor that owns throttle state and configuration
        identifier: Throttle bucket (default: the function's qualified name)
        max_retries: Retry budget override
        cancel_event: Aborts throttle and backoff waits of every call once set
        timeout: Per-call seconds after which throttle and backoff waits abort

    Returns:
        Decorated coroutine function

    Examples:
        handler = RetryExecutor(RetryConfig(max_retries=3))

        @with_rate_limit_retry(handler, identifier="surveys-api")
        async def load_survey(survey_id):
            return await client.get_survey(survey_id)
    """
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        bucket = identifier or func.__qualname__

        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await handler.execute_with_retry(
                lambda: func(*args, **kwargs),
                identifier=bucket,
                max_retries=max_retries,
                cancel_event=cancel_event,
                timeout=timeout,
            )

        return wrapper
    return decorator
