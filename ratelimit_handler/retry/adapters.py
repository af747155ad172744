"""HTTP and backend client adapters with built-in rate limit handling.

This module provides ready-to-use wrappers that translate HTTP 429
responses into RateLimitError so the retry executor can back off.
"""

import asyncio
import logging
from typing import Any, Optional
from urllib.parse import urlsplit

import requests

from ..config import (
    AUTH_MAX_RETRIES,
    BACKEND_AUTH_IDENTIFIER,
    BACKEND_QUERY_IDENTIFIER,
    DEFAULT_FETCH_TIMEOUT_S,
)
from .classifier import RATE_LIMIT_STATUS, parse_retry_after
from .config import RetryConfig
from .exceptions import RateLimitError
from .executor import Operation, RetryExecutor, T

logger = logging.getLogger(__name__)


def get_url_identifier(url: str) -> str:
    """Bucket key for a URL: host plus path.

    Args:
        url: Absolute request URL

    Returns:
        "host/path", or the raw URL when it has no parsable host
    """
    try:
        parsed = urlsplit(url)
    except ValueError:
        return url
    if not parsed.hostname:
        return url
    return f"{parsed.hostname}{parsed.path or '/'}"


def raise_for_rate_limit(response: requests.Response) -> requests.Response:
    """Raise RateLimitError for a 429 response, return anything else unchanged."""
    if response.status_code != RATE_LIMIT_STATUS:
        return response

    retry_after = parse_retry_after(response.headers.get("retry-after"))
    raise RateLimitError(
        message=f"Rate limit exceeded: {response.reason}",
        status=response.status_code,
        retry_after=retry_after,
    )


class RateLimitHandler(RetryExecutor):
    """Retry executor with an HTTP fetch helper.

    Args:
        config: Retry configuration
        session: requests.Session used for fetches (a new one if omitted)
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        session: Optional[requests.Session] = None,
        **kwargs: Any,
    ):
        super().__init__(config, **kwargs)
        self.session = session or requests.Session()

    async def fetch_with_rate_limit(
        self,
        url: str,
        method: str = "GET",
        cancel_event: Optional[asyncio.Event] = None,
        max_retries: Optional[int] = None,
        deadline_timeout: Optional[float] = None,
        **options: Any,
    ) -> requests.Response:
        """Make an HTTP request, retrying while the server answers 429.

        The blocking request runs in a worker thread; throttle and backoff
        waits stay on the event loop.

        Args:
            url: Request URL
            method: HTTP method (default: GET)
            cancel_event: Aborts throttle and backoff waits once set
            max_retries: Retry budget override
            deadline_timeout: Seconds after which throttle and backoff waits abort;
                separate from the per-request ``timeout`` passed to requests
            **options: Passed to requests.Session.request (timeout defaults to 30s)

        Returns:
            The response, for any status other than 429

        Raises:
            RetryExhaustedError: If the server kept answering 429
            CancellationError: If cancelled or past the deadline during a wait
            requests.RequestException: On connection errors, unchanged

        Examples:
            handler = RateLimitHandler(RetryConfig(skip_rate_limiting=False))
            response = await handler.fetch_with_rate_limit(
                "https://api.example.com/surveys", params={"page": 2}
            )
        """
        identifier = get_url_identifier(url)
        options.setdefault("timeout", DEFAULT_FETCH_TIMEOUT_S)

        async def _fetch() -> requests.Response:
            response = await asyncio.to_thread(self.session.request, method, url, **options)
            return raise_for_rate_limit(response)

        return await self.execute_with_retry(
            _fetch,
            identifier=identifier,
            max_retries=max_retries,
            cancel_event=cancel_event,
            timeout=deadline_timeout,
        )

    def close(self) -> None:
        self.session.close()


class RateLimitedBackendClient:
    """Wraps a backend client's query and auth calls with rate limit handling.

    Args:
        client: The underlying backend client, exposed as ``client``
        handler: Executor to use (one is built from ``config`` if omitted)
        config: Retry configuration for a newly built executor
    """

    def __init__(
        self,
        client: Any,
        handler: Optional[RetryExecutor] = None,
        config: Optional[RetryConfig] = None,
    ):
        self.client = client
        self.handler = handler or RetryExecutor(config)

    async def query(
        self,
        query_fn: Operation,
        max_retries: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """Run a data query with the configured retry budget."""
        return await self.handler.execute_with_retry(
            query_fn,
            identifier=BACKEND_QUERY_IDENTIFIER,
            max_retries=max_retries,
            cancel_event=cancel_event,
            timeout=timeout,
        )

    async def auth(
        self,
        auth_fn: Operation,
        max_retries: int = AUTH_MAX_RETRIES,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """Run an auth call; fails fast with a smaller retry budget.

        ``cancel_event`` and ``timeout`` abort throttle and backoff waits,
        as in RetryExecutor.execute_with_retry.
        """
        return await self.handler.execute_with_retry(
            auth_fn,
            identifier=BACKEND_AUTH_IDENTIFIER,
            max_retries=max_retries,
            cancel_event=cancel_event,
            timeout=timeout,
        )
