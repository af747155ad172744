"""Tests for the with_rate_limit_retry decorator."""

import asyncio

import pytest

from ratelimit_handler.retry import (
    CancellationError,
    RateLimitError,
    RetryConfig,
    RetryExecutor,
    RetryExhaustedError,
    with_rate_limit_retry,
)


@pytest.fixture
def handler():
    return RetryExecutor(
        RetryConfig(max_retries=2, base_delay=1, max_delay=10, min_interval=0, skip_rate_limiting=False)
    )


class TestWithRateLimitRetry:
    """Test with_rate_limit_retry decorator."""

    @pytest.mark.asyncio
    async def test_successful_function(self, handler):
        """Test that successful functions work without retry."""
        call_count = 0

        @with_rate_limit_retry(handler, identifier="surveys")
        async def load_survey(survey_id):
            nonlocal call_count
            call_count += 1
            return {"id": survey_id}

        assert await load_survey(7) == {"id": 7}
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retry_on_rate_limit(self, handler):
        call_count = 0

        @with_rate_limit_retry(handler)
        async def submit_response():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise RateLimitError()
            return "saved"

        assert await submit_response() == "saved"
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_exhausted(self, handler):
        @with_rate_limit_retry(handler, max_retries=1)
        async def always_limited():
            raise RateLimitError()

        with pytest.raises(RetryExhaustedError) as exc_info:
            await always_limited()
        assert exc_info.value.attempts == 2

    @pytest.mark.asyncio
    async def test_default_identifier_is_qualname(self, handler):
        @with_rate_limit_retry(handler)
        async def export_report():
            return "done"

        await export_report()
        identifiers = handler.get_stats().request_counts
        assert export_report.__wrapped__.__qualname__ in identifiers

    @pytest.mark.asyncio
    async def test_preset_cancel_event(self, handler):
        """Test that a set cancel event stops the call before the function runs."""
        cancel_event = asyncio.Event()
        cancel_event.set()
        call_count = 0

        @with_rate_limit_retry(handler, cancel_event=cancel_event)
        async def sync_users():
            nonlocal call_count
            call_count += 1

        with pytest.raises(CancellationError):
            await sync_users()
        assert call_count == 0

    @pytest.mark.asyncio
    async def test_timeout_aborts_backoff(self):
        slow_handler = RetryExecutor(
            RetryConfig(max_retries=2, base_delay=5000, max_delay=5000, min_interval=0, skip_rate_limiting=False)
        )
        call_count = 0

        @with_rate_limit_retry(slow_handler, timeout=0.02)
        async def always_limited():
            nonlocal call_count
            call_count += 1
            raise RateLimitError()

        with pytest.raises(CancellationError):
            await always_limited()
        assert call_count == 1

    def test_preserves_metadata(self, handler):
        @with_rate_limit_retry(handler)
        async def fetch_users():
            """Load users."""

        assert fetch_users.__name__ == "fetch_users"
        assert fetch_users.__doc__ == "Load users."
