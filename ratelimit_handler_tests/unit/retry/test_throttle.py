"""Tests for per-identifier throttling and cancellable waits."""

import asyncio
import time

import pytest

from ratelimit_handler.retry import CancellationError, Throttler, cancellable_sleep
from ratelimit_handler.retry.waiting import check_cancelled, deadline_from_timeout, wait_for_rate_limit


class TestThrottler:
    """Test Throttler spacing."""

    @pytest.mark.asyncio
    async def test_first_call_does_not_wait(self):
        throttler = Throttler(min_interval=100)
        started = time.monotonic()
        waited = await throttler.throttle("api.example.com/a")
        assert waited == 0.0
        assert time.monotonic() - started < 0.05

    @pytest.mark.asyncio
    async def test_consecutive_calls_are_spaced(self):
        """Test that calls sharing an identifier are at least min_interval apart."""
        throttler = Throttler(min_interval=50)
        await throttler.throttle("same")
        first = throttler.last_request_times()["same"]
        await throttler.throttle("same")
        second = throttler.last_request_times()["same"]
        assert second - first >= 0.049

    @pytest.mark.asyncio
    async def test_concurrent_callers_cannot_share_a_slot(self):
        """Test that near-simultaneous callers are serialized."""
        throttler = Throttler(min_interval=50)
        stamps = []

        async def call():
            await throttler.throttle("shared")
            stamps.append(time.monotonic())

        await asyncio.gather(call(), call(), call())
        stamps.sort()
        assert stamps[1] - stamps[0] >= 0.045
        assert stamps[2] - stamps[1] >= 0.045

    @pytest.mark.asyncio
    async def test_identifiers_are_independent(self):
        """Test that different identifiers never delay each other."""
        throttler = Throttler(min_interval=200)
        await throttler.throttle("a")
        started = time.monotonic()
        waited = await throttler.throttle("b")
        assert waited == 0.0
        assert time.monotonic() - started < 0.1

    @pytest.mark.asyncio
    async def test_timestamps_monotonic(self):
        throttler = Throttler(min_interval=0)
        previous = 0.0
        for _ in range(5):
            await throttler.throttle("id")
            current = throttler.last_request_times()["id"]
            assert current >= previous
            previous = current

    @pytest.mark.asyncio
    async def test_reset_clears_timestamps(self):
        throttler = Throttler(min_interval=1000)
        await throttler.throttle("id")
        throttler.reset()
        assert throttler.last_request_times() == {}
        assert await throttler.throttle("id") == 0.0

    @pytest.mark.asyncio
    async def test_cancel_during_throttle_wait(self):
        """Test that a cancel signal aborts the spacing wait."""
        throttler = Throttler(min_interval=5000)
        await throttler.throttle("id")
        first = throttler.last_request_times()["id"]

        cancel_event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, cancel_event.set)
        with pytest.raises(CancellationError):
            await throttler.throttle("id", cancel_event=cancel_event)

        # Cancelled call must not claim the slot
        assert throttler.last_request_times()["id"] == first

    @pytest.mark.asyncio
    async def test_preset_event_stops_first_call(self):
        """Test that an already-set event aborts even when no wait is needed."""
        throttler = Throttler(min_interval=0)
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(CancellationError) as exc_info:
            await throttler.throttle("id", cancel_event=cancel_event)

        assert exc_info.value.waited == 0.0
        assert throttler.last_request_times() == {}

    @pytest.mark.asyncio
    async def test_passed_deadline_stops_first_call(self):
        throttler = Throttler(min_interval=100)

        with pytest.raises(CancellationError):
            await throttler.throttle("id", deadline=time.monotonic() - 1)
        assert throttler.last_request_times() == {}

    @pytest.mark.asyncio
    async def test_reset_drops_idle_locks(self):
        throttler = Throttler(min_interval=0)
        for identifier in ("a", "b", "c"):
            await throttler.throttle(identifier)
        assert set(throttler._locks) == {"a", "b", "c"}

        throttler.reset()

        assert throttler._locks == {}

    @pytest.mark.asyncio
    async def test_reset_keeps_held_locks(self):
        """Test that a lock still held by a caller survives reset."""
        throttler = Throttler(min_interval=0)
        await throttler.throttle("idle")
        held = throttler._lock_for("busy")
        await held.acquire()
        try:
            throttler.reset()
            assert throttler._locks == {"busy": held}
        finally:
            held.release()


class TestCheckCancelled:
    """Test check_cancelled."""

    def test_nothing_to_check(self):
        check_cancelled()

    def test_unset_event_and_future_deadline(self):
        check_cancelled(asyncio.Event(), time.monotonic() + 60)

    def test_set_event_raises(self):
        cancel_event = asyncio.Event()
        cancel_event.set()
        with pytest.raises(CancellationError, match="cancelled"):
            check_cancelled(cancel_event)

    def test_passed_deadline_raises(self):
        with pytest.raises(CancellationError, match="Deadline"):
            check_cancelled(deadline=time.monotonic())


class TestCancellableSleep:
    """Test cancellable_sleep."""

    @pytest.mark.asyncio
    async def test_plain_sleep(self):
        started = time.monotonic()
        await cancellable_sleep(0.02)
        assert time.monotonic() - started >= 0.015

    @pytest.mark.asyncio
    async def test_event_already_set(self):
        cancel_event = asyncio.Event()
        cancel_event.set()
        with pytest.raises(CancellationError):
            await cancellable_sleep(1.0, cancel_event=cancel_event)

    @pytest.mark.asyncio
    async def test_event_fires_mid_wait(self):
        cancel_event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, cancel_event.set)
        started = time.monotonic()
        with pytest.raises(CancellationError) as exc_info:
            await cancellable_sleep(5.0, cancel_event=cancel_event)
        assert time.monotonic() - started < 1.0
        assert exc_info.value.waited < 1.0

    @pytest.mark.asyncio
    async def test_unfired_event_lets_wait_finish(self):
        cancel_event = asyncio.Event()
        await cancellable_sleep(0.01, cancel_event=cancel_event)

    @pytest.mark.asyncio
    async def test_deadline_cuts_wait_short(self):
        started = time.monotonic()
        with pytest.raises(CancellationError, match="Deadline"):
            await cancellable_sleep(5.0, deadline=deadline_from_timeout(0.02))
        assert time.monotonic() - started < 1.0

    @pytest.mark.asyncio
    async def test_deadline_beyond_wait(self):
        await cancellable_sleep(0.01, deadline=deadline_from_timeout(5.0))

    def test_no_timeout_means_no_deadline(self):
        assert deadline_from_timeout(None) is None


class TestWaitForRateLimit:
    """Test wait_for_rate_limit."""

    @pytest.mark.asyncio
    async def test_waits_requested_seconds(self):
        started = time.monotonic()
        await wait_for_rate_limit(0.01)
        assert time.monotonic() - started >= 0.005
