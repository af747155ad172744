"""Read-only request statistics for diagnostics and tests."""

from collections import defaultdict
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from .config import RetryConfig
from .throttle import Throttler


class AttemptOutcome(str, Enum):
    """How a single attempt ended."""

    SUCCEEDED = "succeeded"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ExecutionAttempt:
    """Diagnostic record of one attempt; logged, never stored."""

    attempt_number: int
    delay_applied: int
    outcome: AttemptOutcome


class StatsSnapshot(BaseModel):
    """Point-in-time copy of handler statistics."""

    model_config = ConfigDict(frozen=True)

    request_counts: Dict[str, int] = Field(
        default_factory=dict,
        description="Attempts since the last success, per identifier",
    )
    last_request_times: Dict[str, float] = Field(
        default_factory=dict,
        description="Monotonic timestamp of the last throttled request, per identifier",
    )
    config: Dict[str, Any] = Field(..., description="Active retry configuration")


class StatsRegistry:
    """Per-identifier counters alongside the throttler's timestamps."""

    def __init__(self, throttler: Throttler):
        self._throttler = throttler
        self._request_counts: Dict[str, int] = defaultdict(int)

    def record_request(self, identifier: str) -> int:
        self._request_counts[identifier] += 1
        return self._request_counts[identifier]

    def clear_failures(self, identifier: str) -> None:
        self._request_counts[identifier] = 0

    def reset(self) -> None:
        """Clear all counters and timestamps."""
        self._request_counts.clear()
        self._throttler.reset()

    def snapshot(self, config: RetryConfig) -> StatsSnapshot:
        return StatsSnapshot(
            request_counts=dict(self._request_counts),
            last_request_times=self._throttler.last_request_times(),
            config=asdict(config),
        )
