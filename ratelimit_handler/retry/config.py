"""Retry configuration settings."""

from dataclasses import dataclass, field

from ..config import get_rate_limit_config, is_rate_limiting_enabled


def _skip_from_env() -> bool:
    return not is_rate_limiting_enabled()


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for rate limit retries with exponential backoff.

    Delays are expressed in milliseconds.

    Attributes:
        max_retries: Retries allowed after the initial attempt (default: 5)
        base_delay: Delay before the first retry (default: 1000)
        max_delay: Cap for any single delay (default: 30000)
        backoff_multiplier: Growth factor between retries (default: 2.0)
        skip_rate_limiting: Bypass throttling and retries entirely
            (default: on unless ENABLE_RATE_LIMITING is "true")
        jitter_ratio: Upper bound of random jitter as a fraction of the delay (default: 0.1)
        min_interval: Minimum spacing between calls sharing an identifier (default: 100)
    """

    max_retries: int = 5
    base_delay: float = 1000
    max_delay: float = 30000
    backoff_multiplier: float = 2.0
    skip_rate_limiting: bool = field(default_factory=_skip_from_env)
    jitter_ratio: float = 0.1
    min_interval: float = 100

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")
        if self.max_delay < 0:
            raise ValueError(f"max_delay must be >= 0, got {self.max_delay}")
        if self.backoff_multiplier <= 1:
            raise ValueError(f"backoff_multiplier must be > 1, got {self.backoff_multiplier}")
        if not 0 <= self.jitter_ratio <= 1:
            raise ValueError(f"jitter_ratio must be within [0, 1], got {self.jitter_ratio}")
        if self.min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {self.min_interval}")

    @classmethod
    def from_env(cls, **overrides) -> "RetryConfig":
        """Build a configuration from RETRY_ATTEMPTS, TEST_TIMEOUT and ENABLE_RATE_LIMITING."""
        values = get_rate_limit_config()
        values.update(overrides)
        return cls(**values)
