import os
import os.path

from dotenv import load_dotenv

# Load environment variables from .env file (project root)
dotenv_path = os.path.join(os.path.dirname(__file__), '..', '.env')
load_dotenv(dotenv_path=dotenv_path)

# --- Environment toggles ---
ENABLE_RATE_LIMITING_VAR = 'ENABLE_RATE_LIMITING'
RETRY_ATTEMPTS_VAR = 'RETRY_ATTEMPTS'
TEST_TIMEOUT_VAR = 'TEST_TIMEOUT'

# --- Defaults ---
DEFAULT_ENV_RETRY_ATTEMPTS = 3
DEFAULT_ENV_TIMEOUT_MS = 30000
DEFAULT_FETCH_TIMEOUT_S = 30.0
DEFAULT_IDENTIFIER = 'default'

# Backend client identifiers
BACKEND_QUERY_IDENTIFIER = 'backend-query'
BACKEND_AUTH_IDENTIFIER = 'backend-auth'
AUTH_MAX_RETRIES = 3

# Path to .env file for configuration
ENV_PATH = dotenv_path


def is_rate_limiting_enabled() -> bool:
    """Whether rate limit handling is switched on for this environment."""
    return os.environ.get(ENABLE_RATE_LIMITING_VAR) == 'true'


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def get_rate_limit_config() -> dict:
    """Read retry settings from the environment.

    Returns:
        Keyword arguments for RetryConfig
    """
    return {
        'max_retries': _int_from_env(RETRY_ATTEMPTS_VAR, DEFAULT_ENV_RETRY_ATTEMPTS),
        'base_delay': 1000,
        'max_delay': _int_from_env(TEST_TIMEOUT_VAR, DEFAULT_ENV_TIMEOUT_MS),
        'backoff_multiplier': 2.0,
        'skip_rate_limiting': not is_rate_limiting_enabled(),
    }
