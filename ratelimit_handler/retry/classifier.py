"""Rate limit error detection and Retry-After parsing."""

from typing import Optional

from .exceptions import ErrorKind, RateLimitHandlerError

RATE_LIMIT_STATUS = 429

# Lower-case phrases servers put in rate limit error messages
RATE_LIMIT_PHRASES = ("rate limit", "too many requests")


def _extract_status(error: BaseException) -> Optional[int]:
    """Find an HTTP-like status code on an error.

    Looks at ``status``, ``status_code`` and, for requests.HTTPError,
    ``response.status_code``.
    """
    for attr in ("status", "status_code"):
        status = getattr(error, attr, None)
        if isinstance(status, int):
            return status

    response = getattr(error, "response", None)
    if response is not None:
        status = getattr(response, "status_code", None)
        if isinstance(status, int):
            return status

    return None


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether an error signals a rate limit.

    Args:
        error: Exception raised by an operation

    Returns:
        True for status 429 or a message mentioning a rate limit
    """
    # Tagged errors are classified by their kind alone
    if isinstance(error, RateLimitHandlerError):
        return error.kind is ErrorKind.RATE_LIMIT

    if _extract_status(error) == RATE_LIMIT_STATUS:
        return True

    message = str(error).lower()
    return any(phrase in message for phrase in RATE_LIMIT_PHRASES)


def classify_error(error: BaseException) -> ErrorKind:
    """Map any exception onto the closed set of error kinds."""
    if isinstance(error, RateLimitHandlerError):
        return error.kind
    if is_rate_limit_error(error):
        return ErrorKind.RATE_LIMIT
    return ErrorKind.NON_RETRYABLE


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Parse a Retry-After header given in seconds.

    Args:
        value: Raw header value, possibly None

    Returns:
        Whole seconds, or None if missing or not numeric
    """
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)

    value = value.strip()
    if not value:
        return None

    # Leading integer, the way parseInt reads "120" or "120s"
    digits = ""
    for index, char in enumerate(value):
        if char.isdigit() or (index == 0 and char in "+-"):
            digits += char
        else:
            break

    try:
        return int(digits)
    except ValueError:
        return None


def get_retry_after(error: BaseException) -> Optional[int]:
    """Read a server-supplied retry hint off an error, if it carries one."""
    retry_after = getattr(error, "retry_after", None)
    if isinstance(retry_after, (int, float)) and not isinstance(retry_after, bool):
        return retry_after

    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if headers is not None and hasattr(headers, "get"):
        header = headers.get("Retry-After") or headers.get("retry-after")
        if isinstance(header, str):
            return parse_retry_after(header)

    return None
