"""Error types and retry policy for IGDB API interactions."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """How the request loop reacts to a response status."""
    SUCCESS = "success"
    AUTH_EXPIRED = "auth_expired"  # 401 - renew token, retry immediately
    RATE_LIMITED = "rate_limited"  # 429 - adaptive slowdown, back off, retry
    FAILED = "failed"              # anything else - log, return no data


class APIError(Exception):
    """Base exception for API errors."""
    pass


class FatalAPIError(APIError):
    """Fatal API error requiring immediate stop (credentials, token endpoint)."""
    pass


class RetriesExhaustedError(APIError):
    """Raised when a RetryPolicy attempt cap is reached."""
    pass


# HTTP status code mapping
HTTP_STATUS_MESSAGES = {
    200: "Success",
    400: "Malformed query",
    401: "Access token expired or invalid",
    403: "Forbidden (check client id)",
    404: "Endpoint not found",
    429: "Too many requests",
    500: "IGDB internal error",
}


def get_error_message(status_code: int) -> str:
    """
    Get user-friendly error message for HTTP status code.

    Args:
        status_code: HTTP status code

    Returns:
        Error message string
    """
    return HTTP_STATUS_MESSAGES.get(
        status_code,
        f"Unknown error (HTTP {status_code})"
    )


def categorize_status(status_code: int) -> ErrorCategory:
    """
    Map an HTTP status code to the request loop's reaction.

    Args:
        status_code: HTTP status code from the API

    Returns:
        ErrorCategory for the status
    """
    if 200 <= status_code < 300:
        return ErrorCategory.SUCCESS
    if status_code == 401:
        return ErrorCategory.AUTH_EXPIRED
    if status_code == 429:
        return ErrorCategory.RATE_LIMITED
    return ErrorCategory.FAILED


@dataclass
class RetryPolicy:
    """
    Retry behaviour of the IGDB request loop.

    Token expiry and rate limiting are retried without limit by default;
    max_attempts caps the total number of attempts per request (tests use
    it to keep a misbehaving server from looping forever).
    """
    rate_limit_backoff: float = 2.0
    max_attempts: Optional[int] = None

    def check_attempt(self, attempt: int, context: str = "") -> None:
        """
        Verify another attempt is allowed.

        Args:
            attempt: 1-based number of the attempt about to be made
            context: Context string for the error message

        Raises:
            RetriesExhaustedError: If the attempt cap has been reached
        """
        if self.max_attempts is not None and attempt > self.max_attempts:
            raise RetriesExhaustedError(
                f"Giving up after {self.max_attempts} attempts ({context})"
            )
