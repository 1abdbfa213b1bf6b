"""Tests for status categorisation, error messages and RetryPolicy."""

import pytest

from romshelf.api.error_handler import (
    ErrorCategory,
    RetriesExhaustedError,
    RetryPolicy,
    categorize_status,
    get_error_message,
)


@pytest.mark.unit
@pytest.mark.parametrize("status,category", [
    (200, ErrorCategory.SUCCESS),
    (204, ErrorCategory.SUCCESS),
    (401, ErrorCategory.AUTH_EXPIRED),
    (429, ErrorCategory.RATE_LIMITED),
    (400, ErrorCategory.FAILED),
    (403, ErrorCategory.FAILED),
    (500, ErrorCategory.FAILED),
    (503, ErrorCategory.FAILED),
])
def test_categorize_status(status, category):
    assert categorize_status(status) == category


@pytest.mark.unit
def test_error_messages():
    assert get_error_message(429) == "Too many requests"
    assert get_error_message(418) == "Unknown error (HTTP 418)"


@pytest.mark.unit
def test_default_retry_policy_never_gives_up():
    policy = RetryPolicy()

    for attempt in (1, 10, 1000):
        policy.check_attempt(attempt)

    assert policy.rate_limit_backoff == 2.0


@pytest.mark.unit
def test_retry_policy_attempt_cap():
    policy = RetryPolicy(max_attempts=2)

    policy.check_attempt(1)
    policy.check_attempt(2)
    with pytest.raises(RetriesExhaustedError, match="after 2 attempts"):
        policy.check_attempt(3, "games")
