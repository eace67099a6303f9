"""
Resilience Layer for the FAM SDK.

Provides the retry executor used by the HTTP client.
"""

from .retry import (
    DEFAULT_POLICY,
    RetryPolicy,
    compute_backoff,
    execute_with_retry,
    is_retryable_error,
    retrying,
)

__all__ = [
    "DEFAULT_POLICY",
    "RetryPolicy",
    "compute_backoff",
    "execute_with_retry",
    "is_retryable_error",
    "retrying",
]
