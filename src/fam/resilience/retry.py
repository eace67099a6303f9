"""
Retry Strategies using Tenacity.

Executes one logical request with bounded retries and exponential backoff.
"""

from __future__ import annotations

import asyncio
import functools
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from fam.core.exceptions import ApiError, NetworkError, RateLimitError
from fam.core.logging import get_logger

T = TypeVar("T")

JITTER_RATIO = 0.2

logger = get_logger("retry")


def _always_retry(error: BaseException) -> bool:
    return True


def is_retryable_error(error: BaseException) -> bool:
    """
    Default retry predicate for API requests.

    Transport failures, timeouts, rate limiting and 5xx responses are
    transient. Other 4xx responses fail the same way on every attempt.
    """
    if isinstance(error, NetworkError):
        return True
    if isinstance(error, RateLimitError):
        return True
    if isinstance(error, ApiError) and error.status_code >= 500:
        return True
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for a single logical call."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    should_retry: Callable[[BaseException], bool] = _always_retry
    jitter: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")


# Policy used by the HTTP client when no override is given
DEFAULT_POLICY = RetryPolicy(should_retry=is_retryable_error)


def compute_backoff(retry_number: int, base_delay: float, max_delay: float) -> float:
    """
    Delay before the given retry (1-based): base doubled per retry, capped.

    >>> [compute_backoff(n, 1.0, 30.0) for n in range(1, 7)]
    [1.0, 2.0, 4.0, 8.0, 16.0, 30.0]
    """
    delay = min(base_delay, max_delay)
    for _ in range(retry_number - 1):
        if delay >= max_delay:
            break
        delay = min(delay * 2, max_delay)
    return delay


def _should_retry(policy: RetryPolicy, error: BaseException) -> bool:
    # Cancellation and interpreter exits are never retried
    if not isinstance(error, Exception):
        return False
    return policy.should_retry(error)


class _BackoffWait:
    """Tenacity wait strategy honouring a server Retry-After hint."""

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = compute_backoff(
            retry_state.attempt_number, self.policy.base_delay, self.policy.max_delay
        )
        if self.policy.jitter:
            delay *= 1 + random.uniform(-JITTER_RATIO, JITTER_RATIO)

        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            delay = max(delay, float(error.retry_after))
        return delay


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        f"Retrying request after {type(error).__name__}: {error} "
        f"(attempt {retry_state.attempt_number}, sleeping {delay:.2f}s)"
    )


async def execute_with_retry(
    attempt: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], Awaitable[Any]] | None = None,
) -> T:
    """
    Await ``attempt()`` until it succeeds or the policy gives up.

    The last error is re-raised unchanged once attempts are exhausted or
    ``policy.should_retry`` rejects it. Cancelling the calling task
    interrupts both the in-flight attempt and the backoff sleep.
    """
    policy = policy or RetryPolicy()
    sleep = sleep or asyncio.sleep

    async for attempt_state in AsyncRetrying(
        retry=retry_if_exception(functools.partial(_should_retry, policy)),
        wait=_BackoffWait(policy),
        stop=stop_after_attempt(policy.max_attempts),
        sleep=sleep,
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt_state:
            return await attempt()


def retrying(
    policy: RetryPolicy | None = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorate an async function so every call runs through execute_with_retry.

    Example:
        >>> @retrying(RetryPolicy(max_attempts=5, should_retry=is_retryable_error))
        ... async def fetch_wallet(wallet_id: str) -> dict:
        ...     return await fam.http.get(f"/wallets/{wallet_id}")
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await execute_with_retry(lambda: func(*args, **kwargs), policy)

        return wrapper

    return decorator
