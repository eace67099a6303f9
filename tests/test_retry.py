"""
Tests for the retry executor.

Sleeps are replaced by an AsyncMock so the recorded delays can be checked
without waiting.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from fam.core.exceptions import (
    ApiError,
    AuthenticationError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
    ValidationError,
)
from fam.resilience.retry import (
    RetryPolicy,
    compute_backoff,
    execute_with_retry,
    is_retryable_error,
    retrying,
)


class FlakyCall:
    """Raises the queued errors in order, then returns ``result``."""

    def __init__(self, *errors: BaseException, result: str = "ok") -> None:
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def slept(sleep: AsyncMock) -> list[float]:
    return [call.args[0] for call in sleep.await_args_list]


class TestComputeBackoff:
    def test_doubles_until_cap(self) -> None:
        delays = [compute_backoff(n, 1.0, 30.0) for n in range(1, 8)]
        assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]

    def test_base_above_cap(self) -> None:
        assert compute_backoff(1, 10.0, 5.0) == 5.0

    def test_large_retry_number_stays_capped(self) -> None:
        assert compute_backoff(5000, 0.5, 30.0) == 30.0


class TestExecuteWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self) -> None:
        call = FlakyCall()
        sleep = AsyncMock()

        assert await execute_with_retry(call, RetryPolicy(), sleep=sleep) == "ok"
        assert call.calls == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self) -> None:
        call = FlakyCall(NetworkError("reset"), NetworkError("reset"))
        sleep = AsyncMock()

        result = await execute_with_retry(call, RetryPolicy(max_attempts=3), sleep=sleep)

        assert result == "ok"
        assert call.calls == 3
        assert slept(sleep) == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_reraises_last_error(self) -> None:
        errors = [NetworkError(f"failure {i}") for i in range(3)]
        call = FlakyCall(*errors)
        sleep = AsyncMock()

        with pytest.raises(NetworkError) as exc_info:
            await execute_with_retry(call, RetryPolicy(max_attempts=3), sleep=sleep)

        assert call.calls == 3
        assert exc_info.value is errors[2]
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_short_circuits(self) -> None:
        call = FlakyCall(ValidationError("bad input", status_code=422))
        policy = RetryPolicy(
            max_attempts=5, should_retry=lambda e: not isinstance(e, ValidationError)
        )
        sleep = AsyncMock()

        with pytest.raises(ValidationError):
            await execute_with_retry(call, policy, sleep=sleep)

        assert call.calls == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_attempt_policy(self) -> None:
        call = FlakyCall(NetworkError("down"))
        with pytest.raises(NetworkError):
            await execute_with_retry(call, RetryPolicy(max_attempts=1), sleep=AsyncMock())
        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_backoff_growth_is_capped(self) -> None:
        call = FlakyCall(*[NetworkError("down") for _ in range(7)])
        sleep = AsyncMock()
        policy = RetryPolicy(max_attempts=8, base_delay=1.0, max_delay=30.0)

        assert await execute_with_retry(call, policy, sleep=sleep) == "ok"
        assert slept(sleep) == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]

    @pytest.mark.asyncio
    async def test_retry_after_preferred_when_larger(self) -> None:
        call = FlakyCall(
            RateLimitError("slow down", retry_after=7),
            RateLimitError("slow down", retry_after=1),
        )
        sleep = AsyncMock()

        await execute_with_retry(call, RetryPolicy(max_attempts=3), sleep=sleep)

        # 7 > 1.0 computed; 1 < 2.0 computed
        assert slept(sleep) == [7.0, 2.0]

    @pytest.mark.asyncio
    async def test_jitter_stays_within_bounds(self) -> None:
        call = FlakyCall(*[NetworkError("down") for _ in range(4)])
        sleep = AsyncMock()
        policy = RetryPolicy(max_attempts=5, base_delay=1.0, max_delay=30.0, jitter=True)

        await execute_with_retry(call, policy, sleep=sleep)

        for delay, expected in zip(slept(sleep), [1.0, 2.0, 4.0, 8.0]):
            assert expected * 0.8 <= delay <= expected * 1.2

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self) -> None:
        call = FlakyCall(asyncio.CancelledError())
        sleep = AsyncMock()

        with pytest.raises(asyncio.CancelledError):
            await execute_with_retry(call, RetryPolicy(max_attempts=3), sleep=sleep)

        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_default_policy_retries_everything(self) -> None:
        call = FlakyCall(ValueError("boom"))
        assert await execute_with_retry(call, sleep=AsyncMock()) == "ok"
        assert call.calls == 2

    @pytest.mark.asyncio
    async def test_retrying_decorator(self) -> None:
        attempts = []

        @retrying(RetryPolicy(max_attempts=2, base_delay=0.0, max_delay=0.0))
        async def fetch(resource_id: str) -> str:
            attempts.append(resource_id)
            if len(attempts) == 1:
                raise NetworkError("reset")
            return f"got {resource_id}"

        assert await fetch("wallet_1") == "got wallet_1"
        assert attempts == ["wallet_1", "wallet_1"]


class TestRetryPolicy:
    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.base_delay == 1.0
        assert policy.max_delay == 30.0
        assert policy.should_retry(ValueError()) is True

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=0)


class TestIsRetryableError:
    @pytest.mark.parametrize(
        "error",
        [
            NetworkError("reset"),
            RequestTimeoutError("slow", duration=5.0),
            RateLimitError("slow down"),
            ApiError("boom", status_code=500),
            ApiError("bad gateway", status_code=502),
            ApiError("unavailable", status_code=503),
        ],
    )
    def test_transient(self, error) -> None:
        assert is_retryable_error(error) is True

    @pytest.mark.parametrize(
        "error",
        [
            ValidationError("bad", status_code=400),
            AuthenticationError("who"),
            NotFoundError("gone"),
            ApiError("teapot", status_code=418),
            ValueError("not ours"),
        ],
    )
    def test_deterministic(self, error) -> None:
        assert is_retryable_error(error) is False
