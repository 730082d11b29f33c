"""Tests for RetryPolicy, TimeoutPolicy and ExecutionPolicy."""

import asyncio

import pytest

from pyflow.errors import ExecutionError, RetryableError, TaskTimeoutError
from pyflow.executor import ExecutionPolicy
from pyflow.models import (
    BackoffOptions,
    ExponentialBackoff,
    FixedBackoff,
    RetryPolicy,
    TaskOptions,
    TimeoutPolicy,
)


class PermanentError(RetryableError):
    def is_retryable(self) -> bool:
        return False


class TestRetryPolicy:
    def test_default_never_retries(self):
        policy = RetryPolicy()
        assert not policy.should_retry(RuntimeError("boom"), 0)

    def test_retries_while_below_max(self):
        policy = RetryPolicy(max_attempts=2)
        assert policy.should_retry(RuntimeError(), 0)
        assert policy.should_retry(RuntimeError(), 1)
        assert not policy.should_retry(RuntimeError(), 2)

    def test_non_retryable_error_stops_immediately(self):
        policy = RetryPolicy(max_attempts=5)
        assert not policy.should_retry(PermanentError("declined"), 0)
        assert policy.should_retry(RetryableError("flaky"), 0)

    def test_get_delay_delegates_to_backoff(self):
        policy = RetryPolicy(max_attempts=3, backoff=ExponentialBackoff(100, 250))
        assert [policy.get_delay(n) for n in (1, 2, 3)] == [100, 200, 250]

    def test_from_options(self):
        policy = RetryPolicy.from_options(
            4, BackoffOptions("linear", delay_ms=10, max_delay_ms=25)
        )
        assert policy.max_attempts == 4
        assert policy.get_delay(3) == 25

    def test_presets(self):
        assert RetryPolicy.NONE.max_attempts == 0
        assert RetryPolicy.STANDARD.max_attempts == 3
        assert RetryPolicy.STANDARD.get_delay(1) == 1000
        assert RetryPolicy.AGGRESSIVE.max_attempts == 10
        assert RetryPolicy.AGGRESSIVE.get_delay(20) == 10000


class TestTimeoutPolicy:
    def test_zero_disables(self):
        policy = TimeoutPolicy()
        assert not policy.enabled
        assert policy.seconds is None

    def test_seconds(self):
        assert TimeoutPolicy(250).seconds == 0.25


class TestExecutionPolicy:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("reset")
            return "ok"

        policy = ExecutionPolicy(RetryPolicy(max_attempts=5, backoff=FixedBackoff(0)))
        assert await policy.execute("flaky", flaky) == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_execution_error(self):
        cause = ValueError("bad input")

        async def always_fails():
            raise cause

        policy = ExecutionPolicy.from_options(TaskOptions(retry_count=2))
        with pytest.raises(ExecutionError) as exc_info:
            await policy.execute("parse", always_fails)

        assert exc_info.value.attempts == 3
        assert exc_info.value.task_name == "parse"
        assert exc_info.value.__cause__ is cause

    @pytest.mark.asyncio
    async def test_callbacks_receive_retry_numbers_and_delays(self):
        failures = []
        retries = []

        async def always_fails():
            raise RuntimeError("nope")

        async def on_failure(error, timed_out):
            failures.append(timed_out)

        async def on_retry(retry, delay_ms, error):
            retries.append((retry, delay_ms))

        policy = ExecutionPolicy.from_options(
            TaskOptions(retry_count=3, backoff=BackoffOptions("linear", delay_ms=1))
        )
        with pytest.raises(ExecutionError):
            await policy.execute("x", always_fails, on_failure=on_failure, on_retry=on_retry)

        assert failures == [False, False, False, False]
        assert retries == [(1, 1), (2, 2), (3, 3)]

    @pytest.mark.asyncio
    async def test_timeout_cancels_the_attempt(self):
        cancelled = asyncio.Event()

        async def hangs():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        policy = ExecutionPolicy.from_options(TaskOptions(timeout_ms=20))
        with pytest.raises(TaskTimeoutError) as exc_info:
            await policy.execute("slow", hangs)

        assert exc_info.value.timeout_ms == 20
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_fast_work_is_not_affected_by_timer(self):
        async def quick():
            return 42

        policy = ExecutionPolicy.from_options(TaskOptions(timeout_ms=1000))
        assert await policy.execute("quick", quick) == 42
        # The timer must be disarmed, nothing fires later
        await asyncio.sleep(0.01)

    @pytest.mark.asyncio
    async def test_own_timeout_error_is_a_regular_failure(self):
        async def raises_timeout():
            raise TimeoutError("upstream timed out")

        policy = ExecutionPolicy.from_options(TaskOptions(timeout_ms=1000))
        with pytest.raises(ExecutionError) as exc_info:
            await policy.execute("upstream", raises_timeout)

        assert isinstance(exc_info.value.__cause__, TimeoutError)
        assert not isinstance(exc_info.value.__cause__, TaskTimeoutError)
