"""Retry and timeout enforcement around a unit of work.

ExecutionPolicy is the reusable piece every task type can opt into: it
races each attempt against the timeout, asks the retry policy whether a
failed attempt may be retried, waits out the backoff and finally raises
the terminal error.

Design: Information Hiding (Parnas)
Retry and timeout mechanics are isolated here, so task types only decide
what a status change or a failure report means for them.

Terminal errors:
- The last attempt timed out → TaskTimeoutError
- Otherwise → ExecutionError chained to the last failure
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pyflow.errors import ExecutionError, TaskTimeoutError
from pyflow.models import RetryPolicy, TaskOptions, TimeoutPolicy

T = TypeVar("T")

FailureCallback = Callable[[BaseException, bool], Awaitable[None]]
RetryCallback = Callable[[int, int, BaseException], Awaitable[None]]

__all__ = ["ExecutionPolicy", "FailureCallback", "RetryCallback"]


class _PolicyTimeout(Exception):
    """Internal marker: this policy's own timer fired."""

    pass


class ExecutionPolicy:
    """Retry/timeout executor.

    Usage:
        ```python
        policy = ExecutionPolicy.from_options(TaskOptions(retry_count=2, timeout_ms=500))
        result = await policy.execute("fetch", lambda: fetch(url))
        ```
    """

    def __init__(
        self,
        retry: RetryPolicy | None = None,
        timeout: TimeoutPolicy | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self.retry = retry or RetryPolicy.NONE
        self.timeout = timeout or TimeoutPolicy()
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    @classmethod
    def from_options(
        cls,
        options: TaskOptions | None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> ExecutionPolicy:
        """Build a policy from task options (None means run once, unbounded)."""
        options = options or TaskOptions()
        return cls(options.retry_policy(), options.timeout_policy(), logger)

    async def execute(
        self,
        label: str,
        operation: Callable[[], Awaitable[T]],
        *,
        on_failure: FailureCallback | None = None,
        on_retry: RetryCallback | None = None,
    ) -> T:
        """
        Run ``operation`` until it succeeds or retries are exhausted.

        Args:
            label: Name used in errors and log messages
            operation: Zero-argument coroutine factory, called once per attempt
            on_failure: Awaited after every failed attempt with
                ``(error, timed_out)``, before the retry decision
            on_retry: Awaited before each backoff wait with
                ``(retry_number, delay_ms, error)``

        Returns:
            The result of the first successful attempt

        Raises:
            TaskTimeoutError: If the final attempt timed out
            ExecutionError: If the final attempt failed for any other reason
        """
        retries = 0

        while True:
            try:
                return await self._attempt(operation)
            except _PolicyTimeout:
                error: BaseException = TaskTimeoutError(label, self.timeout.timeout_ms)
                timed_out = True
            except Exception as e:
                error = e
                timed_out = False

            if on_failure is not None:
                await on_failure(error, timed_out)

            if not self.retry.should_retry(error, retries):
                attempts = retries + 1
                self._logger.error(f'Task "{label}" failed after {attempts} attempts')
                if timed_out:
                    raise error
                raise ExecutionError(label, attempts, error) from error

            retries += 1
            delay_ms = self.retry.get_delay(retries)
            self._logger.warning(f'Retrying task "{label}" in {delay_ms}ms (Attempt {retries})')

            if on_retry is not None:
                await on_retry(retries, delay_ms, error)

            await asyncio.sleep(delay_ms / 1000.0)

    async def _attempt(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run one attempt, racing the timeout when one is configured.

        asyncio.timeout() disarms the timer as soon as the operation
        settles and cancels the operation when the timer wins, so exactly
        one of them decides the outcome.
        """
        seconds = self.timeout.seconds
        if seconds is None:
            return await operation()

        try:
            async with asyncio.timeout(seconds) as scope:
                return await operation()
        except TimeoutError:
            # A TimeoutError raised by the operation itself is not ours
            if scope.expired():
                raise _PolicyTimeout() from None
            raise

    def __repr__(self) -> str:
        return f"ExecutionPolicy(retry={self.retry!r}, timeout={self.timeout!r})"
