"""Task and workflow configuration.

Options are plain frozen dataclasses with safe defaults: no retries, no
backoff delay and no timeout. Values can also be read from the
environment with ``TaskOptions.from_env()``.
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from pyflow.errors import ConfigurationError
from pyflow.models.backoff import BackoffOptions
from pyflow.models.retry import RetryPolicy, TimeoutPolicy

Next = Callable[[], Awaitable[None]]
Middleware = Callable[[Any, Next], Awaitable[None]]
"""Wrapper around a task invocation: ``async def mw(context, call_next)``."""


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class TaskOptions:
    """Retry, backoff and timeout settings for a single task."""

    retry_count: int = 0
    """Retries allowed after the first failed attempt."""

    backoff: BackoffOptions | None = None
    """Delay curve between retries, None for no delay."""

    timeout_ms: int = 0
    """Per-attempt timeout in milliseconds, 0 disables it."""

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy.from_options(self.retry_count, self.backoff)

    def timeout_policy(self) -> TimeoutPolicy:
        return TimeoutPolicy(self.timeout_ms)

    @classmethod
    def from_env(cls, prefix: str = "PYFLOW_") -> TaskOptions:
        """
        Read task options from environment variables.

        Recognised variables (with the default prefix):
        - PYFLOW_RETRY_COUNT
        - PYFLOW_TIMEOUT_MS
        - PYFLOW_BACKOFF_STRATEGY (fixed, linear, exponential)
        - PYFLOW_BACKOFF_DELAY_MS
        - PYFLOW_BACKOFF_MAX_DELAY_MS

        Unset variables keep their defaults.

        Raises:
            ConfigurationError: If a numeric variable is malformed

        Example:
            # $ export PYFLOW_RETRY_COUNT=3
            # $ export PYFLOW_BACKOFF_STRATEGY=exponential
            options = TaskOptions.from_env()
        """
        retry_count = _env_int(f"{prefix}RETRY_COUNT")
        timeout_ms = _env_int(f"{prefix}TIMEOUT_MS")

        backoff = None
        strategy = os.getenv(f"{prefix}BACKOFF_STRATEGY")
        if strategy:
            backoff = BackoffOptions(
                strategy=strategy.lower(),
                delay_ms=_env_int(f"{prefix}BACKOFF_DELAY_MS") or 0,
                max_delay_ms=_env_int(f"{prefix}BACKOFF_MAX_DELAY_MS"),
            )
            # Fail at configuration time, not on the first retry
            RetryPolicy.from_options(0, backoff)

        return cls(
            retry_count=retry_count if retry_count is not None else 0,
            backoff=backoff,
            timeout_ms=timeout_ms if timeout_ms is not None else 0,
        )


@dataclass(frozen=True)
class WorkflowOptions:
    """
    Workflow-wide settings.

    ``retry_count``, ``backoff`` and ``timeout_ms`` are the defaults for
    tasks created through ``WorkflowBuilder.add_step``; ``middleware``
    wraps every task invocation, middleware[0] outermost.
    """

    retry_count: int = 0
    backoff: BackoffOptions | None = None
    timeout_ms: int = 0
    middleware: Sequence[Middleware] = field(default_factory=tuple)

    def task_options(self) -> TaskOptions:
        """Task defaults derived from these options."""
        return TaskOptions(
            retry_count=self.retry_count,
            backoff=self.backoff,
            timeout_ms=self.timeout_ms,
        )
