"""
Retry and timeout policy configuration for task execution.

Design Pattern: Strategy Pattern
RetryPolicy wraps a BackoffStrategy with a maximum number of retries,
allowing different retry behaviour without modifying task execution code.

Design Rationale:
- Safe default: no automatic retries
- Simple retry: RetryPolicy.from_options(3) with no delay
- Advanced control: any BackoffStrategy, or a named preset
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

from pyflow.models.backoff import (
    BackoffOptions,
    BackoffStrategy,
    ExponentialBackoff,
    FixedBackoff,
    create_backoff,
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Configuration for task retry behavior.

    Controls how many times a task is retried after a failed attempt and
    how long to wait before each retry.

    Examples:
        # Retry three times, no delay
        policy = RetryPolicy(max_attempts=3)

        # Named policy: predefined sensible defaults
        policy = RetryPolicy.STANDARD

        # From declarative options
        policy = RetryPolicy.from_options(
            5, BackoffOptions(strategy="exponential", delay_ms=100, max_delay_ms=2000)
        )
    """

    max_attempts: int = 0
    """Maximum number of retries (NOT counting the first try).

    For example, max_attempts = 2 means:
    - Initial attempt: immediate
    - Retry 1: after backoff.get_delay(1)
    - Retry 2: after backoff.get_delay(2)

    Default: 0 (first failure is terminal)
    """

    backoff: BackoffStrategy = field(default_factory=FixedBackoff)
    """Delay curve between retries."""

    # =========================================================================
    # Predefined Policies
    # =========================================================================

    if TYPE_CHECKING:
        NONE: RetryPolicy
        STANDARD: RetryPolicy
        AGGRESSIVE: RetryPolicy
    else:
        NONE = cast("RetryPolicy", None)
        STANDARD = cast("RetryPolicy", None)
        AGGRESSIVE = cast("RetryPolicy", None)

    @classmethod
    def from_options(
        cls, retry_count: int = 0, backoff: BackoffOptions | None = None
    ) -> RetryPolicy:
        """
        Create a policy from task-style options.

        Args:
            retry_count: Number of retries allowed after the first attempt
            backoff: Backoff configuration (None means no delay)

        Raises:
            ConfigurationError: If the backoff strategy is unknown
        """
        return cls(max_attempts=retry_count, backoff=create_backoff(backoff))

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """
        Decide whether another attempt is allowed.

        Args:
            error: The failure of the attempt that just finished
            attempt: Number of retries already performed (0 after the first failure)

        Returns:
            True if the task should be retried
        """
        if hasattr(error, "is_retryable") and not error.is_retryable():
            return False
        return attempt < self.max_attempts

    def get_delay(self, attempt: int) -> int:
        """
        Delay in milliseconds before the given retry.

        Args:
            attempt: The retry number (1-indexed)
        """
        return self.backoff.get_delay(attempt)


RetryPolicy.NONE = RetryPolicy(max_attempts=0, backoff=FixedBackoff(0))

RetryPolicy.STANDARD = RetryPolicy(
    max_attempts=3,
    backoff=ExponentialBackoff(initial_delay_ms=1000, max_delay_ms=30000),
)

RetryPolicy.AGGRESSIVE = RetryPolicy(
    max_attempts=10,
    backoff=ExponentialBackoff(initial_delay_ms=100, max_delay_ms=10000),
)


@dataclass(frozen=True)
class TimeoutPolicy:
    """
    Per-attempt timeout.

    ``timeout_ms`` of 0 disables enforcement: the unit of work may run
    unbounded.
    """

    timeout_ms: int = 0

    @property
    def enabled(self) -> bool:
        return self.timeout_ms > 0

    @property
    def seconds(self) -> float | None:
        """Timeout in seconds for asyncio, None when disabled."""
        if not self.enabled:
            return None
        return self.timeout_ms / 1000.0
