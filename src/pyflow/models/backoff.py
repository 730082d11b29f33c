"""
Backoff strategies: pure mappings from retry attempt to delay.

Design Pattern: Strategy Pattern
Each strategy encapsulates one delay curve; RetryPolicy holds a strategy
and never needs to know which curve it is using.

All delays are in milliseconds. Attempts are 1-indexed: attempt 1 is the
first retry, not the initial try.

Example:
    backoff = ExponentialBackoff(initial_delay_ms=100, max_delay_ms=2000)
    [backoff.get_delay(n) for n in range(1, 7)]
    # [100, 200, 400, 800, 1600, 2000]
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from pyflow.errors import ConfigurationError

__all__ = [
    "BackoffKind",
    "BackoffOptions",
    "BackoffStrategy",
    "FixedBackoff",
    "LinearBackoff",
    "ExponentialBackoff",
    "create_backoff",
]


class BackoffKind(Enum):
    """Supported backoff curves."""

    FIXED = "fixed"
    EXPONENTIAL = "exponential"
    LINEAR = "linear"

    def __str__(self) -> str:
        return self.value


@runtime_checkable
class BackoffStrategy(Protocol):
    """Anything that maps an attempt number to a delay in milliseconds."""

    def get_delay(self, attempt: int) -> int: ...


@dataclass(frozen=True)
class FixedBackoff:
    """Same delay before every retry (uncapped)."""

    delay_ms: int = 0

    def get_delay(self, attempt: int) -> int:
        return self.delay_ms


@dataclass(frozen=True)
class LinearBackoff:
    """Delay grows by ``initial_delay_ms`` per attempt, capped at ``max_delay_ms``.

    delay(n) = min(initial_delay_ms * n, max_delay_ms)
    """

    initial_delay_ms: int
    max_delay_ms: float = math.inf

    def get_delay(self, attempt: int) -> int:
        delay_ms = self.initial_delay_ms * attempt
        return int(min(delay_ms, self.max_delay_ms))


@dataclass(frozen=True)
class ExponentialBackoff:
    """Delay doubles per attempt, capped at ``max_delay_ms``.

    delay(n) = min(initial_delay_ms * 2^(n-1), max_delay_ms)
    """

    initial_delay_ms: int
    max_delay_ms: float = math.inf

    def get_delay(self, attempt: int) -> int:
        # attempt=1 (first retry): 2^0 = 1 → initial_delay
        delay_ms = self.initial_delay_ms * 2 ** (attempt - 1)
        return int(min(delay_ms, self.max_delay_ms))


@dataclass(frozen=True)
class BackoffOptions:
    """
    Declarative backoff configuration.

    ``strategy`` accepts a BackoffKind or its string value ("fixed",
    "linear", "exponential"). ``max_delay_ms`` of None means uncapped.
    """

    strategy: BackoffKind | str = BackoffKind.FIXED
    delay_ms: int = 0
    max_delay_ms: int | None = None


def create_backoff(options: BackoffOptions | None) -> BackoffStrategy:
    """
    Build the strategy described by ``options``.

    Args:
        options: Backoff configuration, None for "no delay"

    Returns:
        A backoff strategy

    Raises:
        ConfigurationError: If the strategy name is unknown
    """
    if options is None:
        return FixedBackoff(0)

    try:
        kind = BackoffKind(options.strategy)
    except ValueError as e:
        raise ConfigurationError(f"Invalid backoff strategy: {options.strategy!r}") from e

    # A zero or missing cap means uncapped
    max_delay_ms = options.max_delay_ms or math.inf

    match kind:
        case BackoffKind.FIXED:
            return FixedBackoff(options.delay_ms)
        case BackoffKind.LINEAR:
            return LinearBackoff(options.delay_ms, max_delay_ms)
        case BackoffKind.EXPONENTIAL:
            return ExponentialBackoff(options.delay_ms, max_delay_ms)
