"""Error types raised by pyflow.

Every library error derives from FlowError so callers can catch the
whole family at once. Errors carry the context needed to act on them
(task name, attempt count, violations) as attributes, not only in the
message.
"""

from __future__ import annotations

__all__ = [
    "FlowError",
    "ValidationError",
    "TaskTimeoutError",
    "ExecutionError",
    "InvalidStateError",
    "ConfigurationError",
    "RetryableError",
]


class FlowError(Exception):
    """Base class for all pyflow errors."""

    pass


class ValidationError(FlowError):
    """Workflow input failed the caller-supplied validator.

    Carries every violation, not just the first one.
    """

    def __init__(self, violations: list[str]):
        self.violations = list(violations)
        super().__init__(f"Workflow input validation failed: {', '.join(self.violations)}")


class TaskTimeoutError(FlowError, TimeoutError):
    """A single task attempt exceeded its configured timeout."""

    def __init__(self, task_name: str, timeout_ms: int):
        self.task_name = task_name
        self.timeout_ms = timeout_ms
        super().__init__(f'Task "{task_name}" timed out after {timeout_ms}ms')


class ExecutionError(FlowError):
    """A task's unit of work kept failing until its retries ran out.

    The original failure is available as ``__cause__`` (and ``cause``).
    """

    def __init__(self, task_name: str, attempts: int, cause: BaseException | None = None):
        self.task_name = task_name
        self.attempts = attempts
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f'Task "{task_name}" failed after {attempts} attempts{detail}')


class InvalidStateError(FlowError):
    """An operation was attempted in a status that forbids it."""

    pass


class ConfigurationError(FlowError):
    """Build-time misconfiguration (missing name, unknown backoff strategy, ...)."""

    pass


class RetryableError(Exception):
    """
    Base class for errors that can specify whether they should be retried.

    Raise a subclass from a unit of work to get fine-grained control over
    which failures are retried and which fail the task immediately.

    Example:
        class PaymentError(RetryableError):
            def __init__(self, message: str, is_retryable: bool = True):
                super().__init__(message)
                self._retryable = is_retryable

            def is_retryable(self) -> bool:
                return self._retryable

        # Transient error - should retry
        raise PaymentError("Network timeout", is_retryable=True)

        # Permanent error - fails the task without further attempts
        raise PaymentError("Insufficient funds", is_retryable=False)
    """

    def is_retryable(self) -> bool:
        """
        Returns True if this error is transient and the attempt should be retried.

        Returns:
            True if retryable, False if permanent
        """
        return True
