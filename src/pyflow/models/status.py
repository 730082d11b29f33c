"""Status enumerations for task and workflow execution tracking.

Defines lifecycle states for individual task invocations and for
workflows driving an ordered list of tasks.
"""

from enum import Enum


class TaskStatus(Enum):
    """Status of a single task.

    Lifecycle:
        PENDING → RUNNING → COMPLETED
                          → TIMED_OUT → RETRYING → RUNNING ...
                          → RETRYING → RUNNING ...
                          → FAILED

    TIMED_OUT is transient: a timed-out attempt is folded into the
    retry/failure path like any other failed attempt.
    """

    PENDING = "Pending"
    """Task has not run yet."""

    RUNNING = "Running"
    """An attempt is in flight."""

    COMPLETED = "Completed"
    """Last run finished successfully."""

    FAILED = "Failed"
    """Last run failed after exhausting its retries."""

    RETRYING = "Retrying"
    """Waiting out the backoff delay before the next attempt."""

    TIMED_OUT = "TimedOut"
    """The current attempt exceeded its timeout."""

    @property
    def is_terminal(self) -> bool:
        """Check if this status ends a single run."""
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    def __str__(self) -> str:
        return self.value


class WorkflowStatus(Enum):
    """Status of a workflow.

    Lifecycle:
        PENDING → RUNNING → PAUSED → RUNNING (resume) ...
                          → COMPLETED / FAILED / CANCELLED
    """

    PENDING = "Pending"
    RUNNING = "Running"
    PAUSED = "Paused"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if this status is terminal (no more work will run)."""
        return self in (WorkflowStatus.COMPLETED, WorkflowStatus.FAILED, WorkflowStatus.CANCELLED)

    def __str__(self) -> str:
        return self.value
