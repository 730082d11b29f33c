"""
Persistence protocol - Abstract interface for checkpoint storage.

Design Pattern: Adapter Pattern
Persistence defines the target interface that all storage adapters
implement. Different backends (memory, SQLite, Redis) adapt to it.

Design Principle: Dependency Inversion (SOLID)
Workflows and tasks depend on this abstraction, never on a concrete
backend. A workflow built without a persistence collaborator simply
skips checkpointing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pyflow.models import TaskState, TaskStatus, WorkflowState, WorkflowStatus


class StorageError(Exception):
    """
    Storage operation failed.

    Raised by backends when the underlying store is unavailable or
    returns data that cannot be decoded.
    """

    pass


class Persistence(ABC):
    """
    Abstract storage interface for workflow and task checkpoints.

    Workflows are keyed by workflow name, tasks by task name.
    """

    @abstractmethod
    async def save_workflow_state(self, workflow_id: str, state: WorkflowState) -> None:
        """
        Store (overwrite) a workflow checkpoint.

        Args:
            workflow_id: Workflow identifier (its name)
            state: Status and index of the next task to run
        """
        pass

    @abstractmethod
    async def get_workflow_state(self, workflow_id: str) -> WorkflowState | None:
        """
        Read a workflow checkpoint.

        Returns:
            The last saved state, None if nothing was saved
        """
        pass

    @abstractmethod
    async def save_task_state(self, task_id: str, state: TaskState) -> None:
        """Store (overwrite) a task's last known status."""
        pass

    @abstractmethod
    async def get_task_state(self, task_id: str) -> TaskState | None:
        """Read a task's last known status, None if never saved."""
        pass


def decode_workflow_state(status: str, current_task_index: int | str) -> WorkflowState:
    """Rebuild a WorkflowState from stored primitive values."""
    try:
        return WorkflowState(
            status=WorkflowStatus(status),
            current_task_index=int(current_task_index),
        )
    except ValueError as e:
        raise StorageError(f"Corrupt workflow state: status={status!r}") from e


def decode_task_state(status: str) -> TaskState:
    """Rebuild a TaskState from a stored status value."""
    try:
        return TaskState(status=TaskStatus(status))
    except ValueError as e:
        raise StorageError(f"Corrupt task state: status={status!r}") from e
