"""Checkpoint records written to the persistence collaborator."""

from dataclasses import dataclass

from pyflow.models.status import TaskStatus, WorkflowStatus


@dataclass(frozen=True)
class WorkflowState:
    """Workflow checkpoint: status plus the index of the next task to run."""

    status: WorkflowStatus
    current_task_index: int = 0

    def __repr__(self) -> str:
        return (
            f"WorkflowState(status={self.status}, "
            f"current_task_index={self.current_task_index})"
        )


@dataclass(frozen=True)
class TaskState:
    """Task checkpoint: last known status."""

    status: TaskStatus
