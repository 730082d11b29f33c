"""Execution contexts passed through task and workflow invocations.

A context is a mutable bag owned by one execution: the caller's input,
the final output, ad hoc scratch data and the outputs recorded by every
task that has run so far.

Design: Single Responsibility
    Contexts only hold state. They do not run tasks, persist anything or
    know about retry policies. Tasks read and write them through the
    reference they are handed and never cache them across invocations.

Concurrency:
    All access happens on one event loop, so concurrent children of a
    ParallelTask interleave only at await points and plain dicts are safe.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from uuid_extensions import uuid7

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")

# Distinguishes "key absent" from "value is None" in get()
_MISSING = object()


class TaskContext(Generic[InputT, OutputT]):
    """State shared by one task invocation (and its children).

    Usage:
        ```python
        ctx = TaskContext({"user_id": 7})
        ctx.set("token", "abc")
        await task.run(ctx)
        ctx.get_task_output(task.name)
        ```
    """

    def __init__(self, input: InputT | None = None):
        self._input = input
        self._output: OutputT | None = None
        self._data: dict[str, Any] = {}
        self._task_outputs: dict[str, Any] = {}

    @property
    def input(self) -> InputT | None:
        """Caller-supplied input (read-only)."""
        return self._input

    @property
    def output(self) -> OutputT | None:
        return self._output

    @output.setter
    def output(self, value: OutputT | None) -> None:
        self._output = value

    def set(self, key: str, value: Any) -> None:
        """Store an ad hoc value."""
        self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Read an ad hoc value, ``default`` if absent."""
        value = self._data.get(key, _MISSING)
        return default if value is _MISSING else value

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def set_task_output(self, task_name: str, output: Any) -> None:
        """Record the output of a task.

        Entries are never removed during an execution; re-running a task
        overwrites its own entry.
        """
        self._task_outputs[task_name] = output

    def get_task_output(self, task_name: str, default: Any = None) -> Any:
        return self._task_outputs.get(task_name, default)

    def has_task_output(self, task_name: str) -> bool:
        return task_name in self._task_outputs

    def all_task_outputs(self) -> dict[str, Any]:
        """Snapshot of every recorded task output, in recording order."""
        return dict(self._task_outputs)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(input={self._input!r}, "
            f"tasks={list(self._task_outputs)!r})"
        )


class WorkflowContext(TaskContext[InputT, OutputT]):
    """Per-execution state of a workflow.

    Plays the Task Context role for every task in the workflow, plus the
    workflow identity: its name and a unique id for this execution.
    """

    def __init__(self, input: InputT | None = None, workflow_name: str = "workflow"):
        super().__init__(input)
        self.workflow_name = workflow_name
        self.run_id = str(uuid7())
