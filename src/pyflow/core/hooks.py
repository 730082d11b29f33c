"""Lifecycle hooks.

Hooks are callbacks bound to a closed set of lifecycle events. They are
registered once (usually at build time) and fired by workflows and tasks
at their boundaries.

Payloads:
    Workflow-scoped events (ON_WORKFLOW_*, ON_ALL_TASKS_FINISH) call
    ``hook(context, error)`` with the WorkflowContext. Task-scoped events
    (ON_TASK_*) call ``hook(task, error)`` with the task being run.
    ``error`` is None except for ON_WORKFLOW_ERROR, ON_TASK_RETRY and
    ON_TASK_TIMEOUT.

Failure policy:
    All hooks registered for one event run concurrently. Every one of them
    is awaited, even when a sibling fails; afterwards the first failure
    (in registration order) is raised to the caller of execute_hooks().
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

Hook = Callable[[Any, BaseException | None], Awaitable[None] | None]


class HookType(Enum):
    """Lifecycle events a hook can be bound to."""

    ON_WORKFLOW_START = "onWorkflowStart"
    """Workflow execution begins."""

    ON_WORKFLOW_FINISH = "onWorkflowFinish"
    """Workflow finished successfully."""

    ON_WORKFLOW_ERROR = "onWorkflowError"
    """Workflow aborted with an error."""

    ON_TASK_START = "onTaskStart"
    """A top-level workflow task is about to run."""

    ON_TASK_FINISH = "onTaskFinish"
    """A top-level workflow task finished successfully."""

    ON_ALL_TASKS_FINISH = "onAllTasksFinish"
    """Every task in the workflow has run."""

    ON_TASK_RETRY = "onTaskRetry"
    """A task is about to wait out its backoff before retrying."""

    ON_TASK_TIMEOUT = "onTaskTimeout"
    """A task attempt exceeded its timeout."""

    @property
    def is_task_event(self) -> bool:
        return self in (
            HookType.ON_TASK_START,
            HookType.ON_TASK_FINISH,
            HookType.ON_TASK_RETRY,
            HookType.ON_TASK_TIMEOUT,
        )

    @classmethod
    def parse(cls, value: HookType | str) -> HookType:
        """Accept a HookType, its camelCase value or its member name."""
        if isinstance(value, HookType):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown hook type: {value!r}") from None

    def __str__(self) -> str:
        return self.value


class HookManager:
    """Registry of lifecycle callbacks keyed by HookType.

    Registrations are append-only per event; they are only dropped by
    remove_hooks() or clear().

    Usage:
        ```python
        hooks = HookManager()

        async def announce(context, error=None):
            print(f"starting {context.workflow_name}")

        hooks.register_hook(HookType.ON_WORKFLOW_START, announce)
        await hooks.execute_hooks(HookType.ON_WORKFLOW_START, context)
        ```
    """

    def __init__(self):
        self._hooks: dict[HookType, list[Hook]] = {}

    def register_hook(self, hook_type: HookType | str, hook: Hook) -> None:
        """Append a hook to the given event."""
        self._hooks.setdefault(HookType.parse(hook_type), []).append(hook)

    async def execute_hooks(
        self, hook_type: HookType | str, subject: Any, error: BaseException | None = None
    ) -> None:
        """
        Run every hook registered for an event, concurrently.

        Hooks may be coroutine functions or plain functions.

        Args:
            hook_type: Event being fired
            subject: WorkflowContext or task, depending on the event
            error: Error associated with the event, if any

        Raises:
            Exception: The first failure among the hooks, after all have finished
        """
        hooks = self._hooks.get(HookType.parse(hook_type))
        if not hooks:
            return

        results = await asyncio.gather(
            *(_invoke(hook, subject, error) for hook in list(hooks)),
            return_exceptions=True,
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            if len(failures) > 1:
                logger.warning(
                    f"{len(failures)} hooks failed for {HookType.parse(hook_type)}, "
                    f"raising the first"
                )
            raise failures[0]

    def remove_hooks(self, hook_type: HookType | str) -> None:
        """Drop every hook registered for one event."""
        self._hooks[HookType.parse(hook_type)] = []

    def get_hooks(self, hook_type: HookType | str) -> list[Hook]:
        """Registered hooks for an event, in registration order."""
        return list(self._hooks.get(HookType.parse(hook_type), []))

    def clear(self) -> None:
        """Drop every registration."""
        self._hooks.clear()

    def __len__(self) -> int:
        return sum(len(hooks) for hooks in self._hooks.values())


async def _invoke(hook: Hook, subject: Any, error: BaseException | None) -> None:
    result = hook(subject, error)
    if inspect.isawaitable(result):
        await result
