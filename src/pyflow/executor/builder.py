"""Fluent construction of workflows."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from pyflow.core.error_handler import ErrorHandler
from pyflow.core.events import EventBus
from pyflow.core.hooks import Hook, HookManager, HookType
from pyflow.errors import ConfigurationError
from pyflow.executor.conditional import Condition, ConditionalTask
from pyflow.executor.parallel import ParallelTask
from pyflow.executor.task import Runnable, Task, TaskFunction
from pyflow.executor.workflow import Validator, Workflow
from pyflow.models import TaskOptions, WorkflowOptions
from pyflow.storage.base import Persistence


class WorkflowBuilder:
    """
    Assembles a Workflow.

    Every ``with_*`` / ``add_*`` method returns the builder so calls chain.
    Steps and groups added with ``add_step``, ``add_parallel_tasks`` and
    ``add_conditional_tasks`` are created in ``build()``, so they pick up the
    options, logger, error handler and persistence set at any point.

    Example:
        ```python
        workflow = (
            WorkflowBuilder()
            .with_name("orders")
            .with_options(WorkflowOptions(retry_count=2, middleware=[timing]))
            .add_step("validate", validate_order)
            .add_parallel_tasks([reserve_stock, charge_card])
            .add_conditional_tasks(lambda ctx: ctx.input["express"], [notify_courier])
            .add_hook(HookType.ON_WORKFLOW_ERROR, alert)
            .build()
        )
        ```
    """

    def __init__(self):
        self._name: str | None = None
        self._steps: list[Callable[[], Runnable]] = []
        self._hooks = HookManager()
        self._options = WorkflowOptions()
        self._logger: logging.Logger | logging.LoggerAdapter | None = None
        self._error_handler: ErrorHandler | None = None
        self._persistence: Persistence | None = None
        self._validator: Validator | None = None

    def with_name(self, name: str) -> WorkflowBuilder:
        self._name = name
        return self

    def add_task(self, task: Runnable) -> WorkflowBuilder:
        self._steps.append(lambda: task)
        return self

    def add_step(
        self, name: str, execute_fn: TaskFunction, options: TaskOptions | None = None
    ) -> WorkflowBuilder:
        """
        Add a Task built from a plain function.

        The task gets the workflow's retry/backoff/timeout defaults (unless
        ``options`` is given) plus its logger, error handler, persistence
        and hook manager, so onTaskRetry/onTaskTimeout hooks fire for it.
        """
        self._steps.append(
            lambda: Task(
                name,
                execute_fn,
                options or self._options.task_options(),
                logger=self._logger,
                error_handler=self._error_handler,
                persistence=self._persistence,
                hooks=self._hooks,
            )
        )
        return self

    def add_parallel_tasks(
        self, tasks: Sequence[Runnable], name: str = "ParallelTasks"
    ) -> WorkflowBuilder:
        self._steps.append(
            lambda: ParallelTask(
                name,
                tasks,
                middleware=self._options.middleware,
                logger=self._logger,
                error_handler=self._error_handler,
            )
        )
        return self

    def add_conditional_tasks(
        self, condition: Condition, tasks: Sequence[Runnable], name: str = "ConditionalTasks"
    ) -> WorkflowBuilder:
        self._steps.append(
            lambda: ConditionalTask(
                name,
                condition,
                tasks,
                middleware=self._options.middleware,
                logger=self._logger,
                error_handler=self._error_handler,
            )
        )
        return self

    def add_hook(self, hook_type: HookType | str, hook: Hook) -> WorkflowBuilder:
        self._hooks.register_hook(hook_type, hook)
        return self

    def with_options(self, options: WorkflowOptions) -> WorkflowBuilder:
        """Set workflow options, including the task defaults and middleware used by steps and groups."""
        self._options = options
        return self

    def with_logger(self, logger: logging.Logger | logging.LoggerAdapter) -> WorkflowBuilder:
        self._logger = logger
        return self

    def with_error_handler(self, error_handler: ErrorHandler) -> WorkflowBuilder:
        self._error_handler = error_handler
        return self

    def with_persistence(self, persistence: Persistence) -> WorkflowBuilder:
        self._persistence = persistence
        return self

    def with_validator(self, validator: Validator) -> WorkflowBuilder:
        self._validator = validator
        return self

    def with_event_bus(self, bus: EventBus) -> WorkflowBuilder:
        """
        Publish every lifecycle event on ``bus``.

        The event type is the hook's camelCase name (e.g. ``"onTaskFinish"``),
        the payload ``{"workflow": name, "subject": ..., "error": ...}``.
        """
        for hook_type in HookType:
            self._hooks.register_hook(hook_type, self._bridge(bus, hook_type))
        return self

    def _bridge(self, bus: EventBus, hook_type: HookType) -> Hook:
        def publish(subject: Any, error: BaseException | None = None) -> None:
            bus.emit(
                hook_type.value,
                {"workflow": self._name, "subject": subject, "error": error},
            )

        return publish

    def build(self) -> Workflow:
        """
        Create the workflow.

        Raises:
            ConfigurationError: If no name was set
        """
        if not self._name:
            raise ConfigurationError("Workflow name is required")

        return Workflow(
            self._name,
            [make() for make in self._steps],
            self._hooks,
            self._options,
            logger=self._logger,
            error_handler=self._error_handler,
            persistence=self._persistence,
            validator=self._validator,
        )
