"""FlowManager: a registry of named workflows plus task factories.

The manager hands its logger, error handler and persistence backend to
everything it creates, so workflows built through it checkpoint to the
same store and can be restored from it by name.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pyflow.core.error_handler import ErrorHandler, LoggingErrorHandler
from pyflow.core.hooks import HookManager
from pyflow.executor import (
    ConditionalTask,
    ParallelTask,
    Runnable,
    ScheduledTask,
    Task,
    Workflow,
    WorkflowBuilder,
)
from pyflow.executor.conditional import Condition
from pyflow.executor.task import TaskFunction
from pyflow.models import Middleware, TaskOptions, WorkflowOptions, WorkflowStatus
from pyflow.storage import InMemoryPersistence, Persistence


class FlowManager:
    """
    Creates, registers and controls workflows by name.

    Control methods on an unknown name log a warning and return None
    instead of raising.

    Usage:
        ```python
        manager = FlowManager()
        builder = manager.create_workflow("orders").add_step("charge", charge)
        workflow = manager.build_workflow(builder)

        await workflow.execute(order)
        await manager.pause_workflow("orders")
        ```
    """

    def __init__(
        self,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        error_handler: ErrorHandler | None = None,
        persistence: Persistence | None = None,
    ):
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.error_handler = error_handler or LoggingErrorHandler(self.logger)
        self.persistence = persistence if persistence is not None else InMemoryPersistence()
        self._workflows: dict[str, Workflow] = {}

    # Workflows

    def create_workflow(self, name: str, options: WorkflowOptions | None = None) -> WorkflowBuilder:
        """Start a builder pre-wired with this manager's collaborators."""
        builder = (
            WorkflowBuilder()
            .with_name(name)
            .with_logger(self.logger)
            .with_error_handler(self.error_handler)
            .with_persistence(self.persistence)
        )
        if options is not None:
            builder.with_options(options)
        return builder

    def build_workflow(self, builder: WorkflowBuilder) -> Workflow:
        """Build and register a workflow. A name already in use is replaced."""
        workflow = builder.build()
        if workflow.name in self._workflows:
            self.logger.warning(f"Replacing registered workflow: {workflow.name}")
        self._workflows[workflow.name] = workflow
        return workflow

    def get_workflow(self, name: str) -> Workflow | None:
        return self._workflows.get(name)

    async def pause_workflow(self, name: str) -> None:
        workflow = self._lookup(name)
        if workflow is not None:
            await workflow.pause()

    async def resume_workflow(self, name: str) -> Any:
        """Resume a paused workflow and return its output.

        Raises:
            InvalidStateError: If the workflow exists but is not paused
        """
        workflow = self._lookup(name)
        if workflow is None:
            return None
        return await workflow.resume()

    async def cancel_workflow(self, name: str) -> None:
        workflow = self._lookup(name)
        if workflow is not None:
            await workflow.cancel()

    def get_workflow_status(self, name: str) -> WorkflowStatus | None:
        workflow = self._lookup(name)
        return workflow.status if workflow is not None else None

    def get_workflow_tasks_status(self, name: str) -> list[dict[str, Any]] | None:
        workflow = self._lookup(name)
        return workflow.get_tasks_status() if workflow is not None else None

    async def restore_workflow(self, name: str) -> Workflow | None:
        """
        Load a registered workflow's checkpoint from persistence.

        Call ``resume_workflow(name)`` afterwards to continue a workflow
        that was paused, possibly by another manager sharing the store.

        Returns:
            The workflow, or None if it is unknown or has no checkpoint
        """
        workflow = self._lookup(name)
        if workflow is None:
            return None

        state = await self.persistence.get_workflow_state(name)
        if state is None:
            self.logger.warning(f"No checkpoint stored for workflow: {name}")
            return None

        workflow.restore_state(state)
        self.logger.info(f"Restored workflow {name}: {state}")
        return workflow

    def _lookup(self, name: str) -> Workflow | None:
        workflow = self._workflows.get(name)
        if workflow is None:
            self.logger.warning(f"Workflow not found: {name}")
        return workflow

    # Tasks

    def create_task(
        self,
        name: str,
        execute_fn: TaskFunction,
        options: TaskOptions | None = None,
        hooks: HookManager | None = None,
    ) -> Task:
        return Task(
            name,
            execute_fn,
            options,
            logger=self.logger,
            error_handler=self.error_handler,
            persistence=self.persistence,
            hooks=hooks,
        )

    def create_parallel_tasks(
        self,
        name: str,
        tasks: Sequence[Runnable],
        middleware: Sequence[Middleware] = (),
        options: TaskOptions | None = None,
    ) -> ParallelTask:
        return ParallelTask(
            name,
            tasks,
            middleware=middleware,
            options=options,
            logger=self.logger,
            error_handler=self.error_handler,
        )

    def create_conditional_task(
        self,
        name: str,
        condition: Condition,
        tasks: Sequence[Runnable],
        middleware: Sequence[Middleware] = (),
        options: TaskOptions | None = None,
    ) -> ConditionalTask:
        return ConditionalTask(
            name,
            condition,
            tasks,
            middleware=middleware,
            options=options,
            logger=self.logger,
            error_handler=self.error_handler,
        )

    def create_scheduled_task(
        self,
        name: str,
        execute_fn: TaskFunction,
        cron_expression: str,
        options: TaskOptions | None = None,
    ) -> ScheduledTask:
        return ScheduledTask(
            name,
            execute_fn,
            cron_expression,
            options,
            logger=self.logger,
            error_handler=self.error_handler,
            persistence=self.persistence,
        )

    def __len__(self) -> int:
        return len(self._workflows)

    def __repr__(self) -> str:
        return f"FlowManager(workflows={list(self._workflows)!r}, persistence={self.persistence!r})"
