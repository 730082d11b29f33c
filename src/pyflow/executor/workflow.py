"""Workflow orchestrator.

Steps through an ordered list of tasks under one WorkflowContext,
wrapping each in the middleware chain and firing lifecycle hooks around
it.

Status machine:

    Pending → Running → Completed
                 ↕        Failed
               Paused  → Cancelled

Checkpoints:
    After every task the cursor is advanced and ``{status,
    current_task_index}`` is saved, so a stored index always names the
    next task to run. A pause is honoured before the next task starts and
    is checkpointed at that moment.

Cancellation is cooperative: the flag is checked before each task, so a
task that is already running finishes first.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pyflow.core.context import WorkflowContext
from pyflow.core.error_handler import ErrorHandler, LoggingErrorHandler
from pyflow.core.hooks import Hook, HookManager, HookType
from pyflow.core.middleware import run_middleware
from pyflow.errors import InvalidStateError, ValidationError
from pyflow.executor.task import Runnable
from pyflow.models import WorkflowOptions, WorkflowState, WorkflowStatus
from pyflow.storage.base import Persistence

Validator = Callable[[Any], Sequence[str] | Awaitable[Sequence[str]]]
"""Returns the list of violations for an input; empty means valid."""


class Workflow:
    """
    An ordered, pausable, resumable sequence of tasks.

    Usage:
        ```python
        workflow = Workflow("orders", [validate, charge, ship], persistence=storage)
        output = await workflow.execute({"order_id": 42})
        # output == {"validate": ..., "charge": ..., "ship": ...}
        ```
    """

    def __init__(
        self,
        name: str,
        tasks: Sequence[Runnable],
        hook_manager: HookManager | None = None,
        options: WorkflowOptions | None = None,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        error_handler: ErrorHandler | None = None,
        persistence: Persistence | None = None,
        validator: Validator | None = None,
    ):
        self.name = name
        self.tasks = list(tasks)
        self.hooks = hook_manager or HookManager()
        self.options = options or WorkflowOptions()
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._error_handler = error_handler or LoggingErrorHandler(self._logger)
        self._persistence = persistence
        self._validator = validator

        self._status = WorkflowStatus.PENDING
        self._current_task_index = 0
        self._context: WorkflowContext | None = None
        self._paused = False
        self._cancelled = False
        self._running = False

    @property
    def status(self) -> WorkflowStatus:
        return self._status

    @property
    def current_task_index(self) -> int:
        return self._current_task_index

    @property
    def context(self) -> WorkflowContext | None:
        """Context of the current (or last) execution."""
        return self._context

    async def execute(self, input: Any = None) -> Any:
        """
        Run every task from the first one.

        Returns:
            A dict of task name → output when the workflow completes, or the
            context's current output if it was paused or cancelled

        Raises:
            ValidationError: If the validator reported violations (no task runs)
            Exception: Whatever a task raised, after reporting it
        """
        self._current_task_index = 0
        self._paused = False
        self._cancelled = False
        self._context = WorkflowContext(input, self.name)

        if self._validator is not None:
            violations = self._validator(input)
            if inspect.isawaitable(violations):
                violations = await violations
            if violations:
                self._logger.error(f"Workflow input rejected: {self.name}")
                raise ValidationError(list(violations))

        self._logger.info(f"Starting workflow: {self.name}")
        self._status = WorkflowStatus.RUNNING
        await self._save_state()
        return await self._run(starting=True)

    async def resume(self) -> Any:
        """
        Continue a paused workflow from its checkpointed task index.

        Raises:
            InvalidStateError: If the workflow is not paused, or its loop has not yet
                stopped at the pause
        """
        if self._status != WorkflowStatus.PAUSED:
            raise InvalidStateError(
                f"Cannot resume workflow {self.name!r}: status is {self._status}"
            )
        if self._running:
            raise InvalidStateError(
                f"Cannot resume workflow {self.name!r}: a task is still running"
            )

        if self._context is None:
            self._context = WorkflowContext(None, self.name)

        self._logger.info(
            f"Resuming workflow: {self.name} at task {self._current_task_index}"
        )
        self._paused = False
        self._status = WorkflowStatus.RUNNING
        await self._save_state()
        return await self._run(starting=False)

    async def pause(self) -> None:
        """Ask the workflow to stop before its next task. Only a running workflow pauses."""
        if self._status != WorkflowStatus.RUNNING:
            self._logger.warning(f"Cannot pause workflow {self.name!r}: status is {self._status}")
            return
        self._logger.info(f"Pausing workflow: {self.name}")
        self._paused = True
        self._status = WorkflowStatus.PAUSED

    async def cancel(self) -> None:
        """Stop a running or paused workflow for good."""
        if self._status not in (WorkflowStatus.RUNNING, WorkflowStatus.PAUSED):
            self._logger.warning(f"Cannot cancel workflow {self.name!r}: status is {self._status}")
            return
        self._logger.info(f"Cancelling workflow: {self.name}")
        was_paused = self._status == WorkflowStatus.PAUSED
        self._cancelled = True
        self._status = WorkflowStatus.CANCELLED
        if was_paused:
            # Nothing is running that would checkpoint this
            await self._save_state()

    async def _run(self, *, starting: bool) -> Any:
        """The task loop shared by execute() and resume()."""
        context = self._context
        hooks = self.hooks
        self._running = True

        try:
            if starting:
                await hooks.execute_hooks(HookType.ON_WORKFLOW_START, context)

            while self._current_task_index < len(self.tasks):
                if self._cancelled:
                    break
                if self._paused:
                    await self._save_state()
                    return context.output

                task = self.tasks[self._current_task_index]
                await hooks.execute_hooks(HookType.ON_TASK_START, task)
                await run_middleware(self.options.middleware, context, lambda: task.run(context))
                await hooks.execute_hooks(HookType.ON_TASK_FINISH, task)

                self._current_task_index += 1
                await self._save_state()

            if self._cancelled:
                self._logger.info(f"Workflow cancelled: {self.name}")
                await self._save_state()
                return context.output
            if self._paused:
                await self._save_state()
                return context.output

            await hooks.execute_hooks(HookType.ON_ALL_TASKS_FINISH, context)
            await hooks.execute_hooks(HookType.ON_WORKFLOW_FINISH, context)

            self._status = WorkflowStatus.COMPLETED
            await self._save_state()
            context.output = context.all_task_outputs()
            self._logger.info(f"Workflow completed: {self.name}")
            return context.output

        except Exception as e:
            await self._error_handler.handle_error(e, context)
            try:
                await hooks.execute_hooks(HookType.ON_WORKFLOW_ERROR, context, e)
            except Exception:
                self._logger.exception(f"onWorkflowError hook failed for {self.name}")
            self._status = WorkflowStatus.FAILED
            await self._save_state()
            raise

        finally:
            self._running = False

    def restore_state(self, state: WorkflowState) -> None:
        """Overwrite status and cursor from a checkpoint. Runs nothing."""
        self._status = state.status
        self._current_task_index = state.current_task_index
        self._paused = state.status == WorkflowStatus.PAUSED
        self._cancelled = state.status == WorkflowStatus.CANCELLED

    def get_tasks_status(self) -> list[dict[str, Any]]:
        return [{"name": task.name, "status": task.status} for task in self.tasks]

    def add_hook(self, hook_type: HookType | str, hook: Hook) -> None:
        self.hooks.register_hook(hook_type, hook)

    def set_validator(self, validator: Validator | None) -> None:
        self._validator = validator

    async def _save_state(self) -> None:
        if self._persistence is not None:
            await self._persistence.save_workflow_state(
                self.name, WorkflowState(self._status, self._current_task_index)
            )

    def __repr__(self) -> str:
        return (
            f"Workflow(name={self.name!r}, status={self._status}, "
            f"task={self._current_task_index}/{len(self.tasks)})"
        )
