"""Task: a named unit of work with its own retry and timeout policy.

Lifecycle of one run():

    Pending → Running → Completed
                 ↓
        (TimedOut) → Retrying → Running → ...
                 ↓
               Failed

Every failed attempt is reported to the error handler before the retry
decision. On success the result is recorded in the context under the
task's name. The final status (Completed or Failed) is checkpointed when
a persistence backend is configured.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from pyflow.core.context import TaskContext
from pyflow.core.error_handler import ErrorHandler, LoggingErrorHandler
from pyflow.core.hooks import HookManager, HookType
from pyflow.executor.policy import ExecutionPolicy
from pyflow.models import TaskOptions, TaskState, TaskStatus
from pyflow.storage.base import Persistence

TaskFunction = Callable[[TaskContext], Awaitable[Any] | Any]

__all__ = ["Runnable", "Task", "TaskFunction"]


@runtime_checkable
class Runnable(Protocol):
    """Anything a workflow can step through.

    Implemented independently by Task, ParallelTask, ConditionalTask and
    ScheduledTask; none of them inherits from another.
    """

    name: str

    @property
    def status(self) -> TaskStatus: ...

    async def run(self, context: TaskContext) -> Any: ...


class Task:
    """
    A unit of work run under an ExecutionPolicy.

    ``execute_fn`` receives the context and returns the task's result. It
    may be a coroutine function or a plain function; a plain function
    cannot be interrupted by the timeout.

    Example:
        ```python
        async def fetch_user(ctx):
            return await api.get_user(ctx.input["user_id"])

        task = Task("fetch_user", fetch_user, TaskOptions(retry_count=2, timeout_ms=500))
        user = await task.run(TaskContext({"user_id": 7}))
        ```
    """

    def __init__(
        self,
        name: str,
        execute_fn: TaskFunction,
        options: TaskOptions | None = None,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        error_handler: ErrorHandler | None = None,
        persistence: Persistence | None = None,
        hooks: HookManager | None = None,
    ):
        self.name = name
        self.options = options or TaskOptions()
        self._execute_fn = execute_fn
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._error_handler = error_handler or LoggingErrorHandler(self._logger)
        self._persistence = persistence
        self._hooks = hooks
        self._policy = ExecutionPolicy.from_options(self.options, self._logger)
        self._status = TaskStatus.PENDING

    @property
    def status(self) -> TaskStatus:
        return self._status

    async def run(self, context: TaskContext) -> Any:
        """
        Run the unit of work until it succeeds or its retries run out.

        Args:
            context: Shared context; the result is recorded under this task's name

        Returns:
            The unit of work's result

        Raises:
            TaskTimeoutError: If the final attempt timed out
            ExecutionError: If the final attempt failed, chained to the cause
        """
        self._logger.info(f"Running task: {self.name}")
        self._status = TaskStatus.RUNNING

        async def attempt() -> Any:
            self._status = TaskStatus.RUNNING
            result = self._execute_fn(context)
            if inspect.isawaitable(result):
                result = await result
            return result

        async def on_failure(error: BaseException, timed_out: bool) -> None:
            if timed_out:
                self._status = TaskStatus.TIMED_OUT
            await self._error_handler.handle_error(error, context)
            if timed_out:
                await self._fire(HookType.ON_TASK_TIMEOUT, error)

        async def on_retry(retry: int, delay_ms: int, error: BaseException) -> None:
            self._status = TaskStatus.RETRYING
            await self._fire(HookType.ON_TASK_RETRY, error)

        try:
            result = await self._policy.execute(
                self.name, attempt, on_failure=on_failure, on_retry=on_retry
            )
        except Exception:
            self._status = TaskStatus.FAILED
            await self._save_state()
            raise

        context.set_task_output(self.name, result)
        self._status = TaskStatus.COMPLETED
        await self._save_state()
        self._logger.info(f"Task completed: {self.name}")
        return result

    async def _fire(self, hook_type: HookType, error: BaseException) -> None:
        """Run task-scoped hooks. A failing hook is logged and never changes the outcome."""
        if self._hooks is None:
            return
        try:
            await self._hooks.execute_hooks(hook_type, self, error)
        except Exception:
            self._logger.exception(f"{hook_type.value} hook failed for task {self.name}")

    async def _save_state(self) -> None:
        if self._persistence is not None:
            await self._persistence.save_task_state(self.name, TaskState(self._status))

    def __repr__(self) -> str:
        return f"Task(name={self.name!r}, status={self._status})"
