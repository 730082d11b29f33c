"""Guarded sequential execution of child tasks."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pyflow.core.context import TaskContext
from pyflow.core.error_handler import ErrorHandler, LoggingErrorHandler
from pyflow.core.middleware import run_middleware
from pyflow.executor.policy import ExecutionPolicy
from pyflow.executor.task import Runnable
from pyflow.models import Middleware, TaskOptions, TaskStatus

Condition = Callable[[TaskContext], bool | Awaitable[bool]]


class ConditionalTask:
    """
    Runs its children in order, but only if ``condition(context)`` holds.

    The condition is evaluated once per run(), before any child starts,
    and never re-checked. When it is false nothing runs, nothing is
    recorded in the context and run() returns None.

    Example:
        ```python
        notify = ConditionalTask(
            "notify_if_large",
            lambda ctx: ctx.get_task_output("total", 0) > 1000,
            [send_email, page_on_call],
        )
        ```
    """

    def __init__(
        self,
        name: str,
        condition: Condition,
        tasks: Sequence[Runnable],
        *,
        middleware: Sequence[Middleware] = (),
        options: TaskOptions | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        error_handler: ErrorHandler | None = None,
    ):
        self.name = name
        self.condition = condition
        self.tasks = list(tasks)
        self._middleware = tuple(middleware)
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._error_handler = error_handler or LoggingErrorHandler(self._logger)
        self._policy = (
            ExecutionPolicy.from_options(options, self._logger) if options is not None else None
        )
        self._status = TaskStatus.PENDING

    @property
    def status(self) -> TaskStatus:
        return self._status

    async def run(self, context: TaskContext) -> list[Any] | None:
        self._status = TaskStatus.RUNNING

        try:
            matched = self.condition(context)
            if inspect.isawaitable(matched):
                matched = await matched
        except Exception:
            self._status = TaskStatus.FAILED
            raise

        if not matched:
            self._logger.info(f"Condition not met, skipping: {self.name}")
            self._status = TaskStatus.COMPLETED
            return None

        self._logger.info(f"Condition met, running {len(self.tasks)} tasks: {self.name}")

        async def run_children() -> list[Any]:
            results = []
            for task in self.tasks:
                results.append(
                    await run_middleware(self._middleware, context, _bind(task, context))
                )
            return results

        async def on_failure(error: BaseException, timed_out: bool) -> None:
            await self._error_handler.handle_error(error, context)

        try:
            if self._policy is None:
                results = await run_children()
            else:
                results = await self._policy.execute(
                    self.name, run_children, on_failure=on_failure
                )
        except Exception:
            self._status = TaskStatus.FAILED
            raise

        context.set_task_output(self.name, results)
        self._status = TaskStatus.COMPLETED
        return results

    def __repr__(self) -> str:
        names = [task.name for task in self.tasks]
        return f"ConditionalTask(name={self.name!r}, tasks={names!r}, status={self._status})"


def _bind(task: Runnable, context: TaskContext):
    return lambda: task.run(context)
