"""Fan-out/fan-in over child tasks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from pyflow.core.context import TaskContext
from pyflow.core.error_handler import ErrorHandler, LoggingErrorHandler
from pyflow.core.middleware import run_middleware
from pyflow.executor.policy import ExecutionPolicy
from pyflow.executor.task import Runnable
from pyflow.models import Middleware, TaskOptions, TaskStatus


class ParallelTask:
    """
    Runs every child concurrently against the same context.

    Each child is wrapped in the middleware chain on its own. Results come
    back in the order the children were given, whatever order they finish
    in.

    Failure semantics:
        The first child failure is raised as soon as it happens. Siblings
        that are already running are not cancelled; they run to completion
        in the background and their results are discarded.

    With ``options`` the whole fan-out runs under an ExecutionPolicy, so a
    retry re-runs every child and a timeout cancels the ones still running.
    """

    def __init__(
        self,
        name: str,
        tasks: Sequence[Runnable],
        *,
        middleware: Sequence[Middleware] = (),
        options: TaskOptions | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        error_handler: ErrorHandler | None = None,
    ):
        self.name = name
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

    async def run(self, context: TaskContext) -> list[Any]:
        """Run all children and return their results in input order."""
        self._logger.info(f"Running {len(self.tasks)} tasks in parallel: {self.name}")
        self._status = TaskStatus.RUNNING

        async def fan_out() -> list[Any]:
            return list(
                await asyncio.gather(
                    *(
                        run_middleware(self._middleware, context, _bind(task, context))
                        for task in self.tasks
                    )
                )
            )

        async def on_failure(error: BaseException, timed_out: bool) -> None:
            await self._error_handler.handle_error(error, context)

        try:
            if self._policy is None:
                results = await fan_out()
            else:
                results = await self._policy.execute(self.name, fan_out, on_failure=on_failure)
        except Exception:
            self._status = TaskStatus.FAILED
            raise

        context.set_task_output(self.name, results)
        self._status = TaskStatus.COMPLETED
        return results

    def __repr__(self) -> str:
        names = [task.name for task in self.tasks]
        return f"ParallelTask(name={self.name!r}, tasks={names!r}, status={self._status})"


def _bind(task: Runnable, context: TaskContext):
    return lambda: task.run(context)
