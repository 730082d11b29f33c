"""Task plus a recurring cron trigger."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pyflow.core.context import TaskContext
from pyflow.core.error_handler import ErrorHandler
from pyflow.core.hooks import HookManager
from pyflow.executor.task import Task, TaskFunction
from pyflow.executor.trigger import CronTrigger, TriggerCallback
from pyflow.models import TaskOptions, TaskStatus
from pyflow.storage.base import Persistence

TriggerFactory = Callable[[str, TriggerCallback], Any]


class ScheduledTask:
    """
    A Task that also runs by itself on a cron schedule.

    Every firing runs the task against a new ``TaskContext(None)``, never
    a workflow's context. Inside a workflow it behaves like a plain Task.

    ``trigger_factory(expression, callback)`` must return an object with
    ``start()`` and an async ``stop()``; it defaults to CronTrigger.

    Example:
        ```python
        cleanup = ScheduledTask("cleanup", purge_expired, "0 3 * * *")
        cleanup.start()
        ...
        await cleanup.stop()
        ```
    """

    def __init__(
        self,
        name: str,
        execute_fn: TaskFunction,
        cron_expression: str,
        options: TaskOptions | None = None,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        error_handler: ErrorHandler | None = None,
        persistence: Persistence | None = None,
        hooks: HookManager | None = None,
        trigger_factory: TriggerFactory = CronTrigger,
    ):
        self.name = name
        self.cron_expression = cron_expression
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._task = Task(
            name,
            execute_fn,
            options,
            logger=self._logger,
            error_handler=error_handler,
            persistence=persistence,
            hooks=hooks,
        )
        self._trigger_factory = trigger_factory
        self._trigger = None

    @property
    def status(self) -> TaskStatus:
        return self._task.status

    @property
    def started(self) -> bool:
        return self._trigger is not None

    async def run(self, context: TaskContext) -> Any:
        return await self._task.run(context)

    def schedule(self, cron_expression: str) -> None:
        """Replace the expression. Takes effect on the next start()."""
        self.cron_expression = cron_expression

    def start(self) -> None:
        """Arm the trigger. Calling start() twice only logs a warning."""
        if self._trigger is not None:
            self._logger.warning(f"Scheduled task already started: {self.name}")
            return

        trigger = self._trigger_factory(self.cron_expression, self._on_fire)
        trigger.start()
        self._trigger = trigger
        self._logger.info(f"Scheduled task started: {self.name} ({self.cron_expression})")

    async def stop(self) -> None:
        """Disarm the trigger. Safe to call when not started."""
        if self._trigger is None:
            self._logger.warning(f"Scheduled task not running: {self.name}")
            return

        await self._trigger.stop()
        self._trigger = None
        self._logger.info(f"Scheduled task stopped: {self.name}")

    async def _on_fire(self) -> None:
        await self.run(TaskContext(None))

    def __repr__(self) -> str:
        return (
            f"ScheduledTask(name={self.name!r}, cron={self.cron_expression!r}, "
            f"status={self.status})"
        )
