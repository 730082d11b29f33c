"""Cron-style recurring trigger.

Expressions have 5 fields (minute hour day month weekday) or 6 fields
with a leading seconds field, e.g. ``"*/10 * * * * *"`` fires every ten
seconds. Next fire times come from croniter.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from croniter import croniter

from pyflow.errors import ConfigurationError

logger = logging.getLogger(__name__)

TriggerCallback = Callable[[], Awaitable[None] | None]


def _to_croniter_fields(expression: str) -> str:
    fields = expression.split()
    if len(fields) not in (5, 6):
        raise ConfigurationError(
            f"Cron expression must have 5 or 6 fields, got {len(fields)}: {expression!r}"
        )
    # croniter expects the seconds field last
    if len(fields) == 6:
        fields = fields[1:] + fields[:1]
    return " ".join(fields)


class CronTrigger:
    """
    Calls ``callback`` every time ``expression`` fires, until stopped.

    Each firing runs as its own background task, so a slow callback never
    delays the next firing. Callback failures are logged and the trigger
    keeps running.

    Usage:
        ```python
        trigger = CronTrigger("0 * * * *", refresh_cache)
        trigger.start()
        ...
        await trigger.stop()
        ```
    """

    def __init__(self, expression: str, callback: TriggerCallback):
        self.expression = expression
        self._callback = callback
        self._fields = _to_croniter_fields(expression)
        try:
            croniter(self._fields, datetime.now())
        except (ValueError, KeyError) as e:
            raise ConfigurationError(f"Invalid cron expression {expression!r}: {e}") from e

        self._loop_task: asyncio.Task | None = None
        self._firings: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def next_fire_time(self, after: datetime | None = None) -> datetime:
        """First fire time strictly after ``after`` (default: now)."""
        return croniter(self._fields, after or datetime.now()).get_next(datetime)

    def start(self) -> None:
        """Arm the trigger. Must be called from a running event loop."""
        if self.running:
            return
        self._loop_task = asyncio.get_running_loop().create_task(self._run_loop())

    async def stop(self) -> None:
        """Disarm the trigger. Firings already in progress are left to finish."""
        if self._loop_task is None:
            return
        loop_task, self._loop_task = self._loop_task, None
        loop_task.cancel()
        try:
            await loop_task
        except asyncio.CancelledError:
            # Propagate a cancellation aimed at the caller, not at the loop
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise

    async def _run_loop(self) -> None:
        cron = croniter(self._fields, datetime.now())
        while True:
            next_time = cron.get_next(datetime)
            delay = (next_time - datetime.now()).total_seconds()
            if delay > 0:
                await asyncio.sleep(delay)

            firing = asyncio.create_task(self._fire())
            self._firings.add(firing)
            firing.add_done_callback(self._firings.discard)

    async def _fire(self) -> None:
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Scheduled callback for {self.expression!r} failed: {e}")

    def __repr__(self) -> str:
        return f"CronTrigger({self.expression!r}, running={self.running})"
