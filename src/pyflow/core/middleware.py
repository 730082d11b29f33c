"""Middleware pipeline around task invocations.

Each middleware is ``async def mw(context, call_next)``. middleware[0] is
outermost: it runs first, and its code after ``await call_next()`` runs
last. A middleware that never awaits ``call_next`` skips everything
beneath it, including the task itself.

Example:
    ```python
    async def timing(context, call_next):
        started = time.monotonic()
        await call_next()
        context.set("elapsed", time.monotonic() - started)

    result = await run_middleware([timing], context, lambda: task.run(context))
    ```
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from pyflow.models.options import Middleware

T = TypeVar("T")

__all__ = ["run_middleware"]


async def run_middleware(
    middleware: Sequence[Middleware],
    context: Any,
    handler: Callable[[], Awaitable[T]],
) -> T | None:
    """
    Run ``handler`` wrapped in the middleware chain.

    Args:
        middleware: Ordered middleware, outermost first
        context: Context handed to every middleware
        handler: The wrapped invocation (typically ``task.run(context)``)

    Returns:
        The handler's result, or None if a middleware skipped it
    """
    if not middleware:
        return await handler()

    outcome: list[T] = []

    async def dispatch(index: int) -> None:
        if index == len(middleware):
            outcome.append(await handler())
            return
        await middleware[index](context, lambda: dispatch(index + 1))

    await dispatch(0)
    return outcome[-1] if outcome else None
