"""Publish/subscribe notification bus.

Fire-and-forget, synchronous dispatch to registered listeners. There is
no delivery guarantee and missed events are not kept.

Design: Dependency Injection
    There is no process-wide bus. Create an EventBus and hand it to the
    components that publish or subscribe (see WorkflowBuilder.with_event_bus).
"""

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class EventBus:
    """Explicitly constructed event bus.

    Usage:
        ```python
        bus = EventBus()
        bus.on("onTaskFinish", lambda payload: print(payload["subject"]))
        bus.emit("onTaskFinish", {"subject": "fetch"})
        ```
    """

    def __init__(self):
        # Each entry is (listener, once)
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}

    def on(self, event_type: str, listener: Listener) -> None:
        """Subscribe to every future emission of ``event_type``."""
        self._listeners.setdefault(event_type, []).append((listener, False))

    def once(self, event_type: str, listener: Listener) -> None:
        """Subscribe to the next emission of ``event_type`` only."""
        self._listeners.setdefault(event_type, []).append((listener, True))

    def off(self, event_type: str, listener: Listener) -> None:
        """Remove the first registration of ``listener`` for ``event_type``.

        Unknown listeners are ignored.
        """
        entries = self._listeners.get(event_type, [])
        for i, (registered, _) in enumerate(entries):
            if registered is listener or registered == listener:
                del entries[i]
                return

    def emit(self, event_type: str, payload: Any = None) -> None:
        """Call every listener for ``event_type`` synchronously, in order.

        Listener failures are logged and do not stop delivery to the
        remaining listeners.
        """
        entries = self._listeners.get(event_type)
        if not entries:
            return

        # once-listeners are removed before dispatch so re-entrant emits skip them
        self._listeners[event_type] = [entry for entry in entries if not entry[1]]

        for listener, _ in entries:
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Listener for {event_type!r} failed: {e}")

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))
