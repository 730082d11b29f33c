"""In-memory storage implementation for pyflow.

Design Pattern: Adapter Pattern
InMemoryPersistence adapts in-memory dictionaries to the Persistence
interface.

Instance is immediately usable after __init__.
"""

from __future__ import annotations

import asyncio

from pyflow.models import TaskState, WorkflowState
from pyflow.storage.base import Persistence


class InMemoryPersistence(Persistence):
    """In-memory checkpoint storage.

    Default backend of FlowManager and the natural choice for tests. Can
    be substituted for SqlitePersistence without changing client code.

    Usage:
        storage = InMemoryPersistence()
        await storage.save_workflow_state("orders", WorkflowState(WorkflowStatus.PAUSED, 2))
    """

    def __init__(self):
        self._workflow_states: dict[str, WorkflowState] = {}
        self._task_states: dict[str, TaskState] = {}
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return "InMemoryPersistence"

    async def save_workflow_state(self, workflow_id: str, state: WorkflowState) -> None:
        async with self._lock:
            self._workflow_states[workflow_id] = state

    async def get_workflow_state(self, workflow_id: str) -> WorkflowState | None:
        async with self._lock:
            return self._workflow_states.get(workflow_id)

    async def save_task_state(self, task_id: str, state: TaskState) -> None:
        async with self._lock:
            self._task_states[task_id] = state

    async def get_task_state(self, task_id: str) -> TaskState | None:
        async with self._lock:
            return self._task_states.get(task_id)

    async def reset(self) -> None:
        """Clear all data."""
        async with self._lock:
            self._workflow_states.clear()
            self._task_states.clear()
