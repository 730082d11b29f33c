"""Redis-based persistence implementation.

Lets several processes share workflow checkpoints: a workflow paused in
one process can be restored and resumed in another.

Data Structures:
- pyflow:workflow:{workflow_id} (HASH): status, current_task_index, updated_at
- pyflow:task:{task_id} (HASH): status, updated_at

Design: Adapter Pattern
Implements the Persistence interface for Redis, adapting the key-value
store to checkpoint records.
"""

from __future__ import annotations

from datetime import UTC, datetime

try:
    import redis.asyncio as redis
except ImportError:
    raise ImportError("redis-py is required for RedisPersistence. Install with: pip install redis")

from pyflow.models import TaskState, WorkflowState
from pyflow.storage.base import (
    Persistence,
    StorageError,
    decode_task_state,
    decode_workflow_state,
)

KEY_PREFIX = "pyflow"


class RedisPersistence(Persistence):
    """Redis checkpoint storage using a connection pool.

    Usage:
        storage = RedisPersistence("redis://localhost:6379")
        await storage.connect()
        await storage.save_workflow_state("orders", state)
        await storage.close()
    """

    def __init__(self, redis_url: str = "redis://localhost:6379", max_connections: int = 16):
        """Initialize Redis persistence (not connected yet).

        Default redis_url works for local development.

        Args:
            redis_url: Redis connection URL
            max_connections: Maximum pool size
        """
        self._redis_url = redis_url
        self._max_connections = max_connections
        self._redis: redis.Redis | None = None

    def __repr__(self) -> str:
        return f"RedisPersistence({self._redis_url})"

    async def connect(self) -> None:
        """Establish Redis connection pool."""
        self._redis = redis.from_url(
            self._redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=self._max_connections,
        )

    async def close(self) -> None:
        """Close Redis connection pool."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def _check_connected(self) -> None:
        """Ensure connection established.

        Raises immediately if not connected.
        """
        if self._redis is None:
            raise StorageError("Not connected. Call connect() first.")

    @staticmethod
    def _workflow_key(workflow_id: str) -> str:
        return f"{KEY_PREFIX}:workflow:{workflow_id}"

    @staticmethod
    def _task_key(task_id: str) -> str:
        return f"{KEY_PREFIX}:task:{task_id}"

    async def save_workflow_state(self, workflow_id: str, state: WorkflowState) -> None:
        self._check_connected()
        await self._redis.hset(
            self._workflow_key(workflow_id),
            mapping={
                "status": state.status.value,
                "current_task_index": state.current_task_index,
                "updated_at": int(datetime.now(UTC).timestamp()),
            },
        )

    async def get_workflow_state(self, workflow_id: str) -> WorkflowState | None:
        self._check_connected()
        data = await self._redis.hgetall(self._workflow_key(workflow_id))
        if not data:
            return None
        return decode_workflow_state(data["status"], data.get("current_task_index", 0))

    async def save_task_state(self, task_id: str, state: TaskState) -> None:
        self._check_connected()
        await self._redis.hset(
            self._task_key(task_id),
            mapping={
                "status": state.status.value,
                "updated_at": int(datetime.now(UTC).timestamp()),
            },
        )

    async def get_task_state(self, task_id: str) -> TaskState | None:
        self._check_connected()
        data = await self._redis.hgetall(self._task_key(task_id))
        if not data:
            return None
        return decode_task_state(data["status"])

    async def reset(self) -> None:
        """Delete every pyflow:* key, leaving other Redis data alone."""
        self._check_connected()

        keys = []
        async for key in self._redis.scan_iter(match=f"{KEY_PREFIX}:*"):
            keys.append(key)

        if keys:
            await self._redis.delete(*keys)
