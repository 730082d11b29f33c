"""SQLite-backed storage implementation for pyflow.

Design Pattern: Adapter Pattern
SqlitePersistence adapts a SQLite database to the Persistence interface.

Implementation details:
- aiosqlite for async operations
- WAL mode for concurrent reads
- Upserts so saving a checkpoint is idempotent
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

import aiosqlite

from pyflow.models import TaskState, WorkflowState
from pyflow.storage.base import (
    Persistence,
    StorageError,
    decode_task_state,
    decode_workflow_state,
)


class SqlitePersistence(Persistence):
    """SQLite-backed durable checkpoint storage.

    After __init__, the instance is not yet usable. Call connect() first
    (no async work in __init__).

    Usage:
        storage = SqlitePersistence("pyflow.db")
        await storage.connect()
        try:
            await storage.save_workflow_state(...)
        finally:
            await storage.close()
    """

    def __init__(self, db_path: str):
        """Initialize storage (connection not opened yet).

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = db_path
        self._connection: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()  # Serialize access to shared connection

    @classmethod
    async def in_memory(cls) -> SqlitePersistence:
        """
        Create an in-memory SQLite storage for testing.

        Returns:
            Connected in-memory storage instance

        Example:
            storage = await SqlitePersistence.in_memory()
        """
        instance = cls(":memory:")
        await instance.connect()
        return instance

    def __repr__(self) -> str:
        if self.db_path == ":memory:":
            return "SqlitePersistence(in-memory)"
        return f"SqlitePersistence({self.db_path})"

    async def connect(self) -> None:
        """Open database connection and initialize schema.

        Calling connect() on an open instance is a no-op.
        """
        if self._connection is not None:
            return

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(
            self.db_path,
            timeout=5.0,
            isolation_level=None,  # Autocommit mode
        )

        # In-memory databases report "memory" and don't support WAL
        cursor = await self._connection.execute("PRAGMA journal_mode=WAL")
        result = await cursor.fetchone()
        await cursor.close()

        if result:
            mode = result[0].upper()
            if mode not in ("WAL", "MEMORY"):
                raise StorageError(f"Failed to enable WAL mode, got: {result[0]}")

        await self._connection.execute("PRAGMA synchronous=NORMAL")
        await self._connection.execute("PRAGMA busy_timeout=5000")

        await self._create_schema()
        await self._connection.commit()

    async def _create_schema(self) -> None:
        """Create tables.

        Schema design:
        - workflow_state: one row per workflow name
        - task_state: one row per task name
        - INTEGER timestamps (milliseconds)
        """
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS workflow_state (
                workflow_id TEXT PRIMARY KEY,
                status TEXT NOT NULL,
                current_task_index INTEGER NOT NULL DEFAULT 0,
                updated_at INTEGER NOT NULL
            )
        """)

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS task_state (
                task_id TEXT PRIMARY KEY,
                status TEXT NOT NULL,
                updated_at INTEGER NOT NULL
            )
        """)

    async def save_workflow_state(self, workflow_id: str, state: WorkflowState) -> None:
        self._check_connected()

        async with self._lock:
            await self._connection.execute(
                """
                INSERT INTO workflow_state (workflow_id, status, current_task_index, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(workflow_id) DO UPDATE SET
                    status = excluded.status,
                    current_task_index = excluded.current_task_index,
                    updated_at = excluded.updated_at
            """,
                (workflow_id, state.status.value, state.current_task_index, _now_ms()),
            )
            await self._connection.commit()

    async def get_workflow_state(self, workflow_id: str) -> WorkflowState | None:
        self._check_connected()

        async with self._lock:
            cursor = await self._connection.execute(
                "SELECT status, current_task_index FROM workflow_state WHERE workflow_id = ?",
                (workflow_id,),
            )
            row = await cursor.fetchone()
            await cursor.close()

        if row is None:
            return None
        return decode_workflow_state(row[0], row[1])

    async def save_task_state(self, task_id: str, state: TaskState) -> None:
        self._check_connected()

        async with self._lock:
            await self._connection.execute(
                """
                INSERT INTO task_state (task_id, status, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(task_id) DO UPDATE SET
                    status = excluded.status,
                    updated_at = excluded.updated_at
            """,
                (task_id, state.status.value, _now_ms()),
            )
            await self._connection.commit()

    async def get_task_state(self, task_id: str) -> TaskState | None:
        self._check_connected()

        async with self._lock:
            cursor = await self._connection.execute(
                "SELECT status FROM task_state WHERE task_id = ?",
                (task_id,),
            )
            row = await cursor.fetchone()
            await cursor.close()

        if row is None:
            return None
        return decode_task_state(row[0])

    async def reset(self) -> None:
        """Clear all data (for testing/demos).

        After reset, storage is empty but functional.
        """
        self._check_connected()

        async with self._lock:
            await self._connection.execute("DELETE FROM workflow_state")
            await self._connection.execute("DELETE FROM task_state")
            await self._connection.commit()

    async def close(self) -> None:
        """Close storage connections.

        Explicit resource cleanup, not relying on GC.
        """
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    def _check_connected(self) -> None:
        """Guard clause: Ensure connection is open."""
        if self._connection is None:
            raise StorageError("Not connected. Call connect() first.")


def _now_ms() -> int:
    return int(datetime.now().timestamp() * 1000)
