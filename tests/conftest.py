"""
Pytest configuration and fixtures for pyflow tests.

Provides reusable fixtures for storage backends, contexts and recording
collaborators.
"""

import shutil
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from pyflow.core import ErrorHandler, HookManager, TaskContext
from pyflow.storage import InMemoryPersistence
from pyflow.storage.sqlite import SqlitePersistence


class RecordingErrorHandler(ErrorHandler):
    """Error handler that remembers every report (and the status at that moment)."""

    def __init__(self, status_source=None):
        self.errors: list[BaseException] = []
        self.statuses = []
        self._status_source = status_source

    def watch(self, runnable) -> None:
        self._status_source = runnable

    async def handle_error(self, error, context) -> None:
        self.errors.append(error)
        if self._status_source is not None:
            self.statuses.append(self._status_source.status)


@pytest.fixture
async def in_memory_persistence() -> AsyncGenerator[InMemoryPersistence, None]:
    """Async in-memory persistence fixture with automatic cleanup."""
    storage = InMemoryPersistence()
    yield storage
    await storage.reset()


@pytest.fixture
async def sqlite_memory_persistence() -> AsyncGenerator[SqlitePersistence, None]:
    """Async SQLite in-memory persistence fixture with automatic cleanup."""
    storage = SqlitePersistence(":memory:")
    await storage.connect()
    yield storage
    await storage.close()


@pytest.fixture
def temp_db_path():
    """Temporary database file path with automatic cleanup."""
    tmpdir = Path(tempfile.mkdtemp())
    db_path = tmpdir / "test.db"
    yield db_path
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def context() -> TaskContext:
    return TaskContext({"user_id": 7})


@pytest.fixture
def hooks() -> HookManager:
    return HookManager()


@pytest.fixture
def error_handler() -> RecordingErrorHandler:
    return RecordingErrorHandler()
