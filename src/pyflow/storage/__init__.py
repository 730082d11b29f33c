"""Storage backends for workflow and task checkpoints.

Provides multiple storage implementations behind a common interface:
    - Persistence: Abstract interface
    - InMemoryPersistence: In-memory storage (default, testing)
    - SqlitePersistence: SQLite-backed storage
    - RedisPersistence: Redis-backed shared storage

Design: Adapter Pattern + Dependency Inversion (SOLID)
    All storage implementations adapt to the Persistence interface.
    Clients depend on the abstraction, not on concrete backends.
"""

from pyflow.storage.base import Persistence, StorageError
from pyflow.storage.memory import InMemoryPersistence

# SQLite and Redis backends import their drivers lazily so that using
# one backend never requires the other's driver to import cleanly.


def __getattr__(name: str):
    """Lazy import of driver-backed storage implementations."""
    if name == "SqlitePersistence":
        from pyflow.storage.sqlite import SqlitePersistence

        return SqlitePersistence
    elif name == "RedisPersistence":
        from pyflow.storage.redis import RedisPersistence

        return RedisPersistence
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Persistence",
    "StorageError",
    "InMemoryPersistence",
    "SqlitePersistence",
    "RedisPersistence",
]
