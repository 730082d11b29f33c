"""
pyflow: Task and workflow execution engine for asyncio

Compose units of work into sequential, parallel and conditional
workflows, give each task its own retry/backoff and timeout policy, and
pause, resume or cancel a workflow at runtime with checkpointed recovery.

Design Pattern: Façade Pattern
This module re-exports the public surface so applications import from
``pyflow`` without knowing the package layout.

Example:
    ```python
    import asyncio
    from pyflow import BackoffOptions, FlowManager, TaskOptions

    async def fetch(ctx):
        return await api.get(ctx.input["url"])

    async def store(ctx):
        await db.save(ctx.get_task_output("fetch"))

    async def main():
        manager = FlowManager()
        builder = (
            manager.create_workflow("ingest")
            .add_step("fetch", fetch, TaskOptions(
                retry_count=3,
                backoff=BackoffOptions("exponential", delay_ms=200, max_delay_ms=5000),
                timeout_ms=2000,
            ))
            .add_step("store", store)
        )
        workflow = manager.build_workflow(builder)
        print(await workflow.execute({"url": "https://example.com"}))

    asyncio.run(main())
    ```
"""

# Errors
from pyflow.errors import (
    ConfigurationError,
    ExecutionError,
    FlowError,
    InvalidStateError,
    RetryableError,
    TaskTimeoutError,
    ValidationError,
)

# Models: statuses, checkpoints, policies, options
from pyflow.models import (
    BackoffKind,
    BackoffOptions,
    BackoffStrategy,
    ExponentialBackoff,
    FixedBackoff,
    LinearBackoff,
    Middleware,
    RetryPolicy,
    TaskOptions,
    TaskState,
    TaskStatus,
    TimeoutPolicy,
    WorkflowOptions,
    WorkflowState,
    WorkflowStatus,
    create_backoff,
)

# Contexts, hooks, middleware, events, error reporting
from pyflow.core import (
    ErrorHandler,
    EventBus,
    HookManager,
    HookType,
    LoggingErrorHandler,
    TaskContext,
    WorkflowContext,
    run_middleware,
)

# Storage (Adapter pattern); SqlitePersistence and RedisPersistence are
# imported from pyflow.storage so their drivers load only when used
from pyflow.storage import InMemoryPersistence, Persistence, StorageError

# Execution
from pyflow.executor import (
    ConditionalTask,
    CronTrigger,
    ExecutionPolicy,
    ParallelTask,
    Runnable,
    ScheduledTask,
    Task,
    Workflow,
    WorkflowBuilder,
)
from pyflow.manager import FlowManager

# Logging
from pyflow.log import LogLevel, configure_logging, set_level

__version__ = "0.1.0"

__all__ = [
    # Errors
    "FlowError",
    "ValidationError",
    "TaskTimeoutError",
    "ExecutionError",
    "InvalidStateError",
    "ConfigurationError",
    "RetryableError",

    # Models
    "TaskStatus",
    "WorkflowStatus",
    "TaskState",
    "WorkflowState",
    "BackoffKind",
    "BackoffOptions",
    "BackoffStrategy",
    "FixedBackoff",
    "LinearBackoff",
    "ExponentialBackoff",
    "create_backoff",
    "RetryPolicy",
    "TimeoutPolicy",
    "TaskOptions",
    "WorkflowOptions",
    "Middleware",

    # Core
    "TaskContext",
    "WorkflowContext",
    "HookManager",
    "HookType",
    "run_middleware",
    "EventBus",
    "ErrorHandler",
    "LoggingErrorHandler",

    # Storage
    "Persistence",
    "StorageError",
    "InMemoryPersistence",

    # Execution
    "Runnable",
    "Task",
    "ParallelTask",
    "ConditionalTask",
    "ScheduledTask",
    "CronTrigger",
    "ExecutionPolicy",
    "Workflow",
    "WorkflowBuilder",
    "FlowManager",

    # Logging
    "LogLevel",
    "configure_logging",
    "set_level",

    # Metadata
    "__version__",
]
