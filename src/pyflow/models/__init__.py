"""Core data models for task and workflow execution.

Defines types for status tracking, checkpoints, retry/backoff behaviour
and configuration.

Design: Dependency-Free Models
These types have no dependencies on core, executor or storage modules to
prevent circular imports and enable clean layering.
"""

from pyflow.models.backoff import (
    BackoffKind,
    BackoffOptions,
    BackoffStrategy,
    ExponentialBackoff,
    FixedBackoff,
    LinearBackoff,
    create_backoff,
)
from pyflow.models.options import Middleware, Next, TaskOptions, WorkflowOptions
from pyflow.models.retry import RetryPolicy, TimeoutPolicy
from pyflow.models.state import TaskState, WorkflowState
from pyflow.models.status import TaskStatus, WorkflowStatus

__all__ = [
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
    "Next",
    "TaskState",
    "WorkflowState",
    "TaskStatus",
    "WorkflowStatus",
]
