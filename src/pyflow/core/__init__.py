"""
Core types shared by tasks and workflows.

- TaskContext / WorkflowContext: per-execution state
- HookManager / HookType: lifecycle callbacks
- run_middleware: middleware pipeline around task invocations
- ErrorHandler / LoggingErrorHandler: error reporting collaborator
- EventBus: optional publish/subscribe bus
"""

from pyflow.core.context import TaskContext, WorkflowContext
from pyflow.core.error_handler import ErrorHandler, LoggingErrorHandler
from pyflow.core.events import EventBus
from pyflow.core.hooks import Hook, HookManager, HookType
from pyflow.core.middleware import run_middleware

__all__ = [
    "TaskContext",
    "WorkflowContext",
    "ErrorHandler",
    "LoggingErrorHandler",
    "EventBus",
    "Hook",
    "HookManager",
    "HookType",
    "run_middleware",
]
