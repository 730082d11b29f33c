"""
Execution layer: tasks, composite tasks, workflows and their construction.

Design: Composition over inheritance
    Task, ParallelTask, ConditionalTask and ScheduledTask each implement
    the Runnable protocol on their own. Retry and timeout behaviour lives
    in ExecutionPolicy, which each of them may use.
"""

from pyflow.executor.builder import WorkflowBuilder
from pyflow.executor.conditional import ConditionalTask
from pyflow.executor.parallel import ParallelTask
from pyflow.executor.policy import ExecutionPolicy
from pyflow.executor.scheduled import ScheduledTask
from pyflow.executor.task import Runnable, Task
from pyflow.executor.trigger import CronTrigger
from pyflow.executor.workflow import Workflow

__all__ = [
    "Runnable",
    "Task",
    "ParallelTask",
    "ConditionalTask",
    "ScheduledTask",
    "CronTrigger",
    "ExecutionPolicy",
    "Workflow",
    "WorkflowBuilder",
]
