"""
Orchestration: tasks, composites, the task registry and the artifact planner.

Quick start::

    from buildspine.orchestration import Task, TaskRegistry, series, parallel

    registry = TaskRegistry()
    clean = registry.register(Task.define("clean", clean_body))
    build = registry.register(series(clean, parallel(scripts, styles), name="build"))
"""

from buildspine.orchestration.composition import (
    CompositeKind,
    CompositeTask,
    parallel,
    series,
    validate_order,
    walk,
)
from buildspine.orchestration.context import BuildContext
from buildspine.orchestration.exceptions import (
    CycleDetectedError,
    DuplicateTaskError,
    OrderingError,
    PlanResolutionError,
    RegistrySealedError,
    UnknownTaskError,
)
from buildspine.orchestration.planner import plan, plan_layers
from buildspine.orchestration.registry import TaskRegistry
from buildspine.orchestration.task import Task, TaskHandle, TaskId, task_name
from buildspine.orchestration.task_result import RunResult

__all__ = [
    "BuildContext",
    "CompositeKind",
    "CompositeTask",
    "CycleDetectedError",
    "DuplicateTaskError",
    "OrderingError",
    "PlanResolutionError",
    "RegistrySealedError",
    "RunResult",
    "Task",
    "TaskHandle",
    "TaskId",
    "TaskRegistry",
    "UnknownTaskError",
    "parallel",
    "plan",
    "plan_layers",
    "series",
    "task_name",
    "validate_order",
    "walk",
]
