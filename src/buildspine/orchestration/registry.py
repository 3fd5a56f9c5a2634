"""Task Registry — name → task lookup for targets, CLI and watch bindings.

ARCHITECTURE
────────────
::

    registry.register(task)          → stores under task.name
    registry.resolve(name)           → TaskHandle or UnknownTaskError
    registry.series(*names)          → composite, names resolved now
    registry.parallel(*names)        → composite, names resolved now
    registry.seal()                  → no further registration

    DuplicateTaskError   ── register() with a known name
    UnknownTaskError     ── resolve() with an unknown name
    RegistrySealedError  ── register() after seal()

The registry is populated during startup configuration and then sealed;
tasks are never redefined while the process runs. Names are plain strings;
``TaskId`` members are accepted anywhere a name is.

Example::

    registry = TaskRegistry()
    registry.register(Task.define(TaskId.CLEAN, clean))
    registry.register(registry.series(TaskId.CLEAN, TaskId.BUILD_SCRIPTS, name=TaskId.BUILD))
    registry.seal()
    build = registry.resolve("build")
"""

from __future__ import annotations

from collections.abc import Iterator

from buildspine.core.logging import get_logger
from buildspine.orchestration.composition import CompositeTask, parallel, series
from buildspine.orchestration.exceptions import (
    DuplicateTaskError,
    RegistrySealedError,
    UnknownTaskError,
)
from buildspine.orchestration.task import TaskHandle, TaskId, task_name

logger = get_logger(__name__)


class TaskRegistry:
    """Mapping from task name to task handle."""

    def __init__(self) -> None:
        self._tasks: dict[str, TaskHandle] = {}
        self._sealed = False

    def register(self, task: TaskHandle) -> TaskHandle:
        """
        Register a task or composite under its name.

        Returns:
            The registered task (so calls can be chained)

        Raises:
            DuplicateTaskError: If the name is already registered
            RegistrySealedError: If the registry has been sealed
        """
        if self._sealed:
            raise RegistrySealedError(task.name)
        if task.name in self._tasks:
            raise DuplicateTaskError(task.name)

        self._tasks[task.name] = task
        logger.debug(
            "task_registered",
            task=task.name,
            composite=isinstance(task, CompositeTask),
        )
        return task

    def resolve(self, name: str | TaskId) -> TaskHandle:
        """
        Get a task by name.

        Raises:
            UnknownTaskError: If the name is not registered
        """
        key = task_name(name)
        try:
            return self._tasks[key]
        except KeyError:
            raise UnknownTaskError(key, self.names()) from None

    def series(self, *names: str | TaskId, name: str | TaskId | None = None, description: str = "") -> CompositeTask:
        """``series()`` over registered names, resolved at composition time."""
        members = [self.resolve(n) for n in names]
        return series(*members, name=task_name(name) if name else None, description=description)

    def parallel(self, *names: str | TaskId, name: str | TaskId | None = None, description: str = "") -> CompositeTask:
        """``parallel()`` over registered names, resolved at composition time."""
        members = [self.resolve(n) for n in names]
        return parallel(*members, name=task_name(name) if name else None, description=description)

    def seal(self) -> None:
        """Freeze the registry once startup configuration is done."""
        self._sealed = True
        logger.debug("task_registry_sealed", task_count=len(self._tasks))

    @property
    def sealed(self) -> bool:
        return self._sealed

    def names(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._tasks)

    def __contains__(self, name: object) -> bool:
        if isinstance(name, str):
            return task_name(name) in self._tasks
        return False

    def __iter__(self) -> Iterator[TaskHandle]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)
