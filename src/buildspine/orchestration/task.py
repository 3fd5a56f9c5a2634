"""Tasks — named units of build work.

A ``Task`` wraps a body (sync or async callable taking the
``BuildContext``) together with the artifacts it produces and requires.
Running a task never raises for body failures: the exception is captured
into a failed ``RunResult`` and logged. ``asyncio.CancelledError`` is not
captured.

``CompositeTask`` (see composition.py) implements the same ``TaskHandle``
protocol, so registries, composites and watch bindings accept either.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from buildspine.artifacts import Artifact
from buildspine.core.logging import get_logger
from buildspine.orchestration.task_result import RunResult

if TYPE_CHECKING:
    from buildspine.orchestration.context import BuildContext

logger = get_logger(__name__)

TaskBody = Callable[["BuildContext"], Awaitable[Any] | Any]


class TaskId(str, Enum):
    """Names of the built-in tasks and targets."""

    CLEAN = "clean"
    BUILD_SCRIPTS = "build:scripts"
    BUILD_STYLES = "build:styles"
    BUILD_STANDALONE = "build:standalone"
    BUILD = "build"
    DEFAULT = "default"
    LINT_SCRIPTS = "lint:scripts"
    LINT_STYLES = "lint:styles"
    LINT_TS = "lint:ts"
    LINT = "lint"
    WATCH = "watch"
    SANDBOX = "sandbox"
    TEST = "test"
    DEVELOP = "develop"


def task_name(name: str | TaskId) -> str:
    """Normalize a TaskId or plain string to the registry key."""
    return name.value if isinstance(name, TaskId) else str(name)


def _first_line(doc: str | None) -> str:
    lines = (doc or "").strip().splitlines()
    return lines[0] if lines else ""


@runtime_checkable
class TaskHandle(Protocol):
    """Anything the orchestrator can run: a leaf task or a composite."""

    name: str
    description: str

    @property
    def produces(self) -> frozenset[Artifact]: ...

    @property
    def requires(self) -> frozenset[Artifact]: ...

    async def run(self, ctx: BuildContext) -> RunResult: ...


@dataclass(frozen=True, eq=False)
class Task:
    """
    A leaf task.

    Attributes:
        name: Unique name (a TaskId value for built-ins)
        body: ``body(ctx)``; may return an awaitable
        produces: Artifacts written by the body
        requires: Artifacts the body reads; their producers must finish first
        description: Human-readable summary for ``buildspine list``
    """

    name: str
    body: TaskBody
    produces: frozenset[Artifact] = field(default_factory=frozenset)
    requires: frozenset[Artifact] = field(default_factory=frozenset)
    description: str = ""

    @classmethod
    def define(
        cls,
        name: str | TaskId,
        body: TaskBody,
        *,
        produces: Iterable[Artifact] = (),
        requires: Iterable[Artifact] = (),
        description: str = "",
    ) -> Task:
        """Build a task, accepting TaskId names and any iterable of artifacts."""
        return cls(
            name=task_name(name),
            body=body,
            produces=frozenset(produces),
            requires=frozenset(requires),
            description=description or _first_line(body.__doc__),
        )

    async def run(self, ctx: BuildContext) -> RunResult:
        logger.info("task.start", task=self.name)
        started = time.perf_counter()
        try:
            outcome = self.body(ctx)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            result = RunResult.from_exception(self.name, e)
            log = logger.warning if ctx.continue_on_error and not result.fatal else logger.error
            log("task.failed", task=self.name, error=result.error, error_type=result.error_type, fatal=result.fatal)
        else:
            result = RunResult.ok(self.name)
        result.duration_ms = (time.perf_counter() - started) * 1000
        logger.info("task.end", task=self.name, success=result.success, duration_ms=round(result.duration_ms, 2))
        return result

    def __repr__(self) -> str:
        return f"Task({self.name!r})"
