"""Composition Operators — series and parallel task composites.

ARCHITECTURE
────────────
::

    series(*tasks)     → members run strictly in order, fail-fast
    parallel(*tasks)   → members scheduled together, join barrier at the end

    Both return a ``CompositeTask`` that is itself a task: it can be
    registered, bound to a watch pattern, or nested in another composite.

FAILURE POLICY
──────────────
Without continue-on-error:
    series    stops at the first failing member and returns that failure
    parallel  awaits every member, then returns the first failure (member order)

With continue-on-error (``ctx.settings.continue_on_error``):
    every member runs, each failure is logged as a warning and recorded in
    ``RunResult.warnings``, and the composite reports success. Nested
    composites therefore never see a failure from below. Failures flagged
    ``fatal`` are not demoted.

ORDERING
────────
Construction validates artifact declarations: a member that requires an
artifact produced by a later series sibling, or by any parallel sibling,
raises ``OrderingError`` before anything runs.

Example::

    build = series(
        clean,
        parallel(build_scripts, build_styles),
        build_standalone,
        name="build",
    )
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from buildspine.artifacts import Artifact
from buildspine.core.logging import get_logger
from buildspine.orchestration.exceptions import OrderingError
from buildspine.orchestration.task import TaskHandle
from buildspine.orchestration.task_result import RunResult

if TYPE_CHECKING:
    from buildspine.orchestration.context import BuildContext

logger = get_logger(__name__)


class CompositeKind(str, Enum):
    """How a composite schedules its members."""

    SERIES = "series"
    PARALLEL = "parallel"


@dataclass(frozen=True, eq=False)
class CompositeTask:
    """
    An ordered group of tasks plus a combinator kind.

    Owns no state beyond its members. ``produces`` is the union of the
    members' outputs; ``requires`` is what members need that no member
    produces.
    """

    name: str
    kind: CompositeKind
    members: tuple[TaskHandle, ...]
    description: str = ""

    @property
    def produces(self) -> frozenset[Artifact]:
        return frozenset().union(*(m.produces for m in self.members))

    @property
    def requires(self) -> frozenset[Artifact]:
        needed = frozenset().union(*(m.requires for m in self.members))
        return needed - self.produces

    async def run(self, ctx: BuildContext) -> RunResult:
        logger.debug("composite.start", composite=self.name, kind=self.kind.value, members=[m.name for m in self.members])
        started = time.perf_counter()
        if self.kind is CompositeKind.SERIES:
            result = await self._run_series(ctx)
        else:
            result = await self._run_parallel(ctx)
        result.duration_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            "composite.end",
            composite=self.name,
            success=result.success,
            duration_ms=round(result.duration_ms, 2),
        )
        return result

    async def _run_series(self, ctx: BuildContext) -> RunResult:
        warnings: list[str] = []
        for index, member in enumerate(self.members):
            result = await member.run(ctx)
            warnings.extend(result.warnings)
            if result.success:
                continue
            if self._demote(ctx, member, result, warnings):
                continue
            skipped = [m.name for m in self.members[index + 1:]]
            if skipped:
                logger.error("composite.aborted", composite=self.name, failed=member.name, skipped=skipped)
            return result.propagate(self.name, warnings)
        return RunResult.ok(self.name, warnings)

    async def _run_parallel(self, ctx: BuildContext) -> RunResult:
        results = await asyncio.gather(*(member.run(ctx) for member in self.members))
        warnings: list[str] = []
        first_failure: RunResult | None = None
        for member, result in zip(self.members, results):
            warnings.extend(result.warnings)
            if result.success or self._demote(ctx, member, result, warnings):
                continue
            if first_failure is None:
                first_failure = result
        if first_failure is not None:
            return first_failure.propagate(self.name, warnings)
        return RunResult.ok(self.name, warnings)

    def _demote(self, ctx: BuildContext, member: TaskHandle, result: RunResult, warnings: list[str]) -> bool:
        """Under continue-on-error, log a non-fatal failure and swallow it."""
        if not ctx.continue_on_error or result.fatal:
            return False
        logger.warning(
            "task.failure_ignored",
            task=member.name,
            composite=self.name,
            origin=result.origin,
            error=result.error,
        )
        warnings.append(f"{result.origin or member.name}: {result.error}")
        return True

    def __repr__(self) -> str:
        inner = ", ".join(m.name for m in self.members)
        return f"{self.kind.value}({inner})"


def _compose(kind: CompositeKind, tasks: tuple[TaskHandle, ...], name: str | None, description: str) -> CompositeTask:
    if not tasks:
        raise ValueError(f"{kind.value}() requires at least one task")
    for task in tasks:
        if not isinstance(task, TaskHandle):
            raise TypeError(
                f"{kind.value}() expects task handles, got {type(task).__name__}. "
                "Use TaskRegistry.series()/parallel() to compose by name."
            )
    composite = CompositeTask(
        name=name or f"{kind.value}({', '.join(t.name for t in tasks)})",
        kind=kind,
        members=tuple(tasks),
        description=description,
    )
    validate_order(composite)
    return composite


def series(*tasks: TaskHandle, name: str | None = None, description: str = "") -> CompositeTask:
    """Compose tasks to run strictly in order, fail-fast.

    Raises:
        ValueError: If no task is given
        OrderingError: If a member requires an artifact a later member produces
    """
    return _compose(CompositeKind.SERIES, tasks, name, description)


def parallel(*tasks: TaskHandle, name: str | None = None, description: str = "") -> CompositeTask:
    """Compose tasks to run concurrently with a join barrier.

    Raises:
        ValueError: If no task is given
        OrderingError: If a member requires an artifact a sibling produces
    """
    return _compose(CompositeKind.PARALLEL, tasks, name, description)


def validate_order(composite: CompositeTask) -> None:
    """Reject members scheduled before or alongside the producer of their inputs.

    Only direct members are checked; nested composites were validated when
    they were built and expose their aggregate ``produces``/``requires``.
    """
    members = composite.members
    for index, member in enumerate(members):
        if composite.kind is CompositeKind.SERIES:
            rivals = members[index + 1:]
        else:
            rivals = members[:index] + members[index + 1:]
        for rival in rivals:
            clash = member.requires & rival.produces
            if clash:
                raise OrderingError(
                    task=member.name,
                    producer=rival.name,
                    artifacts=sorted(a.value for a in clash),
                    composite=composite.name,
                )


def walk(handle: TaskHandle, depth: int = 0):
    """Yield ``(depth, handle)`` for a task tree, depth-first, pre-order."""
    yield depth, handle
    if isinstance(handle, CompositeTask):
        for member in handle.members:
            yield from walk(member, depth + 1)
