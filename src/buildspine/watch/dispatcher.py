"""File Watch Dispatcher — re-runs bound tasks on file-system change events.

ARCHITECTURE
────────────
::

    dispatcher.bind(patterns, task)   → WatchBinding (kept for the session)
    dispatcher.dispatch(event)        → one asyncio.Task per matching binding
    dispatcher.drain()                → await in-flight invocations

    event source (PollingWatcher) ──ChangeEvent──▶ dispatch()
                                                    ├─▶ binding 1 → task.run(ctx)
                                                    └─▶ binding 2 → task.run(ctx)

Every matching binding fires exactly once per event. Events are not
coalesced and not debounced. Bindings with overlapping patterns are
independent: each runs in its own asyncio task and a failure in one is
logged without affecting the others or the watch loop.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from buildspine.core.logging import get_logger
from buildspine.orchestration.task import TaskHandle
from buildspine.orchestration.task_result import RunResult
from buildspine.watch.patterns import PatternSet

if TYPE_CHECKING:
    from buildspine.orchestration.context import BuildContext

logger = get_logger(__name__)


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    """One file-system change; ``path`` is relative to the project root, POSIX form."""

    path: str
    kind: ChangeKind = ChangeKind.MODIFIED


@dataclass(frozen=True, eq=False)
class WatchBinding:
    """A pattern set and the task it re-runs. Not mutated after creation."""

    patterns: PatternSet
    task: TaskHandle

    def matches(self, event: ChangeEvent) -> bool:
        return self.patterns.matches(event.path)


class WatchDispatcher:
    """Routes change events to the tasks bound to matching patterns."""

    def __init__(self, ctx: BuildContext) -> None:
        self._ctx = ctx
        self._bindings: list[WatchBinding] = []
        self._inflight: set[asyncio.Task[RunResult]] = set()

    def bind(self, patterns: PatternSet | str | list[str], task: TaskHandle) -> WatchBinding:
        """Register a persistent listener for ``patterns``."""
        if isinstance(patterns, str):
            patterns = PatternSet.of(patterns)
        elif not isinstance(patterns, PatternSet):
            patterns = PatternSet.of(*patterns)
        binding = WatchBinding(patterns=patterns, task=task)
        self._bindings.append(binding)
        logger.debug("watch.bind", patterns=str(patterns), task=task.name)
        return binding

    @property
    def bindings(self) -> tuple[WatchBinding, ...]:
        return tuple(self._bindings)

    def dispatch(self, event: ChangeEvent) -> list[asyncio.Task[RunResult]]:
        """Schedule every binding matching ``event``; must be called inside a running loop."""
        scheduled: list[asyncio.Task[RunResult]] = []
        for binding in self._bindings:
            if not binding.matches(event):
                continue
            job = asyncio.create_task(self._fire(binding, event), name=f"watch:{binding.task.name}")
            self._inflight.add(job)
            job.add_done_callback(self._inflight.discard)
            scheduled.append(job)
        logger.debug("watch.change", path=event.path, kind=event.kind.value, fired=len(scheduled))
        return scheduled

    async def drain(self) -> None:
        """Wait for every in-flight invocation to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _fire(self, binding: WatchBinding, event: ChangeEvent) -> RunResult:
        logger.info("watch.fire", path=event.path, kind=event.kind.value, task=binding.task.name)
        result = await binding.task.run(self._ctx)
        if not result.success:
            logger.warning(
                "watch.task_failed",
                task=binding.task.name,
                origin=result.origin,
                error=result.error,
            )
        return result
