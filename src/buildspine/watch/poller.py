"""Polling file watcher — the change-event source for the watch dispatcher.

Every ``interval`` seconds the watcher walks the tree once, snapshots
``mtime_ns`` of each file matched by any binding, diffs it against the
previous snapshot and hands one ``ChangeEvent`` per changed path to the
dispatcher. Directory walks run in a worker thread so the event loop keeps
serving the dev server and in-flight rebuilds.
"""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

from buildspine.core.logging import get_logger
from buildspine.services.base import BackgroundService
from buildspine.watch.dispatcher import ChangeEvent, ChangeKind, WatchDispatcher
from buildspine.watch.patterns import collect_files

logger = get_logger(__name__)

Snapshot = dict[str, int]


class PollingWatcher(BackgroundService):
    """Runs the watch loop for a dispatcher until stopped."""

    name = "watch"

    def __init__(self, root: Path, dispatcher: WatchDispatcher, interval: float = 0.3) -> None:
        super().__init__()
        self.root = root
        self.dispatcher = dispatcher
        self.interval = max(0.05, float(interval))
        self._snapshot: Snapshot = {}
        self._loop_task: asyncio.Task[None] | None = None

    def scan(self) -> Snapshot:
        """Current ``{relative path: mtime_ns}`` of every watched file."""
        snapshot: Snapshot = {}
        patterns = [binding.patterns for binding in self.dispatcher.bindings]
        for path in collect_files(self.root, patterns):
            try:
                snapshot[path.relative_to(self.root).as_posix()] = path.stat().st_mtime_ns
            except FileNotFoundError:
                continue
        return snapshot

    @staticmethod
    def diff(before: Snapshot, after: Snapshot) -> list[ChangeEvent]:
        events: list[ChangeEvent] = []
        for rel, mtime in after.items():
            if rel not in before:
                events.append(ChangeEvent(rel, ChangeKind.ADDED))
            elif before[rel] != mtime:
                events.append(ChangeEvent(rel, ChangeKind.MODIFIED))
        for rel in before:
            if rel not in after:
                events.append(ChangeEvent(rel, ChangeKind.DELETED))
        return events

    async def poll_once(self) -> list[ChangeEvent]:
        """Scan, dispatch every change since the previous scan, return the events."""
        current = await asyncio.to_thread(self.scan)
        events = self.diff(self._snapshot, current)
        self._snapshot = current
        for event in events:
            self.dispatcher.dispatch(event)
        return events

    async def _start(self) -> None:
        self._snapshot = await asyncio.to_thread(self.scan)
        logger.info(
            "watch.ready",
            files=len(self._snapshot),
            bindings=[f"{b.patterns} -> {b.task.name}" for b in self.dispatcher.bindings],
        )
        self._loop_task = asyncio.create_task(self._run(), name="watch-loop")

    async def _stop(self) -> None:
        if self._loop_task is not None:
            await self._loop_task
            self._loop_task = None
        await self.dispatcher.drain()

    async def _run(self) -> None:
        while not self.stopping:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            if self.stopping:
                break
            try:
                await self.poll_once()
            except OSError as e:
                logger.warning("watch.scan_failed", error=str(e))
