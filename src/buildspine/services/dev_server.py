"""Sandbox dev server with browser reload on artifact changes."""

from __future__ import annotations

from pathlib import Path

from buildspine.adapters.protocols import DevServer
from buildspine.core.logging import get_logger
from buildspine.orchestration.context import BuildContext
from buildspine.orchestration.task import Task
from buildspine.services.base import BackgroundService
from buildspine.watch.dispatcher import WatchDispatcher
from buildspine.watch.patterns import PatternSet
from buildspine.watch.poller import PollingWatcher

logger = get_logger(__name__)


class DevServerService(BackgroundService):
    """Serves ``serve_root``, opens ``start_path`` and reloads on changes.

    Reloads are driven by a private polling watcher over ``reload_patterns``
    (the sandbox page and the unminified artifacts), independent of the
    rebuild bindings of the ``watch`` task.
    """

    name = "sandbox"

    def __init__(
        self,
        ctx: BuildContext,
        server: DevServer,
        *,
        serve_root: Path,
        start_path: str,
        reload_patterns: PatternSet,
        interval: float = 0.3,
    ) -> None:
        super().__init__()
        self.server = server
        self.serve_root = serve_root
        self.start_path = start_path
        self.reload_patterns = reload_patterns
        self.dispatcher = WatchDispatcher(ctx)
        self.dispatcher.bind(reload_patterns, Task.define("reload", self._reload))
        self._watcher = PollingWatcher(serve_root, self.dispatcher, interval)

    async def _reload(self, ctx: BuildContext) -> None:
        """Reload connected browsers."""
        await self.server.reload()

    async def _start(self) -> None:
        await self.server.start(self.serve_root, self.start_path)
        logger.info("sandbox.serving", root=str(self.serve_root), start_path=self.start_path)
        await self._watcher.start()

    async def _stop(self) -> None:
        await self._watcher.stop()
        await self.server.stop()
