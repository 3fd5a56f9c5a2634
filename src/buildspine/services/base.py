"""Background services — long-lived components of the development loop.

Finite build and lint work is modelled as tasks. The file watcher and the
dev server never finish on their own, so they are services instead:

    await service.start()   → begin work, return immediately
    await service.wait()    → block until stopped
    await service.stop()    → set the stop signal, release resources

``ServiceGroup`` collects the services started during a run so the runner
can keep the process alive while they run and stop them all on exit.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from buildspine.core.logging import get_logger

logger = get_logger(__name__)


class BackgroundService(ABC):
    """Start/stop lifecycle with an ``asyncio.Event`` stop signal."""

    name: str = "service"

    def __init__(self) -> None:
        self._stop_event = asyncio.Event()
        self._running = False

    async def start(self) -> None:
        if self._running:
            logger.warning("service.already_running", service=self.name)
            return
        self._stop_event.clear()
        await self._start()
        self._running = True
        logger.info("service.start", service=self.name)

    async def stop(self) -> None:
        if not self._running:
            return
        self._stop_event.set()
        await self._stop()
        self._running = False
        logger.info("service.stop", service=self.name)

    async def wait(self) -> None:
        """Block until ``stop()`` is called."""
        await self._stop_event.wait()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    @abstractmethod
    async def _start(self) -> None: ...

    @abstractmethod
    async def _stop(self) -> None: ...


class ServiceGroup:
    """Services started by tasks during one run."""

    def __init__(self) -> None:
        self._services: list[BackgroundService] = []

    async def start(self, service: BackgroundService) -> BackgroundService:
        await service.start()
        self._services.append(service)
        return service

    async def wait(self) -> None:
        """Block until every service has been stopped."""
        await asyncio.gather(*(s.wait() for s in self._services))

    async def stop(self) -> None:
        """Stop services in reverse start order."""
        for service in reversed(self._services):
            await service.stop()

    @property
    def running(self) -> list[BackgroundService]:
        return [s for s in self._services if s.is_running]

    def __len__(self) -> int:
        return len(self._services)
