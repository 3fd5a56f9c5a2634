"""Target Runner — executes one registered target and keeps services alive.

::

    runner = TargetRunner(registry, ctx)
    result = await runner.run("develop")     # finite phase
    await runner.serve_forever()             # background services, until interrupted
    sys.exit(exit_code(result))

``run()`` binds ``target`` into the logging context so every event of the
run carries it. Under continue-on-error a non-fatal failure reaching the top
level is logged as a warning and reported as success.
"""

from __future__ import annotations

import time

from buildspine.core.logging import bind_context, get_logger, unbind_context
from buildspine.orchestration.context import BuildContext
from buildspine.orchestration.registry import TaskRegistry
from buildspine.orchestration.task import TaskId
from buildspine.orchestration.task_result import RunResult

logger = get_logger(__name__)


def exit_code(result: RunResult) -> int:
    """Process exit status for a run result."""
    return 0 if result.success else 1


class TargetRunner:
    """Runs targets from a sealed registry against one build context."""

    def __init__(self, registry: TaskRegistry, ctx: BuildContext) -> None:
        self.registry = registry
        self.ctx = ctx

    async def run(self, name: str | TaskId = TaskId.DEFAULT) -> RunResult:
        """
        Resolve and execute a target.

        Raises:
            UnknownTaskError: If ``name`` is not registered
        """
        target = self.registry.resolve(name)
        bind_context(target=target.name)
        try:
            logger.info("target.start", continue_on_error=self.ctx.continue_on_error)
            started = time.perf_counter()
            result = await target.run(self.ctx)
            result.duration_ms = (time.perf_counter() - started) * 1000

            if not result.success and self.ctx.continue_on_error and not result.fatal:
                logger.warning("task.failure_ignored", task=target.name, origin=result.origin, error=result.error)
                result = RunResult.ok(target.name, [*result.warnings, f"{result.origin}: {result.error}"])

            log = logger.info if result.success else logger.error
            log("target.end", **result.to_dict())
            return result
        finally:
            unbind_context("target")

    async def serve_forever(self) -> None:
        """Wait on the background services started by the run, then stop them.

        Returns immediately when no service was started. Cancellation
        (Ctrl-C under ``asyncio.run``) stops every service before it
        propagates.
        """
        services = self.ctx.services
        if not services.running:
            return
        logger.info("services.waiting", services=[s.name for s in services.running])
        try:
            await services.wait()
        finally:
            await services.stop()
