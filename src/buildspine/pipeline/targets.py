"""Target definitions — wires the task bodies into the named targets.

::

    build    series(clean, <layers planned from artifact declarations>)
             = series(clean, parallel(build:scripts, build:styles), build:standalone)
    default  parallel(build)
    lint     parallel(lint:scripts, lint:styles, lint:ts)
    develop  series(parallel(lint, build), watch, sandbox, test)

``build:standalone`` is left out of the plan entirely when
``skip_standalone`` is set, so it is never scheduled. ``watch`` and
``sandbox`` start background services and return; the runner keeps the
process alive until they are stopped.
"""

from __future__ import annotations

from buildspine.artifacts import Artifact
from buildspine.core.logging import get_logger
from buildspine.core.settings import BuildSettings
from buildspine.orchestration.composition import series
from buildspine.orchestration.context import BuildContext
from buildspine.orchestration.planner import plan_layers
from buildspine.orchestration.registry import TaskRegistry
from buildspine.orchestration.task import Task, TaskHandle, TaskId
from buildspine.pipeline.tasks import leaf_tasks
from buildspine.services.dev_server import DevServerService
from buildspine.watch.dispatcher import WatchDispatcher
from buildspine.watch.patterns import PatternSet
from buildspine.watch.poller import PollingWatcher

logger = get_logger(__name__)


def watch_bindings(registry: TaskRegistry, ctx: BuildContext) -> list[tuple[PatternSet, TaskHandle]]:
    """Pattern → task pairs re-run by the ``watch`` target."""
    layout = ctx.require_layout()
    return [
        (layout.src_scripts, registry.resolve(TaskId.BUILD_SCRIPTS)),
        (layout.src_styles, registry.resolve(TaskId.BUILD_STYLES)),
        (layout.all_scripts, registry.resolve(TaskId.LINT_SCRIPTS)),
        (layout.src_styles, registry.resolve(TaskId.LINT_STYLES)),
        (layout.ts_files, registry.resolve(TaskId.LINT_TS)),
    ]


def _watch_task(registry: TaskRegistry) -> Task:
    async def watch(ctx: BuildContext) -> None:
        """Re-run builds and linters when sources change."""
        dispatcher = WatchDispatcher(ctx)
        for patterns, task in watch_bindings(registry, ctx):
            dispatcher.bind(patterns, task)
        root = ctx.require_layout().root
        await ctx.services.start(PollingWatcher(root, dispatcher, ctx.settings.watch_interval))

    return Task.define(TaskId.WATCH, watch)


async def sandbox(ctx: BuildContext) -> None:
    """Serve the sandbox page and reload it when artifacts change."""
    layout, settings = ctx.require_layout(), ctx.settings
    reload_patterns = PatternSet.of(
        settings.sandbox_page,
        layout.output.relative(Artifact.SCRIPT, layout.root),
        layout.output.relative(Artifact.STYLE, layout.root),
    )
    await ctx.services.start(
        DevServerService(
            ctx,
            ctx.require_tools().dev_server,
            serve_root=layout.root,
            start_path=settings.sandbox_page,
            reload_patterns=reload_patterns,
            interval=settings.watch_interval,
        )
    )


def build_registry(settings: BuildSettings) -> TaskRegistry:
    """Register every task and target, then seal the registry."""
    registry = TaskRegistry()
    for task in leaf_tasks():
        registry.register(task)
    registry.register(_watch_task(registry))
    registry.register(Task.define(TaskId.SANDBOX, sandbox))

    stages: list[TaskHandle] = [
        registry.resolve(TaskId.BUILD_SCRIPTS),
        registry.resolve(TaskId.BUILD_STYLES),
    ]
    if settings.skip_standalone:
        logger.debug("target.standalone_skipped")
    else:
        stages.append(registry.resolve(TaskId.BUILD_STANDALONE))

    registry.register(
        series(
            registry.resolve(TaskId.CLEAN),
            *plan_layers(stages),
            name=TaskId.BUILD.value,
            description="Clean the output directory and build every artifact",
        )
    )
    registry.register(registry.parallel(TaskId.BUILD, name=TaskId.DEFAULT, description="Build the library"))
    registry.register(
        registry.parallel(
            TaskId.LINT_SCRIPTS,
            TaskId.LINT_STYLES,
            TaskId.LINT_TS,
            name=TaskId.LINT,
            description="Run every linter",
        )
    )
    registry.register(
        series(
            registry.parallel(TaskId.LINT, TaskId.BUILD),
            registry.resolve(TaskId.WATCH),
            registry.resolve(TaskId.SANDBOX),
            registry.resolve(TaskId.TEST),
            name=TaskId.DEVELOP.value,
            description="Lint and build, then watch, serve the sandbox and run tests",
        )
    )
    registry.seal()
    return registry
