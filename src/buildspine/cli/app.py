"""
Root Typer application for the build-spine CLI.

    buildspine run [TARGET]     run a target (default: ``default``)
    buildspine list             registered tasks and their artifacts
    buildspine graph TARGET     composite tree of a target
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from buildspine.adapters.protocols import ToolSet
from buildspine.core.errors import BuildSpineError
from buildspine.core.logging import configure_logging, get_logger
from buildspine.core.settings import BuildSettings
from buildspine.orchestration.composition import CompositeTask
from buildspine.orchestration.context import BuildContext
from buildspine.orchestration.registry import TaskRegistry
from buildspine.orchestration.runner import TargetRunner, exit_code
from buildspine.orchestration.task import TaskHandle, TaskId
from buildspine.orchestration.task_result import RunResult
from buildspine.pipeline.targets import build_registry
from buildspine.project import ProjectLayout

app = typer.Typer(
    name="buildspine",
    help="build-spine — build, lint and develop a browser component library.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)

logger = get_logger(__name__)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from buildspine import __version__

        typer.echo(f"buildspine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """build-spine CLI — run build targets for a component library."""


# ── Helpers ──────────────────────────────────────────────────────────────


def make_settings(**overrides: Any) -> BuildSettings:
    """Settings from environment, with explicitly passed CLI values on top."""
    return BuildSettings(**{k: v for k, v in overrides.items() if v is not None})


def make_tools(settings: BuildSettings) -> ToolSet:
    return ToolSet.node(
        settings.root.resolve(),
        port=settings.dev_server_port,
        ui_port=settings.dev_server_ui_port,
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    return typer.Exit(code=1)


def _artifacts(values: frozenset) -> str:
    return ", ".join(sorted(a.value for a in values)) or "-"


def _tree(handle: TaskHandle, tree: Tree | None = None) -> Tree:
    if isinstance(handle, CompositeTask):
        label = f"[bold]{handle.name}[/bold] [dim]({handle.kind.value})[/dim]"
    else:
        label = handle.name
    node = Tree(label) if tree is None else tree.add(label)
    if isinstance(handle, CompositeTask):
        for member in handle.members:
            _tree(member, node)
    return node


def _settings(**overrides: Any) -> BuildSettings:
    """Build settings and configure logging from them; exits on invalid values."""
    try:
        settings = make_settings(**overrides)
    except ValueError as e:
        raise _fail(str(e)) from e
    configure_logging(level=settings.log_level, format=settings.log_format, force=True)
    return settings


async def _execute(runner: TargetRunner, target: str) -> RunResult:
    """Run ``target``, then serve until interrupted; services stop on every exit."""
    try:
        result = await runner.run(target)
        if result.success:
            await runner.serve_forever()
        return result
    finally:
        await runner.ctx.services.stop()


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("run")
def run_target(
    target: str = typer.Argument(TaskId.DEFAULT.value, help="Target to run"),
    continue_on_error: bool | None = typer.Option(
        None, "--continue-on-error", help="Demote non-fatal failures to warnings."
    ),
    skip_minification: bool | None = typer.Option(
        None, "--skip-minification", help="Do not produce minified artifacts."
    ),
    skip_standalone: bool | None = typer.Option(
        None, "--skip-standalone", help="Leave build:standalone out of build."
    ),
    root: Path | None = typer.Option(None, "--root", "-r", help="Project root (contains package.json)."),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    log_format: str | None = typer.Option(None, "--log-format", help="console or json."),
) -> None:
    """Run a build target."""
    settings = _settings(
        root=root,
        continue_on_error=continue_on_error,
        skip_minification=skip_minification,
        skip_standalone=skip_standalone,
        log_level=log_level,
        log_format=log_format,
    )

    try:
        registry = build_registry(settings)
        ctx = BuildContext(
            settings=settings,
            layout=ProjectLayout.from_settings(settings),
            tools=make_tools(settings),
        )
        runner = TargetRunner(registry, ctx)
        result = asyncio.run(_execute(runner, target))
    except BuildSpineError as e:
        logger.error("target.aborted", **e.to_dict())
        raise _fail(e.message) from e
    except KeyboardInterrupt:
        logger.info("target.interrupted", target=target)
        raise typer.Exit(code=130) from None

    if not result.success:
        err_console.print(f"[bold red]✗[/bold red] {target} failed in {result.origin}: {result.error}")
    elif result.warnings:
        console.print(f"[yellow]![/yellow] {target} finished with {len(result.warnings)} ignored failure(s)")
    else:
        console.print(f"[green]✓[/green] {target} finished in {result.duration_ms / 1000:.2f}s")
    raise typer.Exit(code=exit_code(result))


@app.command("list")
def list_tasks(
    skip_standalone: bool | None = typer.Option(None, "--skip-standalone"),
) -> None:
    """List registered tasks and targets."""
    registry: TaskRegistry = build_registry(_settings(skip_standalone=skip_standalone))

    table = Table(title="Tasks")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Produces")
    table.add_column("Requires")
    table.add_column("Description")
    for handle in registry:
        kind = handle.kind.value if isinstance(handle, CompositeTask) else "task"
        table.add_row(
            handle.name,
            kind,
            _artifacts(handle.produces),
            _artifacts(handle.requires),
            handle.description,
        )
    console.print(table)


@app.command("graph")
def show_graph(
    target: str = typer.Argument(..., help="Target name"),
    skip_standalone: bool | None = typer.Option(None, "--skip-standalone"),
) -> None:
    """Show the composite tree of a target."""
    registry = build_registry(_settings(skip_standalone=skip_standalone))
    try:
        handle = registry.resolve(target)
    except BuildSpineError as e:
        raise _fail(e.message) from e
    console.print(_tree(handle))
