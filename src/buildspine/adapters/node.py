"""Node.js tool adapters — each one runs a CLI through ``npx`` in the project root.

    RollupBundler          rollup (json + babel plugins)
    SassCompiler           sass (blocking, errors are fatal)
    AutoprefixerProcessor  postcss --use autoprefixer
    UglifyMinifier         uglifyjs (keeps /*! banner comments)
    CleanCssMinifier       cleancss
    EslintLinter           eslint
    StylelintLinter        stylelint --formatter string
    TypeScriptLinter       tsc --noEmit --lib es6,dom, then tslint --format verbose
    BrowserSyncServer      browser-sync start / reload
    KarmaRunner            karma start <config> [args]

Adapters read from stdin and write to stdout wherever the tool allows it,
so the task bodies own every file write in the output directory.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from buildspine.adapters.process import run_tool, run_tool_sync
from buildspine.adapters.protocols import BundleOptions, LintReport
from buildspine.core.errors import StyleCompileError, ToolError
from buildspine.core.logging import get_logger

logger = get_logger(__name__)

NPX = "npx"


def _rel(root: Path, files: Sequence[Path]) -> list[str]:
    out = []
    for f in files:
        try:
            out.append(f.relative_to(root).as_posix())
        except ValueError:
            out.append(str(f))
    return out


class _NodeTool:
    def __init__(self, root: Path) -> None:
        self.root = root


# ── Build tools ──────────────────────────────────────────────────────────


class RollupBundler(_NodeTool):
    """Bundles one entry module; the bundle is read from rollup's stdout."""

    async def bundle(self, entry: Path, options: BundleOptions) -> str:
        argv = [NPX, "rollup", str(entry), "--format", options.format, "--name", options.name]
        for plugin in options.plugins:
            argv += ["--plugin", plugin]
        if options.banner:
            argv += ["--banner", options.banner]
        if options.footer:
            argv += ["--footer", options.footer]
        output = await run_tool(argv, cwd=self.root)
        return output.stdout


class SassCompiler(_NodeTool):
    def compile(self, entry: Path) -> str:
        argv = [NPX, "sass", "--no-source-map", str(entry)]
        return run_tool_sync(argv, cwd=self.root, error_cls=StyleCompileError).stdout


class AutoprefixerProcessor(_NodeTool):
    async def process(self, css: str) -> str:
        argv = [NPX, "postcss", "--use", "autoprefixer", "--no-map"]
        return (await run_tool(argv, cwd=self.root, input=css)).stdout


class UglifyMinifier(_NodeTool):
    async def minify(self, code: str) -> str:
        argv = [NPX, "uglifyjs", "--compress", "--mangle", "--comments", "/^!/"]
        return (await run_tool(argv, cwd=self.root, input=code)).stdout


class CleanCssMinifier(_NodeTool):
    async def minify(self, css: str) -> str:
        return (await run_tool([NPX, "cleancss"], cwd=self.root, input=css)).stdout


# ── Linters ──────────────────────────────────────────────────────────────
#
# Exit status 1 means "violations found"; anything else non-zero is a crash
# of the linter itself and raises ToolError.


class _CliLinter(_NodeTool, ABC):
    name = "linter"
    violation_codes: frozenset[int] = frozenset({1})

    @abstractmethod
    def command(self, files: list[str]) -> list[str]: ...

    async def lint(self, files: Sequence[Path]) -> LintReport:
        rel = _rel(self.root, files)
        if not rel:
            return LintReport(linter=self.name, passed=True)
        output = await run_tool(self.command(rel), cwd=self.root, check=False)
        if output.returncode not in self.violation_codes | {0}:
            raise ToolError(
                f"{self.name} crashed with status {output.returncode}: {output.stderr.strip()}",
                tool=self.name,
                returncode=output.returncode,
                stderr=output.stderr,
            )
        return LintReport(
            linter=self.name,
            passed=output.ok,
            diagnostics=(output.stdout + output.stderr).strip(),
            files=tuple(rel),
        )


class EslintLinter(_CliLinter):
    name = "eslint"

    def command(self, files: list[str]) -> list[str]:
        return [NPX, "eslint", *files]


class StylelintLinter(_CliLinter):
    name = "stylelint"
    violation_codes = frozenset({2})

    def command(self, files: list[str]) -> list[str]:
        return [NPX, "stylelint", *files, "--formatter", "string"]


class TypeScriptLinter(_NodeTool):
    """Type-checks the definition files, then lints them with tslint."""

    name = "tslint"

    def __init__(self, root: Path, lib: Sequence[str] = ("es6", "dom")) -> None:
        super().__init__(root)
        self.lib = tuple(lib)

    async def lint(self, files: Sequence[Path]) -> LintReport:
        rel = _rel(self.root, files)
        if not rel:
            return LintReport(linter=self.name, passed=True)
        compiled = await run_tool(
            [NPX, "tsc", "--noEmit", "--lib", ",".join(self.lib), *rel],
            cwd=self.root,
            check=False,
        )
        linted = await run_tool([NPX, "tslint", "--format", "verbose", *rel], cwd=self.root, check=False)
        diagnostics = "\n".join(
            part for part in (compiled.stdout.strip(), linted.stdout.strip(), linted.stderr.strip()) if part
        )
        return LintReport(
            linter=self.name,
            passed=compiled.ok and linted.ok,
            diagnostics=diagnostics,
            files=tuple(rel),
        )


# ── Development loop ─────────────────────────────────────────────────────


class BrowserSyncServer(_NodeTool):
    """Static server with browser reload; runs until ``stop()``."""

    def __init__(self, root: Path, *, port: int = 8080, ui_port: int = 8081) -> None:
        super().__init__(root)
        self.port = port
        self.ui_port = ui_port
        self._process: asyncio.subprocess.Process | None = None

    async def start(self, serve_root: Path, start_path: str) -> None:
        argv = [
            NPX, "browser-sync", "start",
            "--server", str(serve_root),
            "--port", str(self.port),
            "--ui-port", str(self.ui_port),
            "--start-path", start_path,
            "--no-notify",
        ]
        logger.debug("tool.exec", tool="browser-sync", argv=argv)
        try:
            self._process = await asyncio.create_subprocess_exec(*argv, cwd=str(self.root))
        except OSError as e:
            raise ToolError(f"Cannot start browser-sync: {e}", tool="browser-sync", cause=e) from e

    async def reload(self) -> None:
        await run_tool([NPX, "browser-sync", "reload", "--port", str(self.port)], cwd=self.root)

    async def stop(self) -> None:
        if self._process is None or self._process.returncode is not None:
            return
        self._process.terminate()
        try:
            await asyncio.wait_for(self._process.wait(), timeout=5)
        except asyncio.TimeoutError:
            self._process.kill()
            await self._process.wait()
        self._process = None


class KarmaRunner(_NodeTool):
    """Runs karma with inherited stdout/stderr; returns its exit status."""

    async def run(self, config_file: str, args: Sequence[str] = ()) -> int:
        argv = [NPX, "karma", "start", config_file, *args]
        logger.debug("tool.exec", tool="karma", argv=argv)
        try:
            process = await asyncio.create_subprocess_exec(*argv, cwd=str(self.root))
        except OSError as e:
            raise ToolError(f"Cannot start karma: {e}", tool="karma", cause=e) from e
        return await process.wait()
