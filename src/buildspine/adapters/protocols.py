"""
External tool contracts.

The orchestrator never bundles, compiles, minifies or lints anything
itself. Task bodies call these protocols and only rely on the result
contract documented on each method. ``buildspine.adapters.node`` provides
the subprocess-backed implementations; tests substitute in-memory fakes.

Contracts:
    Bundler.bundle            entry + options → bundle text        (ToolError)
    StyleCompiler.compile     entry → CSS text, synchronous        (StyleCompileError, fatal)
    StylePostProcessor.process  CSS → vendor-prefixed CSS          (ToolError)
    ScriptMinifier.minify     script → minified script             (ToolError)
    StyleMinifier.minify      CSS → minified CSS                   (ToolError)
    Linter.lint               files → LintReport (never raises for violations)
    DevServer                 start / reload / stop
    TestRunner.run            config + args → exit code
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class BundleOptions:
    """Options handed to the bundler for one entry module."""

    name: str
    format: str = "umd"
    plugins: tuple[str, ...] = ()
    banner: str = ""
    footer: str = ""


@dataclass(frozen=True)
class LintReport:
    """Outcome of one linter run."""

    linter: str
    passed: bool
    diagnostics: str = ""
    files: tuple[str, ...] = field(default=())


@runtime_checkable
class Bundler(Protocol):
    async def bundle(self, entry: Path, options: BundleOptions) -> str: ...


@runtime_checkable
class StyleCompiler(Protocol):
    def compile(self, entry: Path) -> str: ...


@runtime_checkable
class StylePostProcessor(Protocol):
    async def process(self, css: str) -> str: ...


@runtime_checkable
class ScriptMinifier(Protocol):
    async def minify(self, code: str) -> str: ...


@runtime_checkable
class StyleMinifier(Protocol):
    async def minify(self, css: str) -> str: ...


@runtime_checkable
class Linter(Protocol):
    name: str

    async def lint(self, files: Sequence[Path]) -> LintReport: ...


@runtime_checkable
class DevServer(Protocol):
    async def start(self, serve_root: Path, start_path: str) -> None: ...

    async def reload(self) -> None: ...

    async def stop(self) -> None: ...


class TestRunner(Protocol):
    __test__ = False

    async def run(self, config_file: str, args: Sequence[str] = ()) -> int: ...


@dataclass
class ToolSet:
    """One adapter per external tool the pipeline calls."""

    bundler: Bundler
    style_compiler: StyleCompiler
    style_postprocessor: StylePostProcessor
    script_minifier: ScriptMinifier
    style_minifier: StyleMinifier
    script_linter: Linter
    style_linter: Linter
    ts_linter: Linter
    dev_server: DevServer
    test_runner: TestRunner

    @classmethod
    def node(cls, root: Path, *, port: int = 8080, ui_port: int = 8081) -> ToolSet:
        """The default tool set: Node.js CLIs run through ``npx`` in ``root``."""
        from buildspine.adapters import node

        return cls(
            bundler=node.RollupBundler(root),
            style_compiler=node.SassCompiler(root),
            style_postprocessor=node.AutoprefixerProcessor(root),
            script_minifier=node.UglifyMinifier(root),
            style_minifier=node.CleanCssMinifier(root),
            script_linter=node.EslintLinter(root),
            style_linter=node.StylelintLinter(root),
            ts_linter=node.TypeScriptLinter(root),
            dev_server=node.BrowserSyncServer(root, port=port, ui_port=ui_port),
            test_runner=node.KarmaRunner(root),
        )
