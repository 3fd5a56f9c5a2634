"""Task bodies of the component-library pipeline.

Each body takes the ``BuildContext``, calls external tools through
``ctx.tools`` and writes artifacts into the flat output directory. Bodies
raise on failure; ``Task.run`` turns the exception into a ``RunResult`` and
the enclosing composite applies the continue-on-error policy.

    clean             empty (or create) the output directory
    build:scripts     bundle → <lib>.js (+ <lib>.min.js)
    build:styles      compile → prefix → <lib>.css (+ <lib>.min.css)
    build:standalone  script + injectable style → <lib>.all.js (+ .all.min.js)
    lint:scripts      eslint over every script outside dist/ and node_modules/
    lint:styles       stylelint over the stylesheet sources
    lint:ts           tsc + tslint over the type definitions
    test              karma against the sandbox
"""

from __future__ import annotations

import asyncio
import json
import shutil
from pathlib import Path

from buildspine.adapters.protocols import BundleOptions, Linter
from buildspine.artifacts import Artifact
from buildspine.core.errors import FilesystemError, LintError, ToolError
from buildspine.core.logging import get_logger
from buildspine.orchestration.context import BuildContext
from buildspine.orchestration.task import Task, TaskId
from buildspine.watch.patterns import PatternSet

logger = get_logger(__name__)

SCRIPT_PLUGINS = ("json", "babel={exclude:'node_modules/**'}")


# ── File helpers ─────────────────────────────────────────────────────────


async def _read(path: Path) -> str:
    return await asyncio.to_thread(path.read_text, encoding="utf-8")


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def _write(path: Path, content: str) -> None:
    await asyncio.to_thread(_write_file, path, content)
    logger.debug("artifact.written", path=path.name, bytes=len(content.encode("utf-8")))


def clean_directory(path: Path) -> int:
    """Ensure ``path`` exists and is empty; returns the number of entries removed.

    A directory or entry vanishing mid-way counts as already clean.

    Raises:
        FilesystemError: Any other OS error (permissions, busy files, ...)
    """
    removed = 0
    try:
        path.mkdir(parents=True, exist_ok=True)
        entries = list(path.iterdir())
    except FileNotFoundError:
        return removed
    except OSError as e:
        raise FilesystemError(f"Cannot prepare {path}: {e}", path=str(path), cause=e) from e

    for entry in entries:
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            raise FilesystemError(f"Cannot remove {entry}: {e}", path=str(entry), cause=e) from e
        removed += 1
    return removed


def css_to_js(css: str) -> str:
    """Wrap a stylesheet in a script fragment that injects it into <head>."""
    return (
        '(function (doc, cssText) {\n'
        '    var styleEl = doc.createElement("style");\n'
        '    doc.getElementsByTagName("head")[0].appendChild(styleEl);\n'
        '    if (styleEl.styleSheet) {\n'
        '        if (!styleEl.styleSheet.disabled) {\n'
        '            styleEl.styleSheet.cssText = cssText;\n'
        '        }\n'
        '    } else {\n'
        '        try {\n'
        '            styleEl.innerHTML = cssText;\n'
        '        } catch (ignore) {\n'
        '            styleEl.innerText = cssText;\n'
        '        }\n'
        '    }\n'
        f'}}(document, {json.dumps(css)}));\n'
    )


def concat(*parts: str) -> str:
    return "\n".join(parts)


# ── Bodies ───────────────────────────────────────────────────────────────


async def clean(ctx: BuildContext) -> None:
    """Empty the output directory, creating it if needed."""
    output = ctx.settings.output_path
    removed = await asyncio.to_thread(clean_directory, output)
    logger.info("clean.done", path=str(output), removed=removed)


async def build_scripts(ctx: BuildContext) -> None:
    """Bundle the entry module into the UMD script (and its minified copy)."""
    layout, tools = ctx.require_layout(), ctx.require_tools()
    options = BundleOptions(
        name=layout.umd_name,
        format="umd",
        plugins=SCRIPT_PLUGINS,
        banner=layout.banner,
        footer=layout.footer,
    )
    code = await tools.bundler.bundle(layout.script_entry, options)
    await _write(layout.output.path(Artifact.SCRIPT), code)
    if not ctx.settings.skip_minification:
        minified = await tools.script_minifier.minify(code)
        await _write(layout.output.path(Artifact.SCRIPT_MIN), minified)


async def build_styles(ctx: BuildContext) -> None:
    """Compile, vendor-prefix and optionally minify the stylesheet."""
    layout, tools = ctx.require_layout(), ctx.require_tools()
    style_path = layout.output.path(Artifact.STYLE)

    css = await asyncio.to_thread(tools.style_compiler.compile, layout.style_entry)
    await _write(style_path, css)

    prefixed = await tools.style_postprocessor.process(await _read(style_path))
    await _write(style_path, prefixed)

    if not ctx.settings.skip_minification:
        minified = await tools.style_minifier.minify(prefixed)
        await _write(layout.output.path(Artifact.STYLE_MIN), minified)


async def build_standalone(ctx: BuildContext) -> None:
    """Concatenate the script bundle with an injectable copy of the stylesheet."""
    out = ctx.require_layout().output
    pairs = [(Artifact.SCRIPT, Artifact.STYLE, Artifact.STANDALONE)]
    if not ctx.settings.skip_minification:
        pairs.append((Artifact.SCRIPT_MIN, Artifact.STYLE_MIN, Artifact.STANDALONE_MIN))

    for script, style, target in pairs:
        try:
            code, css = await asyncio.gather(_read(out.path(script)), _read(out.path(style)))
        except FileNotFoundError as e:
            raise FilesystemError(
                f"{target.value} needs {out.filename(script)} and {out.filename(style)}; run build first",
                path=e.filename,
                cause=e,
            ) from e
        await _write(out.path(target), concat(code, css_to_js(css)))


async def _lint(ctx: BuildContext, linter: Linter, patterns: PatternSet) -> None:
    root = ctx.require_layout().root
    files = await asyncio.to_thread(patterns.files, root)
    report = await linter.lint(files)
    if report.diagnostics:
        logger.warning("lint.diagnostics", linter=report.linter, output=report.diagnostics)
    if not report.passed:
        raise LintError(
            f"{report.linter} reported violations",
            tool=report.linter,
            diagnostics=report.diagnostics,
        )
    logger.info("lint.passed", linter=report.linter, files=len(files))


async def lint_scripts(ctx: BuildContext) -> None:
    """Lint every script outside the output directory and node_modules."""
    await _lint(ctx, ctx.require_tools().script_linter, ctx.require_layout().all_scripts)


async def lint_styles(ctx: BuildContext) -> None:
    """Lint the stylesheet sources."""
    await _lint(ctx, ctx.require_tools().style_linter, ctx.require_layout().src_styles)


async def lint_ts(ctx: BuildContext) -> None:
    """Type-check and lint the TypeScript definitions."""
    await _lint(ctx, ctx.require_tools().ts_linter, ctx.require_layout().ts_files)


async def run_tests(ctx: BuildContext) -> None:
    """Run the browser test suite against the sandbox."""
    config = ctx.settings.test_config
    status = await ctx.require_tools().test_runner.run(config, ["--no-launch"])
    if status != 0:
        raise ToolError(f"karma exited with status {status}", tool="karma", returncode=status)


def leaf_tasks() -> list[Task]:
    """The finite build/lint/test tasks with their artifact declarations."""
    return [
        Task.define(TaskId.CLEAN, clean),
        Task.define(
            TaskId.BUILD_SCRIPTS,
            build_scripts,
            produces={Artifact.SCRIPT, Artifact.SCRIPT_MIN},
        ),
        Task.define(
            TaskId.BUILD_STYLES,
            build_styles,
            produces={Artifact.STYLE, Artifact.STYLE_MIN},
        ),
        Task.define(
            TaskId.BUILD_STANDALONE,
            build_standalone,
            produces={Artifact.STANDALONE, Artifact.STANDALONE_MIN},
            requires={Artifact.SCRIPT, Artifact.SCRIPT_MIN, Artifact.STYLE, Artifact.STYLE_MIN},
        ),
        Task.define(TaskId.LINT_SCRIPTS, lint_scripts),
        Task.define(TaskId.LINT_STYLES, lint_styles),
        Task.define(TaskId.LINT_TS, lint_ts),
        Task.define(TaskId.TEST, run_tests),
    ]
