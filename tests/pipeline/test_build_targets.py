"""Tests for the build, default and lint targets against in-memory tools."""

from __future__ import annotations

import json

import pytest

from buildspine.orchestration.composition import walk
from buildspine.orchestration.runner import TargetRunner
from buildspine.orchestration.task import TaskId
from buildspine.pipeline.targets import build_registry
from buildspine.pipeline.tasks import css_to_js
from buildspine.watch.poller import PollingWatcher

from fakes import FakeBundler, FakeDevServer, FakeLinter, FakeStyleCompiler, FakeTestRunner, fake_tools

ALL_ARTIFACTS = {
    "sweetalert2.js",
    "sweetalert2.min.js",
    "sweetalert2.css",
    "sweetalert2.min.css",
    "sweetalert2.all.js",
    "sweetalert2.all.min.js",
}


async def _run(ctx, target: str):
    return await TargetRunner(build_registry(ctx.settings), ctx).run(target)


def _dist(project) -> set[str]:
    return {p.name for p in (project / "dist").iterdir()}


# ── Registry shape ───────────────────────────────────────────────────


class TestTargetShape:
    def test_every_task_and_target_registered(self, ctx):
        registry = build_registry(ctx.settings)
        assert set(registry.names()) == {t.value for t in TaskId}
        assert registry.sealed

    def test_build_plan(self, ctx):
        build = build_registry(ctx.settings).resolve(TaskId.BUILD)
        assert [m.name for m in build.members] == [
            "clean",
            "parallel(build:scripts, build:styles)",
            "build:standalone",
        ]

    def test_skip_standalone_never_schedules_standalone(self, build_ctx):
        ctx = build_ctx(skip_standalone=True)
        registry = build_registry(ctx.settings)
        for target in (TaskId.BUILD, TaskId.DEFAULT, TaskId.DEVELOP):
            names = {h.name for _, h in walk(registry.resolve(target))}
            assert "build:standalone" not in names

    def test_develop_shape(self, ctx):
        develop = build_registry(ctx.settings).resolve(TaskId.DEVELOP)
        assert [m.name for m in develop.members] == ["parallel(lint, build)", "watch", "sandbox", "test"]


# ── build ────────────────────────────────────────────────────────────


class TestBuild:
    @pytest.mark.asyncio
    async def test_build_produces_every_artifact(self, ctx, project):
        result = await _run(ctx, "build")
        assert result.success
        assert _dist(project) == ALL_ARTIFACTS

    @pytest.mark.asyncio
    async def test_default_is_build(self, ctx, project):
        result = await _run(ctx, "default")
        assert result.success
        assert _dist(project) == ALL_ARTIFACTS

    @pytest.mark.asyncio
    async def test_build_removes_stale_output(self, ctx, project):
        (project / "dist").mkdir()
        (project / "dist" / "old.js").write_text("stale")
        await _run(ctx, "build")
        assert "old.js" not in _dist(project)

    @pytest.mark.asyncio
    async def test_skip_standalone(self, build_ctx, project):
        ctx = build_ctx(skip_standalone=True)
        result = await _run(ctx, "build")
        assert result.success
        assert _dist(project) == ALL_ARTIFACTS - {"sweetalert2.all.js", "sweetalert2.all.min.js"}

    @pytest.mark.asyncio
    async def test_skip_minification(self, build_ctx, project):
        ctx = build_ctx(skip_minification=True)
        result = await _run(ctx, "build")
        assert result.success
        assert _dist(project) == {"sweetalert2.js", "sweetalert2.css", "sweetalert2.all.js"}

    @pytest.mark.asyncio
    async def test_script_banner_and_umd_options(self, ctx, project):
        await _run(ctx, "build")
        _, options = ctx.tools.bundler.calls[0]
        assert options.name == "Sweetalert2"
        assert options.format == "umd"
        assert "json" in options.plugins
        assert "window.swal = window.sweetAlert = window.Swal = window.SweetAlert = window.Sweetalert2" in options.footer
        script = (project / "dist" / "sweetalert2.js").read_text()
        assert script.startswith("/*!\n* sweetalert2 v7.0.0\n* Released under the MIT License.\n*/")
        assert script.endswith("window.SweetAlert = window.Sweetalert2}")

    @pytest.mark.asyncio
    async def test_version_env_overrides_banner(self, build_ctx, project, monkeypatch):
        monkeypatch.setenv("VERSION", "9.9.9")
        ctx = build_ctx()
        await _run(ctx, "build:scripts")
        assert "sweetalert2 v9.9.9" in (project / "dist" / "sweetalert2.js").read_text()

    @pytest.mark.asyncio
    async def test_global_aliases_in_footer(self, build_ctx):
        ctx = build_ctx(global_aliases=["Swal", "sweetAlert"])
        await _run(ctx, "build")
        _, options = ctx.tools.bundler.calls[0]
        assert "window.Swal = window.sweetAlert = window.Sweetalert2" in options.footer

    @pytest.mark.asyncio
    async def test_styles_are_prefixed_then_minified(self, ctx, project):
        await _run(ctx, "build")
        css = (project / "dist" / "sweetalert2.css").read_text()
        assert "-webkit-prefixed" in css
        assert ctx.tools.style_minifier.calls == [css]

    @pytest.mark.asyncio
    async def test_standalone_embeds_stylesheet(self, ctx, project):
        await _run(ctx, "build")
        dist = project / "dist"
        script = (dist / "sweetalert2.js").read_text()
        css = (dist / "sweetalert2.css").read_text()
        standalone = (dist / "sweetalert2.all.js").read_text()
        assert standalone == script + "\n" + css_to_js(css)

        minified = (dist / "sweetalert2.all.min.js").read_text()
        assert minified.startswith((dist / "sweetalert2.min.js").read_text())
        assert json.dumps((dist / "sweetalert2.min.css").read_text()) in minified


class TestBuildFailures:
    @pytest.mark.asyncio
    async def test_bundler_failure_fails_build(self, build_ctx):
        ctx = build_ctx(tools=fake_tools(bundler=FakeBundler(fail=True)))
        result = await _run(ctx, "build")
        assert not result.success
        assert result.origin == "build:scripts"
        assert result.error_type == "ToolError"

    @pytest.mark.asyncio
    async def test_bundler_failure_ignored_with_continue_on_error(self, build_ctx, project):
        ctx = build_ctx(tools=fake_tools(bundler=FakeBundler(fail=True)), continue_on_error=True)
        result = await _run(ctx, "build")
        assert result.success
        assert any(w.startswith("build:scripts:") for w in result.warnings)
        assert "sweetalert2.css" in _dist(project)
        assert "sweetalert2.js" not in _dist(project)

    @pytest.mark.asyncio
    async def test_style_compile_error_is_fatal(self, build_ctx):
        tools = fake_tools(style_compiler=FakeStyleCompiler(fail=True))
        ctx = build_ctx(tools=tools, continue_on_error=True)
        result = await _run(ctx, "build")
        assert not result.success
        assert result.fatal
        assert result.origin == "build:styles"


# ── lint / test ──────────────────────────────────────────────────────


class TestLint:
    @pytest.mark.asyncio
    async def test_lint_runs_every_linter(self, ctx, project):
        (project / "dist").mkdir()
        (project / "dist" / "sweetalert2.js").write_text("built")
        (project / "node_modules" / "dep").mkdir(parents=True)
        (project / "node_modules" / "dep" / "index.js").write_text("dep")

        result = await _run(ctx, "lint")

        assert result.success
        linted = {p.relative_to(ctx.layout.root).as_posix() for p in ctx.tools.script_linter.calls[0]}
        assert linted == {"src/sweetalert2.js", "src/utils/dom.js"}
        styles = {p.name for p in ctx.tools.style_linter.calls[0]}
        assert styles == {"sweetalert2.scss", "variables.scss"}
        assert [p.name for p in ctx.tools.ts_linter.calls[0]] == ["sweetalert2.d.ts"]

    @pytest.mark.asyncio
    async def test_lint_violation_fails(self, build_ctx):
        linter = FakeLinter("stylelint", passed=False, diagnostics="src/a.scss: 1:1 bad")
        ctx = build_ctx(tools=fake_tools(style_linter=linter))
        result = await _run(ctx, "lint")
        assert not result.success
        assert result.origin == "lint:styles"
        assert result.error_type == "LintError"

    @pytest.mark.asyncio
    async def test_lint_violation_ignored_with_continue_on_error(self, build_ctx):
        linter = FakeLinter("eslint", passed=False)
        ctx = build_ctx(tools=fake_tools(script_linter=linter), continue_on_error=True)
        result = await _run(ctx, "lint")
        assert result.success
        assert result.warnings == ["lint:scripts: eslint reported violations"]


class TestTestTask:
    @pytest.mark.asyncio
    async def test_runs_karma_without_launching_browsers(self, ctx):
        result = await _run(ctx, "test")
        assert result.success
        assert ctx.tools.test_runner.calls == [("karma.conf.js", ["--no-launch"])]

    @pytest.mark.asyncio
    async def test_nonzero_status_fails(self, build_ctx):
        ctx = build_ctx(tools=fake_tools(test_runner=FakeTestRunner(status=1)))
        result = await _run(ctx, "test")
        assert not result.success
        assert result.error_type == "ToolError"


# ── develop ──────────────────────────────────────────────────────────


class _OrderCheckingDevServer(FakeDevServer):
    """Records the output directory and running services when started."""

    def __init__(self, ctx_services):
        super().__init__()
        self._services = ctx_services
        self.dist_at_start: set[str] = set()
        self.services_at_start: list[str] = []

    async def start(self, serve_root, start_path):
        await super().start(serve_root, start_path)
        self.dist_at_start = _dist(serve_root)
        self.services_at_start = [s.name for s in self._services.running]


class TestDevelop:
    @pytest.fixture
    def scans(self, project, monkeypatch):
        """Output directory contents seen by every watcher scan."""
        seen: list[set[str]] = []
        real_scan = PollingWatcher.scan

        def scan(watcher):
            seen.append(_dist(project) if (project / "dist").exists() else set())
            return real_scan(watcher)

        monkeypatch.setattr(PollingWatcher, "scan", scan)
        return seen

    @pytest.mark.asyncio
    async def test_services_start_after_lint_and_build(self, ctx, scans):
        server = _OrderCheckingDevServer(ctx.services)
        ctx.tools.dev_server = server
        result = await _run(ctx, "develop")
        try:
            assert result.success
            assert scans and all(seen == ALL_ARTIFACTS for seen in scans)
            assert server.dist_at_start == ALL_ARTIFACTS
            assert server.services_at_start == ["watch"]
            assert [s.name for s in ctx.services.running] == ["watch", "sandbox"]
            assert ctx.tools.script_linter.calls
            assert ctx.tools.test_runner.calls == [("karma.conf.js", ["--no-launch"])]
        finally:
            await ctx.services.stop()
        assert ctx.services.running == []
        assert server.stopped

    @pytest.mark.asyncio
    async def test_lint_failure_prevents_services(self, build_ctx, scans):
        ctx = build_ctx(tools=fake_tools(script_linter=FakeLinter("eslint", passed=False)))
        result = await _run(ctx, "develop")

        assert not result.success
        assert result.origin == "lint:scripts"
        assert len(ctx.services) == 0
        assert scans == []
        assert ctx.tools.dev_server.started == []
        assert ctx.tools.test_runner.calls == []

    @pytest.mark.asyncio
    async def test_build_failure_prevents_services(self, build_ctx):
        ctx = build_ctx(tools=fake_tools(bundler=FakeBundler(fail=True)))
        result = await _run(ctx, "develop")

        assert not result.success
        assert len(ctx.services) == 0
        assert ctx.tools.test_runner.calls == []

    @pytest.mark.asyncio
    async def test_lint_failure_ignored_with_continue_on_error(self, build_ctx):
        linter = FakeLinter("eslint", passed=False)
        ctx = build_ctx(tools=fake_tools(script_linter=linter), continue_on_error=True)
        result = await _run(ctx, "develop")
        try:
            assert result.success
            assert "lint:scripts: eslint reported violations" in result.warnings
            assert [s.name for s in ctx.services.running] == ["watch", "sandbox"]
        finally:
            await ctx.services.stop()
