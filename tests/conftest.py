"""
Shared pytest fixtures for build-spine tests.

This module provides:
- A throwaway component-library project under ``tmp_path``
- Settings and a BuildContext wired to in-memory tool fakes
- Helpers to build recording tasks for composition tests
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from buildspine.core.settings import BuildSettings
from buildspine.orchestration.context import BuildContext
from buildspine.orchestration.task import Task
from buildspine.project import ProjectLayout

from fakes import fake_tools

MANIFEST = {"name": "sweetalert2", "version": "7.0.0", "license": "MIT"}


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep developer environment variables out of settings."""
    for key in ("VERSION", "BUILDSPINE_CONTINUE_ON_ERROR", "BUILDSPINE_OUTPUT_DIR", "BUILDSPINE_ROOT"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A minimal library checkout: package.json, sources, type definitions."""
    (tmp_path / "package.json").write_text(json.dumps(MANIFEST))
    src = tmp_path / "src"
    (src / "utils").mkdir(parents=True)
    (src / "sweetalert2.js").write_text("import './utils/dom.js'\n")
    (src / "utils" / "dom.js").write_text("export const x = 1\n")
    (src / "sweetalert2.scss").write_text("@import 'variables';\n")
    (src / "variables.scss").write_text("$color: red;\n")
    (tmp_path / "sweetalert2.d.ts").write_text("export default {}\n")
    (tmp_path / "test").mkdir()
    (tmp_path / "test" / "sandbox.html").write_text("<html></html>\n")
    return tmp_path


def make_ctx(project: Path, tools=None, **settings) -> BuildContext:
    config = BuildSettings(root=project, **settings)
    return BuildContext(
        settings=config,
        layout=ProjectLayout.from_settings(config),
        tools=tools or fake_tools(),
    )


@pytest.fixture
def ctx(project: Path) -> BuildContext:
    return make_ctx(project)


@pytest.fixture
def coe_ctx(project: Path) -> BuildContext:
    return make_ctx(project, continue_on_error=True)


class Recorder:
    """Builds tasks that append their name to a shared call log."""

    def __init__(self):
        self.calls: list[str] = []

    def ok(self, name: str, **declarations) -> Task:
        def body(ctx):
            self.calls.append(name)

        return Task.define(name, body, **declarations)

    def failing(self, name: str, exc: Exception | None = None, **declarations) -> Task:
        def body(ctx):
            self.calls.append(name)
            raise exc or RuntimeError(f"{name} broke")

        return Task.define(name, body, **declarations)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def build_ctx(project: Path):
    """Factory: ``build_ctx(tools=..., skip_standalone=True, ...)``."""

    def factory(tools=None, **settings) -> BuildContext:
        return make_ctx(project, tools, **settings)

    return factory
