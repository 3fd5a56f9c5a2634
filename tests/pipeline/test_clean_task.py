"""Tests for the ``clean`` task."""

from __future__ import annotations

import pathlib

import pytest

from buildspine.core.errors import FilesystemError
from buildspine.orchestration.task import TaskId
from buildspine.pipeline.tasks import clean_directory, leaf_tasks


def _clean_task():
    return next(t for t in leaf_tasks() if t.name == TaskId.CLEAN.value)


class TestCleanDirectory:
    def test_missing_directory_is_created(self, tmp_path):
        target = tmp_path / "dist"
        assert clean_directory(target) == 0
        assert target.is_dir()

    def test_populated_directory_is_emptied(self, tmp_path):
        target = tmp_path / "dist"
        (target / "nested").mkdir(parents=True)
        (target / "sweetalert2.js").write_text("x")
        (target / "nested" / "deep.css").write_text("y")

        assert clean_directory(target) == 2
        assert target.is_dir()
        assert list(target.iterdir()) == []

    def test_permission_error_is_surfaced(self, tmp_path, monkeypatch):
        target = tmp_path / "dist"
        target.mkdir()
        (target / "locked.js").write_text("x")

        def deny(self, missing_ok=False):
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(pathlib.Path, "unlink", deny)
        with pytest.raises(FilesystemError) as excinfo:
            clean_directory(target)
        assert excinfo.value.path.endswith("locked.js")
        assert isinstance(excinfo.value.__cause__, PermissionError)


class TestCleanTask:
    @pytest.mark.asyncio
    async def test_clean_uses_configured_output_dir(self, build_ctx, project):
        ctx = build_ctx(output_dir="build")
        (project / "build").mkdir()
        (project / "build" / "stale.js").write_text("old")

        result = await _clean_task().run(ctx)

        assert result.success
        assert (project / "build").is_dir()
        assert not (project / "build" / "stale.js").exists()

    @pytest.mark.asyncio
    async def test_permission_error_fails_the_task(self, ctx, project, monkeypatch):
        (project / "dist").mkdir()
        (project / "dist" / "locked.js").write_text("x")

        def deny(self, missing_ok=False):
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(pathlib.Path, "unlink", deny)
        result = await _clean_task().run(ctx)

        assert not result.success
        assert result.error_type == "FilesystemError"
        assert "locked.js" in result.error
