"""Tests for buildspine.core.settings and buildspine.project."""

from __future__ import annotations

import json

import pytest

from buildspine.artifacts import Artifact, OutputLayout
from buildspine.core.errors import ConfigError
from buildspine.core.settings import BuildSettings
from buildspine.project import PackageManifest, ProjectLayout, umd_name


class TestBuildSettings:
    def test_defaults(self, tmp_path):
        settings = BuildSettings(root=tmp_path)
        assert settings.output_dir == "dist"
        assert not settings.continue_on_error
        assert not settings.skip_minification
        assert not settings.skip_standalone
        assert settings.version is None
        assert settings.dev_server_port == 8080
        assert settings.dev_server_ui_port == 8081
        assert settings.output_path == (tmp_path / "dist").resolve()

    def test_prefixed_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BUILDSPINE_CONTINUE_ON_ERROR", "true")
        monkeypatch.setenv("BUILDSPINE_OUTPUT_DIR", "build")
        settings = BuildSettings(root=tmp_path)
        assert settings.continue_on_error
        assert settings.output_path.name == "build"

    def test_version_env_has_no_prefix(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VERSION", "8.1.0")
        assert BuildSettings(root=tmp_path).version == "8.1.0"

    def test_invalid_log_format_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            BuildSettings(root=tmp_path, log_format="xml")


class TestPackageManifest:
    def test_load(self, project):
        manifest = PackageManifest.load(project)
        assert manifest.name == "sweetalert2"
        assert manifest.version == "7.0.0"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="package.json not found"):
            PackageManifest.load(tmp_path)

    def test_invalid_file(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"version": "1.0.0"}))
        with pytest.raises(ConfigError) as excinfo:
            PackageManifest.load(tmp_path)
        assert excinfo.value.fatal

    def test_scoped_name(self):
        assert PackageManifest(name="@acme/toast-ui").library == "toast-ui"


class TestProjectLayout:
    def test_entry_points(self, project):
        layout = ProjectLayout.from_settings(BuildSettings(root=project))
        assert layout.script_entry == layout.root / "src" / "sweetalert2.js"
        assert layout.style_entry == layout.root / "src" / "sweetalert2.scss"
        assert layout.output.path(Artifact.STANDALONE_MIN).name == "sweetalert2.all.min.js"

    def test_banner_uses_version_override(self, project):
        layout = ProjectLayout.from_settings(BuildSettings(root=project, version="7.1.0"))
        assert layout.banner == "/*!\n* sweetalert2 v7.1.0\n* Released under the MIT License.\n*/"

    def test_default_footer_assigns_window_aliases(self, project):
        footer = ProjectLayout.from_settings(BuildSettings(root=project)).footer
        assert footer == (
            "if (typeof window !== 'undefined' && window.Sweetalert2){"
            "  window.swal = window.sweetAlert = window.Swal = window.SweetAlert = window.Sweetalert2"
            "}"
        )

    def test_footer_empty_without_aliases(self, project):
        assert ProjectLayout.from_settings(BuildSettings(root=project, global_aliases=[])).footer == ""

    @pytest.mark.parametrize(
        "library, expected",
        [("sweetalert2", "Sweetalert2"), ("my-lib", "MyLib"), ("toast_ui", "ToastUi")],
    )
    def test_umd_name(self, library, expected):
        assert umd_name(library) == expected


class TestOutputLayout:
    def test_artifact_names(self, tmp_path):
        out = OutputLayout(directory=tmp_path, library="lib")
        assert [out.filename(a) for a in Artifact] == [
            "lib.js",
            "lib.min.js",
            "lib.css",
            "lib.min.css",
            "lib.all.js",
            "lib.all.min.js",
        ]
