"""Build settings threaded into every task invocation.

``BuildSettings`` is the single configuration value of a build. The CLI
creates it from its flags, environment variables fill in the rest, and the
runner hands it to every task through the ``BuildContext``. Task bodies
never read ``sys.argv`` or ``os.environ`` themselves.

Environment:
    BUILDSPINE_*    any field below, e.g. BUILDSPINE_OUTPUT_DIR=build
    VERSION         overrides the version embedded in generated banners

Examples:
    >>> settings = BuildSettings(continue_on_error=True, skip_standalone=True)
    >>> settings.continue_on_error
    True
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BuildSettings(BaseSettings):
    """Settings for one orchestrator process.

    Fields
    ──────
    root               : Project root (contains package.json)
    output_dir         : Flat output directory, relative to root
    continue_on_error  : Demote non-fatal failures to warnings
    skip_minification  : Do not produce any ``*.min.*`` artifact
    skip_standalone    : Leave ``build:standalone`` out of ``build``
    version            : Banner version override (``VERSION`` env var)
    global_aliases     : Window globals the footer assigns the UMD export to
    watch_interval     : Polling period of the file watcher, seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="BUILDSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── Project ──────────────────────────────────────────────────
    root: Path = Field(default_factory=Path.cwd)
    output_dir: str = "dist"

    # ── Policy flags ─────────────────────────────────────────────
    continue_on_error: bool = False
    skip_minification: bool = False
    skip_standalone: bool = False

    # ── Banner ───────────────────────────────────────────────────
    version: str | None = Field(
        default=None,
        validation_alias=AliasChoices("VERSION", "version"),
    )
    global_aliases: list[str] = Field(default_factory=lambda: ["swal", "sweetAlert", "Swal", "SweetAlert"])

    # ── Development loop ─────────────────────────────────────────
    watch_interval: float = 0.3
    dev_server_port: int = 8080
    dev_server_ui_port: int = 8081
    sandbox_page: str = "test/sandbox.html"
    test_config: str = "karma.conf.js"

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    @property
    def output_path(self) -> Path:
        """Absolute path of the output directory."""
        return (self.root / self.output_dir).resolve()
