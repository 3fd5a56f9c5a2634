"""Project description: package manifest, source layout and banners.

The component library's ``package.json`` supplies the name, version and
license embedded in every generated banner. ``ProjectLayout`` derives the
entry points and file sets from the library name; they follow fixed
conventions::

    src/<lib>.js        script entry module
    src/<lib>.scss      stylesheet entry
    src/**/*.js         script sources (rebuild on change)
    src/**/*.scss       style sources (rebuild + lint on change)
    **/*.js             all scripts, minus dist/** and node_modules/** (lint)
    <lib>.d.ts          type definitions (lint)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ValidationError

from buildspine.artifacts import OutputLayout
from buildspine.core.errors import ConfigError
from buildspine.core.settings import BuildSettings
from buildspine.watch.patterns import PatternSet


class PackageManifest(BaseModel):
    """The subset of ``package.json`` the orchestrator reads."""

    name: str
    version: str = "0.0.0"
    license: str = "MIT"

    @classmethod
    def load(cls, root: Path) -> PackageManifest:
        """Read ``<root>/package.json``.

        Raises:
            ConfigError: If the file is missing or not a valid manifest
        """
        path = root / "package.json"
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigError(f"package.json not found in {root}", cause=e) from e
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid package.json: {e}", cause=e) from e

    @property
    def library(self) -> str:
        """Unscoped package name, used for file names."""
        return self.name.rsplit("/", 1)[-1]


def umd_name(library: str) -> str:
    """UMD global name: ``sweetalert2`` → ``Sweetalert2``, ``my-lib`` → ``MyLib``."""
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", library) if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


@dataclass(frozen=True)
class ProjectLayout:
    """Entry points, file sets and banner text for one component library."""

    root: Path
    manifest: PackageManifest
    output: OutputLayout
    version: str
    global_aliases: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: BuildSettings, manifest: PackageManifest | None = None) -> ProjectLayout:
        root = settings.root.resolve()
        manifest = manifest or PackageManifest.load(root)
        return cls(
            root=root,
            manifest=manifest,
            output=OutputLayout(directory=settings.output_path, library=manifest.library),
            version=settings.version or manifest.version,
            global_aliases=tuple(settings.global_aliases),
        )

    # ── Entry points ─────────────────────────────────────────────

    @property
    def library(self) -> str:
        return self.manifest.library

    @property
    def script_entry(self) -> Path:
        return self.root / "src" / f"{self.library}.js"

    @property
    def style_entry(self) -> Path:
        return self.root / "src" / f"{self.library}.scss"

    # ── File sets ────────────────────────────────────────────────

    @property
    def src_scripts(self) -> PatternSet:
        return PatternSet.of("src/**/*.js")

    @property
    def src_styles(self) -> PatternSet:
        return PatternSet.of("src/**/*.scss")

    @property
    def all_scripts(self) -> PatternSet:
        output = self.output.directory.relative_to(self.root).as_posix()
        return PatternSet.of("**/*.js", f"!{output}/**", "!node_modules/**")

    @property
    def ts_files(self) -> PatternSet:
        return PatternSet.of(f"{self.library}.d.ts")

    # ── Banner ───────────────────────────────────────────────────

    @property
    def umd_name(self) -> str:
        return umd_name(self.library)

    @property
    def banner(self) -> str:
        return (
            "/*!\n"
            f"* {self.manifest.name} v{self.version}\n"
            f"* Released under the {self.manifest.license} License.\n"
            "*/"
        )

    @property
    def footer(self) -> str:
        """Assigns the UMD export to every global alias; empty when aliases are disabled."""
        if not self.global_aliases:
            return ""
        name = self.umd_name
        chain = " = ".join(f"window.{alias}" for alias in self.global_aliases)
        return (
            f"if (typeof window !== 'undefined' && window.{name}){{"
            f"  {chain} = window.{name}"
            "}"
        )
