"""Build output artifacts and their fixed file names.

All artifacts land in one flat output directory. Names are derived from the
library name and are not configurable::

    SCRIPT          <lib>.js
    SCRIPT_MIN      <lib>.min.js
    STYLE           <lib>.css
    STYLE_MIN       <lib>.min.css
    STANDALONE      <lib>.all.js
    STANDALONE_MIN  <lib>.all.min.js
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class Artifact(str, Enum):
    """A file produced under the output directory."""

    SCRIPT = "script"
    SCRIPT_MIN = "script.min"
    STYLE = "style"
    STYLE_MIN = "style.min"
    STANDALONE = "standalone"
    STANDALONE_MIN = "standalone.min"


_SUFFIXES: dict[Artifact, str] = {
    Artifact.SCRIPT: ".js",
    Artifact.SCRIPT_MIN: ".min.js",
    Artifact.STYLE: ".css",
    Artifact.STYLE_MIN: ".min.css",
    Artifact.STANDALONE: ".all.js",
    Artifact.STANDALONE_MIN: ".all.min.js",
}


@dataclass(frozen=True)
class OutputLayout:
    """Maps artifacts to paths inside the output directory."""

    directory: Path
    library: str

    def filename(self, artifact: Artifact) -> str:
        return f"{self.library}{_SUFFIXES[artifact]}"

    def path(self, artifact: Artifact) -> Path:
        return self.directory / self.filename(artifact)

    def relative(self, artifact: Artifact, root: Path) -> str:
        """Artifact path relative to ``root`` in POSIX form (for glob patterns)."""
        return self.path(artifact).relative_to(root.resolve()).as_posix()
