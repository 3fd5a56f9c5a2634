"""Glob pattern sets with negation, matched against root-relative POSIX paths.

Pattern syntax:
    *       any run of characters except ``/``
    ?       one character except ``/``
    **/     zero or more directories
    **      anything, including ``/``
    !pat    exclude paths matching ``pat``

A path belongs to a ``PatternSet`` if it matches at least one include
pattern and no exclude pattern.

Example::

    scripts = PatternSet.of("**/*.js", "!dist/**", "!node_modules/**")
    scripts.matches("src/utils/dom.js")   # True
    scripts.matches("dist/lib.js")        # False
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

_SKIP_DIRS = frozenset({".git", ".hg", ".svn"})
_WILDCARDS = ("*", "?")


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a glob pattern into an anchored regular expression."""
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                if pattern.startswith("**/", i):
                    out.append("(?:.*/)?")
                    i += 3
                else:
                    out.append(".*")
                    i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out) + r"\Z")


@lru_cache(maxsize=256)
def _descent(pattern: str) -> tuple[tuple[str, ...], int | None]:
    """Literal leading directories of ``pattern`` and the deepest directory
    level a match can sit in (``None`` when ``**`` allows any depth)."""
    parts = pattern.split("/")
    literal: list[str] = []
    for part in parts[:-1]:
        if any(w in part for w in _WILDCARDS):
            break
        literal.append(part)
    depth = None if "**" in pattern else len(parts) - 1
    return tuple(literal), depth


def _reachable(pattern: str, rel_dir: tuple[str, ...]) -> bool:
    literal, depth = _descent(pattern)
    shared = min(len(literal), len(rel_dir))
    if rel_dir[:shared] != literal[:shared]:
        return False
    return depth is None or len(rel_dir) <= depth


def collect_files(root: Path, pattern_sets: Iterable[PatternSet]) -> list[Path]:
    """Files under ``root`` belonging to any of ``pattern_sets``, sorted.

    The tree is walked once for all sets, and only directories some set can
    reach are entered: ``src/**/*.scss`` never descends into ``node_modules``.
    """
    sets = list(pattern_sets)
    found: list[Path] = []
    if not sets:
        return found
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"
        dirnames[:] = [
            d for d in dirnames
            if d not in _SKIP_DIRS and any(s.descends(f"{prefix}{d}") for s in sets)
        ]
        for name in filenames:
            rel = f"{prefix}{name}"
            if any(s.matches(rel) for s in sets):
                found.append(Path(dirpath) / name)
    return sorted(found)


@dataclass(frozen=True)
class PatternSet:
    """An immutable set of include/exclude glob patterns."""

    include: tuple[str, ...]
    exclude: tuple[str, ...] = field(default=())

    @classmethod
    def of(cls, *patterns: str) -> PatternSet:
        """Build from gulp-style patterns, ``!`` prefix marking exclusions."""
        include = tuple(p for p in patterns if not p.startswith("!"))
        exclude = tuple(p[1:] for p in patterns if p.startswith("!"))
        if not include:
            raise ValueError("PatternSet requires at least one include pattern")
        return cls(include=include, exclude=exclude)

    def matches(self, rel_path: str) -> bool:
        rel_path = rel_path.replace(os.sep, "/")
        if rel_path.startswith("./"):
            rel_path = rel_path[2:]
        if self._excluded(rel_path):
            return False
        return any(glob_to_regex(p).match(rel_path) for p in self.include)

    def _excluded(self, rel_path: str) -> bool:
        return any(glob_to_regex(p).match(rel_path) for p in self.exclude)

    def descends(self, rel_dir: str) -> bool:
        """Whether files of this set can live in or below directory ``rel_dir``."""
        if self._excluded(f"{rel_dir}/"):
            return False
        parts = tuple(rel_dir.split("/"))
        return any(_reachable(p, parts) for p in self.include)

    def files(self, root: Path) -> list[Path]:
        """All existing files under ``root`` in this set, sorted."""
        return collect_files(root, [self])

    def __str__(self) -> str:
        return ", ".join([*self.include, *(f"!{p}" for p in self.exclude)])
