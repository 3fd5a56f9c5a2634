"""File watching: glob pattern sets, the change dispatcher and the polling watcher."""

from buildspine.watch.patterns import PatternSet, collect_files, glob_to_regex

__all__ = ["PatternSet", "collect_files", "glob_to_regex"]
