"""External tool adapters (bundler, compilers, minifiers, linters, dev server, test runner)."""

from buildspine.adapters.protocols import BundleOptions, LintReport, ToolSet

__all__ = ["BundleOptions", "LintReport", "ToolSet"]
