"""
Structured error types for build-spine.

Every error raised by the orchestrator, a task body or an external tool
adapter derives from ``BuildSpineError`` so the runner can decide, from the
exception alone, how a failure is reported and whether continue-on-error may
demote it.

Hierarchy::

    BuildSpineError  (category, fatal, context, cause)
      ├── ConfigError           ── missing/invalid settings or package.json
      ├── FilesystemError       ── output directory I/O other than "not found"
      ├── ToolError             ── an external tool exited non-zero
      │     ├── StyleCompileError   ── stylesheet compilation (always fatal)
      │     └── LintError           ── lint violations reported by a linter
      └── OrchestrationError    ── registry / composition misuse
            (see buildspine.orchestration.exceptions)

Guardrails:
    ❌ DON'T: Raise bare Exception from a task body
    ✅ DO: Raise the matching BuildSpineError subclass, chaining the cause

    ❌ DON'T: Mark lint or bundle errors fatal
    ✅ DO: Leave ``fatal`` to the error type's ``default_fatal``
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    CONFIG = "CONFIG"  # Missing config, unreadable package.json
    FILESYSTEM = "FILESYSTEM"  # Output directory I/O
    TOOL = "TOOL"  # External tool failure
    LINT = "LINT"  # Lint violations
    ORCHESTRATION = "ORCHESTRATION"  # Registry, composition, planning
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


class BuildSpineError(Exception):
    """
    Base exception for all build-spine errors.

    Attributes:
        message: Human-readable description
        category: ErrorCategory used for logging
        fatal: When True, continue-on-error never demotes this failure
        context: Free-form metadata (task, tool, path, ...)
        cause: Underlying exception, also chained as ``__cause__``
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_fatal: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        fatal: bool | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.fatal = fatal if fatal is not None else self.default_fatal
        self.context = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> BuildSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ToolError("rollup failed").with_context(task="build:scripts")
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "fatal": self.fatal,
        }
        if self.context:
            result["context"] = self.context
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class ConfigError(BuildSpineError):
    """Invalid or missing configuration."""

    default_category = ErrorCategory.CONFIG
    default_fatal = True


class FilesystemError(BuildSpineError):
    """Filesystem failure other than a missing path."""

    default_category = ErrorCategory.FILESYSTEM

    def __init__(self, message: str, *, path: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.path = path
        if path is not None:
            self.context.setdefault("path", path)


class ToolError(BuildSpineError):
    """An external tool (bundler, minifier, linter, ...) reported failure."""

    default_category = ErrorCategory.TOOL

    def __init__(
        self,
        message: str,
        *,
        tool: str | None = None,
        returncode: int | None = None,
        stderr: str = "",
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        if tool is not None:
            self.context.setdefault("tool", tool)
        if returncode is not None:
            self.context.setdefault("returncode", returncode)


class StyleCompileError(ToolError):
    """Stylesheet compilation failed. Never demoted by continue-on-error."""

    default_fatal = True


class LintError(ToolError):
    """A linter reported violations."""

    default_category = ErrorCategory.LINT

    def __init__(self, message: str, *, diagnostics: str = "", **kwargs: Any):
        super().__init__(message, **kwargs)
        self.diagnostics = diagnostics


class OrchestrationError(BuildSpineError):
    """Registry, composition or planning misuse."""

    default_category = ErrorCategory.ORCHESTRATION
    default_fatal = True
