"""Run Result — outcome of one task or composite invocation.

Every task, leaf or composite, returns a ``RunResult``. Task bodies never
construct one directly; ``Task.run`` wraps the body's outcome:

    body returns normally        → RunResult.ok(task)
    body raises                  → RunResult.from_exception(task, exc)

Composites build theirs from their members' results and, under
continue-on-error, record demoted member failures in ``warnings``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from buildspine.core.errors import BuildSpineError


@dataclass
class RunResult:
    """
    Result from running a task.

    Attributes:
        task: Name of the task that produced this result
        success: Whether the task completed successfully
        error: Error message if success=False
        error_type: Exception class name if the failure came from an exception
        fatal: Failure must propagate even under continue-on-error
        origin: Name of the leaf task where a failure originated
        warnings: Failures demoted to warnings under continue-on-error
        duration_ms: Wall-clock duration of the invocation
    """

    task: str
    success: bool
    error: str | None = None
    error_type: str | None = None
    fatal: bool = False
    origin: str | None = None
    warnings: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    def __post_init__(self):
        if not self.success and not self.error:
            self.error = f"Task '{self.task}' failed without error message"

    @classmethod
    def ok(cls, task: str, warnings: list[str] | None = None) -> RunResult:
        return cls(task=task, success=True, warnings=list(warnings or []))

    @classmethod
    def fail(cls, task: str, error: str, *, fatal: bool = False, error_type: str | None = None) -> RunResult:
        return cls(task=task, success=False, error=error, fatal=fatal, error_type=error_type, origin=task)

    @classmethod
    def from_exception(cls, task: str, exc: BaseException) -> RunResult:
        """Capture a task body exception; ``fatal`` comes from BuildSpineError."""
        fatal = exc.fatal if isinstance(exc, BuildSpineError) else False
        message = str(exc) or type(exc).__name__
        return cls.fail(task, message, fatal=fatal, error_type=type(exc).__name__)

    def propagate(self, task: str, warnings: list[str] | None = None) -> RunResult:
        """Re-attribute this failure to an enclosing composite, keeping its origin."""
        return RunResult(
            task=task,
            success=self.success,
            error=self.error,
            error_type=self.error_type,
            fatal=self.fatal,
            origin=self.origin,
            warnings=list(warnings or []),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        result: dict[str, Any] = {
            "task": self.task,
            "success": self.success,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.error:
            result["error"] = self.error
        if self.error_type:
            result["error_type"] = self.error_type
        if self.fatal:
            result["fatal"] = True
        if self.origin and self.origin != self.task:
            result["origin"] = self.origin
        if self.warnings:
            result["warnings"] = self.warnings
        return result

    def __repr__(self) -> str:
        status = "OK" if self.success else f"FAIL({self.error_type or 'error'})"
        return f"RunResult({self.task!r}, {status})"
