"""Orchestration exceptions — registry, composition and planning misuse.

All orchestration exceptions inherit from ``buildspine.core.errors.OrchestrationError``
and are fatal: they are raised while targets are being assembled, before
anything runs, and are never demoted by continue-on-error.

Hierarchy::

    OrchestrationError  (from buildspine.core.errors)
      ├── DuplicateTaskError    ── name registered twice
      ├── UnknownTaskError      ── name not registered
      ├── RegistrySealedError   ── register() after startup configuration
      ├── OrderingError         ── a task runs before/alongside its producer
      ├── CycleDetectedError    ── artifact dependencies form a cycle
      └── PlanResolutionError   ── declarations cannot be turned into a plan
"""

from buildspine.core.errors import OrchestrationError


class DuplicateTaskError(OrchestrationError):
    """Raised when a task name is registered twice."""

    def __init__(self, name: str):
        self.task_name = name
        super().__init__(f"Task already registered: {name}")


class UnknownTaskError(OrchestrationError):
    """Raised when a task name cannot be resolved."""

    def __init__(self, name: str, available: list[str] | None = None):
        self.task_name = name
        listing = ", ".join(available) if available else "(none)"
        super().__init__(f"Task '{name}' not found. Available: {listing}")


class RegistrySealedError(OrchestrationError):
    """Raised when registering after the registry has been sealed."""

    def __init__(self, name: str):
        self.task_name = name
        super().__init__(f"Cannot register '{name}': task registry is sealed")


class OrderingError(OrchestrationError):
    """Raised when a task is scheduled before or alongside the producer of its inputs."""

    def __init__(self, task: str, producer: str, artifacts: list[str], composite: str):
        self.task_name = task
        self.producer = producer
        self.artifacts = artifacts
        self.composite = composite
        super().__init__(
            f"Task '{task}' in '{composite}' requires {', '.join(artifacts)} "
            f"produced by '{producer}', which does not complete before it"
        )


class CycleDetectedError(OrchestrationError):
    """Raised when the artifact dependency graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Cycle detected in dependency graph: {' -> '.join(cycle)}")


class PlanResolutionError(OrchestrationError):
    """Raised when task declarations cannot be resolved into a plan."""
