"""Core primitives: errors, logging and settings."""

from buildspine.core.errors import (
    BuildSpineError,
    ConfigError,
    ErrorCategory,
    FilesystemError,
    LintError,
    OrchestrationError,
    StyleCompileError,
    ToolError,
)
from buildspine.core.logging import bind_context, configure_logging, get_logger
from buildspine.core.settings import BuildSettings

__all__ = [
    "BuildSettings",
    "BuildSpineError",
    "ConfigError",
    "ErrorCategory",
    "FilesystemError",
    "LintError",
    "OrchestrationError",
    "StyleCompileError",
    "ToolError",
    "bind_context",
    "configure_logging",
    "get_logger",
]
