"""
Structured logging for build-spine.

One entry point, ``configure_logging()``, sets up structlog with either a
colored console renderer (default, for interactive builds) or a JSON
renderer (CI log aggregation). Every module obtains its logger through
``get_logger(__name__)`` and emits dotted event names with key/value
fields::

    logger = get_logger(__name__)
    logger.info("task.end", task="build:styles", duration_ms=412.7)

Configuration is read from arguments or, when omitted, from environment:
- BUILDSPINE_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- BUILDSPINE_LOG_FORMAT: console | json (default: console)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Literal

import structlog
from structlog.types import Processor

_configured = False


def configure_logging(
    level: str | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the process.

    Should be called once at CLI startup. Subsequent calls are no-ops
    unless ``force=True``.

    Args:
        level: Log level (overrides BUILDSPINE_LOG_LEVEL)
        format: Output format (overrides BUILDSPINE_LOG_FORMAT)
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    log_level = (level or os.environ.get("BUILDSPINE_LOG_LEVEL", "INFO")).upper()
    log_format = (format or os.environ.get("BUILDSPINE_LOG_FORMAT", "console")).lower()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level, logging.INFO),
        force=True,
    )
    logging.getLogger("buildspine").setLevel(getattr(logging, log_level, logging.INFO))

    _configured = True


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs of this task/coroutine.

    Example:
        bind_context(target="develop")
        logger.info("task.start", task="lint")  # includes target
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
