"""Subprocess helpers shared by the Node.js tool adapters.

``run_tool`` spawns a command with ``asyncio.create_subprocess_exec`` so the
event loop keeps scheduling sibling tasks of a ``parallel`` composite while
a tool runs. ``run_tool_sync`` is the blocking variant for contracts that
are synchronous by definition (stylesheet compilation).
"""

from __future__ import annotations

import asyncio
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from buildspine.core.errors import ToolError
from buildspine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ToolOutput:
    """Captured result of one tool invocation."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _tool_name(argv: Sequence[str]) -> str:
    if len(argv) > 1 and Path(argv[0]).name == "npx":
        return argv[1]
    return Path(argv[0]).name


def _check(output: ToolOutput, error_cls: type[ToolError]) -> ToolOutput:
    if not output.ok:
        tool = _tool_name(output.argv)
        detail = (output.stderr or output.stdout).strip()
        raise error_cls(
            f"{tool} exited with status {output.returncode}" + (f": {detail}" if detail else ""),
            tool=tool,
            returncode=output.returncode,
            stderr=output.stderr,
        )
    return output


async def run_tool(
    argv: Sequence[str],
    *,
    cwd: Path,
    input: str | None = None,
    check: bool = True,
    error_cls: type[ToolError] = ToolError,
) -> ToolOutput:
    """Run a tool to completion, capturing stdout/stderr as text.

    Raises:
        ToolError (or ``error_cls``): Non-zero exit with ``check=True``, or
            the executable could not be started
    """
    argv = tuple(str(a) for a in argv)
    tool = _tool_name(argv)
    logger.debug("tool.exec", tool=tool, argv=list(argv), cwd=str(cwd))
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd),
            stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise error_cls(f"Cannot start {tool}: {e}", tool=tool, cause=e) from e

    stdout, stderr = await process.communicate(input.encode("utf-8") if input is not None else None)
    output = ToolOutput(
        argv=argv,
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    return _check(output, error_cls) if check else output


def run_tool_sync(
    argv: Sequence[str],
    *,
    cwd: Path,
    input: str | None = None,
    error_cls: type[ToolError] = ToolError,
) -> ToolOutput:
    """Blocking variant of ``run_tool`` (always checks the exit status)."""
    argv = tuple(str(a) for a in argv)
    tool = _tool_name(argv)
    logger.debug("tool.exec", tool=tool, argv=list(argv), cwd=str(cwd), blocking=True)
    try:
        completed = subprocess.run(
            argv,
            cwd=str(cwd),
            input=input,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise error_cls(f"Cannot start {tool}: {e}", tool=tool, cause=e) from e
    output = ToolOutput(argv, completed.returncode, completed.stdout, completed.stderr)
    return _check(output, error_cls)
