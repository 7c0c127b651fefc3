# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Subprocess runner for external archive tools.

Maps launch failures, timeouts and non-zero exits onto the archive
error taxonomy using a caller-supplied message table.
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Sequence

import structlog

from gsbackup.errors import MAX_DIAGNOSTIC_LENGTH, ZIP_TOOL_MESSAGES, truncate
from gsbackup.exceptions import (
    ToolGenericError,
    ToolLaunchFailedError,
    ToolNotFoundError,
    ToolTimeoutError,
)

logger = structlog.get_logger()


@dataclass
class ToolResult:
    """Captured outcome of a finished tool process."""

    returncode: int
    stdout: str
    stderr: str


def _decode(data: bytes, encoding: str) -> str:
    try:
        return data.decode(encoding, errors="replace")
    except LookupError:
        return data.decode("utf-8", errors="replace")


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill a child that is still running and reap it."""
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


async def run_tool(
    executable: os.PathLike | str,
    args: Sequence[str],
    cwd: os.PathLike | str,
    timeout_seconds: float,
    encoding: str = "utf-8",
    messages: Dict[str, str] = ZIP_TOOL_MESSAGES,
    check: bool = True,
) -> ToolResult:
    """
    Run an archive tool to completion.

    Args:
        executable: Tool binary
        args: Arguments, passed without a shell
        cwd: Working directory for the child
        timeout_seconds: Wall-clock budget; the child is killed on expiry
        encoding: Encoding of the tool's output streams
        messages: Message table with 'start', 'not_found', 'timeout', 'exit'
        check: Treat a non-zero exit status as a failure

    Returns:
        ToolResult with decoded output

    Raises:
        ToolNotFoundError: Executable does not exist
        ToolLaunchFailedError: Executable could not be started
        ToolTimeoutError: Budget exceeded
        ToolGenericError: Non-zero exit with check=True
    """
    command = [str(executable), *args]

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise ToolNotFoundError(
            messages["not_found"],
            details={"executable": str(executable), "cwd": str(cwd)},
        ) from e
    except OSError as e:
        logger.error("archive_tool_launch_failed", executable=str(executable), error=str(e))
        raise ToolLaunchFailedError(
            messages["start"],
            details={"executable": str(executable), "error": str(e)},
        ) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        await _terminate(process)
        logger.error(
            "archive_tool_timeout",
            executable=Path(executable).name,
            timeout_seconds=timeout_seconds,
        )
        raise ToolTimeoutError(
            messages["timeout"],
            details={"executable": str(executable), "timeout_seconds": timeout_seconds},
        )
    except asyncio.CancelledError:
        await _terminate(process)
        raise

    result = ToolResult(
        returncode=process.returncode,
        stdout=_decode(stdout, encoding),
        stderr=_decode(stderr, encoding),
    )

    if check and result.returncode != 0:
        diagnostic = truncate(result.stderr or result.stdout, MAX_DIAGNOSTIC_LENGTH)
        logger.error(
            "archive_tool_exit_error",
            executable=Path(executable).name,
            returncode=result.returncode,
            output=diagnostic,
        )
        raise ToolGenericError(
            messages["exit"],
            details={"returncode": result.returncode, "output": diagnostic},
        )

    return result
