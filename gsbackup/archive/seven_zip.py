# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
7-Zip extraction backend.

7-Zip exit codes are not relied on; success or failure is read from
its console output.
"""

import re
from pathlib import Path

import aiofiles.os
import structlog

from gsbackup.archive.base import ArchiveBackend, ArchiveJob, is_executable
from gsbackup.archive.process import run_tool
from gsbackup.errors import (
    MAX_DIAGNOSTIC_LENGTH,
    MAX_ERROR_LINE_LENGTH,
    SEVEN_ZIP_MESSAGES,
    explain_data_error,
    explain_missing_volume,
    explain_open_errors,
    explain_unknown_tool_error,
    truncate,
)
from gsbackup.exceptions import (
    ArchiveToolError,
    ToolDataError,
    ToolGenericError,
    ToolMissingVolumeError,
    ToolNotFoundError,
    ToolOpenErrorsError,
)

logger = structlog.get_logger()

ERROR_MARKERS = (
    "ERRORS:",
    "ERROR:",
    "Open Errors:",
    "Missing volume",
    "Data Error",
    "Archives with Errors:",
)

ERROR_LINE_MARKERS = (
    "ERROR",
    "Missing volume",
    "Data Error",
    "Open Errors",
    "Archives with Errors",
)

SUCCESS_MARKER = "Everything is Ok"

_MISSING_VOLUME = re.compile(r"Missing volume\s*:\s*(\S+)")


def classify_seven_zip_output(stdout: str) -> ArchiveToolError | None:
    """
    Turn 7-Zip console output into a typed failure.

    Priority: missing volume, data error, open errors, then the first
    error line (truncated).

    Returns:
        The error to raise, or None when no error marker is present
    """
    if not any(marker in stdout for marker in ERROR_MARKERS):
        return None

    details = {"output": truncate(stdout, MAX_DIAGNOSTIC_LENGTH)}

    if "Missing volume" in stdout:
        match = _MISSING_VOLUME.search(stdout)
        volume = match.group(1) if match else None
        return ToolMissingVolumeError(explain_missing_volume(volume), details=details)

    if "Data Error" in stdout:
        return ToolDataError(explain_data_error(), details=details)

    if "Open Errors" in stdout:
        return ToolOpenErrorsError(explain_open_errors(), details=details)

    error_lines = [
        line.strip()
        for line in stdout.splitlines()
        if any(marker in line for marker in ERROR_LINE_MARKERS)
    ]
    first_error = error_lines[0] if error_lines and error_lines[0] else explain_unknown_tool_error()
    return ToolGenericError(truncate(first_error, MAX_ERROR_LINE_LENGTH), details=details)


class SevenZipBackend(ArchiveBackend):
    """Extract-only backend driving a 7-Zip executable."""

    name = "7zip"
    can_compress = False

    def __init__(self, executable: Path | None):
        self.executable = Path(executable) if executable else None

    async def is_healthy(self) -> bool:
        return await is_executable(self.executable)

    async def decompress(self, job: ArchiveJob) -> None:
        if self.executable is None:
            raise ToolNotFoundError(SEVEN_ZIP_MESSAGES["not_found"])

        dest_dir = Path(job.dest_dir)
        await aiofiles.os.makedirs(dest_dir, exist_ok=True)

        args = ["x", str(job.archive_path), f"-o{dest_dir}", "-aoa"]
        logger.info(
            "seven_zip_extract_started",
            executable=str(self.executable),
            archive=str(job.archive_path),
            dest=str(dest_dir),
        )

        result = await run_tool(
            self.executable,
            args,
            cwd=Path(job.archive_path).parent,
            timeout_seconds=job.timeout_seconds,
            messages=SEVEN_ZIP_MESSAGES,
            check=False,
        )

        error = classify_seven_zip_output(result.stdout)
        if error is not None:
            logger.error(
                "seven_zip_extract_failed",
                code=error.code,
                message=error.message,
                returncode=result.returncode,
            )
            raise error

        if result.stderr.strip():
            logger.warning(
                "seven_zip_warning",
                warning=truncate(result.stderr, MAX_DIAGNOSTIC_LENGTH),
            )

        if SUCCESS_MARKER in result.stdout:
            logger.info("seven_zip_extract_ok", archive=str(job.archive_path))
        else:
            tail = [line for line in result.stdout.splitlines() if line.strip()][-3:]
            logger.info(
                "seven_zip_extract_finished",
                archive=str(job.archive_path),
                result="; ".join(tail),
                returncode=result.returncode,
            )
