# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Zip helper backend.

Drives the dedicated zip helper binary:

    file_zip --mode=1 --zipPath=out.zip --code=utf-8 --file=a --file=b/c
    file_zip --mode=2 --zipPath=in.zip --distDirPath=/dest --code=utf-8

Compression inputs are passed relative to the process working
directory; extraction runs inside the archive's own directory.
"""

import os
from pathlib import Path
from typing import Dict, List, Tuple

import aiofiles.os
import structlog

from gsbackup.archive.base import ArchiveBackend, ArchiveJob, is_executable
from gsbackup.archive.process import run_tool
from gsbackup.errors import ZIP_TOOL_MESSAGES, explain_no_input_files
from gsbackup.exceptions import ArchiveError, ArchiveToolError

logger = structlog.get_logger()

MODE_COMPRESS = "1"
MODE_DECOMPRESS = "2"


def _absolute(path: Path) -> Path:
    # Lexical only; staged files must not be resolved through symlinks
    return Path(os.path.abspath(path))


class ZipToolBackend(ArchiveBackend):
    """The only backend that can write archives."""

    name = "zip_tool"
    can_compress = True

    def __init__(self, executable: Path, messages: Dict[str, str] = ZIP_TOOL_MESSAGES):
        self.executable = Path(executable)
        self.messages = messages

    async def is_healthy(self) -> bool:
        return await is_executable(self.executable)

    def build_compress_args(self, job: ArchiveJob) -> Tuple[List[str], Path]:
        """
        Build helper arguments and working directory for compression.

        Raises:
            ArchiveError: No inputs, or an input outside base_dir
        """
        if not job.files:
            raise ArchiveError(explain_no_input_files())

        params = [
            f"--mode={MODE_COMPRESS}",
            # The helper runs inside base_dir, so the destination must not be relative
            f"--zipPath={_absolute(job.archive_path)}",
            f"--code={job.file_code}",
        ]

        if job.base_dir is None:
            params.extend(f"--file={file}" for file in job.files)
            return params, Path.cwd()

        base_dir = _absolute(job.base_dir)
        file_args: List[str] = []
        for file in job.files:
            resolved = _absolute(file)
            if resolved == base_dir:
                continue
            if not resolved.is_relative_to(base_dir):
                raise ArchiveError(
                    f"File {file} is not within base directory {job.base_dir}",
                    details={"file": str(file), "base_dir": str(job.base_dir)},
                )
            file_args.append(f"--file={resolved.relative_to(base_dir).as_posix()}")

        if not file_args:
            raise ArchiveError(explain_no_input_files())

        params.extend(file_args)
        return params, base_dir

    async def compress(self, job: ArchiveJob) -> None:
        params, working_dir = self.build_compress_args(job)
        archive_path = _absolute(job.archive_path)

        await aiofiles.os.makedirs(archive_path.parent, exist_ok=True)
        existed = await aiofiles.os.path.exists(archive_path)

        logger.info(
            "zip_tool_compress_started",
            executable=str(self.executable),
            working_dir=str(working_dir),
            archive=str(archive_path),
            file_count=len(params) - 3,
        )

        try:
            await run_tool(
                self.executable,
                params,
                cwd=working_dir,
                timeout_seconds=job.timeout_seconds,
                encoding=job.file_code,
                messages=self.messages,
            )
        except ArchiveToolError:
            if not existed and await aiofiles.os.path.exists(archive_path):
                await aiofiles.os.remove(archive_path)
                logger.info("partial_archive_removed", archive=str(archive_path))
            raise

    async def decompress(self, job: ArchiveJob) -> None:
        archive_path = _absolute(job.archive_path)
        dest_dir = os.path.normpath(_absolute(job.dest_dir))
        await aiofiles.os.makedirs(dest_dir, exist_ok=True)

        params = [
            f"--mode={MODE_DECOMPRESS}",
            f"--zipPath={archive_path.name}",
            f"--distDirPath={dest_dir}",
            f"--code={job.file_code}",
        ]
        logger.info(
            "zip_tool_decompress_started",
            executable=str(self.executable),
            params=" ".join(params),
        )

        await run_tool(
            self.executable,
            params,
            cwd=archive_path.parent,
            timeout_seconds=job.timeout_seconds,
            encoding=job.file_code,
            messages=self.messages,
        )
