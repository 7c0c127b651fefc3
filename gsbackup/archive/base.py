# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive backend interface and shared job description.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Tuple

import aiofiles.os

from gsbackup.errors import ZIP_TOOL_MESSAGES
from gsbackup.exceptions import ArchiveError, InvalidNameError

# Characters never passed to an archive tool inside a path argument
DISALLOWED_NAME_CHARS = ('"', "'", "?", "|", "&")


def is_safe_name(name: str) -> bool:
    """Check that a path contains none of the disallowed characters."""
    return not any(char in name for char in DISALLOWED_NAME_CHARS)


def ensure_safe_names(*paths: os.PathLike | str, messages: Dict[str, str] = ZIP_TOOL_MESSAGES) -> None:
    """
    Screen every path before any subprocess is spawned.

    Raises:
        InvalidNameError: If any path contains a disallowed character
    """
    for path in paths:
        if not is_safe_name(str(path)):
            raise InvalidNameError(
                messages["invalid_name"],
                details={"path": str(path)},
            )


async def is_executable(path: Path | None) -> bool:
    """True if path points at an executable regular file."""
    if path is None:
        return False
    return await aiofiles.os.path.isfile(path) and os.access(path, os.X_OK)


@dataclass(frozen=True)
class ArchiveJob:
    """
    One compress or decompress invocation.

    A job runs once and is discarded; nothing here retries it.
    """

    archive_path: Path
    timeout_seconds: int
    file_code: str = "utf-8"
    # Compression inputs, resolved against base_dir
    files: Tuple[Path, ...] = ()
    base_dir: Path | None = None
    # Extraction target
    dest_dir: Path | None = None


class ArchiveBackend(ABC):
    """An external tool that can extract (and possibly create) archives."""

    name: str = "archive"
    can_compress: bool = False

    @abstractmethod
    async def is_healthy(self) -> bool:
        """Can this backend be invoked right now?"""

    async def compress(self, job: ArchiveJob) -> None:
        raise ArchiveError(
            f"{self.name} cannot create archives",
            details={"archive_path": str(job.archive_path)},
        )

    @abstractmethod
    async def decompress(self, job: ArchiveJob) -> None:
        """Extract job.archive_path into job.dest_dir."""
