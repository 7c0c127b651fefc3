# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backend selection for compression and extraction.

Compression always goes through the zip helper. Extraction prefers
7-Zip when it is installed and healthy, and falls back to the zip
helper for plain, single-volume zip archives.
"""

import os
from pathlib import Path
from typing import Iterable, Tuple

import structlog

from gsbackup.archive.base import ArchiveBackend, ArchiveJob, ensure_safe_names
from gsbackup.archive.formats import file_extension, is_multi_volume, is_zip_format
from gsbackup.archive.seven_zip import SevenZipBackend
from gsbackup.archive.zip_tool import ZipToolBackend
from gsbackup.config import DaemonSettings
from gsbackup.errors import (
    explain_extraction_failed,
    explain_multi_volume_unsupported,
    explain_unsupported_format,
)
from gsbackup.exceptions import (
    ArchiveToolError,
    MultiVolumeUnsupportedError,
    UnsupportedFormatError,
)

logger = structlog.get_logger()


def select_compress_backend(settings: DaemonSettings) -> ArchiveBackend:
    """The zip helper is the only writer."""
    return ZipToolBackend(settings.zip_tool_path)


def decompress_backends(settings: DaemonSettings) -> Tuple[SevenZipBackend, ZipToolBackend]:
    """(primary, fallback) extraction backends."""
    return SevenZipBackend(settings.seven_zip_path), ZipToolBackend(settings.zip_tool_path)


async def ensure_zip_extractable(archive_path: Path) -> None:
    """
    Check that the zip helper can read an archive.

    Raises:
        UnsupportedFormatError: Not a zip-family archive
        MultiVolumeUnsupportedError: One part of a split archive
    """
    if not await is_zip_format(archive_path):
        raise UnsupportedFormatError(
            explain_unsupported_format(file_extension(archive_path)),
            details={"archive_path": str(archive_path)},
        )
    if await is_multi_volume(archive_path):
        raise MultiVolumeUnsupportedError(
            explain_multi_volume_unsupported(),
            details={"archive_path": str(archive_path)},
        )


async def compress(
    settings: DaemonSettings,
    archive_path: os.PathLike | str,
    files: Iterable[os.PathLike | str],
    file_code: str = "utf-8",
    base_dir: os.PathLike | str | None = None,
) -> Path:
    """
    Create a zip archive from files.

    Args:
        settings: Daemon settings (tool path, timeout)
        archive_path: Destination archive
        files: Inputs; with base_dir they must live inside it
        file_code: File name encoding inside the archive
        base_dir: Working directory the archive entries are relative to

    Returns:
        Path to the created archive
    """
    files = [Path(f) for f in files]
    ensure_safe_names(archive_path, *files)

    job = ArchiveJob(
        archive_path=Path(archive_path),
        timeout_seconds=settings.zip_timeout_seconds,
        file_code=file_code,
        files=tuple(files),
        base_dir=Path(base_dir) if base_dir is not None else None,
    )
    backend = select_compress_backend(settings)
    await backend.compress(job)
    return job.archive_path


async def decompress(
    settings: DaemonSettings,
    archive_path: os.PathLike | str,
    dest_dir: os.PathLike | str,
    file_code: str = "utf-8",
) -> str:
    """
    Extract an archive into dest_dir.

    Returns:
        Name of the backend that performed the extraction
    """
    ensure_safe_names(archive_path, dest_dir)

    job = ArchiveJob(
        archive_path=Path(archive_path),
        timeout_seconds=settings.zip_timeout_seconds,
        file_code=file_code or "utf-8",
        dest_dir=Path(dest_dir),
    )
    primary, fallback = decompress_backends(settings)

    if await primary.is_healthy():
        try:
            await primary.decompress(job)
            return primary.name
        except ArchiveToolError as e:
            logger.warning(
                "seven_zip_failed_falling_back",
                code=e.code,
                error=e.message,
                archive=str(job.archive_path),
            )
    else:
        logger.debug("seven_zip_unavailable", executable=str(settings.seven_zip_path))

    await ensure_zip_extractable(job.archive_path)

    try:
        await fallback.decompress(job)
    except ArchiveToolError as e:
        logger.error("zip_tool_extract_failed", code=e.code, error=e.message)
        raise type(e)(explain_extraction_failed(e.message), details=e.details) from e

    return fallback.name
