# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Staging areas for backup and restore.

A staging area is a uniquely named scratch directory owned by exactly
one operation and removed when that operation ends, whatever the
outcome. Selected files are materialized into it as hard links, with a
byte copy only when the link would cross a filesystem boundary.
"""

import asyncio
import errno
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Iterable

import aiofiles
import aiofiles.os
import structlog
from ulid import ULID

from gsbackup.errors import explain_staging_failed
from gsbackup.exceptions import GSBackupError, StagingLinkFailedError

logger = structlog.get_logger()

BACKUP_STAGING_PREFIX = "gsbackup_backup_"
RESTORE_STAGING_PREFIX = "gsbackup_restore_"

# Upper bound on concurrent link/copy operations
MAX_CONCURRENT_STAGING = 64

COPY_CHUNK_SIZE = 1024 * 1024

LINKED = "linked"
COPIED = "copied"


async def remove_tree(path: Path) -> None:
    """Remove a directory tree without blocking the event loop."""
    if not await aiofiles.os.path.exists(path):
        return
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, shutil.rmtree, path)


@asynccontextmanager
async def staging_area(prefix: str, parent: Path | None = None) -> AsyncIterator[Path]:
    """
    Create a unique scratch directory for the duration of a block.

    The name embeds a ULID (millisecond timestamp plus randomness), so
    concurrent operations never share a directory.

    Args:
        prefix: Name prefix, e.g. BACKUP_STAGING_PREFIX
        parent: Where to create it (default: system temp dir)
    """
    root = Path(parent) if parent is not None else Path(tempfile.gettempdir())
    path = root / f"{prefix}{ULID()}"
    await aiofiles.os.makedirs(path)
    logger.debug("staging_area_created", path=str(path))

    try:
        yield path
    finally:
        try:
            await remove_tree(path)
            logger.debug("staging_area_removed", path=str(path))
        except OSError as e:
            logger.error("staging_area_cleanup_failed", path=str(path), error=str(e))


async def copy_file(source: Path, target: Path) -> None:
    """Byte copy preserving mode and timestamps."""
    async with aiofiles.open(source, "rb") as src, aiofiles.open(target, "wb") as dst:
        while True:
            chunk = await src.read(COPY_CHUNK_SIZE)
            if not chunk:
                break
            await dst.write(chunk)

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, shutil.copystat, source, target)


async def materialize_file(source: Path, target: Path) -> str:
    """
    Make source available at target.

    A hard link is tried first. Only a cross-device error (EXDEV) falls
    back to a byte copy; any other failure is fatal.

    Returns:
        LINKED or COPIED

    Raises:
        StagingLinkFailedError: If the file could not be staged
    """
    await aiofiles.os.makedirs(target.parent, exist_ok=True)

    try:
        await aiofiles.os.link(source, target)
        return LINKED
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise StagingLinkFailedError(
                explain_staging_failed(source.name),
                details={"source": str(source), "error": str(e)},
            ) from e

    try:
        await copy_file(source, target)
    except OSError as e:
        raise StagingLinkFailedError(
            explain_staging_failed(source.name),
            details={"source": str(source), "error": str(e)},
        ) from e

    return COPIED


async def stage_files(
    files: Iterable[Path],
    source_root: Path,
    target_root: Path,
) -> Dict[str, int]:
    """
    Materialize every file at its relative path under target_root.

    All files are staged concurrently and all attempts finish before
    this returns; a single failure fails the whole batch.

    Returns:
        Dict with 'linked' and 'copied' counts
    """
    semaphore = asyncio.Semaphore(MAX_CONCURRENT_STAGING)

    async def stage_one(file: Path) -> str:
        relative = Path(file).relative_to(source_root)
        async with semaphore:
            return await materialize_file(Path(file), target_root / relative)

    results = await asyncio.gather(
        *[stage_one(f) for f in files],
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        logger.error(
            "staging_failed",
            failed=len(failures),
            total=len(results),
            error=str(failures[0]),
        )
        first = failures[0]
        if isinstance(first, GSBackupError):
            raise first
        raise StagingLinkFailedError(
            explain_staging_failed(str(target_root)),
            details={"error": str(first)},
        ) from first

    counts = {
        LINKED: sum(1 for r in results if r == LINKED),
        COPIED: sum(1 for r in results if r == COPIED),
    }
    logger.debug("files_staged", **counts)
    return counts
