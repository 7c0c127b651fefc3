# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Restore Manager - Put a backup archive back into an instance directory.

The archive is extracted into a scratch area first. If everything in
it sits under a single top-level directory (how backups are produced),
that wrapper is dropped and its contents land directly in the instance
directory. Existing entries with the same name are replaced.

Entries written before a failure are not rolled back.
"""

import asyncio
import shutil
from pathlib import Path
from typing import List

import aiofiles.os
import structlog

from gsbackup import archive
from gsbackup.backup.catalog import get_backup_path
from gsbackup.backup.locks import instance_lock
from gsbackup.backup.staging import RESTORE_STAGING_PREFIX, remove_tree, staging_area
from gsbackup.config import METADATA_DIR_NAME, DaemonSettings
from gsbackup.errors import MAX_DIAGNOSTIC_LENGTH, explain_restore_backup_failed, truncate
from gsbackup.exceptions import GSBackupError, RestoreError
from gsbackup.instance import ManagedInstance

logger = structlog.get_logger()


async def _is_real_dir(path: Path) -> bool:
    return await aiofiles.os.path.isdir(path) and not await aiofiles.os.path.islink(path)


async def move_into_place(source: Path, destination: Path) -> None:
    """Move source to destination, replacing whatever is there."""
    if await _is_real_dir(destination):
        await remove_tree(destination)
    elif await aiofiles.os.path.exists(destination) or await aiofiles.os.path.islink(destination):
        await aiofiles.os.remove(destination)

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, shutil.move, str(source), str(destination))


async def normalize_extracted_layout(extract_dir: Path, instance_path: Path) -> List[str]:
    """
    Move extracted content into the instance directory.

    - one directory at the top level: its contents are moved
    - one file: moved as is
    - several entries: each is moved
    - nothing: no-op

    The metadata directory is never written.

    Returns:
        Names of the entries moved into instance_path
    """
    entries = sorted(await aiofiles.os.listdir(extract_dir))
    if not entries:
        return []

    source_dir = extract_dir
    if len(entries) == 1 and await _is_real_dir(extract_dir / entries[0]):
        source_dir = extract_dir / entries[0]
        entries = sorted(await aiofiles.os.listdir(source_dir))

    await aiofiles.os.makedirs(instance_path, exist_ok=True)

    moved: List[str] = []
    for name in entries:
        if name == METADATA_DIR_NAME:
            logger.warning("restore_skipped_metadata_dir", name=name)
            continue
        await move_into_place(source_dir / name, instance_path / name)
        moved.append(name)

    return moved


async def restore_backup(
    instance: ManagedInstance,
    settings: DaemonSettings,
    file_name: str,
) -> List[str]:
    """
    Restore a backup into the instance working directory.

    Args:
        instance: The managed instance
        settings: Daemon settings
        file_name: Archive name inside the instance backup directory

    Returns:
        Names of the top-level entries written into the instance directory

    Raises:
        InvalidBackupPathError: file_name escapes the backup directory
        BackupNotFoundError: archive does not exist
        GSBackupError: extraction failure; anything unexpected becomes RestoreError
    """
    async with instance_lock(instance.instance_uuid):
        backup_path = await get_backup_path(instance, settings, file_name)
        instance_path = Path(instance.absolute_cwd_path())

        logger.info(
            "restore_started",
            instance_uuid=instance.instance_uuid,
            file_name=file_name,
        )

        try:
            async with staging_area(RESTORE_STAGING_PREFIX, settings.scratch_dir) as scratch_dir:
                backend = await archive.decompress(
                    settings,
                    backup_path,
                    scratch_dir,
                    file_code=instance.backup_config.file_code,
                )
                moved = await normalize_extracted_layout(scratch_dir, instance_path)
        except GSBackupError as e:
            logger.error(
                "restore_failed",
                instance_uuid=instance.instance_uuid,
                file_name=file_name,
                code=e.code,
                error=e.message,
            )
            raise
        except Exception as e:
            logger.error(
                "restore_failed",
                instance_uuid=instance.instance_uuid,
                file_name=file_name,
                error=truncate(str(e), MAX_DIAGNOSTIC_LENGTH),
            )
            raise RestoreError(
                explain_restore_backup_failed(str(e)),
                details={"file_name": file_name},
            ) from e

        logger.info(
            "restore_completed",
            instance_uuid=instance.instance_uuid,
            file_name=file_name,
            backend=backend,
            entries=len(moved),
        )
        return moved
