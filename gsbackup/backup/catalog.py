# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup catalog - listing, lookup, deletion and retention.

Backups are not stored anywhere but on disk: every record is derived
from an archive file in the instance backup directory.
"""

import os
import re
from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import List

import aiofiles.os
import structlog

from gsbackup.backup.locks import instance_lock
from gsbackup.config import DaemonSettings, resolve_backup_dir
from gsbackup.errors import (
    explain_backup_not_found,
    explain_delete_backup_failed,
    explain_invalid_backup_path,
)
from gsbackup.exceptions import (
    BackupError,
    BackupNotFoundError,
    InvalidBackupPathError,
)
from gsbackup.instance import ManagedInstance

logger = structlog.get_logger()

ARCHIVE_EXTENSIONS = (".zip",)

_BACKUP_NAME = re.compile(r"^backup_.*_(\d+)\.zip$")


@dataclass
class BackupRecord:
    """One archive in an instance backup directory."""

    file_name: str
    timestamp: int  # Unix milliseconds
    size: int
    instance_uuid: str
    instance_name: str

    def to_dict(self) -> dict:
        """Wire representation used by the daemon API."""
        return {
            "fileName": self.file_name,
            "timestamp": self.timestamp,
            "size": self.size,
            "instanceUuid": self.instance_uuid,
            "instanceName": self.instance_name,
        }


def _sanitize_nickname(nickname: str) -> str:
    """
    Make an instance nickname safe for use inside a file name.

    Path separators and characters archive tools refuse are replaced
    with underscores.
    """
    safe = nickname.replace("/", "_").replace("\\", "_")
    for char in [":", "*", "?", '"', "'", "<", ">", "|", "&"]:
        safe = safe.replace(char, "_")
    return safe or "instance"


def backup_file_name(nickname: str, timestamp: int) -> str:
    """Archive name: backup_<nickname>_<unix millis>.zip"""
    return f"backup_{_sanitize_nickname(nickname)}_{timestamp}.zip"


def parse_backup_timestamp(file_name: str) -> int | None:
    """Timestamp embedded in an archive name, if it follows the naming scheme."""
    match = _BACKUP_NAME.match(file_name)
    return int(match.group(1)) if match else None


def get_backup_dir(instance: ManagedInstance, settings: DaemonSettings) -> Path:
    """Backup directory of an instance (not created here)."""
    return resolve_backup_dir(settings, instance.instance_uuid, instance.backup_config)


def resolve_backup_file(backup_dir: Path, file_name: str) -> Path:
    """
    Join a requested file name onto the backup directory.

    Raises:
        InvalidBackupPathError: If the result is not strictly inside backup_dir
    """
    base = Path(os.path.abspath(backup_dir))
    candidate = Path(os.path.abspath(base / file_name))
    if candidate == base or not candidate.is_relative_to(base):
        raise InvalidBackupPathError(
            explain_invalid_backup_path(),
            details={"file_name": file_name},
        )
    return candidate


async def list_backups(instance: ManagedInstance, settings: DaemonSettings) -> List[BackupRecord]:
    """
    List an instance's backups, newest first.

    The timestamp comes from the file name and falls back to the file
    modification time for archives that don't follow the naming scheme.
    """
    backup_dir = get_backup_dir(instance, settings)

    if not await aiofiles.os.path.isdir(backup_dir):
        return []

    backups: List[BackupRecord] = []

    for file_name in await aiofiles.os.listdir(backup_dir):
        if not file_name.lower().endswith(ARCHIVE_EXTENSIONS):
            continue

        file_path = backup_dir / file_name
        try:
            stat = await aiofiles.os.stat(file_path)
        except OSError as e:
            logger.error("backup_stat_failed", file_name=file_name, error=str(e))
            continue

        if not await aiofiles.os.path.isfile(file_path):
            continue

        timestamp = parse_backup_timestamp(file_name)
        if timestamp is None:
            timestamp = int(stat.st_mtime * 1000)

        backups.append(
            BackupRecord(
                file_name=file_name,
                timestamp=timestamp,
                size=stat.st_size,
                instance_uuid=instance.instance_uuid,
                instance_name=instance.nickname,
            )
        )

    backups.sort(key=lambda record: record.timestamp, reverse=True)
    return backups


async def cleanup_old_backups(instance: ManagedInstance, settings: DaemonSettings) -> List[str]:
    """
    Delete backups beyond the configured maximum count.

    The newest ``max_backup_count`` archives are kept. A failure to
    delete one file is logged and the rest are still processed.

    Returns:
        Names of the deleted archives
    """
    max_backups = instance.backup_config.max_backup_count
    if not max_backups or max_backups <= 0:
        return []

    backups = await list_backups(instance, settings)
    backup_dir = get_backup_dir(instance, settings)
    removed: List[str] = []

    for record in backups[max_backups:]:
        try:
            await aiofiles.os.remove(backup_dir / record.file_name)
            removed.append(record.file_name)
            logger.info("old_backup_removed", file_name=record.file_name)
        except OSError as e:
            logger.error("old_backup_remove_failed", file_name=record.file_name, error=str(e))

    return removed


async def get_backup_path(
    instance: ManagedInstance,
    settings: DaemonSettings,
    file_name: str,
) -> Path:
    """
    Absolute path of an existing backup.

    Raises:
        InvalidBackupPathError: If file_name escapes the backup directory
        BackupNotFoundError: If the archive does not exist
    """
    backup_path = resolve_backup_file(get_backup_dir(instance, settings), file_name)

    if not await aiofiles.os.path.isfile(backup_path):
        raise BackupNotFoundError(
            explain_backup_not_found(file_name),
            details={"file_name": file_name},
        )

    return backup_path


async def delete_backup(
    instance: ManagedInstance,
    settings: DaemonSettings,
    file_name: str,
) -> None:
    """Delete one backup archive."""
    async with instance_lock(instance.instance_uuid):
        backup_path = await get_backup_path(instance, settings, file_name)

        try:
            await aiofiles.os.remove(backup_path)
        except OSError as e:
            logger.error("backup_delete_failed", file_name=file_name, error=str(e))
            raise BackupError(
                explain_delete_backup_failed(str(e)),
                details={"file_name": file_name},
            ) from e

    logger.info("backup_deleted", file_name=file_name, instance_uuid=instance.instance_uuid)


async def get_backup_stats(instance: ManagedInstance, settings: DaemonSettings) -> dict:
    """
    Get statistics about an instance's backups.

    Returns:
        Dict with count, total bytes and newest/oldest timestamps (ISO 8601)
    """
    backups = await list_backups(instance, settings)

    stats = {
        "backup_count": len(backups),
        "total_bytes": sum(record.size for record in backups),
        "newest_backup": None,
        "oldest_backup": None,
        "max_backup_count": instance.backup_config.max_backup_count,
    }

    if backups:
        stats["newest_backup"] = datetime.fromtimestamp(backups[0].timestamp / 1000, UTC).isoformat()
        stats["oldest_backup"] = datetime.fromtimestamp(backups[-1].timestamp / 1000, UTC).isoformat()

    return stats
