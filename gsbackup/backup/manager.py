# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Manager - Create instance backups.

A backup runs through these steps:
1. Resolve and create the backup directory
2. Stop the instance if cold backup is enabled and it is running
3. Load the allow/ignore rules and select files
4. Hard-link the selection into a staging area
5. Compress the staging area into backup_<nickname>_<millis>.zip
6. Remove the staging area
7. Apply retention and return the BackupRecord
8. Restart the instance in the background if it was stopped
"""

import asyncio
import time
from pathlib import Path
from typing import Set

import aiofiles.os
import structlog

from gsbackup import archive
from gsbackup.backup.catalog import (
    BackupRecord,
    backup_file_name,
    cleanup_old_backups,
    get_backup_dir,
)
from gsbackup.backup.locks import instance_lock
from gsbackup.backup.staging import BACKUP_STAGING_PREFIX, stage_files, staging_area
from gsbackup.config import DaemonSettings
from gsbackup.errors import (
    MAX_DIAGNOSTIC_LENGTH,
    explain_cold_stop_timeout,
    explain_create_backup_failed,
    explain_nothing_to_backup,
    truncate,
)
from gsbackup.exceptions import (
    BackupError,
    ColdStopTimeoutError,
    GSBackupError,
    NothingToBackupError,
)
from gsbackup.instance import InstanceStatus, ManagedInstance
from gsbackup.rules import collect_backup_files, load_rule_sets

logger = structlog.get_logger()

# Restarts scheduled after cold backups; kept referenced until they finish
_background_tasks: Set[asyncio.Task] = set()


async def stop_instance_for_backup(instance: ManagedInstance, timeout_seconds: float) -> None:
    """
    Stop a running instance and wait for its process to exit.

    The exit listener is registered before the stop preset is issued,
    then the exit signal races a timer.

    Raises:
        ColdStopTimeoutError: If the instance has not exited in time
    """
    exited = asyncio.Event()

    def on_exit() -> None:
        exited.set()

    instance.add_exit_listener(on_exit)
    exit_task: asyncio.Task | None = None
    timer_task: asyncio.Task | None = None

    try:
        logger.info("cold_backup_stopping_instance", instance_uuid=instance.instance_uuid)
        await instance.exec_preset("stop")

        exit_task = asyncio.ensure_future(exited.wait())
        timer_task = asyncio.ensure_future(asyncio.sleep(timeout_seconds))
        done, _ = await asyncio.wait(
            {exit_task, timer_task},
            return_when=asyncio.FIRST_COMPLETED,
        )

        if exit_task not in done:
            logger.error(
                "cold_backup_stop_timeout",
                instance_uuid=instance.instance_uuid,
                timeout_seconds=timeout_seconds,
            )
            raise ColdStopTimeoutError(
                explain_cold_stop_timeout(timeout_seconds),
                details={"instance_uuid": instance.instance_uuid},
            )

        logger.info("cold_backup_instance_stopped", instance_uuid=instance.instance_uuid)

    finally:
        instance.remove_exit_listener(on_exit)
        pending = [t for t in (exit_task, timer_task) if t is not None and not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


async def _restart_after_delay(instance: ManagedInstance, delay_seconds: float) -> None:
    await asyncio.sleep(delay_seconds)
    try:
        await instance.exec_preset("start")
        logger.info("cold_backup_instance_restarted", instance_uuid=instance.instance_uuid)
    except Exception as e:
        logger.error(
            "cold_backup_restart_failed",
            instance_uuid=instance.instance_uuid,
            error=str(e),
        )


def schedule_restart(instance: ManagedInstance, delay_seconds: float) -> asyncio.Task:
    """Restart an instance after a delay without waiting for it."""
    task = asyncio.create_task(_restart_after_delay(instance, delay_seconds))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


async def shutdown_backup_tasks() -> None:
    """Wait for scheduled restarts to finish (daemon shutdown)."""
    if _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)


async def _create_backup(instance: ManagedInstance, settings: DaemonSettings) -> BackupRecord:
    config = instance.backup_config
    instance_path = Path(instance.absolute_cwd_path())
    backup_dir = get_backup_dir(instance, settings)

    await aiofiles.os.makedirs(backup_dir, exist_ok=True)

    cold_stopped = False
    if config.use_cold_backup and instance.status() == InstanceStatus.RUNNING:
        await stop_instance_for_backup(instance, settings.cold_stop_timeout_seconds)
        cold_stopped = True

    allow_rules, ignore_rules = await load_rule_sets(instance_path)

    logger.info("backup_collecting_files", instance_uuid=instance.instance_uuid)
    files = await collect_backup_files(instance_path, allow_rules, ignore_rules)

    if not files:
        raise NothingToBackupError(
            explain_nothing_to_backup(),
            details={"instance_uuid": instance.instance_uuid},
        )

    timestamp = int(time.time() * 1000)
    file_name = backup_file_name(instance.nickname, timestamp)
    archive_path = backup_dir / file_name

    logger.info(
        "backup_creating_archive",
        instance_uuid=instance.instance_uuid,
        file_name=file_name,
        file_count=len(files),
    )

    async with staging_area(BACKUP_STAGING_PREFIX, settings.scratch_dir) as staging_dir:
        # Archive entries are rooted at the instance directory name
        staged_instance_dir = staging_dir / instance_path.name
        await aiofiles.os.makedirs(staged_instance_dir, exist_ok=True)

        counts = await stage_files(files, instance_path, staged_instance_dir)
        logger.debug("backup_staged", instance_uuid=instance.instance_uuid, **counts)

        await archive.compress(
            settings,
            archive_path,
            [staged_instance_dir],
            file_code=config.file_code,
            base_dir=staging_dir,
        )

    stat = await aiofiles.os.stat(archive_path)

    try:
        await cleanup_old_backups(instance, settings)
    except Exception as e:
        logger.error(
            "backup_retention_failed",
            instance_uuid=instance.instance_uuid,
            error=str(e),
        )

    record = BackupRecord(
        file_name=file_name,
        timestamp=timestamp,
        size=stat.st_size,
        instance_uuid=instance.instance_uuid,
        instance_name=instance.nickname,
    )

    logger.info(
        "backup_created",
        instance_uuid=instance.instance_uuid,
        file_name=file_name,
        size=stat.st_size,
    )

    if cold_stopped:
        logger.info("cold_backup_restart_scheduled", instance_uuid=instance.instance_uuid)
        schedule_restart(instance, settings.restart_delay_seconds)

    return record


async def create_backup(instance: ManagedInstance, settings: DaemonSettings) -> BackupRecord:
    """
    Create a backup archive of an instance.

    Args:
        instance: The managed instance
        settings: Daemon settings

    Returns:
        BackupRecord of the new archive

    Raises:
        GSBackupError: A taxonomy error; anything unexpected is wrapped in BackupError
    """
    async with instance_lock(instance.instance_uuid):
        try:
            return await _create_backup(instance, settings)
        except GSBackupError as e:
            logger.error(
                "backup_failed",
                instance_uuid=instance.instance_uuid,
                code=e.code,
                error=e.message,
            )
            raise
        except Exception as e:
            logger.error(
                "backup_failed",
                instance_uuid=instance.instance_uuid,
                error=truncate(str(e), MAX_DIAGNOSTIC_LENGTH),
            )
            raise BackupError(
                explain_create_backup_failed(str(e)),
                details={"instance_uuid": instance.instance_uuid},
            ) from e
