# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Creation Tests.

These tests verify the core backup guarantees:
1. Selection - archives hold exactly the files the rules select
2. Source safety - instance files are never modified by a backup
3. Cold backup - running instances are stopped, then restarted afterwards
4. Staging - scratch areas are always removed, cross-device links fall back to copies
5. Retention - only the newest archives are kept
"""

import asyncio
import errno
import re
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import aiofiles.os
import pytest

from helpers import read_tree, scratch_entries, write_tree, zip_names

from gsbackup import BackupConfig, DaemonSettings, InstanceStatus, create_backup, list_backups
from gsbackup.backup import (
    materialize_file,
    shutdown_backup_tasks,
    staging_area,
    stop_instance_for_backup,
)
from gsbackup.backup import locks
from gsbackup.backup.staging import COPIED, LINKED
from gsbackup.exceptions import (
    ColdStopTimeoutError,
    NothingToBackupError,
    StagingLinkFailedError,
    ToolGenericError,
)


# ============================================================================
# Test 1: SELECTION AND LAYOUT
# ============================================================================


@pytest.mark.asyncio
async def test_create_backup_archives_selected_files(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """Entries are rooted at the instance directory name and respect the rules."""
    write_tree(instance_dir, {".mcsm/.backupignore": b"logs/\n"})
    instance = make_instance()

    record = await create_backup(instance, settings)

    assert re.fullmatch(r"backup_survival_\d+\.zip", record.file_name)
    assert record.instance_uuid == instance.instance_uuid
    assert record.instance_name == "survival"

    archive_path = settings.default_backup_dir(instance.instance_uuid) / record.file_name
    assert archive_path.stat().st_size == record.size
    assert zip_names(archive_path) == {
        "survival-01/server.properties",
        "survival-01/world/level.dat",
        "survival-01/world/region/r.0.0.mca",
    }


@pytest.mark.asyncio
async def test_backup_record_wire_format(instance_dir: Path, settings: DaemonSettings, make_instance):
    """The record serializes with camelCase keys."""
    record = await create_backup(make_instance(), settings)

    assert set(record.to_dict()) == {"fileName", "timestamp", "size", "instanceUuid", "instanceName"}


@pytest.mark.asyncio
async def test_absolute_backup_path_override(
    temp_dir: Path, instance_dir: Path, settings: DaemonSettings, make_instance
):
    """An absolute backup_path replaces the default location."""
    target = temp_dir / "custom-backups"
    instance = make_instance(backup_config=BackupConfig(backup_path=str(target)))

    record = await create_backup(instance, settings)

    assert (target / record.file_name).is_file()
    assert not settings.default_backup_dir(instance.instance_uuid).exists()


@pytest.mark.asyncio
async def test_nothing_to_backup(instance_dir: Path, settings: DaemonSettings, make_instance):
    """Rules selecting nothing fail without producing an archive."""
    write_tree(instance_dir, {".mcsm/.backupallow": b"*.does-not-exist\n"})
    instance = make_instance()

    with pytest.raises(NothingToBackupError) as exc_info:
        await create_backup(instance, settings)

    assert exc_info.value.code == "NothingToBackup"
    assert await list_backups(instance, settings) == []


# ============================================================================
# Test 2: SOURCE SAFETY
# ============================================================================


@pytest.mark.asyncio
async def test_backup_leaves_instance_files_untouched(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """Content and link counts are unchanged once the backup is done."""
    before = read_tree(instance_dir)

    await create_backup(make_instance(), settings)

    assert read_tree(instance_dir) == before
    assert (instance_dir / "world" / "level.dat").stat().st_nlink == 1


# ============================================================================
# Test 3: COLD BACKUP
# ============================================================================


@pytest.mark.asyncio
async def test_cold_backup_stops_and_restarts(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """A running instance is stopped first and restarted after success."""
    instance = make_instance(status=InstanceStatus.RUNNING)

    await create_backup(instance, settings)

    assert instance.presets[0] == "stop"
    await shutdown_backup_tasks()
    assert instance.presets == ["stop", "start"]
    assert instance.status() == InstanceStatus.RUNNING
    assert instance.listener_count == 0


@pytest.mark.asyncio
async def test_cold_backup_timeout_leaves_instance_stopped(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """An instance that does not exit fails the backup and is not restarted."""
    instance = make_instance(status=InstanceStatus.RUNNING, exits_on_stop=False)

    with pytest.raises(ColdStopTimeoutError):
        await create_backup(instance, settings.with_updates(cold_stop_timeout_seconds=0.2))

    await shutdown_backup_tasks()
    assert instance.presets == ["stop"]
    assert instance.listener_count == 0
    assert await list_backups(instance, settings) == []


@pytest.mark.asyncio
async def test_hot_backup_does_not_touch_instance(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """With cold backup disabled, a running instance keeps running."""
    instance = make_instance(
        status=InstanceStatus.RUNNING,
        backup_config=BackupConfig(use_cold_backup=False),
    )

    await create_backup(instance, settings)
    await shutdown_backup_tasks()

    assert instance.presets == []


@pytest.mark.asyncio
async def test_stopped_instance_is_not_restarted(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """Cold backup only stops what is running."""
    instance = make_instance(status=InstanceStatus.STOPPED)

    await create_backup(instance, settings)
    await shutdown_backup_tasks()

    assert instance.presets == []


@pytest.mark.asyncio
async def test_restart_failure_does_not_fail_backup(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """A failing start preset is only logged."""
    instance = make_instance(status=InstanceStatus.RUNNING, fail_on_start=True)

    record = await create_backup(instance, settings)
    await shutdown_backup_tasks()

    assert record.file_name in [r.file_name for r in await list_backups(instance, settings)]
    assert instance.presets == ["stop", "start"]


@pytest.mark.asyncio
async def test_exit_during_stop_preset_is_not_missed():
    """The exit listener is in place before the stop preset runs."""
    listeners = []
    instance = MagicMock()
    instance.instance_uuid = "exit-during-stop"
    instance.add_exit_listener.side_effect = listeners.append

    async def stop_and_exit_immediately(action):
        for listener in listeners:
            listener()

    instance.exec_preset = AsyncMock(side_effect=stop_and_exit_immediately)

    await stop_instance_for_backup(instance, timeout_seconds=5)

    instance.exec_preset.assert_awaited_once_with("stop")
    instance.remove_exit_listener.assert_called_once_with(listeners[0])


# ============================================================================
# Test 4: STAGING
# ============================================================================


@pytest.mark.asyncio
async def test_staging_area_removed_after_success(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """No scratch directory survives a successful backup."""
    await create_backup(make_instance(), settings)

    assert scratch_entries(settings) == []


@pytest.mark.asyncio
async def test_staging_area_removed_after_archive_failure(
    instance_dir: Path, settings: DaemonSettings, make_instance, monkeypatch
):
    """A failing zip helper leaves neither staging area nor archive behind."""
    monkeypatch.setenv("FAKE_ZIP_EXIT", "2")
    instance = make_instance()

    with pytest.raises(ToolGenericError):
        await create_backup(instance, settings)

    assert scratch_entries(settings) == []
    assert await list_backups(instance, settings) == []


@pytest.mark.asyncio
async def test_staging_area_is_unique_and_temporary(temp_dir: Path):
    """Two staging areas never share a directory and both are removed."""
    async with staging_area("test_", temp_dir) as first, staging_area("test_", temp_dir) as second:
        assert first != second
        assert first.is_dir() and second.is_dir()

    assert not first.exists()
    assert not second.exists()


@pytest.mark.asyncio
async def test_materialize_links_by_default(temp_dir: Path):
    """Staging shares the inode with the source."""
    source = temp_dir / "src" / "a.bin"
    write_tree(temp_dir, {"src/a.bin": b"data"})
    target = temp_dir / "stage" / "nested" / "a.bin"

    assert await materialize_file(source, target) == LINKED
    assert target.stat().st_ino == source.stat().st_ino


@pytest.mark.asyncio
async def test_materialize_copies_across_devices(temp_dir: Path, monkeypatch):
    """EXDEV falls back to a byte copy."""

    async def cross_device_link(src, dst):
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(aiofiles.os, "link", cross_device_link)
    write_tree(temp_dir, {"src/a.bin": b"payload" * 1000})
    source = temp_dir / "src" / "a.bin"
    target = temp_dir / "stage" / "a.bin"

    assert await materialize_file(source, target) == COPIED
    assert target.read_bytes() == source.read_bytes()
    assert target.stat().st_ino != source.stat().st_ino


@pytest.mark.asyncio
async def test_other_link_errors_fail_backup(
    instance_dir: Path, settings: DaemonSettings, make_instance, monkeypatch
):
    """Any link error other than EXDEV aborts the backup."""

    async def denied_link(src, dst):
        raise OSError(errno.EPERM, "Operation not permitted")

    monkeypatch.setattr(aiofiles.os, "link", denied_link)
    instance = make_instance()

    with pytest.raises(StagingLinkFailedError):
        await create_backup(instance, settings)

    assert scratch_entries(settings) == []
    assert await list_backups(instance, settings) == []


# ============================================================================
# Test 5: RETENTION AND CONCURRENCY
# ============================================================================


@pytest.mark.asyncio
async def test_retention_keeps_newest(instance_dir: Path, settings: DaemonSettings, make_instance):
    """After a backup only max_backup_count archives remain."""
    instance = make_instance(backup_config=BackupConfig(max_backup_count=2))
    backup_dir = settings.default_backup_dir(instance.instance_uuid)
    for ts in (1000, 2000, 3000):
        write_tree(backup_dir, {f"backup_survival_{ts}.zip": b"PK\x05\x06"})

    record = await create_backup(instance, settings)

    remaining = [r.file_name for r in await list_backups(instance, settings)]
    assert remaining == [record.file_name, "backup_survival_3000.zip"]


@pytest.mark.asyncio
async def test_concurrent_backups_of_one_instance_are_serialized(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """Two simultaneous requests both succeed with distinct archives."""
    instance = make_instance()

    first, second = await asyncio.gather(
        create_backup(instance, settings),
        create_backup(instance, settings),
    )

    assert first.file_name != second.file_name
    assert len(await list_backups(instance, settings)) == 2
    assert scratch_entries(settings) == []


@pytest.mark.asyncio
async def test_instance_lock_is_dropped_when_idle():
    """Waiters are serialized and the lock disappears once nobody uses it."""
    events = []

    async def worker(name):
        async with locks.instance_lock("lock-cleanup"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert events == ["a-in", "a-out", "b-in", "b-out"]
    assert "lock-cleanup" not in locks._instance_locks
    assert "lock-cleanup" not in locks._lock_users


@pytest.mark.asyncio
async def test_backup_releases_instance_lock_entry(
    instance_dir: Path, settings: DaemonSettings, make_instance
):
    """Finished and failed backups leave no lock behind."""
    instance = make_instance()

    await create_backup(instance, settings)
    assert instance.instance_uuid not in locks._instance_locks

    write_tree(instance_dir, {".mcsm/.backupallow": b"*.does-not-exist\n"})
    with pytest.raises(NothingToBackupError):
        await create_backup(instance, settings)
    assert instance.instance_uuid not in locks._instance_locks
