# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Filesystem helpers and fakes shared by the test modules.
"""

import asyncio
import os
import stat
import sys
import uuid
import zipfile
from pathlib import Path
from typing import Callable, Dict, List

from gsbackup.config import BackupConfig, DaemonSettings
from gsbackup.instance import InstanceStatus


def write_tree(root: Path, files: Dict[str, bytes]) -> None:
    """Create files (with parent directories) below root."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)


def read_tree(root: Path) -> Dict[str, bytes]:
    """Map of '/'-separated relative path to content for every file below root."""
    tree: Dict[str, bytes] = {}
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            full = Path(dirpath) / name
            tree[full.relative_to(root).as_posix()] = full.read_bytes()
    return tree


def make_zip(path: Path, entries: Dict[str, bytes]) -> Path:
    """Write a zip archive with the given entries."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return path


def zip_names(path: Path) -> set:
    with zipfile.ZipFile(path) as zf:
        return {name for name in zf.namelist() if not name.endswith("/")}


def write_script(path: Path, body: str) -> Path:
    """Write an executable Python script run by the current interpreter."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def scratch_entries(settings: DaemonSettings) -> List[str]:
    """Leftover staging/scratch directories."""
    if settings.scratch_dir is None or not settings.scratch_dir.exists():
        return []
    return sorted(os.listdir(settings.scratch_dir))


class FakeInstance:
    """In-memory stand-in for the instance lifecycle manager."""

    def __init__(
        self,
        cwd: Path,
        nickname: str = "survival",
        backup_config: BackupConfig | None = None,
        status: InstanceStatus = InstanceStatus.STOPPED,
        exits_on_stop: bool = True,
        fail_on_start: bool = False,
    ):
        self.instance_uuid = uuid.uuid4().hex
        self.nickname = nickname
        self.backup_config = backup_config or BackupConfig()
        self.presets: List[str] = []
        self.exits_on_stop = exits_on_stop
        self.fail_on_start = fail_on_start
        self._cwd = Path(cwd)
        self._status = status
        self._listeners: List[Callable[[], None]] = []

    def absolute_cwd_path(self) -> Path:
        return self._cwd

    def status(self) -> InstanceStatus:
        return self._status

    async def exec_preset(self, action: str) -> None:
        self.presets.append(action)
        if action == "stop":
            self._status = InstanceStatus.STOPPING
            if self.exits_on_stop:
                asyncio.get_running_loop().call_later(0.01, self._emit_exit)
        elif action == "start":
            if self.fail_on_start:
                raise RuntimeError("start preset failed")
            self._status = InstanceStatus.RUNNING

    def _emit_exit(self) -> None:
        self._status = InstanceStatus.STOPPED
        for listener in list(self._listeners):
            listener()

    def add_exit_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def remove_exit_listener(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
