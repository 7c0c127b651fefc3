# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Instance collaborator interface.

The instance lifecycle manager lives outside this package. Backups only
need its working directory, its status, the stop/start presets and a
one-shot exit notification.
"""

from enum import IntEnum
from pathlib import Path
from typing import Callable, Protocol

from gsbackup.config import BackupConfig


class InstanceStatus(IntEnum):
    """Lifecycle status reported by an instance."""

    BUSY = -1
    STOPPED = 0
    STOPPING = 1
    STARTING = 2
    RUNNING = 3


ExitListener = Callable[[], None]


class ManagedInstance(Protocol):
    """What backup and restore require from a managed server instance."""

    instance_uuid: str
    nickname: str
    backup_config: BackupConfig

    def absolute_cwd_path(self) -> Path:
        """Absolute working directory of the instance."""
        ...

    def status(self) -> InstanceStatus:
        ...

    async def exec_preset(self, action: str) -> None:
        """Run the 'stop' or 'start' preset."""
        ...

    def add_exit_listener(self, listener: ExitListener) -> None:
        """Call listener when the instance process exits."""
        ...

    def remove_exit_listener(self, listener: ExitListener) -> None:
        ...
