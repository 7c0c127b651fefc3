# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
gsbackup - Backup and restore for managed game server instances.

Selects instance files through layered allow/ignore rules, snapshots
them safely (stopping the server first when cold backup is enabled),
drives external archive tools to build and extract zip archives, and
keeps the number of retained archives in check.
"""

__version__ = "0.1.0"

# Configuration
from gsbackup.config import BackupConfig, DaemonSettings
from gsbackup.env import backup_config_from_mapping, create_settings_from_env

# Instance collaborator
from gsbackup.instance import InstanceStatus, ManagedInstance

# Public operations
from gsbackup.backup import (
    BackupRecord,
    cleanup_old_backups,
    create_backup,
    delete_backup,
    get_backup_path,
    get_backup_stats,
    list_backups,
    restore_backup,
    shutdown_backup_tasks,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "BackupConfig",
    "DaemonSettings",
    "backup_config_from_mapping",
    "create_settings_from_env",
    # Instance collaborator
    "InstanceStatus",
    "ManagedInstance",
    # Operations
    "BackupRecord",
    "cleanup_old_backups",
    "create_backup",
    "delete_backup",
    "get_backup_path",
    "get_backup_stats",
    "list_backups",
    "restore_backup",
    "shutdown_backup_tasks",
]
