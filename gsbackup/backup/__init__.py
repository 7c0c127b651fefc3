# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Engine - Backup creation, catalog, retention and restore.
"""

from gsbackup.backup.catalog import (
    BackupRecord,
    backup_file_name,
    cleanup_old_backups,
    delete_backup,
    get_backup_dir,
    get_backup_path,
    get_backup_stats,
    list_backups,
    parse_backup_timestamp,
)

from gsbackup.backup.staging import (
    materialize_file,
    stage_files,
    staging_area,
)

from gsbackup.backup.manager import (
    create_backup,
    shutdown_backup_tasks,
    stop_instance_for_backup,
)

from gsbackup.backup.restore import (
    normalize_extracted_layout,
    restore_backup,
)

__all__ = [
    # Catalog
    "BackupRecord",
    "backup_file_name",
    "cleanup_old_backups",
    "delete_backup",
    "get_backup_dir",
    "get_backup_path",
    "get_backup_stats",
    "list_backups",
    "parse_backup_timestamp",
    # Staging
    "materialize_file",
    "stage_files",
    "staging_area",
    # Manager
    "create_backup",
    "shutdown_backup_tasks",
    "stop_instance_for_backup",
    # Restore
    "normalize_extracted_layout",
    "restore_backup",
]
