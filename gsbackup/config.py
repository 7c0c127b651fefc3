# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
gsbackup Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation so a backup
that is already running never observes a half-applied change.
"""

import codecs
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List

# Hidden per-instance directory holding daemon metadata (rule files live here).
METADATA_DIR_NAME = ".mcsm"

# Default backup root, relative to the daemon's data directory.
DEFAULT_BACKUP_SUBDIR = "InstanceBackup"


def _validate_codec(name: str) -> bool:
    """Check that an encoding name is known to Python."""
    if not name:
        return False
    try:
        codecs.lookup(name)
    except LookupError:
        return False
    return True


def _raise_if_errors(errors: List[str]) -> None:
    if errors:
        from gsbackup.exceptions import ConfigurationError

        raise ConfigurationError(
            "Configuration validation failed",
            details={"errors": errors},
        )


@dataclass(frozen=True)
class BackupConfig:
    """
    Per-instance backup settings.

    These values are owned by the instance configuration; this package
    only reads them.
    """

    # Absolute override for the backup directory (relative values are ignored)
    backup_path: str | None = None

    # Stop a running instance while its files are snapshotted
    use_cold_backup: bool = True

    # Keep at most this many archives (0 = unlimited)
    max_backup_count: int = 0

    # Character encoding for file names inside the archive
    file_code: str = "utf-8"

    def __post_init__(self) -> None:
        errors: List[str] = []

        if self.max_backup_count < 0:
            errors.append(f"max_backup_count must be >= 0, got {self.max_backup_count}")

        if not _validate_codec(self.file_code):
            errors.append(f"Unknown file_code encoding: {self.file_code!r}")

        _raise_if_errors(errors)

    def with_updates(self, **kwargs) -> "BackupConfig":
        """Create a new config with updated values."""
        return replace(self, **kwargs)


@dataclass(frozen=True)
class DaemonSettings:
    """
    Process-wide settings shared by every instance.
    """

    # Daemon data directory; default backups go to data_dir/InstanceBackup/<uuid>
    data_dir: Path = field(default_factory=lambda: Path("data"))

    # Dedicated zip helper (mode 1 = compress, mode 2 = decompress)
    zip_tool_path: Path = field(default_factory=lambda: Path("lib/file_zip"))

    # General-purpose 7-Zip executable, None when not installed
    seven_zip_path: Path | None = None

    # Wall-clock budget for a single archive tool invocation
    zip_timeout_seconds: int = 2400

    # How long a cold backup waits for the instance to exit
    cold_stop_timeout_seconds: float = 30.0

    # Delay before restarting an instance after a cold backup
    restart_delay_seconds: float = 1.0

    # Parent directory for staging and scratch areas (None = system temp dir)
    scratch_dir: Path | None = None

    def __post_init__(self) -> None:
        errors: List[str] = []

        if self.zip_timeout_seconds < 1:
            errors.append(f"zip_timeout_seconds must be >= 1, got {self.zip_timeout_seconds}")

        if self.cold_stop_timeout_seconds <= 0:
            errors.append(
                f"cold_stop_timeout_seconds must be > 0, got {self.cold_stop_timeout_seconds}"
            )

        if self.restart_delay_seconds < 0:
            errors.append(
                f"restart_delay_seconds must be >= 0, got {self.restart_delay_seconds}"
            )

        _raise_if_errors(errors)

    def default_backup_dir(self, instance_uuid: str) -> Path:
        """Default backup directory for an instance."""
        return (Path.cwd() / self.data_dir / DEFAULT_BACKUP_SUBDIR / instance_uuid).resolve()

    def with_updates(self, **kwargs) -> "DaemonSettings":
        """Create new settings with updated values."""
        return replace(self, **kwargs)


def resolve_backup_dir(settings: DaemonSettings, instance_uuid: str, config: BackupConfig) -> Path:
    """
    Resolve where an instance's archives live.

    An absolute ``backup_path`` wins; anything else falls back to the
    default location derived from the instance id.
    """
    if config.backup_path and Path(config.backup_path).is_absolute():
        return Path(config.backup_path)
    return settings.default_backup_dir(instance_uuid)
