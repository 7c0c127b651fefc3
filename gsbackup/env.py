# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers.

These helpers make it easy to:

- Build daemon settings from environment variables
- Convert an instance's stored backup settings into a BackupConfig
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Any, Mapping

from gsbackup.config import BackupConfig, DaemonSettings
from gsbackup.errors import explain_invalid_number_env
from gsbackup.exceptions import ConfigurationError


def _parse_positive_int(name: str, value: str | None, default: int) -> int:
    if not value:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_number_env(name, value)) from exc
    if number < 1:
        raise ConfigurationError(explain_invalid_number_env(name, value))
    return number


def _parse_positive_float(name: str, value: str | None, default: float) -> float:
    if not value:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_number_env(name, value)) from exc
    if number <= 0:
        raise ConfigurationError(explain_invalid_number_env(name, value))
    return number


def _discover_seven_zip(value: str | None) -> Path | None:
    """Explicit path first, then whatever 7-Zip flavour is on PATH."""

    if value:
        return Path(value)
    for candidate in ("7z", "7za", "7zz"):
        found = shutil.which(candidate)
        if found:
            return Path(found)
    return None


def create_settings_from_env() -> DaemonSettings:
    """
    Create DaemonSettings from environment variables.

    Optional environment variables:
        - GSBACKUP_DATA_DIR: Daemon data directory (default: ./data)
        - GSBACKUP_ZIP_TOOL_PATH: Path to the zip helper binary
        - GSBACKUP_SEVEN_ZIP_PATH: Path to 7-Zip (default: first of 7z/7za/7zz on PATH)
        - GSBACKUP_ZIP_TIMEOUT_SECONDS: Positive integer (default: 2400)
        - GSBACKUP_COLD_STOP_TIMEOUT_SECONDS: Positive number (default: 30)
        - GSBACKUP_SCRATCH_DIR: Parent directory for staging areas
    """

    defaults = DaemonSettings()

    data_dir_env = os.getenv("GSBACKUP_DATA_DIR")
    zip_tool_env = os.getenv("GSBACKUP_ZIP_TOOL_PATH")
    scratch_env = os.getenv("GSBACKUP_SCRATCH_DIR")

    return DaemonSettings(
        data_dir=Path(data_dir_env) if data_dir_env else defaults.data_dir,
        zip_tool_path=Path(zip_tool_env) if zip_tool_env else defaults.zip_tool_path,
        seven_zip_path=_discover_seven_zip(os.getenv("GSBACKUP_SEVEN_ZIP_PATH")),
        zip_timeout_seconds=_parse_positive_int(
            "GSBACKUP_ZIP_TIMEOUT_SECONDS",
            os.getenv("GSBACKUP_ZIP_TIMEOUT_SECONDS"),
            defaults.zip_timeout_seconds,
        ),
        cold_stop_timeout_seconds=_parse_positive_float(
            "GSBACKUP_COLD_STOP_TIMEOUT_SECONDS",
            os.getenv("GSBACKUP_COLD_STOP_TIMEOUT_SECONDS"),
            defaults.cold_stop_timeout_seconds,
        ),
        scratch_dir=Path(scratch_env) if scratch_env else None,
    )


def backup_config_from_mapping(
    backup_config: Mapping[str, Any] | None,
    file_code: str | None = None,
) -> BackupConfig:
    """
    Build a BackupConfig from an instance's stored settings.

    The instance configuration keeps its keys in camelCase
    (``backupPath``, ``useColdBackup``, ``maxBackupCount``); the
    archive encoding lives on the instance itself as ``fileCode``.
    """

    data = dict(backup_config or {})
    max_count = data.get("maxBackupCount") or 0
    try:
        max_count = int(max_count)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"Invalid maxBackupCount: {data.get('maxBackupCount')!r}"
        ) from exc

    use_cold = data.get("useColdBackup")
    return BackupConfig(
        backup_path=data.get("backupPath") or None,
        use_cold_backup=True if use_cold is None else bool(use_cold),
        max_backup_count=max_count,
        file_code=file_code or "utf-8",
    )
