# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for gsbackup.

These helpers centralize wording for user-visible failures so that
all modules present consistent, actionable messages. Tool diagnostics
never appear here; they go to the log and to ``details``.
"""

from typing import Dict

# Message table handed to the subprocess runner for the zip helper.
ZIP_TOOL_MESSAGES: Dict[str, str] = {
    "invalid_name": (
        "Archive path or file name contains a disallowed character "
        "(quotes, '?', '|' or '&')."
    ),
    "exit": "The zip helper exited with an error.",
    "start": "The zip helper could not be started.",
    "not_found": "The zip helper binary was not found. Check GSBACKUP_ZIP_TOOL_PATH.",
    "timeout": "The zip helper did not finish within the allowed time and was stopped.",
}

# Message table for 7-Zip launch failures (classification of its output
# uses the explain_* helpers below).
SEVEN_ZIP_MESSAGES: Dict[str, str] = {
    "exit": "7-Zip exited with an error.",
    "start": "7-Zip could not be started.",
    "not_found": "7-Zip executable was not found.",
    "timeout": "7-Zip extraction timed out.",
}

# Longest tool error line surfaced to the user.
MAX_ERROR_LINE_LENGTH = 100

# Longest tool diagnostic written to the log / details.
MAX_DIAGNOSTIC_LENGTH = 200


def truncate(text: str, limit: int) -> str:
    """Shorten text to ``limit`` characters, marking the cut with '...'."""

    text = text.strip()
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def explain_missing_volume(volume: str | None) -> str:
    """
    Explain that a multi-part archive is missing one of its volumes.
    """

    if volume:
        return f"Archive volume is missing: {volume}. Place all parts next to the first one."
    return "Archive volume is missing. Place all parts of the archive in the same directory."


def explain_data_error() -> str:
    return "Archive data is corrupted (CRC/data error). The file may be damaged or incomplete."


def explain_open_errors() -> str:
    return "Archive could not be opened. It may be damaged or not an archive at all."


def explain_unknown_tool_error() -> str:
    return "Extraction failed for an unknown reason."


def explain_unsupported_format(extension: str) -> str:
    """
    Explain that only zip archives can be extracted without 7-Zip.
    """

    shown = extension or "(none)"
    return (
        f"Unsupported archive format: {shown}. "
        "Only .zip archives can be extracted unless 7-Zip is installed."
    )


def explain_multi_volume_unsupported() -> str:
    return (
        "Multi-volume archives are not supported by the zip helper. "
        "Install 7-Zip or merge the volumes first."
    )


def explain_extraction_failed(message: str) -> str:
    return f"Failed to extract archive: {message}"


def explain_no_input_files() -> str:
    return "No files were given to compress."


def explain_nothing_to_backup() -> str:
    """
    Explain that the backup rules filtered out every file.
    """

    return (
        "Nothing to back up: no file in the instance directory matches the backup rules. "
        "Check .backupallow / .backupignore."
    )


def explain_cold_stop_timeout(seconds: float) -> str:
    return (
        f"Instance did not stop within {seconds:g} seconds, so a cold backup could not be taken. "
        "Stop the instance manually or disable cold backup."
    )


def explain_invalid_backup_path() -> str:
    return "Invalid backup path: the file must be inside the instance backup directory."


def explain_backup_not_found(file_name: str) -> str:
    return f"Backup not found: {file_name}"


def explain_create_backup_failed(message: str) -> str:
    return f"Failed to create backup: {message}"


def explain_delete_backup_failed(message: str) -> str:
    return f"Failed to delete backup: {message}"


def explain_restore_backup_failed(message: str) -> str:
    return f"Failed to restore backup: {message}"


def explain_staging_failed(relative_path: str) -> str:
    return f"Failed to prepare file for archiving: {relative_path}"


def explain_invalid_number_env(name: str, value: str | None) -> str:
    """
    Explain that a numeric environment variable is invalid.
    """

    return f"Invalid {name} value: {value!r}. It must be a positive number."
