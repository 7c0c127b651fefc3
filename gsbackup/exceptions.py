# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
gsbackup Exceptions - Custom exceptions for the gsbackup package.

Every error surfaced by a public operation is one of the classes below.
The ``code`` attribute is a stable identifier suitable for API layers.
"""


class GSBackupError(Exception):
    """Base exception for all gsbackup errors."""

    code = "GSBackupError"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(GSBackupError):
    """Raised when configuration is invalid."""

    code = "ConfigurationError"


# ============================================================================
# Archive backends
# ============================================================================

class ArchiveError(GSBackupError):
    """Raised when an archive cannot be produced or extracted."""

    code = "ArchiveError"


class InvalidNameError(ArchiveError):
    """A path handed to an archive tool contains a disallowed character."""

    code = "InvalidName"


class UnsupportedFormatError(ArchiveError):
    """The archive is not in a format the zip helper can extract."""

    code = "UnsupportedFormat"


class MultiVolumeUnsupportedError(ArchiveError):
    """The archive is one part of a multi-volume set."""

    code = "MultiVolumeUnsupported"


class ArchiveToolError(ArchiveError):
    """An external archive tool ran but did not succeed."""

    code = "ArchiveToolError"


class ToolMissingVolumeError(ArchiveToolError):
    code = "ToolMissingVolume"


class ToolDataError(ArchiveToolError):
    code = "ToolDataError"


class ToolOpenErrorsError(ArchiveToolError):
    code = "ToolOpenErrors"


class ToolGenericError(ArchiveToolError):
    code = "ToolGenericError"


class ToolTimeoutError(ArchiveToolError):
    code = "ToolTimeout"


class ToolNotFoundError(ArchiveToolError):
    code = "ToolNotFound"


class ToolLaunchFailedError(ArchiveToolError):
    code = "ToolLaunchFailed"


# ============================================================================
# Backup / restore orchestration
# ============================================================================

class BackupError(GSBackupError):
    """Raised when backup operations fail."""

    code = "BackupError"


class NothingToBackupError(BackupError):
    """No file in the instance directory passed the backup rules."""

    code = "NothingToBackup"


class ColdStopTimeoutError(BackupError):
    """The instance did not exit in time for a cold backup."""

    code = "ColdStopTimeout"


class StagingLinkFailedError(BackupError):
    """A selected file could not be linked or copied into the staging area."""

    code = "StagingLinkFailed"


class InvalidBackupPathError(BackupError):
    """A backup file name resolves outside the instance backup directory."""

    code = "InvalidBackupPath"


class BackupNotFoundError(BackupError):
    """The requested backup file does not exist."""

    code = "BackupNotFound"


class RestoreError(GSBackupError):
    """Raised when restore operations fail."""

    code = "RestoreError"
