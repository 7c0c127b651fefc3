# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive Backends - Drive external archive tools and classify their outcome.
"""

from gsbackup.archive.base import (
    ArchiveBackend,
    ArchiveJob,
    DISALLOWED_NAME_CHARS,
    ensure_safe_names,
    is_safe_name,
)

from gsbackup.archive.formats import (
    file_extension,
    is_multi_volume,
    is_zip_format,
)

from gsbackup.archive.process import ToolResult, run_tool

from gsbackup.archive.seven_zip import SevenZipBackend, classify_seven_zip_output

from gsbackup.archive.zip_tool import ZipToolBackend

from gsbackup.archive.policy import (
    compress,
    decompress,
    ensure_zip_extractable,
    select_compress_backend,
)

__all__ = [
    # Interface
    "ArchiveBackend",
    "ArchiveJob",
    "DISALLOWED_NAME_CHARS",
    "ensure_safe_names",
    "is_safe_name",
    # Sniffing
    "file_extension",
    "is_multi_volume",
    "is_zip_format",
    # Process
    "ToolResult",
    "run_tool",
    # Backends
    "SevenZipBackend",
    "classify_seven_zip_output",
    "ZipToolBackend",
    # Selection
    "compress",
    "decompress",
    "ensure_zip_extractable",
    "select_compress_backend",
]
