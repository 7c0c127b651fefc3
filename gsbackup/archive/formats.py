# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive format sniffing.

Used before handing an archive to the zip helper, which only reads
single-volume zip files.
"""

import re
from pathlib import Path

import aiofiles
import aiofiles.os

# Local file header, empty archive, spanned archive marker
ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")
SPANNED_ZIP_SIGNATURE = b"PK\x07\x08"

COMPOUND_SUFFIXES = (".tar.gz", ".tar.bz2", ".tar.xz", ".tar.zst")

_MULTI_VOLUME_NAME = re.compile(
    r"(\.z\d{2,}|\.(zip|7z|rar|tar)\.\d{3,}|\.part\d+\.rar|\.r\d{2,})$",
    re.IGNORECASE,
)


def file_extension(path: Path | str) -> str:
    """Lower-cased extension, keeping compound tar suffixes together."""
    name = Path(path).name.lower()
    for suffix in COMPOUND_SUFFIXES:
        if name.endswith(suffix):
            return suffix
    return Path(name).suffix


async def _read_head(path: Path, size: int = 4) -> bytes:
    async with aiofiles.open(path, "rb") as f:
        return await f.read(size)


async def is_zip_format(path: Path | str) -> bool:
    """Check the leading signature for a zip-family archive."""
    try:
        head = await _read_head(Path(path))
    except OSError:
        return False
    return head in ZIP_SIGNATURES


async def is_multi_volume(path: Path | str) -> bool:
    """
    Detect one part of a multi-volume archive.

    Recognises split naming schemes (``.z01``, ``.zip.001``, ``.7z.001``,
    ``.part1.rar``, ``.r00``), a ``.zip`` whose ``.z01`` sibling exists,
    and the spanned-archive signature.
    """
    path = Path(path)
    if _MULTI_VOLUME_NAME.search(path.name):
        return True

    if path.suffix.lower() == ".zip":
        for sibling in (path.with_suffix(".z01"), path.with_suffix(".Z01")):
            if await aiofiles.os.path.exists(sibling):
                return True

    try:
        head = await _read_head(path)
    except OSError:
        return False
    return head == SPANNED_ZIP_SIGNATURE
