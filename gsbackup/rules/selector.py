# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
File selection for backups.

Combines the allow and ignore lists into a single keep/skip decision
and walks the instance directory with it.
"""

import os
from pathlib import Path
from typing import List, Sequence

import aiofiles.os

from gsbackup.config import METADATA_DIR_NAME
from gsbackup.rules.evaluator import (
    AllowVerdict,
    Rule,
    evaluate_allow_rules,
    evaluate_ignore_rules,
)


def normalize_relative_path(path: Path, root: Path) -> str:
    """Path relative to root with '/' separators."""
    return os.path.relpath(path, root).replace(os.sep, "/")


def is_metadata_path(relative_path: str) -> bool:
    """True for the metadata directory itself and anything inside it."""
    return relative_path == METADATA_DIR_NAME or relative_path.startswith(f"{METADATA_DIR_NAME}/")


def should_backup(
    path: Path,
    root: Path,
    allow_rules: Sequence[Rule],
    ignore_rules: Sequence[Rule],
) -> bool:
    """
    Decide whether one file or directory belongs in the backup.

    The metadata directory is always excluded. Once any allow rule
    exists the allow list is exclusive: a path no allow rule matched is
    not backed up even if no ignore rule vetoed it.
    """
    relative_path = normalize_relative_path(path, root)

    if is_metadata_path(relative_path):
        return False

    if not allow_rules and not ignore_rules:
        return True

    verdict = AllowVerdict.NO_MATCH
    if allow_rules:
        verdict = evaluate_allow_rules(relative_path, allow_rules)
        if verdict == AllowVerdict.DENY:
            return False

    if ignore_rules and not evaluate_ignore_rules(relative_path, ignore_rules):
        return False

    if allow_rules:
        return verdict == AllowVerdict.ALLOW

    return True


async def collect_backup_files(
    root: Path,
    allow_rules: Sequence[Rule],
    ignore_rules: Sequence[Rule],
) -> List[Path]:
    """
    Walk an instance directory and collect the files to back up.

    Directories that fail ``should_backup`` are pruned and never
    descended into. Symlinks are neither files nor directories here and
    are skipped.

    Returns:
        Absolute paths of selected files, in walk order
    """
    root = Path(root)
    files: List[Path] = []
    pending: List[Path] = [root]

    while pending:
        current = pending.pop()
        with (await aiofiles.os.scandir(current)) as it:
            entries = sorted(it, key=lambda entry: entry.name)

        subdirs: List[Path] = []
        for entry in entries:
            full_path = Path(entry.path)
            if not should_backup(full_path, root, allow_rules, ignore_rules):
                continue
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(full_path)
            elif entry.is_file(follow_symlinks=False):
                files.append(full_path)

        # Reversed so the stack visits subdirectories in name order
        pending.extend(reversed(subdirs))

    return files
