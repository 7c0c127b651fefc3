# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Pattern matching for backup rules.

A rule pattern is matched against a path relative to the instance root,
always with forward slashes. Matching follows the usual ignore-file
conventions:

- ``logs/``      directory rule: the directory itself and everything below it
- ``/world``     anchored to the instance root
- ``*.log``      no slash: matches the basename at any depth
- ``plugins/*``  also matches everything nested under ``plugins``

Wildcards match dot-files (``*`` matches ``.env``) and are case-sensitive.
"""

import posixpath

from wcmatch import glob

GLOB_FLAGS = glob.GLOBSTAR | glob.DOTGLOB | glob.BRACE | glob.CASE | glob.FORCEUNIX


def glob_match(path: str, pattern: str) -> bool:
    """Shell-style match of one path against one pattern."""
    return glob.globmatch(path, pattern, flags=GLOB_FLAGS)


def match_rule(pattern: str, relative_path: str) -> bool:
    """
    Check whether a single rule pattern matches a relative path.

    Args:
        pattern: Rule pattern with any leading '!' already removed
        relative_path: Path relative to the instance root, '/'-separated

    Returns:
        True if the pattern selects the path
    """
    if not pattern:
        return False

    target = relative_path
    if pattern.startswith("/"):
        target = f"/{relative_path}"

    if pattern.endswith("/"):
        dir_pattern = pattern[:-1]
        return (
            glob_match(target, dir_pattern)
            or glob_match(target, f"{dir_pattern}/**")
            or target.startswith(f"{dir_pattern}/")
        )

    candidates = [pattern]
    if pattern.endswith("/*") and not pattern.endswith("/**"):
        candidates.append(f"{pattern[:-1]}**")

    if any(glob_match(target, candidate) for candidate in candidates):
        return True

    # Bare names behave like ignore-file basenames: match at any depth
    if "/" not in pattern:
        return glob_match(posixpath.basename(relative_path), pattern)

    return False
