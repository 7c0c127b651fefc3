# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup rule file loading.

Each instance may carry two rule files inside its metadata directory:
``.backupallow`` and ``.backupignore``. A missing file yields an empty
rule list.
"""

from enum import Enum
from pathlib import Path
from typing import List, Tuple

import aiofiles
import aiofiles.os
import structlog

from gsbackup.config import METADATA_DIR_NAME
from gsbackup.rules.evaluator import Rule, parse_rules

logger = structlog.get_logger()


class RuleKind(str, Enum):
    """Which of the two rule lists to load."""

    ALLOW = "allow"
    IGNORE = "ignore"


BACKUP_RULE_FILES = {
    RuleKind.ALLOW: ".backupallow",
    RuleKind.IGNORE: ".backupignore",
}


def rule_file_path(instance_path: Path, kind: RuleKind) -> Path:
    """Location of a rule file for an instance working directory."""
    return Path(instance_path) / METADATA_DIR_NAME / BACKUP_RULE_FILES[RuleKind(kind)]


async def load_backup_rules(instance_path: Path, kind: RuleKind) -> List[Rule]:
    """
    Load one rule list for an instance.

    Args:
        instance_path: Instance working directory
        kind: RuleKind.ALLOW or RuleKind.IGNORE

    Returns:
        Rules in file order; empty if the file is absent or unreadable
    """
    rules_path = rule_file_path(instance_path, kind)

    if not await aiofiles.os.path.isfile(rules_path):
        return []

    try:
        async with aiofiles.open(rules_path, "r", encoding="utf-8") as f:
            content = await f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(
            "backup_rules_unreadable",
            path=str(rules_path),
            error=str(e),
        )
        return []

    rules = parse_rules(content.splitlines())
    logger.debug("backup_rules_loaded", path=str(rules_path), count=len(rules))
    return rules


async def load_rule_sets(instance_path: Path) -> Tuple[List[Rule], List[Rule]]:
    """Load both rule lists as (allow_rules, ignore_rules)."""
    allow_rules = await load_backup_rules(instance_path, RuleKind.ALLOW)
    ignore_rules = await load_backup_rules(instance_path, RuleKind.IGNORE)
    return allow_rules, ignore_rules
