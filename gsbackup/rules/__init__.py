# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Rules - Allow/ignore pattern rules and file selection.
"""

from gsbackup.rules.matcher import match_rule

from gsbackup.rules.evaluator import (
    AllowVerdict,
    Rule,
    parse_rule,
    parse_rules,
    evaluate_allow_rules,
    evaluate_ignore_rules,
)

from gsbackup.rules.loader import (
    BACKUP_RULE_FILES,
    RuleKind,
    load_backup_rules,
    load_rule_sets,
)

from gsbackup.rules.selector import (
    should_backup,
    collect_backup_files,
)

__all__ = [
    # Matcher
    "match_rule",
    # Evaluator
    "AllowVerdict",
    "Rule",
    "parse_rule",
    "parse_rules",
    "evaluate_allow_rules",
    "evaluate_ignore_rules",
    # Loader
    "BACKUP_RULE_FILES",
    "RuleKind",
    "load_backup_rules",
    "load_rule_sets",
    # Selector
    "should_backup",
    "collect_backup_files",
]
