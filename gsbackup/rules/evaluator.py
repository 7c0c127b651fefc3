# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Rule set evaluation for allow and ignore lists.

Rule order is significant in both lists, so rule sets are always kept
as ordered sequences.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Sequence

from gsbackup.rules.matcher import match_rule


class AllowVerdict(str, Enum):
    """Outcome of evaluating the allow list for one path."""

    ALLOW = "allow"
    DENY = "deny"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class Rule:
    """One parsed rule line."""

    pattern: str
    negated: bool = False


def parse_rule(line: str) -> Rule:
    """Parse a raw rule line, stripping a leading '!'."""
    trimmed = line.strip()
    negated = trimmed.startswith("!")
    pattern = trimmed[1:] if negated else trimmed
    return Rule(pattern=pattern, negated=negated)


def parse_rules(lines: Iterable[str]) -> List[Rule]:
    """
    Parse rule file lines in order.

    Blank lines, '#' comments and lines with an empty pattern (a lone '!')
    are dropped.
    """
    rules: List[Rule] = []
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        rule = parse_rule(stripped)
        if rule.pattern:
            rules.append(rule)
    return rules


def evaluate_allow_rules(path: str, rules: Sequence[Rule]) -> AllowVerdict:
    """
    Evaluate the allow list for a relative path.

    An empty list allows everything. Otherwise rules are scanned in
    order: a positive match allows and stops the scan, a negated match
    denies but keeps scanning so a later positive rule can still allow.

    Returns:
        ALLOW, DENY, or NO_MATCH when no rule matched at all
    """
    if not rules:
        return AllowVerdict.ALLOW

    matched = False
    allowed = False

    for rule in rules:
        if not match_rule(rule.pattern, path):
            continue

        matched = True

        if rule.negated:
            allowed = False
            continue

        allowed = True
        break

    if not matched:
        return AllowVerdict.NO_MATCH
    return AllowVerdict.ALLOW if allowed else AllowVerdict.DENY


def evaluate_ignore_rules(path: str, rules: Sequence[Rule]) -> bool:
    """
    Evaluate the ignore list for a relative path.

    The first matching rule decides: a negated rule keeps the path,
    a plain rule excludes it. No match keeps the path.

    Returns:
        True to keep the path, False to exclude it
    """
    for rule in rules:
        if match_rule(rule.pattern, path):
            return rule.negated
    return True
