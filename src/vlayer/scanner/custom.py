"""Scanner for user-authored rules loaded from YAML."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import List, Sequence

from vlayer.findings.context import get_context_lines
from vlayer.findings.models import Finding
from vlayer.rules.models import Rule
from vlayer.scanner.base import ScanContext


def glob_match(rel_path: str, pattern: str) -> bool:
    """fnmatch where a leading ``**/`` may also match zero directories."""
    if fnmatch(rel_path, pattern):
        return True
    return pattern.startswith("**/") and fnmatch(rel_path, pattern[3:])


def matches_file_filters(rel_path: str, rule: Rule) -> bool:
    if rule.include and not any(glob_match(rel_path, g) for g in rule.include):
        return False
    if rule.exclude and any(glob_match(rel_path, g) for g in rule.exclude):
        return False
    return True


class CustomRuleScanner:
    name = "Custom Rules Scanner"
    category = "custom"

    def __init__(self, rules: List[Rule]) -> None:
        self.rules = rules

    def scan(self, files: Sequence[Path], context: ScanContext) -> List[Finding]:
        findings: List[Finding] = []
        if not self.rules:
            return findings

        for path in files:
            rel = context.relpath(path)
            applicable = [r for r in self.rules if matches_file_filters(rel, r)]
            if not applicable:
                continue
            content = context.read_text(path)
            if content is None:
                continue
            lines = content.split("\n")
            for index, line in enumerate(lines):
                for rule in applicable:
                    m = rule.compiled_pattern.search(line)
                    if m is None:
                        continue
                    # the line already carries the required construct
                    must_not = rule.compiled_must_not_contain
                    if must_not is not None and must_not.search(line):
                        continue
                    findings.append(Finding(
                        id=f"custom-{rule.id}",
                        category=rule.category,
                        severity=rule.severity,
                        title=rule.name,
                        description=rule.description,
                        file=rel,
                        line=index + 1,
                        column=m.start() + 1,
                        recommendation=rule.recommendation,
                        regulatory_reference=rule.regulatory_reference,
                        context_lines=get_context_lines(lines, index, context.context_size),
                        fix_type=rule.fix_type,
                        confidence="high",
                        source="custom",
                    ))
        return findings
