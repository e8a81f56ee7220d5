"""Data retention scanner plus the operational checks that share its category.

``BACKUP-001`` is decided across the whole project: one advisory finding at
the first database usage, and only when no scanned file mentions backups.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

from vlayer.findings.context import get_context_lines
from vlayer.findings.models import Finding
from vlayer.rules.builtin.retention import (
    DATABASE_WITHOUT_BACKUP,
    MIN_RETENTION_DAYS,
    OPERATIONAL_RULES,
    RETENTION_RULES,
    SHORT_RETENTION,
)
from vlayer.rules.models import PatternRule
from vlayer.scanner.base import PatternScanner, ScanContext

logger = logging.getLogger(__name__)

_OPERATIONAL_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
_BACKUP_SCAN_EXTENSIONS = _OPERATIONAL_EXTENSIONS + (".json", ".yml", ".yaml")


def is_short_retention(value: int, unit: str) -> bool:
    unit = unit.lower()
    if unit in ("hour", "minute"):
        return True
    return unit == "day" and value < MIN_RETENTION_DAYS


class RetentionScanner(PatternScanner):
    name = "Data Retention Scanner"
    category = "data-retention"
    extensions = (
        ".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".go", ".rb", ".php",
        ".sql", ".yaml", ".yml",
    )
    rules = RETENTION_RULES
    quote_code = False

    def accept(
        self,
        rule: PatternRule,
        match: re.Match[str],
        lines: List[str],
        index: int,
        rel_path: str,
        context: ScanContext,
    ) -> bool:
        if rule is SHORT_RETENTION:
            return is_short_retention(int(match.group(1)), match.group(2))
        return True


class OperationalScanner(PatternScanner):
    name = "Operational Security Scanner"
    category = "data-retention"
    extensions = _OPERATIONAL_EXTENSIONS
    rules = OPERATIONAL_RULES

    def scan(self, files: Sequence[Path], context: ScanContext) -> List[Finding]:
        findings: List[Finding] = []
        backup = self._check_backups(context)
        if backup is not None:
            findings.append(backup)
        findings.extend(super().scan(files, context))
        return findings

    def _check_backups(self, context: ScanContext) -> Optional[Finding]:
        rule = DATABASE_WITHOUT_BACKUP
        first: Optional[tuple[str, List[str], int, re.Match[str]]] = None
        for path in context.all_files:
            rel = context.relpath(path)
            if not rel.lower().endswith(_BACKUP_SCAN_EXTENSIONS):
                continue
            content = context.read_text(path)
            if content is None:
                continue
            if rule.is_file_negated(rel, content):
                logger.debug("Backup configuration referenced in %s", rel)
                return None
            if first is None:
                lines = content.split("\n")
                for index, line in enumerate(lines):
                    m = rule.match(line)
                    if m is not None:
                        first = (rel, lines, index, m)
                        break

        if first is None:
            return None
        rel, lines, index, m = first
        return Finding(
            id=rule.id,
            category=rule.category,
            severity=rule.severity,
            title=rule.name,
            description=f"{rule.description}\n\nCode: {lines[index].strip()}",
            file=rel,
            line=index + 1,
            column=m.start() + 1,
            recommendation=rule.recommendation,
            regulatory_reference=rule.regulatory_reference,
            context_lines=get_context_lines(lines, index, context.context_size),
            confidence=rule.confidence,
        )
