"""Audit logging scanner.

Two checks: a project-wide look for a logging framework in dependency
manifests, and a per-file look for PHI operations in files that never log.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

from vlayer.findings.models import Finding
from vlayer.rules.builtin.audit import (
    ALL_AUDIT_RULES,
    AUDIT_REFERENCE,
    LOGGING_CALL_RE,
    LOGGING_FRAMEWORKS,
    MANIFEST_NAMES,
    NO_FRAMEWORK_DESCRIPTION,
    NO_FRAMEWORK_ID,
    NO_FRAMEWORK_RECOMMENDATION,
    NO_FRAMEWORK_TITLE,
    PHI_KEYWORDS_RE,
)
from vlayer.scanner.base import PatternScanner, ScanContext

logger = logging.getLogger(__name__)

_PHI_KEYWORDS = re.compile(PHI_KEYWORDS_RE, re.IGNORECASE)
_LOGGING_CALL = re.compile(LOGGING_CALL_RE, re.IGNORECASE)


class AuditScanner(PatternScanner):
    name = "Audit Logging Scanner"
    category = "audit-logging"
    extensions = (".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".go")
    rules = ALL_AUDIT_RULES
    skip_comments = False

    def scan(self, files: Sequence[Path], context: ScanContext) -> List[Finding]:
        findings: List[Finding] = []
        framework = self._check_framework(context)
        if framework is not None:
            findings.append(framework)
        findings.extend(super().scan(files, context))
        return findings

    def accepts(self, rel_path: str) -> bool:
        if "test" in rel_path or "spec" in rel_path:
            return False
        return super().accepts(rel_path)

    def scan_file(self, rel_path: str, content: str, context: ScanContext) -> List[Finding]:
        # Only files that touch PHI and never log anything are interesting.
        if not _PHI_KEYWORDS.search(content) or _LOGGING_CALL.search(content):
            return []
        return super().scan_file(rel_path, content, context)

    def _check_framework(self, context: ScanContext) -> Optional[Finding]:
        manifests = [p for p in context.all_files if p.name in MANIFEST_NAMES]
        if not manifests:
            return None
        for path in manifests:
            text = context.read_text(path)
            if text and any(fw in text for fw in LOGGING_FRAMEWORKS):
                return None
        logger.debug("No logging framework in %d manifest(s)", len(manifests))
        return Finding(
            id=NO_FRAMEWORK_ID,
            category="audit-logging",
            severity="high",
            title=NO_FRAMEWORK_TITLE,
            description=NO_FRAMEWORK_DESCRIPTION,
            file=context.relpath(manifests[0]),
            recommendation=NO_FRAMEWORK_RECOMMENDATION,
            regulatory_reference=AUDIT_REFERENCE,
        )
