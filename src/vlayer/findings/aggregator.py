"""Finding deduplication, ordering, and confidence gating."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from vlayer.config.schema import SEVERITY_ORDER, confidence_at_or_above
from vlayer.findings.models import Finding


def deduplicate(findings: List[Finding]) -> List[Finding]:
    """Merge findings that share (id, file, line) and sort the result.

    Two scanners can fire the same rule id on one line (for example the
    credentials scanner and a custom rule). The merged finding keeps the
    highest severity and the first non-empty fix type.
    """
    merged: Dict[Tuple[str, str, int], Finding] = {}

    for finding in findings:
        key = (finding.id, finding.file, finding.line or 0)
        existing = merged.get(key)
        if existing is None:
            merged[key] = finding
            continue
        if SEVERITY_ORDER.get(finding.severity, 4) < SEVERITY_ORDER.get(existing.severity, 4):
            existing.severity = finding.severity
        if existing.fix_type is None and finding.fix_type is not None:
            existing.fix_type = finding.fix_type

    return sort_findings(list(merged.values()))


def sort_findings(findings: List[Finding]) -> List[Finding]:
    """Critical first, then by file and line."""
    return sorted(
        findings,
        key=lambda f: (SEVERITY_ORDER.get(f.severity, 4), f.file, f.line or 0, f.id),
    )


def filter_by_confidence(findings: List[Finding], threshold: Optional[str]) -> List[Finding]:
    if not threshold:
        return findings
    return [f for f in findings if confidence_at_or_above(f.confidence, threshold)]
