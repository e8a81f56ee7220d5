"""Apply fix strategies to files and record audit evidence.

Findings are grouped per file and fixed bottom-up, so a rewrite never moves
the line of a finding still waiting in the same file. Each file is read once
and written once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from vlayer.audit.evidence import create_evidence
from vlayer.audit.trail import AuditTrail, AuditTrailBuilder, save_audit_trail
from vlayer.findings.models import Finding
from vlayer.fixer.strategies import apply_fix_strategy, import_insert_index, needs_os_import
from vlayer.rules.models import Rule

logger = logging.getLogger(__name__)


@dataclass
class FixResult:
    finding: Finding
    fixed: bool
    original_line: str
    fixed_line: str
    fix_type: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "findingId": self.finding.id,
            "file": self.finding.file,
            "line": self.finding.line,
            "fixed": self.fixed,
            "originalLine": self.original_line,
            "fixedLine": self.fixed_line,
            "fixType": self.fix_type,
        }


@dataclass
class FixReport:
    total_findings: int = 0
    fixed_count: int = 0
    skipped_count: int = 0
    fixes: List[FixResult] = field(default_factory=list)
    audit_trail: Optional[AuditTrail] = None
    audit_trail_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "totalFindings": self.total_findings,
            "fixedCount": self.fixed_count,
            "skippedCount": self.skipped_count,
            "fixes": [f.to_dict() for f in self.fixes],
            "auditTrailPath": str(self.audit_trail_path) if self.audit_trail_path else None,
            "reportHash": self.audit_trail.report_hash if self.audit_trail else None,
        }


def group_by_file(findings: Iterable[Finding]) -> Dict[str, List[Finding]]:
    """Fixable findings per file, highest line first."""
    groups: Dict[str, List[Finding]] = {}
    for f in findings:
        if f.fix_type and f.line:
            groups.setdefault(f.file, []).append(f)
    for group in groups.values():
        group.sort(key=lambda f: f.line or 0, reverse=True)
    return groups


def fix_file(
    path: Path,
    rel_path: str,
    findings: List[Finding],
    builder: AuditTrailBuilder,
    rules: Optional[List[Rule]] = None,
) -> List[FixResult]:
    """Fix one file. I/O failures mark every finding in the group not fixed.

    The file is handled as raw UTF-8 so CRLF endings survive and evidence
    hashes match the bytes on disk. Each evidence entry covers the file as it
    was just before and just after its own fix.
    """
    try:
        original = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s for fixing: %s", rel_path, exc)
        return [FixResult(f, False, "", "", f.fix_type or "") for f in findings]

    lines = original.split("\n")
    current = original
    results: List[FixResult] = []
    pending: List[Tuple[Finding, str, str, int, str]] = []
    for finding in findings:
        fix_type = finding.fix_type or ""
        index = (finding.line or 0) - 1
        if not 0 <= index < len(lines):
            results.append(FixResult(finding, False, "", "", fix_type))
            continue
        ending = "\r" if lines[index].endswith("\r") else ""
        before = lines[index][: len(lines[index]) - len(ending)]
        after = apply_fix_strategy(before, fix_type, file_path=rel_path, rules=rules)
        if after is None or after == before:
            results.append(FixResult(finding, False, before, before, fix_type))
            continue
        lines[index] = after + ending
        results.append(FixResult(finding, True, before, after, fix_type))
        updated = "\n".join(lines)
        pending.append((finding, current, updated, index, fix_type))
        current = updated

    if not pending:
        return results

    evidence = [create_evidence(f, rel_path, b, a, i, t) for f, b, a, i, t in pending]
    if rel_path.endswith(".py") and needs_os_import(lines):
        at = import_insert_index(lines)
        ending = "\r" if lines[0].endswith("\r") else ""
        lines.insert(at, "import os" + ending)
        # the import lands with the last (topmost) fix
        finding, before_text, _, index, fix_type = pending[-1]
        evidence[-1] = create_evidence(
            finding, rel_path, before_text, "\n".join(lines), index, fix_type,
            after_index=index + 1 if index >= at else index,
        )

    try:
        path.write_bytes("\n".join(lines).encode("utf-8"))
    except OSError as exc:
        logger.warning("Cannot write fixes to %s: %s", rel_path, exc)
        return [FixResult(r.finding, False, r.original_line, r.original_line, r.fix_type) for r in results]
    for entry in evidence:
        builder.add_evidence(entry)
    return results


def apply_fixes(
    findings: List[Finding],
    base_path: Path,
    rules: Optional[List[Rule]] = None,
    *,
    save_trail: bool = True,
    scanned_files: int = 0,
    scan_duration: float = 0.0,
) -> FixReport:
    """Fix what can be fixed, queue the rest for manual review, seal the trail."""
    base_path = Path(base_path)
    builder = AuditTrailBuilder(base_path)
    report = FixReport(total_findings=len(findings))

    for rel_path, group in group_by_file(findings).items():
        report.fixes.extend(fix_file(base_path / rel_path, rel_path, group, builder, rules))

    attempted = {id(r.finding) for r in report.fixes}
    for result in report.fixes:
        if not result.fixed:
            builder.add_manual_review(result.finding)
    for finding in findings:
        if id(finding) not in attempted:
            builder.add_manual_review(finding)

    report.fixed_count = sum(1 for r in report.fixes if r.fixed)
    report.skipped_count = len(findings) - report.fixed_count
    builder.update_scan_stats(
        total_findings=len(findings), scanned_files=scanned_files, scan_duration=scan_duration
    )
    report.audit_trail = builder.finalize()

    if save_trail:
        try:
            report.audit_trail_path = save_audit_trail(report.audit_trail, base_path)
        except OSError as exc:
            logger.warning("Could not save audit trail: %s", exc)
    logger.info("Applied %d fix(es), %d finding(s) need manual review",
                report.fixed_count, report.audit_trail.manual_review_count)
    return report
