"""JSON reporter: the stable machine-readable report shape."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from vlayer import __version__
from vlayer.findings.models import Finding, ScanResult
from vlayer.scoring import DASHBOARD, ComplianceScore, ThresholdProfile, calculate_score


def finding_to_dict(f: Finding) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": f.id,
        "category": f.category,
        "severity": f.severity,
        "title": f.title,
        "description": f.description,
        "file": f.file,
        "line": f.line,
        "column": f.column,
        "recommendation": f.recommendation,
        "regulatoryReference": f.regulatory_reference,
        "contextLines": [
            {"lineNumber": c.line_number, "content": c.content, "isMatch": c.is_match}
            for c in f.context_lines
        ],
        "fixType": f.fix_type,
        "confidence": f.confidence,
        "source": f.source,
        "isBaseline": f.is_baseline,
        "suppressed": f.suppressed,
        "acknowledged": f.acknowledged,
    }
    if f.suppression is not None:
        data["suppression"] = {
            "rulePattern": f.suppression.rule_pattern,
            "reason": f.suppression.reason,
            "comment": f.suppression.comment,
            "line": f.suppression.line,
        }
    if f.acknowledgment is not None:
        ack = f.acknowledgment
        data["acknowledgment"] = {
            "reason": ack.reason,
            "acknowledgedBy": ack.acknowledged_by,
            "acknowledgedAt": ack.acknowledged_at,
            "ticketUrl": ack.ticket_url,
            "expiresAt": ack.expires_at,
            "expired": ack.expired,
        }
    if f.triage is not None:
        data["aiClassification"] = f.triage.verdict
        data["aiConfidence"] = f.triage.confidence
        data["aiReasoning"] = f.triage.reasoning
    return data


def summarize(result: ScanResult, score: ComplianceScore) -> Dict[str, Any]:
    active = result.active_findings
    summary: Dict[str, Any] = {"total": len(result.findings)}
    for sev in ("critical", "high", "medium", "low", "info"):
        summary[sev] = sum(1 for f in active if f.severity == sev)
    summary.update({
        "active": len(active),
        "baseline": len(result.baseline_findings),
        "suppressed": len(result.suppressed_findings),
        "acknowledged": sum(1 for f in result.findings if f.acknowledged),
        "score": score.score,
        "grade": score.grade,
        "status": score.status,
    })
    return summary


def to_dict(
    result: ScanResult,
    score: Optional[ComplianceScore] = None,
    profile: ThresholdProfile = DASHBOARD,
) -> Dict[str, Any]:
    """Convert ScanResult to a JSON-serialisable dict."""
    score = score or calculate_score(result.findings, profile)
    findings: List[Dict[str, Any]] = [finding_to_dict(f) for f in result.findings]
    data: Dict[str, Any] = {
        "version": __version__,
        "summary": summarize(result, score),
        "score": score.to_dict(),
        "findings": findings,
        "scannedFiles": result.scanned_files,
        "scanDuration": result.scan_duration,
    }
    if result.stack is not None:
        data["stack"] = result.stack
    if result.load_errors:
        data["loadErrors"] = [
            {"file": e.file, "error": e.error, "details": e.details} for e in result.load_errors
        ]
    if result.ai_stats is not None:
        data["aiStats"] = result.ai_stats
    if result.fix_report is not None:
        data["fixReport"] = result.fix_report.to_dict()
    return data


def render(
    result: ScanResult,
    score: Optional[ComplianceScore] = None,
    profile: ThresholdProfile = DASHBOARD,
) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(result, score, profile), indent=2)
