"""Audit trail of a fix run: evidence, manual-review items, integrity hash.

A trail is built with :class:`AuditTrailBuilder` and sealed by
:meth:`AuditTrailBuilder.finalize`, which hashes the evidence in insertion
order. A sealed trail takes no further evidence.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from vlayer.audit.evidence import AuditEvidence, hash_content
from vlayer.findings.models import Finding

logger = logging.getLogger(__name__)

AUDIT_DIR = ".vlayer"
AUDIT_FILE = "audit-trail.json"

REVIEW_STATUSES = ("pending_review", "assigned", "in_progress", "resolved", "accepted_risk")

# days until a manual review is due, by severity
REVIEW_DEADLINE_DAYS = {"critical": 7, "high": 14, "medium": 30}
DEFAULT_DEADLINE_DAYS = 60


class AuditTrailError(Exception):
    """Raised when a sealed trail is modified or finalized again."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


@dataclass
class ManualReviewItem:
    id: str
    finding_id: str
    finding: Dict[str, Any]
    status: str
    suggested_deadline: str
    created_at: str
    updated_at: str
    assigned_to: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "findingId": self.finding_id,
            "finding": self.finding,
            "status": self.status,
            "suggestedDeadline": self.suggested_deadline,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.assigned_to:
            data["assignedTo"] = self.assigned_to
        if self.notes:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManualReviewItem":
        return cls(
            id=data["id"],
            finding_id=data["findingId"],
            finding=data.get("finding", {}),
            status=data.get("status", "pending_review"),
            suggested_deadline=data["suggestedDeadline"],
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
            assigned_to=data.get("assignedTo"),
            notes=data.get("notes"),
        )


@dataclass
class AuditTrail:
    id: str
    created_at: str
    project_path: str
    project_name: str
    scan_duration: float = 0.0
    scanned_files: int = 0
    total_findings: int = 0
    auto_fixed_count: int = 0
    manual_review_count: int = 0
    evidence: List[AuditEvidence] = field(default_factory=list)
    manual_reviews: List[ManualReviewItem] = field(default_factory=list)
    report_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "projectPath": self.project_path,
            "projectName": self.project_name,
            "scanDuration": self.scan_duration,
            "scannedFiles": self.scanned_files,
            "totalFindings": self.total_findings,
            "autoFixedCount": self.auto_fixed_count,
            "manualReviewCount": self.manual_review_count,
            "evidence": [e.to_dict() for e in self.evidence],
            "manualReviews": [r.to_dict() for r in self.manual_reviews],
            "reportHash": self.report_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditTrail":
        return cls(
            id=data["id"],
            created_at=data.get("createdAt", ""),
            project_path=data.get("projectPath", ""),
            project_name=data.get("projectName", ""),
            scan_duration=data.get("scanDuration", 0.0),
            scanned_files=data.get("scannedFiles", 0),
            total_findings=data.get("totalFindings", 0),
            auto_fixed_count=data.get("autoFixedCount", 0),
            manual_review_count=data.get("manualReviewCount", 0),
            evidence=[AuditEvidence.from_dict(e) for e in data.get("evidence", [])],
            manual_reviews=[ManualReviewItem.from_dict(r) for r in data.get("manualReviews", [])],
            report_hash=data.get("reportHash"),
        )


def _finding_summary(finding: Finding) -> Dict[str, Any]:
    return {
        "id": finding.id,
        "title": finding.title,
        "severity": finding.severity,
        "category": finding.category,
        "file": finding.file,
        "line": finding.line,
    }


def create_manual_review(finding: Finding, now: Optional[datetime] = None) -> ManualReviewItem:
    now = now or _now()
    days = REVIEW_DEADLINE_DAYS.get(finding.severity, DEFAULT_DEADLINE_DAYS)
    stamp = now.isoformat()
    return ManualReviewItem(
        id=str(uuid.uuid4()),
        finding_id=finding.id,
        finding=_finding_summary(finding),
        status="pending_review",
        suggested_deadline=(now + timedelta(days=days)).isoformat(),
        created_at=stamp,
        updated_at=stamp,
    )


def generate_audit_trail_hash(evidence: Iterable[AuditEvidence]) -> str:
    """Hash over ``id|before|after|timestamp`` per item; order-sensitive."""
    text = "\n".join(
        f"{e.id}|{e.file_hash_before}|{e.file_hash_after}|{e.timestamp}" for e in evidence
    )
    return hash_content(text)


class AuditTrailBuilder:
    """Accumulates one fix run's trail; :meth:`finalize` seals it exactly once."""

    def __init__(self, project_path: Union[str, Path]) -> None:
        path = Path(project_path)
        self._trail = AuditTrail(
            id=str(uuid.uuid4()),
            created_at=_now().isoformat(),
            project_path=str(path),
            project_name=path.name,
        )
        self._finalized = False

    def _check_open(self) -> None:
        if self._finalized:
            raise AuditTrailError("Audit trail is already finalized")

    def add_evidence(self, evidence: AuditEvidence) -> None:
        self._check_open()
        self._trail.evidence.append(evidence)
        self._trail.auto_fixed_count = len(self._trail.evidence)

    def add_manual_review(self, finding: Finding) -> ManualReviewItem:
        self._check_open()
        review = create_manual_review(finding)
        self._trail.manual_reviews.append(review)
        self._trail.manual_review_count = len(self._trail.manual_reviews)
        return review

    def update_scan_stats(
        self, total_findings: int, scanned_files: int = 0, scan_duration: float = 0.0
    ) -> None:
        self._check_open()
        self._trail.total_findings = total_findings
        self._trail.scanned_files = scanned_files
        self._trail.scan_duration = scan_duration

    @property
    def finalized(self) -> bool:
        return self._finalized

    def finalize(self) -> AuditTrail:
        self._check_open()
        self._trail.report_hash = generate_audit_trail_hash(self._trail.evidence)
        self._finalized = True
        return self._trail


def get_audit_trail_path(project_path: Union[str, Path]) -> Path:
    return Path(project_path) / AUDIT_DIR / AUDIT_FILE


def save_audit_trail(trail: AuditTrail, project_path: Union[str, Path]) -> Path:
    path = get_audit_trail_path(project_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(trail.to_dict(), indent=2), encoding="utf-8")
    return path


def load_audit_trail(project_path: Union[str, Path]) -> Optional[AuditTrail]:
    """Return the saved trail, or None if missing or unreadable."""
    path = get_audit_trail_path(project_path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return AuditTrail.from_dict(data)
    except FileNotFoundError:
        return None
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.warning("Could not load audit trail %s: %s", path, exc)
        return None


def verify_audit_trail(trail: AuditTrail) -> bool:
    """True when the stored hash still matches the evidence."""
    return trail.report_hash == generate_audit_trail_hash(trail.evidence)


def update_manual_review_status(
    trail: AuditTrail,
    review_id: str,
    status: str,
    assigned_to: Optional[str] = None,
    notes: Optional[str] = None,
) -> bool:
    if status not in REVIEW_STATUSES:
        raise ValueError(f"Unknown review status {status!r}")
    for review in trail.manual_reviews:
        if review.id == review_id:
            review.status = status
            review.updated_at = _now().isoformat()
            if assigned_to:
                review.assigned_to = assigned_to
            if notes:
                review.notes = notes
            return True
    return False


def get_audit_summary(trail: AuditTrail, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or _now()
    by_status: Dict[str, int] = {}
    by_severity: Dict[str, int] = {}
    overdue = 0
    for review in trail.manual_reviews:
        by_status[review.status] = by_status.get(review.status, 0) + 1
        severity = review.finding.get("severity", "info")
        by_severity[severity] = by_severity.get(severity, 0) + 1
        deadline = _parse_time(review.suggested_deadline)
        if review.status == "pending_review" and deadline is not None and deadline < now:
            overdue += 1
    return {
        "totalFindings": trail.total_findings,
        "autoFixed": trail.auto_fixed_count,
        "pendingManualReview": trail.manual_review_count,
        "reviewsByStatus": by_status,
        "reviewsBySeverity": by_severity,
        "overdueCount": overdue,
        "reportHash": trail.report_hash,
    }
