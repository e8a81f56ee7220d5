"""Tamper-evident audit trail for automatic fixes."""

from vlayer.audit.evidence import (
    AuditEvidence,
    CodeSnapshot,
    create_evidence,
    extract_code_snapshot,
    hash_content,
)
from vlayer.audit.trail import (
    AuditTrail,
    AuditTrailBuilder,
    AuditTrailError,
    ManualReviewItem,
    create_manual_review,
    generate_audit_trail_hash,
    get_audit_summary,
    get_audit_trail_path,
    load_audit_trail,
    save_audit_trail,
    update_manual_review_status,
    verify_audit_trail,
)

__all__ = [
    "AuditEvidence",
    "AuditTrail",
    "AuditTrailBuilder",
    "AuditTrailError",
    "CodeSnapshot",
    "ManualReviewItem",
    "create_evidence",
    "create_manual_review",
    "extract_code_snapshot",
    "generate_audit_trail_hash",
    "get_audit_summary",
    "get_audit_trail_path",
    "hash_content",
    "load_audit_trail",
    "save_audit_trail",
    "update_manual_review_status",
    "verify_audit_trail",
]
