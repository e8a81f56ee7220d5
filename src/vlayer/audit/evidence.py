"""Audit evidence for automatic fixes: code snapshots and content hashes."""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from vlayer.findings.models import ContextLine, Finding

DEFAULT_REFERENCE = "General HIPAA Security Rule"


def hash_content(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class CodeSnapshot:
    content: str
    line_number: int  # 1-based
    context: List[ContextLine] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "lineNumber": self.line_number,
            "context": [
                {"lineNumber": c.line_number, "content": c.content, "isMatch": c.is_match}
                for c in self.context
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodeSnapshot":
        return cls(
            content=data.get("content", ""),
            line_number=int(data.get("lineNumber", 0)),
            context=[
                ContextLine(c["lineNumber"], c.get("content", ""), bool(c.get("isMatch")))
                for c in data.get("context", [])
            ],
        )


@dataclass(frozen=True)
class AuditEvidence:
    """Record of one applied fix. Append-only once added to a trail."""

    id: str
    finding_id: str
    timestamp: str
    file_path: str
    before: CodeSnapshot
    after: CodeSnapshot
    file_hash_before: str
    file_hash_after: str
    regulatory_reference: str
    fix_type: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "findingId": self.finding_id,
            "timestamp": self.timestamp,
            "filePath": self.file_path,
            "before": self.before.to_dict(),
            "after": self.after.to_dict(),
            "fileHashBefore": self.file_hash_before,
            "fileHashAfter": self.file_hash_after,
            "regulatoryReference": self.regulatory_reference,
            "fixType": self.fix_type,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditEvidence":
        return cls(
            id=data["id"],
            finding_id=data["findingId"],
            timestamp=data["timestamp"],
            file_path=data["filePath"],
            before=CodeSnapshot.from_dict(data["before"]),
            after=CodeSnapshot.from_dict(data["after"]),
            file_hash_before=data["fileHashBefore"],
            file_hash_after=data["fileHashAfter"],
            regulatory_reference=data.get("regulatoryReference", DEFAULT_REFERENCE),
            fix_type=data.get("fixType", ""),
            description=data.get("description", ""),
        )


def extract_code_snapshot(lines: Sequence[str], index: int, context: int = 3) -> CodeSnapshot:
    """Snapshot of 0-based line *index* with *context* lines either side."""
    start = max(0, index - context)
    end = min(len(lines) - 1, index + context)
    return CodeSnapshot(
        content=lines[index] if 0 <= index < len(lines) else "",
        line_number=index + 1,
        context=[
            ContextLine(line_number=i + 1, content=lines[i], is_match=(i == index))
            for i in range(start, end + 1)
        ],
    )


def create_evidence(
    finding: Finding,
    file_path: str,
    content_before: str,
    content_after: str,
    index: int,
    fix_type: str,
    timestamp: Optional[str] = None,
    after_index: Optional[int] = None,
) -> AuditEvidence:
    """Evidence for one fix. Hashes cover the exact file text, line endings included."""
    before_lines = [line.rstrip("\r") for line in content_before.split("\n")]
    after_lines = [line.rstrip("\r") for line in content_after.split("\n")]
    return AuditEvidence(
        id=str(uuid.uuid4()),
        finding_id=finding.id,
        timestamp=timestamp or _utcnow(),
        file_path=file_path,
        before=extract_code_snapshot(before_lines, index),
        after=extract_code_snapshot(after_lines, index if after_index is None else after_index),
        file_hash_before=hash_content(content_before),
        file_hash_after=hash_content(content_after),
        regulatory_reference=finding.regulatory_reference or DEFAULT_REFERENCE,
        fix_type=fix_type,
        description=f"Auto-fixed: {finding.title}",
    )
