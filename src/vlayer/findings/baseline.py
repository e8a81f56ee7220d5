"""Baseline snapshots: stable finding identity across scans.

A finding's identity is ``sha256("file:line:id:title")`` truncated to 16 hex
characters. It does not depend on scan order, so the same issue at the same
location keeps its hash between runs.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Union

from vlayer.findings.models import Finding

logger = logging.getLogger(__name__)

BASELINE_VERSION = "1.0"


@dataclass(frozen=True)
class BaselineEntry:
    hash: str
    id: str
    file: str
    title: str
    severity: str
    category: str
    line: Optional[int] = None


@dataclass
class Baseline:
    version: str = BASELINE_VERSION
    created_at: str = ""
    entries: List[BaselineEntry] = field(default_factory=list)

    @property
    def hashes(self) -> Set[str]:
        return {e.hash for e in self.entries}


def generate_finding_hash(finding: Finding) -> str:
    """Stable identity hash over (file, line, id, title)."""
    key = f"{finding.file}:{finding.line or 0}:{finding.id}:{finding.title}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def create_baseline_entry(finding: Finding) -> BaselineEntry:
    return BaselineEntry(
        hash=generate_finding_hash(finding),
        id=finding.id,
        file=finding.file,
        line=finding.line,
        title=finding.title,
        severity=finding.severity,
        category=finding.category,
    )


def create_baseline(findings: Iterable[Finding]) -> Baseline:
    return Baseline(
        version=BASELINE_VERSION,
        created_at=datetime.now(timezone.utc).isoformat(),
        entries=[create_baseline_entry(f) for f in findings],
    )


def baseline_to_dict(baseline: Baseline) -> Dict[str, object]:
    return {
        "version": baseline.version,
        "createdAt": baseline.created_at,
        "findings": [asdict(e) for e in baseline.entries],
    }


def save_baseline(findings: Iterable[Finding], path: Union[str, Path]) -> Baseline:
    """Write a baseline file for *findings* and return the snapshot."""
    baseline = create_baseline(findings)
    Path(path).write_text(
        json.dumps(baseline_to_dict(baseline), indent=2), encoding="utf-8"
    )
    return baseline


def load_baseline(path: Union[str, Path]) -> Optional[Baseline]:
    """Load a baseline file. Returns None when missing or malformed."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        entries = [
            BaselineEntry(
                hash=item["hash"],
                id=item["id"],
                file=item["file"],
                line=item.get("line"),
                title=item["title"],
                severity=item["severity"],
                category=item["category"],
            )
            for item in raw.get("findings", [])
        ]
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.warning("Could not load baseline %s: %s", path, exc)
        return None
    return Baseline(
        version=str(raw.get("version", BASELINE_VERSION)),
        created_at=str(raw.get("createdAt", "")),
        entries=entries,
    )


def is_in_baseline(finding: Finding, baseline: Baseline) -> bool:
    return generate_finding_hash(finding) in baseline.hashes


def apply_baseline(findings: List[Finding], baseline: Optional[Baseline]) -> List[Finding]:
    """Tag findings already present in *baseline*. Mutates and returns *findings*."""
    if baseline is None:
        return findings
    known = baseline.hashes
    for finding in findings:
        if generate_finding_hash(finding) in known:
            finding.is_baseline = True
    return findings


def get_baseline_stats(findings: List[Finding]) -> Dict[str, int]:
    total = len(findings)
    in_baseline = sum(1 for f in findings if f.is_baseline)
    return {"total": total, "baseline": in_baseline, "new": total - in_baseline}
