"""Finding data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ContextLine:
    """One source line shown around a match."""

    line_number: int
    content: str
    is_match: bool = False


@dataclass(frozen=True)
class SuppressionInfo:
    """Audit record of an inline ``vlayer-ignore`` comment that silenced a finding."""

    rule_pattern: str
    reason: str
    comment: str
    line: int


@dataclass(frozen=True)
class AcknowledgmentInfo:
    """Accepted-risk metadata copied from the matching config entry."""

    reason: str
    acknowledged_by: str
    acknowledged_at: str
    ticket_url: Optional[str] = None
    expires_at: Optional[str] = None
    expired: bool = False


@dataclass(frozen=True)
class TriageInfo:
    """Verdict from the AI triage pass."""

    verdict: str  # confirmed | likely | possible | false_positive
    confidence: float
    reasoning: str


@dataclass
class Finding:
    """A single compliance issue produced by a scanner."""

    id: str  # rule id, e.g. 'phi-ssn-hardcoded' or 'ERROR-002'
    category: str
    severity: str
    title: str
    description: str
    file: str  # posix path relative to the scan root
    line: Optional[int] = None
    column: Optional[int] = None
    recommendation: str = ""
    regulatory_reference: Optional[str] = None
    context_lines: List[ContextLine] = field(default_factory=list)
    fix_type: Optional[str] = None
    confidence: Optional[str] = None  # high | medium | low
    source: str = "static"  # static | custom | ai
    acknowledged: bool = False
    acknowledgment: Optional[AcknowledgmentInfo] = None
    suppressed: bool = False
    suppression: Optional[SuppressionInfo] = None
    is_baseline: bool = False
    triage: Optional[TriageInfo] = None

    @property
    def is_active(self) -> bool:
        """Counted towards the score and the 'new' report."""
        return not (self.is_baseline or self.suppressed)

    @property
    def ack_in_force(self) -> bool:
        return (
            self.acknowledged
            and self.acknowledgment is not None
            and not self.acknowledgment.expired
        )


@dataclass
class ScanResult:
    """Complete result of a scan run."""

    findings: List[Finding] = field(default_factory=list)
    scanned_files: int = 0
    scan_duration: float = 0.0  # milliseconds
    stack: Optional[Dict[str, Any]] = None
    load_errors: List[Any] = field(default_factory=list)  # RuleLoadError
    fix_report: Optional[Any] = None  # FixReport
    ai_stats: Optional[Dict[str, Any]] = None

    @property
    def total_findings(self) -> int:
        return len(self.findings)

    @property
    def active_findings(self) -> List[Finding]:
        return [f for f in self.findings if f.is_active]

    @property
    def baseline_findings(self) -> List[Finding]:
        return [f for f in self.findings if f.is_baseline]

    @property
    def suppressed_findings(self) -> List[Finding]:
        return [f for f in self.findings if f.suppressed]
