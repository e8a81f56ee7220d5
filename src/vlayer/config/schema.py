"""Configuration schema: dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

Severity = Literal["critical", "high", "medium", "low", "info"]
Category = Literal[
    "phi-exposure",
    "encryption",
    "audit-logging",
    "access-control",
    "data-retention",
]
Confidence = Literal["high", "medium", "low"]

SEVERITIES: tuple[str, ...] = ("critical", "high", "medium", "low", "info")
CATEGORIES: tuple[str, ...] = (
    "phi-exposure",
    "encryption",
    "audit-logging",
    "access-control",
    "data-retention",
)

# Lower value sorts first in reports.
SEVERITY_ORDER: dict[str, int] = {
    "critical": 0,
    "high": 1,
    "medium": 2,
    "low": 3,
    "info": 4,
}

CONFIDENCE_ORDER: dict[str, int] = {
    "low": 0,
    "medium": 1,
    "high": 2,
}


def severity_at_or_above(finding_sev: str, threshold: str) -> bool:
    """Return True if *finding_sev* is at or above *threshold*."""
    return SEVERITY_ORDER.get(finding_sev, 4) <= SEVERITY_ORDER.get(threshold, 4)


def confidence_at_or_above(confidence: Optional[str], threshold: str) -> bool:
    """Return True if *confidence* meets *threshold*. Missing confidence counts as high."""
    if confidence is None:
        return True
    return CONFIDENCE_ORDER.get(confidence, 0) >= CONFIDENCE_ORDER.get(threshold, 0)


@dataclass
class ScanConfig:
    exclude: List[str] = field(default_factory=list)
    ignore_paths: List[str] = field(default_factory=list)
    safe_http_domains: List[str] = field(default_factory=list)
    context_lines: int = 2
    categories: List[str] = field(default_factory=lambda: list(CATEGORIES))
    custom_rules_path: Optional[str] = None
    min_confidence: Optional[Confidence] = None
    max_file_size_kb: int = 1024


@dataclass
class OutputConfig:
    format: Literal["terminal", "json", "sarif"] = "terminal"
    show_summary: bool = True


@dataclass
class ScoringConfig:
    fail_under: int = 0  # exit 1 when the score falls below this
    profile: Literal["dashboard", "reporter"] = "dashboard"


@dataclass
class AIConfig:
    enabled: bool = False
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 2048
    temperature: float = 0.1
    max_file_size: int = 50_000  # bytes
    max_calls_per_minute: int = 20
    max_calls_per_scan: int = 50
    budget_cents: float = 50.0
    cache_dir: str = ".vlayer/ai-cache"
    cache_ttl_hours: float = 24.0


@dataclass
class AcknowledgedFinding:
    """An accepted-risk entry from the config file."""

    pattern: str  # file glob
    reason: str
    acknowledged_by: str
    acknowledged_at: str  # ISO-8601
    id: Optional[str] = None  # rule id, '*' wildcard allowed
    category: Optional[str] = None
    severity: Optional[str] = None
    ticket_url: Optional[str] = None
    expires_at: Optional[str] = None  # ISO-8601


@dataclass
class VlayerConfig:
    version: str = "1.0"
    scan: ScanConfig = field(default_factory=ScanConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    acknowledged_findings: List[AcknowledgedFinding] = field(default_factory=list)
