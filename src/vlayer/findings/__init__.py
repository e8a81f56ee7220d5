"""Finding models, aggregation, baseline, and acknowledgments."""

from vlayer.findings.acknowledgments import apply_acknowledgments, match_acknowledgment
from vlayer.findings.aggregator import deduplicate, filter_by_confidence, sort_findings
from vlayer.findings.baseline import (
    Baseline,
    apply_baseline,
    generate_finding_hash,
    get_baseline_stats,
    load_baseline,
    save_baseline,
)
from vlayer.findings.context import get_context_lines
from vlayer.findings.models import (
    AcknowledgmentInfo,
    ContextLine,
    Finding,
    ScanResult,
    SuppressionInfo,
    TriageInfo,
)

__all__ = [
    "AcknowledgmentInfo",
    "Baseline",
    "ContextLine",
    "Finding",
    "ScanResult",
    "SuppressionInfo",
    "TriageInfo",
    "apply_acknowledgments",
    "apply_baseline",
    "deduplicate",
    "filter_by_confidence",
    "generate_finding_hash",
    "get_baseline_stats",
    "get_context_lines",
    "load_baseline",
    "match_acknowledgment",
    "save_baseline",
    "sort_findings",
]
