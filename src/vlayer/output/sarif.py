"""SARIF v2.1.0 reporter for GitHub code scanning."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from vlayer import __version__
from vlayer.findings.models import ScanResult

SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"

_SEVERITY_MAP = {
    "critical": "error",
    "high": "error",
    "medium": "warning",
    "low": "note",
    "info": "note",
}

_SECURITY_SEVERITY = {
    "critical": "9.5",
    "high": "7.5",
    "medium": "5.0",
    "low": "2.0",
    "info": "0.0",
}


def to_dict(result: ScanResult) -> Dict[str, Any]:
    """Convert the active findings of a ScanResult to a SARIF v2.1.0 dict."""
    rules: List[Dict[str, Any]] = []
    seen_rules: set[str] = set()
    results: List[Dict[str, Any]] = []

    for f in result.active_findings:
        level = _SEVERITY_MAP.get(f.severity, "warning")
        if f.id not in seen_rules:
            seen_rules.add(f.id)
            rules.append({
                "id": f.id,
                "name": f.title,
                "shortDescription": {"text": f.title},
                "fullDescription": {"text": f.description},
                "help": {"text": f.recommendation},
                "defaultConfiguration": {"level": level},
                "properties": {
                    "category": f.category,
                    "security-severity": _SECURITY_SEVERITY.get(f.severity, "5.0"),
                    **({"regulatoryReference": f.regulatory_reference} if f.regulatory_reference else {}),
                },
            })

        region: Dict[str, Any] = {"startLine": max(f.line or 1, 1)}
        if f.column:
            region["startColumn"] = f.column
        results.append({
            "ruleId": f.id,
            "level": level,
            "message": {"text": f"{f.title}: {f.recommendation}" if f.recommendation else f.title},
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {"uri": f.file},
                        "region": region,
                    }
                }
            ],
            "properties": {
                "confidence": f.confidence,
                "source": f.source,
                "acknowledged": f.acknowledged,
                **({"regulatoryReference": f.regulatory_reference} if f.regulatory_reference else {}),
            },
        })

    return {
        "$schema": SARIF_SCHEMA,
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "vlayer",
                        "version": __version__,
                        "rules": rules,
                    }
                },
                "results": results,
            }
        ],
    }


def render(result: ScanResult) -> str:
    """Return SARIF JSON string."""
    return json.dumps(to_dict(result), indent=2)
