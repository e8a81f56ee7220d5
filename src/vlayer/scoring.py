"""Compliance scoring: severity-weighted penalties, grade, and status."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from vlayer.findings.models import Finding

SEVERITY_PENALTIES: Dict[str, int] = {
    "critical": 10,
    "high": 5,
    "medium": 2,
    "low": 1,
    "info": 0,
}

# An acknowledgment in force keeps 75% of the finding's penalty.
ACKNOWLEDGED_MULTIPLIER = 0.75

GRADE_THRESHOLDS = (("A", 90), ("B", 80), ("C", 70), ("D", 60))


@dataclass(frozen=True)
class ThresholdProfile:
    """Score bands for one consuming surface: ``>= upper``, ``>= lower``, else."""

    name: str
    upper: int
    lower: int
    labels: tuple[str, str, str]

    def status_for(self, score: float) -> str:
        if score >= self.upper:
            return self.labels[0]
        if score >= self.lower:
            return self.labels[1]
        return self.labels[2]


DASHBOARD = ThresholdProfile("dashboard", 90, 70, ("compliant", "at-risk", "critical"))
REPORTER = ThresholdProfile("reporter", 80, 60, ("green", "yellow", "red"))

PROFILES: Dict[str, ThresholdProfile] = {p.name: p for p in (DASHBOARD, REPORTER)}


@dataclass
class ComplianceScore:
    score: int
    grade: str
    status: str
    breakdown: Dict[str, int] = field(default_factory=dict)
    penalties: Dict[str, float] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "score": self.score,
            "grade": self.grade,
            "status": self.status,
            "breakdown": dict(self.breakdown),
            "penalties": dict(self.penalties),
            "recommendations": list(self.recommendations),
        }


def grade_for(score: float) -> str:
    for grade, threshold in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def finding_penalty(finding: Finding) -> float:
    base = SEVERITY_PENALTIES.get(finding.severity, 0)
    return base * ACKNOWLEDGED_MULTIPLIER if finding.ack_in_force else base


def _recommendations(breakdown: Dict[str, int], score: int) -> List[str]:
    recs: List[str] = []
    if breakdown["critical"]:
        recs.append(
            f"Address {breakdown['critical']} critical issue(s) immediately - these pose "
            "severe HIPAA compliance risks"
        )
    if breakdown["high"]:
        recs.append(f"Resolve {breakdown['high']} high severity issue(s) as soon as possible")
    if breakdown["medium"] > 10:
        recs.append(
            f"Review and remediate {breakdown['medium']} medium severity findings to improve "
            "compliance posture"
        )
    if breakdown["acknowledged"]:
        recs.append(
            f"{breakdown['acknowledged']} finding(s) are acknowledged but should still be "
            "addressed when possible"
        )
    if score < 70:
        recs.append(
            "Your compliance score is below acceptable levels. Consider a comprehensive "
            "security audit"
        )
    if score >= 90 and breakdown["total"] == 0:
        recs.append("Excellent! No active compliance issues found. Maintain regular scanning.")
    elif score >= 90:
        recs.append(
            "Great compliance posture! Continue monitoring and maintaining best practices."
        )
    if not recs:
        recs.append("Continue regular scanning to maintain HIPAA compliance")
    return recs


def calculate_score(
    findings: Iterable[Finding], profile: ThresholdProfile = DASHBOARD
) -> ComplianceScore:
    """Score active findings. Baseline and suppressed findings never count."""
    breakdown = {"total": 0, "critical": 0, "high": 0, "medium": 0, "low": 0, "info": 0, "acknowledged": 0}
    penalties: Dict[str, float] = {sev: 0.0 for sev in SEVERITY_PENALTIES}

    for finding in findings:
        if not finding.is_active:
            continue
        breakdown["total"] += 1
        if finding.severity in SEVERITY_PENALTIES:
            breakdown[finding.severity] += 1
        if finding.ack_in_force:
            breakdown["acknowledged"] += 1
        if finding.severity in penalties:
            penalties[finding.severity] += finding_penalty(finding)

    penalties["total"] = sum(penalties.values())
    # halves round up: 92.5 -> 93
    score = int(math.floor(max(0.0, 100 - penalties["total"]) + 0.5))
    return ComplianceScore(
        score=score,
        grade=grade_for(score),
        status=profile.status_for(score),
        breakdown=breakdown,
        penalties=penalties,
        recommendations=_recommendations(breakdown, score),
    )


def format_score(score: ComplianceScore) -> str:
    return f"{score.score}/100 ({score.grade}) - {score.status.upper()}"


def get_score_summary(score: ComplianceScore) -> str:
    b, p = score.breakdown, score.penalties
    lines = [
        f"HIPAA Compliance Score: {score.score}/100 (Grade {score.grade})",
        f"Status: {score.status.upper()}",
        "",
        "Findings Breakdown:",
        f"  Critical: {b['critical']}",
        f"  High: {b['high']}",
        f"  Medium: {b['medium']}",
        f"  Low: {b['low']}",
        f"  Total Active: {b['total']}",
    ]
    if b["acknowledged"]:
        lines.append(f"  Acknowledged: {b['acknowledged']}")
    lines += [
        "",
        "Penalty Points:",
        f"  Critical: -{p['critical']:g}",
        f"  High: -{p['high']:g}",
        f"  Medium: -{p['medium']:g}",
        f"  Low: -{p['low']:g}",
        f"  Total: -{p['total']:g}",
    ]
    return "\n".join(lines) + "\n"
