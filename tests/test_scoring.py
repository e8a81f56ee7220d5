"""Tests for compliance scoring, grades, and status profiles."""

import pytest

from vlayer.findings.models import AcknowledgmentInfo
from vlayer.scoring import (
    DASHBOARD,
    REPORTER,
    calculate_score,
    finding_penalty,
    format_score,
    get_score_summary,
    grade_for,
)


def _ack(expired=False):
    return AcknowledgmentInfo(
        reason="accepted", acknowledged_by="ops", acknowledged_at="2026-01-01", expired=expired
    )


class TestGrades:
    @pytest.mark.parametrize(
        "score, grade",
        [(100, "A"), (90, "A"), (89, "B"), (80, "B"), (79, "C"), (70, "C"), (69, "D"), (60, "D"), (59, "F"), (0, "F")],
    )
    def test_grade_for(self, score, grade):
        assert grade_for(score) == grade

    @pytest.mark.parametrize(
        "profile, score, status",
        [
            (DASHBOARD, 95, "compliant"),
            (DASHBOARD, 75, "at-risk"),
            (DASHBOARD, 50, "critical"),
            (REPORTER, 85, "green"),
            (REPORTER, 65, "yellow"),
            (REPORTER, 59, "red"),
        ],
    )
    def test_profiles(self, profile, score, status):
        assert profile.status_for(score) == status


class TestCalculateScore:
    def test_clean_project(self):
        score = calculate_score([])
        assert score.score == 100
        assert score.grade == "A"
        assert score.status == "compliant"
        assert "Excellent" in score.recommendations[-1]

    def test_severity_penalties(self, make_finding):
        findings = [
            make_finding(severity="critical", line=1),
            make_finding(severity="high", line=2),
            make_finding(severity="medium", line=3),
            make_finding(severity="low", line=4),
            make_finding(severity="info", line=5),
        ]
        score = calculate_score(findings)
        assert score.score == 100 - (10 + 5 + 2 + 1)
        assert score.breakdown["total"] == 5
        assert score.penalties["total"] == 18

    def test_floor_at_zero(self, make_finding):
        findings = [make_finding(severity="critical", line=i) for i in range(1, 20)]
        score = calculate_score(findings)
        assert score.score == 0
        assert score.grade == "F"
        assert score.status == "critical"

    def test_inactive_findings_ignored(self, make_finding):
        baseline = make_finding(line=1)
        baseline.is_baseline = True
        suppressed = make_finding(line=2)
        suppressed.suppressed = True
        assert calculate_score([baseline, suppressed]).score == 100

    def test_acknowledged_weight(self, make_finding):
        finding = make_finding(severity="critical")
        finding.acknowledged = True
        finding.acknowledgment = _ack()
        assert finding_penalty(finding) == 7.5
        score = calculate_score([finding])
        # 92.5 rounds half up
        assert score.score == 93
        assert score.breakdown["acknowledged"] == 1

    def test_expired_acknowledgment_full_weight(self, make_finding):
        finding = make_finding(severity="critical")
        finding.acknowledged = True
        finding.acknowledgment = _ack(expired=True)
        assert finding_penalty(finding) == 10
        assert calculate_score([finding]).score == 90

    def test_reporter_profile(self, make_finding):
        findings = [make_finding(severity="high", line=i) for i in range(1, 5)]
        assert calculate_score(findings, REPORTER).status == "green"
        assert calculate_score(findings, DASHBOARD).status == "at-risk"

    def test_recommendations(self, make_finding):
        score = calculate_score([make_finding(severity="critical"), make_finding(severity="high", line=8)])
        assert score.recommendations[0].startswith("Address 1 critical issue(s)")
        assert score.recommendations[1].startswith("Resolve 1 high severity issue(s)")


class TestFormatting:
    def test_format_score(self, make_finding):
        score = calculate_score([make_finding(severity="high")])
        assert format_score(score) == "95/100 (A) - COMPLIANT"

    def test_summary_text(self, make_finding):
        text = get_score_summary(calculate_score([make_finding(severity="medium")]))
        assert "HIPAA Compliance Score: 98/100 (Grade A)" in text
        assert "Medium: 1" in text
        assert "Total: -2" in text

    def test_to_dict(self):
        data = calculate_score([]).to_dict()
        assert set(data) == {"score", "grade", "status", "breakdown", "penalties", "recommendations"}
