"""Tests for automatic fixes and the audit trail they leave behind."""

import dataclasses
import hashlib
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from vlayer.audit.evidence import create_evidence, extract_code_snapshot, hash_content
from vlayer.audit.trail import (
    AuditTrailBuilder,
    AuditTrailError,
    create_manual_review,
    get_audit_summary,
    load_audit_trail,
    save_audit_trail,
    update_manual_review_status,
    verify_audit_trail,
)
from vlayer.fixer.apply import apply_fixes, group_by_file
from vlayer.fixer.strategies import (
    apply_custom_fix,
    apply_fix_strategy,
    import_insert_index,
    needs_os_import,
    to_env_name,
)
from vlayer.rules.compiler import compile_rule

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def _custom_rule(pattern, fix, **overrides):
    data = {
        "id": "team-rule",
        "name": "Team rule",
        "description": "Team convention",
        "category": "phi-exposure",
        "severity": "medium",
        "pattern": pattern,
        "recommendation": "Follow the convention",
        "fix": fix,
    }
    data.update(overrides)
    return compile_rule(data)


# ---- strategies ----


class TestEnvNames:
    @pytest.mark.parametrize(
        "name, env",
        [("dbPassword", "DB_PASSWORD"), ("db-password", "DB_PASSWORD"), ("apiKey", "API_KEY"), ("SECRET", "SECRET")],
    )
    def test_to_env_name(self, name, env):
        assert to_env_name(name) == env


class TestStrategies:
    @pytest.mark.parametrize(
        "line, fix_type, file_path, expected",
        [
            (
                'const dbPassword = "hunter2hunter2";',
                "hardcoded-password", "src/db.ts",
                "const dbPassword = process.env.DB_PASSWORD;",
            ),
            (
                "  password: 'hunter2hunter2',",
                "hardcoded-password", "src/db.ts",
                "  password: process.env.PASSWORD,",
            ),
            (
                'DB_PASSWORD = "hunter2hunter2"',
                "hardcoded-password", "app/settings.py",
                'DB_PASSWORD = os.environ["DB_PASSWORD"]',
            ),
            (
                'const apiKey = "sk_live_abc123456";',
                "api-key-exposed", "src/client.ts",
                "const apiKey = process.env.API_KEY;",
            ),
            (
                "const clientSecret = 'abcdefgh1234';",
                "hardcoded-secret", "src/oauth.ts",
                "const clientSecret = process.env.CLIENT_SECRET;",
            ),
            (
                "    console.log('Patient data:', patient);",
                "phi-console-log", "src/a.ts",
                "    // [VLAYER] PHI logging removed - review needed: console.log('Patient data:', patient);",
            ),
            (
                "fetch('http://api.clinic.org/patients')",
                "http-url", "src/a.ts",
                "fetch('https://api.clinic.org/patients')",
            ),
            (
                "el.innerHTML = userInput;",
                "innerhtml-unsanitized", "src/a.ts",
                "el.textContent = userInput;",
            ),
            (
                "const rows = await db.query(`SELECT * FROM patients WHERE id = '${req.params.id}'`);",
                "sql-injection-template", "src/a.ts",
                "const rows = await db.query('SELECT * FROM patients WHERE id = ?', [req.params.id]);",
            ),
            (
                "const rows = await db.query(\"SELECT * FROM patients WHERE id = '\" + id + \"'\");",
                "sql-injection-concat", "src/a.ts",
                "const rows = await db.query('SELECT * FROM patients WHERE id = ?', [id]);",
            ),
            (
                "backup: { schedule: 'daily', encrypt: false }",
                "backup-unencrypted", "config/backup.ts",
                "backup: { schedule: 'daily', encrypt: true }",
            ),
            (
                "backup_encrypt = False",
                "backup-unencrypted", "ops/backup.py",
                "backup_encrypt = True",
            ),
        ],
    )
    def test_rewrites(self, line, fix_type, file_path, expected):
        assert apply_fix_strategy(line, fix_type, file_path=file_path) == expected

    @pytest.mark.parametrize(
        "line, fix_type",
        [
            ("const x = 1;", "hardcoded-password"),
            ("fetch('http://localhost:3000')", "http-url"),
            ("logger.info(patient.id)", "phi-console-log"),
            ("db.query(`SELECT 1`)", "sql-injection-template"),
            ("db.query(a + b + c)", "sql-injection-concat"),
            ("backup: { mode: 'full' }", "backup-unencrypted"),
            ("anything", "no-such-fix"),
        ],
    )
    def test_wrong_shape_returns_none(self, line, fix_type):
        assert apply_fix_strategy(line, fix_type) is None

    @pytest.mark.parametrize(
        "lines, expected",
        [
            (['"""Doc."""', "", 'X = os.environ["X"]'], True),
            (["import sys, os", 'X = os.environ["X"]'], False),
            (["import os.path", 'X = os.environ["X"]'], False),
            (["import os as system", 'X = os.environ["X"]'], True),
            (["X = 1"], False),
        ],
    )
    def test_needs_os_import(self, lines, expected):
        assert needs_os_import(lines) is expected

    @pytest.mark.parametrize(
        "lines, expected",
        [
            (["X = 1"], 0),
            (["#!/usr/bin/env python", "X = 1"], 1),
            (['"""One line."""', "", "X = 1"], 1),
            (['"""', "Long docstring.", '"""', "X = 1"], 3),
            (['"""Doc."""', "", "from __future__ import annotations", "", "X = 1"], 3),
        ],
    )
    def test_import_insert_index(self, lines, expected):
        assert import_insert_index(lines) == expected


class TestCustomFixes:
    def test_replace_with_group_reference(self):
        rule = _custom_rule(r"console\.log\((.*)\)", {"type": "replace", "replacement": "auditLog($1)"})
        assert apply_custom_fix("console.log(patient)", rule) == "auditLog(patient)"

    def test_remove_keeps_empty_line(self):
        rule = _custom_rule(r"debugger;?", {"type": "remove"})
        assert apply_custom_fix("  debugger;", rule) == ""
        assert apply_custom_fix("x(); debugger;", rule) == "x(); "

    def test_wrap(self):
        rule = _custom_rule(
            r"patient\.ssn", {"type": "wrap", "wrapper": {"before": "redact(", "after": ")"}}
        )
        assert apply_custom_fix("log(patient.ssn)", rule) == "log(redact(patient.ssn))"

    def test_no_match(self):
        rule = _custom_rule(r"debugger", {"type": "remove"})
        assert apply_custom_fix("const x = 1;", rule) is None

    def test_dispatch_by_fix_type(self):
        rule = _custom_rule(r"debugger;?", {"type": "remove"})
        assert apply_fix_strategy("debugger;", rule.fix_type, rules=[rule]) == ""
        assert apply_fix_strategy("debugger;", "custom-other-rule", rules=[rule]) is None
        assert apply_fix_strategy("debugger;", rule.fix_type) is None


# ---- applying fixes ----


SOURCE = """\
import { db } from './db';

const password = "supersecret123";
export async function show(patient) {
  console.log('Patient data:', patient);
  return fetch('http://records.clinic.org/' + patient.id);
}
"""

PY_SETTINGS = '''\
"""Settings."""

DB_PASSWORD = "hunter2hunter2"
DEBUG = True

ADMIN_PASSWORD = "letmein12345"
'''


class TestApplyFixes:
    def _project(self, tmp_path: Path) -> Path:
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "app.ts").write_text(SOURCE, encoding="utf-8")
        return tmp_path

    def test_group_by_file_orders_bottom_up(self, make_finding):
        findings = [
            make_finding(line=5, fix_type="http-url"),
            make_finding(line=10, fix_type="http-url"),
            make_finding(line=7, fix_type=None),
            make_finding(file="src/b.ts", line=1, fix_type="http-url"),
        ]
        groups = group_by_file(findings)
        assert [f.line for f in groups["src/db.ts"]] == [10, 5]
        assert list(groups) == ["src/db.ts", "src/b.ts"]

    def test_fixes_and_evidence(self, tmp_path, make_finding):
        root = self._project(tmp_path)
        findings = [
            make_finding(file="src/app.ts", line=3, fix_type="hardcoded-password"),
            make_finding(id="ERROR-002", file="src/app.ts", line=5, fix_type="phi-console-log"),
            make_finding(id="enc-missing-http", file="src/app.ts", line=6, fix_type="http-url"),
        ]
        report = apply_fixes(findings, root)

        text = (root / "src" / "app.ts").read_text()
        assert 'const password = process.env.PASSWORD;' in text
        assert "// [VLAYER] PHI logging removed" in text
        assert "https://records.clinic.org/" in text
        assert len(text.split("\n")) == len(SOURCE.split("\n"))

        assert report.fixed_count == 3
        assert report.skipped_count == 0
        trail = report.audit_trail
        assert len(trail.evidence) == 3
        assert trail.manual_reviews == []
        assert verify_audit_trail(trail)
        # bottom-up: the last line is fixed first
        assert [e.finding_id for e in trail.evidence] == ["enc-missing-http", "ERROR-002", "CRED-002"]
        assert report.audit_trail_path == root / ".vlayer" / "audit-trail.json"
        assert report.to_dict()["reportHash"] == trail.report_hash

    def test_unfixable_findings_go_to_manual_review(self, tmp_path, make_finding):
        root = self._project(tmp_path)
        findings = [
            make_finding(file="src/app.ts", line=1, fix_type="http-url"),  # wrong shape
            make_finding(id="RBAC-001", file="src/app.ts", line=4, fix_type=None, severity="high"),
            make_finding(file="src/missing.ts", line=1, fix_type="hardcoded-password"),
            make_finding(file="src/app.ts", line=99, fix_type="http-url"),
        ]
        report = apply_fixes(findings, root, save_trail=False)

        assert report.fixed_count == 0
        assert report.skipped_count == 4
        assert report.audit_trail.manual_review_count == 4
        assert report.audit_trail_path is None
        assert (root / "src" / "app.ts").read_text() == SOURCE
        assert not (root / ".vlayer").exists()

    def test_custom_rule_fix(self, tmp_path, make_finding):
        root = self._project(tmp_path)
        rule = _custom_rule(r"console\.log", {"type": "replace", "replacement": "auditLog"})
        finding = make_finding(id="custom-team-rule", file="src/app.ts", line=5, fix_type=rule.fix_type)
        report = apply_fixes([finding], root, rules=[rule], save_trail=False)
        assert report.fixed_count == 1
        assert "auditLog('Patient data:', patient);" in (root / "src" / "app.ts").read_text()

    def test_crlf_endings_survive_and_hashes_match_bytes(self, tmp_path, make_finding):
        raw = b'const a = 1;\r\nconst password = "supersecret123";\r\nconst b = 2;\r\n'
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "app.ts").write_bytes(raw)
        finding = make_finding(file="src/app.ts", line=2, fix_type="hardcoded-password")
        report = apply_fixes([finding], tmp_path, save_trail=False)

        data = (tmp_path / "src" / "app.ts").read_bytes()
        assert data == b"const a = 1;\r\nconst password = process.env.PASSWORD;\r\nconst b = 2;\r\n"
        assert data.count(b"\r\n") == 3
        evidence = report.audit_trail.evidence[0]
        assert evidence.file_hash_before == hashlib.sha256(raw).hexdigest()
        assert evidence.file_hash_after == hashlib.sha256(data).hexdigest()
        assert evidence.after.content == "const password = process.env.PASSWORD;"

    def test_trail_records_scan_stats(self, tmp_path, make_finding):
        root = self._project(tmp_path)
        finding = make_finding(file="src/app.ts", line=3, fix_type="hardcoded-password")
        report = apply_fixes([finding], root, save_trail=False, scanned_files=7, scan_duration=12.5)
        assert report.audit_trail.scanned_files == 7
        assert report.audit_trail.scan_duration == 12.5
        assert report.audit_trail.total_findings == 1

    def test_python_fixes_add_os_import_once(self, tmp_path, make_finding):
        (tmp_path / "app").mkdir()
        path = tmp_path / "app" / "settings.py"
        path.write_text(PY_SETTINGS, encoding="utf-8")
        findings = [
            make_finding(file="app/settings.py", line=3, fix_type="hardcoded-password"),
            make_finding(file="app/settings.py", line=6, fix_type="hardcoded-password"),
        ]
        report = apply_fixes(findings, tmp_path, save_trail=False)

        assert report.fixed_count == 2
        assert path.read_text(encoding="utf-8") == (
            '"""Settings."""\n'
            "import os\n"
            "\n"
            'DB_PASSWORD = os.environ["DB_PASSWORD"]\n'
            "DEBUG = True\n"
            "\n"
            'ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]\n'
        )
        first, second = report.audit_trail.evidence
        # each entry picks up where the previous fix left the file
        assert first.file_hash_before == hash_content(PY_SETTINGS)
        assert first.file_hash_after == second.file_hash_before
        assert second.file_hash_after == hashlib.sha256(path.read_bytes()).hexdigest()
        assert (second.after.line_number, second.after.content) == (4, 'DB_PASSWORD = os.environ["DB_PASSWORD"]')

    def test_existing_os_import_is_reused(self, tmp_path, make_finding):
        (tmp_path / "app").mkdir()
        path = tmp_path / "app" / "settings.py"
        path.write_text('import os\nimport sys\n\nPASSWORD = "hunter2hunter2"\n', encoding="utf-8")
        finding = make_finding(file="app/settings.py", line=4, fix_type="hardcoded-password")
        apply_fixes([finding], tmp_path, save_trail=False)
        text = path.read_text(encoding="utf-8")
        assert text.count("import os") == 1
        assert 'PASSWORD = os.environ["PASSWORD"]' in text


# ---- evidence and trail ----


class TestEvidence:
    def test_snapshot_clamped(self):
        snap = extract_code_snapshot(["a", "b"], 0, context=3)
        assert snap.content == "a"
        assert snap.line_number == 1
        assert [(c.line_number, c.is_match) for c in snap.context] == [(1, True), (2, False)]

    def test_create_evidence(self, make_finding):
        before = "a\nconst password = \"x\";\nb"
        after = "a\nconst password = process.env.PASSWORD;\nb"
        evidence = create_evidence(make_finding(regulatory_reference=None), "src/db.ts", before, after, 1, "hardcoded-password")
        assert evidence.file_hash_before == hash_content(before)
        assert evidence.file_hash_after == hash_content(after)
        assert evidence.before.content == 'const password = "x";'
        assert evidence.after.line_number == 2
        assert evidence.regulatory_reference == "General HIPAA Security Rule"
        assert evidence.description == "Auto-fixed: Hardcoded Credentials Detected"


def _evidence(make_finding, n):
    return create_evidence(make_finding(line=n), "src/db.ts", f"v{n}", f"v{n + 1}", 0, "hardcoded-password")


class TestAuditTrail:
    def test_finalize_seals(self, tmp_path, make_finding):
        builder = AuditTrailBuilder(tmp_path)
        builder.add_evidence(_evidence(make_finding, 1))
        trail = builder.finalize()
        assert builder.finalized
        assert trail.auto_fixed_count == 1
        with pytest.raises(AuditTrailError):
            builder.add_evidence(_evidence(make_finding, 2))
        with pytest.raises(AuditTrailError):
            builder.finalize()

    def test_verify_detects_tampering(self, tmp_path, make_finding):
        builder = AuditTrailBuilder(tmp_path)
        builder.add_evidence(_evidence(make_finding, 1))
        builder.add_evidence(_evidence(make_finding, 2))
        trail = builder.finalize()
        assert verify_audit_trail(trail)

        trail.evidence[0] = dataclasses.replace(trail.evidence[0], file_hash_after="0" * 64)
        assert not verify_audit_trail(trail)

    def test_hash_is_order_sensitive(self, tmp_path, make_finding):
        builder = AuditTrailBuilder(tmp_path)
        builder.add_evidence(_evidence(make_finding, 1))
        builder.add_evidence(_evidence(make_finding, 2))
        trail = builder.finalize()
        trail.evidence.reverse()
        assert not verify_audit_trail(trail)

    def test_save_and_load(self, tmp_path, make_finding):
        builder = AuditTrailBuilder(tmp_path)
        builder.add_evidence(_evidence(make_finding, 1))
        builder.add_manual_review(make_finding(severity="high"))
        trail = builder.finalize()

        path = save_audit_trail(trail, tmp_path)
        assert path == tmp_path / ".vlayer" / "audit-trail.json"
        loaded = load_audit_trail(tmp_path)
        assert loaded.to_dict() == trail.to_dict()
        assert verify_audit_trail(loaded)

    def test_load_missing_or_corrupt(self, tmp_path):
        assert load_audit_trail(tmp_path) is None
        (tmp_path / ".vlayer").mkdir()
        (tmp_path / ".vlayer" / "audit-trail.json").write_text("{not json")
        assert load_audit_trail(tmp_path) is None


class TestManualReview:
    @pytest.mark.parametrize(
        "severity, days",
        [("critical", 7), ("high", 14), ("medium", 30), ("low", 60), ("info", 60)],
    )
    def test_deadlines(self, make_finding, severity, days):
        review = create_manual_review(make_finding(severity=severity), NOW)
        assert review.status == "pending_review"
        assert review.suggested_deadline == (NOW + timedelta(days=days)).isoformat()
        assert review.finding["severity"] == severity

    def test_update_status(self, tmp_path, make_finding):
        builder = AuditTrailBuilder(tmp_path)
        review = builder.add_manual_review(make_finding())
        trail = builder.finalize()

        assert update_manual_review_status(trail, review.id, "assigned", assigned_to="dana", notes="this sprint")
        assert trail.manual_reviews[0].status == "assigned"
        assert trail.manual_reviews[0].assigned_to == "dana"
        assert trail.manual_reviews[0].to_dict()["notes"] == "this sprint"
        assert update_manual_review_status(trail, "unknown-id", "resolved") is False
        with pytest.raises(ValueError):
            update_manual_review_status(trail, review.id, "done")

    def test_summary(self, tmp_path, make_finding):
        builder = AuditTrailBuilder(tmp_path)
        builder.add_evidence(_evidence(make_finding, 1))
        builder.add_manual_review(make_finding(severity="critical"))
        second = builder.add_manual_review(make_finding(severity="low"))
        builder.update_scan_stats(total_findings=3)
        trail = builder.finalize()
        update_manual_review_status(trail, second.id, "accepted_risk")

        summary = get_audit_summary(trail, now=datetime.now(timezone.utc) + timedelta(days=10))
        assert summary["totalFindings"] == 3
        assert summary["autoFixed"] == 1
        assert summary["pendingManualReview"] == 2
        assert summary["reviewsByStatus"] == {"pending_review": 1, "accepted_risk": 1}
        assert summary["reviewsBySeverity"] == {"critical": 1, "low": 1}
        # only the pending critical review is past its 7-day deadline
        assert summary["overdueCount"] == 1
