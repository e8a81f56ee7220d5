"""Tests for the CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vlayer import __version__
from vlayer.cli import app

runner = CliRunner()

PASSWORD_FILE = {"src/db.ts": 'const password = "supersecret123";\nexport default password;\n'}

VALID_RULES = """\
version: "1.0"
rules:
  - id: no-debug-phi
    name: Debug output of patient records
    description: Patient records must not be dumped to debug output
    category: phi-exposure
    severity: medium
    pattern: "debug\\\\(patient"
    recommendation: Remove the debug call
"""

INVALID_RULES = """\
version: "1.0"
rules:
  - id: no-debug-phi
    name: Debug output of patient records
    description: Patient records must not be dumped to debug output
    category: phi-exposure
    severity: urgent
    pattern: "debug\\\\(patient"
    recommendation: Remove the debug call
"""


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    names = ("VLAYER_FORMAT", "VLAYER_CATEGORIES", "VLAYER_EXCLUDE", "VLAYER_MIN_CONFIDENCE",
             "ANTHROPIC_API_KEY", "VLAYER_AI_KEY")
    for name in names:
        monkeypatch.delenv(name, raising=False)


def _json_scan(root: Path, report: Path, *extra: str):
    result = runner.invoke(app, ["scan", str(root), "--format", "json", "--output", str(report), *extra])
    data = json.loads(report.read_text()) if report.exists() else None
    return result, data


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"vlayer {__version__}" in result.output


class TestInit:
    def test_creates_config(self, tmp_path: Path):
        result = runner.invoke(app, ["init", str(tmp_path)])
        assert result.exit_code == 0
        text = (tmp_path / ".vlayer.toml").read_text()
        assert "[scan]" in text

    def test_refuses_overwrite(self, tmp_path: Path):
        (tmp_path / ".vlayer.toml").write_text("existing")
        result = runner.invoke(app, ["init", str(tmp_path)])
        assert result.exit_code == 1
        assert (tmp_path / ".vlayer.toml").read_text() == "existing"

    def test_force(self, tmp_path: Path):
        (tmp_path / ".vlayer.toml").write_text("existing")
        result = runner.invoke(app, ["init", str(tmp_path), "--force"])
        assert result.exit_code == 0
        assert (tmp_path / ".vlayer.toml").read_text() != "existing"


class TestScan:
    def test_json_report(self, write_project, tmp_path):
        root = write_project(PASSWORD_FILE)
        result, data = _json_scan(root, tmp_path / "report.json")
        assert result.exit_code == 0
        assert data["summary"]["critical"] >= 1
        assert any(f["id"] == "CRED-002" and f["file"] == "src/db.ts" for f in data["findings"])

    def test_sarif_report(self, write_project, tmp_path):
        root = write_project(PASSWORD_FILE)
        report = tmp_path / "report.sarif"
        result = runner.invoke(app, ["scan", str(root), "--format", "sarif", "--output", str(report)])
        assert result.exit_code == 0
        data = json.loads(report.read_text())
        assert data["version"] == "2.1.0"
        assert "CRED-002" in [r["ruleId"] for r in data["runs"][0]["results"]]

    def test_terminal_run_writes_json_file(self, write_project, tmp_path):
        root = write_project(PASSWORD_FILE)
        report = tmp_path / "report.json"
        result = runner.invoke(app, ["scan", str(root), "--output", str(report)])
        assert result.exit_code == 0
        assert "summary" in json.loads(report.read_text())

    def test_fail_under(self, write_project, tmp_path):
        root = write_project({**PASSWORD_FILE, ".vlayer.toml": "[scoring]\nfail_under = 100\n"})
        result, data = _json_scan(root, tmp_path / "report.json")
        assert result.exit_code == 1
        assert data["summary"]["score"] < 100

    def test_baseline_hides_known_findings(self, write_project, tmp_path):
        root = write_project(PASSWORD_FILE)
        baseline_file = tmp_path / "baseline.json"
        result = runner.invoke(app, ["baseline", str(root), "--output", str(baseline_file)])
        assert result.exit_code == 0
        assert baseline_file.exists()

        result, data = _json_scan(root, tmp_path / "report.json", "--baseline", str(baseline_file))
        assert result.exit_code == 0
        assert data["summary"]["active"] == 0
        assert data["summary"]["baseline"] == data["summary"]["total"]

    @pytest.mark.parametrize(
        "args",
        [
            ["--format", "invalid"],
            ["--min-confidence", "certain"],
            ["--category", "billing"],
        ],
    )
    def test_bad_flags_exit_2(self, write_project, args):
        root = write_project(PASSWORD_FILE)
        result = runner.invoke(app, ["scan", str(root), *args])
        assert result.exit_code == 2

    def test_missing_path_exit_2(self, tmp_path):
        result = runner.invoke(app, ["scan", str(tmp_path / "nope")])
        assert result.exit_code == 2

    def test_missing_config_exit_2(self, write_project, tmp_path):
        root = write_project(PASSWORD_FILE)
        result = runner.invoke(app, ["scan", str(root), "--config", str(tmp_path / "missing.toml")])
        assert result.exit_code == 2

    def test_ai_without_key_exit_2(self, write_project):
        root = write_project(PASSWORD_FILE)
        result = runner.invoke(app, ["scan", str(root), "--ai"])
        assert result.exit_code == 2


class TestRulesValidate:
    def test_valid_file(self, tmp_path):
        path = tmp_path / "vlayer-rules.yaml"
        path.write_text(VALID_RULES)
        result = runner.invoke(app, ["rules", "validate", str(path)])
        assert result.exit_code == 0

    def test_invalid_rule(self, tmp_path):
        path = tmp_path / "vlayer-rules.yaml"
        path.write_text(INVALID_RULES)
        result = runner.invoke(app, ["rules", "validate", str(path)])
        assert result.exit_code == 1
        assert "no-debug-phi" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["rules", "validate", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2


class TestAudit:
    def test_no_trail(self, tmp_path):
        result = runner.invoke(app, ["audit", str(tmp_path)])
        assert result.exit_code == 0
        assert "No audit trail" in result.output

    def test_after_fix_run(self, write_project, tmp_path):
        root = write_project(PASSWORD_FILE)
        result, data = _json_scan(root, tmp_path / "report.json", "--fix")
        assert result.exit_code == 0
        assert data["fixReport"]["fixedCount"] >= 1
        assert "process.env.PASSWORD" in (root / "src" / "db.ts").read_text()

        result = runner.invoke(app, ["audit", str(root)])
        assert result.exit_code == 0
        assert "Evidence matches the report hash" in result.output

    def test_tampered_trail(self, write_project, tmp_path):
        root = write_project(PASSWORD_FILE)
        _json_scan(root, tmp_path / "report.json", "--fix")
        trail_path = root / ".vlayer" / "audit-trail.json"
        data = json.loads(trail_path.read_text())
        data["reportHash"] = "0" * 64
        trail_path.write_text(json.dumps(data))

        result = runner.invoke(app, ["audit", str(root)])
        assert result.exit_code == 1
