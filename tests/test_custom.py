"""Tests for the custom YAML rule scanner."""

import pytest

from vlayer.rules.compiler import compile_rule
from vlayer.scanner.base import ScanContext
from vlayer.scanner.custom import CustomRuleScanner, glob_match, matches_file_filters


def _rule(**overrides):
    data = {
        "id": "insecure-fetch",
        "name": "Plain fetch to PHI service",
        "description": "PHI services must be called over TLS",
        "category": "encryption",
        "severity": "high",
        "pattern": r"fetch\(",
        "recommendation": "Use the https client",
    }
    data.update(overrides)
    return compile_rule(data, source="vlayer-rules.yaml")


class TestGlobMatch:
    @pytest.mark.parametrize(
        "path, pattern, expected",
        [
            ("src/api/a.ts", "**/*.ts", True),
            ("a.ts", "**/*.ts", True),
            ("src/a.js", "**/*.ts", False),
            ("test/a.ts", "test/**", True),
            ("src/legacy/old.ts", "**/legacy/**", True),
            ("src/a.ts", "lib/*", False),
        ],
    )
    def test_patterns(self, path, pattern, expected):
        assert glob_match(path, pattern) is expected

    def test_include_and_exclude(self):
        rule = _rule(include=["src/**"], exclude=["**/*.test.ts"])
        assert matches_file_filters("src/api.ts", rule)
        assert not matches_file_filters("src/api.test.ts", rule)
        assert not matches_file_filters("scripts/api.ts", rule)

    def test_no_filters_match_everything(self):
        assert matches_file_filters("anything/at/all.md", _rule())


class TestCustomRuleScanner:
    def _scan(self, write_project, files, rules):
        root = write_project(files)
        paths = sorted(p for p in root.rglob("*") if p.is_file())
        context = ScanContext(base_path=root, all_files=paths)
        return CustomRuleScanner(rules).scan(paths, context)

    def test_reports_each_matching_line(self, write_project):
        findings = self._scan(
            write_project,
            {"src/api.ts": "fetch('http://ehr.local/p')\nconst x = 1;\nfetch(url)\n"},
            [_rule()],
        )
        assert [(f.id, f.line) for f in findings] == [
            ("custom-insecure-fetch", 1),
            ("custom-insecure-fetch", 3),
        ]
        first = findings[0]
        assert first.source == "custom"
        assert first.confidence == "high"
        assert first.file == "src/api.ts"
        assert first.column == 1
        assert first.context_lines

    def test_must_not_contain_checked_per_line(self, write_project):
        rule = _rule(mustNotContain=r"https://")
        findings = self._scan(
            write_project,
            {"src/api.ts": "fetch('https://ehr.org/p')\nfetch('http://ehr.org/p')\n"},
            [rule],
        )
        assert [f.line for f in findings] == [2]

    def test_file_filters(self, write_project):
        rule = _rule(include=["**/*.ts"], exclude=["**/vendor/**"])
        findings = self._scan(
            write_project,
            {
                "src/api.ts": "fetch(a)\n",
                "src/api.js": "fetch(a)\n",
                "src/vendor/lib.ts": "fetch(a)\n",
            },
            [rule],
        )
        assert [f.file for f in findings] == ["src/api.ts"]

    def test_case_sensitive_flags(self, write_project):
        rule = _rule(pattern="TODO-PHI", flags="g")
        findings = self._scan(write_project, {"a.ts": "// todo-phi\n// TODO-PHI\n"}, [rule])
        assert [f.line for f in findings] == [2]

    def test_fix_type_and_reference(self, write_project):
        rule = _rule(fix={"type": "replace", "replacement": "secureFetch("}, regulatoryReference="§164.312(e)(1)")
        findings = self._scan(write_project, {"a.ts": "fetch(a)\n"}, [rule])
        assert findings[0].fix_type == "custom-insecure-fetch"
        assert findings[0].regulatory_reference == "§164.312(e)(1)"

    def test_no_rules(self, write_project):
        assert self._scan(write_project, {"a.ts": "fetch(a)\n"}, []) == []
