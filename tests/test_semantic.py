"""Tests for semantic context classification of pattern matches."""

import pytest

from vlayer.scanner.semantic import (
    ContextRequest,
    SemanticAnalyzer,
    analyze_context,
    batch_analyze,
    is_test_file,
)

SSN = "123-45-6789"


class TestIsTestFile:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("src/patients.test.ts", True),
            ("src/patients.spec.jsx", True),
            ("src/__tests__/patients.ts", True),
            ("tests/fixtures/seed.ts", True),
            ("test/seed.js", True),
            ("app/test_models.py", True),
            ("src\\__tests__\\win.ts", True),
            ("src/patients.ts", False),
            ("src/contest/entry.ts", False),
            ("src/testing.ts", False),
        ],
    )
    def test_patterns(self, path, expected):
        assert is_test_file(path) is expected


class TestAnalyzeContext:
    def test_plain_code_is_high(self):
        result = analyze_context("src/a.ts", 1, "ssn", "const total = ssn + offset;\n")
        assert (result.confidence, result.context) == ("high", "code")
        assert result.in_test_file is False

    def test_string_literal_is_low(self):
        result = analyze_context("src/a.ts", 1, SSN, f'const ssn = "{SSN}";\n')
        assert (result.confidence, result.context) == ("low", "string")

    def test_template_string_is_medium(self):
        content = "const msg = `SSN ${ssn} sample " + SSN + "`;\n"
        result = analyze_context("src/a.js", 1, SSN, content)
        assert (result.confidence, result.context) == ("medium", "template")

    def test_template_substitution_is_code(self):
        content = "const msg = `Patient record ${patient.ssn} loaded`;\n"
        result = analyze_context("src/a.ts", 1, "patient.ssn", content)
        assert (result.confidence, result.context) == ("high", "code")

    def test_string_inside_template_substitution(self):
        content = "const msg = `Record ${lookup('" + SSN + "')}`;\n"
        result = analyze_context("src/a.ts", 1, SSN, content)
        assert (result.confidence, result.context) == ("low", "string")

    def test_line_comment(self):
        result = analyze_context("src/a.ts", 1, SSN, f"// fixture {SSN}\n")
        assert (result.confidence, result.context) == ("low", "comment")

    def test_inside_block_comment(self):
        content = f"/*\n  sample {SSN}\n*/\nconst x = 1;\n"
        result = analyze_context("src/a.ts", 2, SSN, content)
        assert (result.confidence, result.context) == ("low", "comment")

    def test_jsx_text(self):
        content = f"export const Row = () => <p>{SSN}</p>;\n"
        result = analyze_context("src/Row.tsx", 1, SSN, content)
        assert (result.confidence, result.context) == ("low", "string")

    def test_pattern_outside_string_on_same_line(self):
        # the literal does not hold the pattern, so the line counts as code
        content = 'const label = "id"; const ssn = raw;\n'
        result = analyze_context("src/a.ts", 1, "ssn = raw", content)
        assert result.confidence == "high"

    def test_test_file_capped(self):
        result = analyze_context("src/a.test.ts", 1, "ssn", "const total = ssn + offset;\n")
        assert result.confidence == "low"
        assert result.in_test_file is True

    def test_unparsed_language_is_medium(self):
        result = analyze_context("app/models.py", 1, SSN, f'SSN = "{SSN}"\n')
        assert (result.confidence, result.context) == ("medium", "code")

    @pytest.mark.parametrize("line", [0, 5])
    def test_line_out_of_range(self, line):
        result = analyze_context("src/a.ts", line, SSN, "const x = 1;\n")
        assert result.confidence == "medium"

    def test_syntax_error_uses_line_heuristics(self):
        content = f"const data = {{\n  '{SSN}'\n  value\n"
        assert analyze_context("src/a.ts", 2, SSN, content).context == "string"
        heuristic = analyze_context("src/a.ts", 3, "value", content)
        assert (heuristic.confidence, heuristic.context) == ("medium", "code")

    def test_missing_file_on_disk(self, tmp_path):
        result = analyze_context(str(tmp_path / "gone.ts"), 1, SSN)
        assert result.confidence == "medium"

    def test_reads_file_when_content_omitted(self, tmp_path):
        path = tmp_path / "seed.ts"
        path.write_text(f'const ssn = "{SSN}";\n')
        assert analyze_context(str(path), 1, SSN).context == "string"


class TestBatchAnalyze:
    def test_mixed_requests(self):
        results = batch_analyze([
            ContextRequest("src/a.ts", None),
            ContextRequest("src/a.test.ts", None),
            ContextRequest("src/a.ts", 1, SSN, f'const ssn = "{SSN}";\n'),
        ])
        assert [r.confidence for r in results] == ["medium", "low", "low"]

    def test_analyzer_reuses_trees(self):
        analyzer = SemanticAnalyzer()
        content = f'const ssn = "{SSN}";\nconst n = ssn.length;\n'
        assert analyzer.analyze_context("src/a.ts", 1, SSN, content).context == "string"
        assert analyzer.analyze_context("src/a.ts", 2, "ssn.length", content).context == "code"
