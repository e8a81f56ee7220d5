"""Semantic context classification for pattern matches.

A regex hit inside a comment, a string literal or a test file is far less
likely to be a real violation than the same text in executable code. This
module parses TS/JS sources with tree-sitter and answers one question for a
given line: what kind of syntax does the match sit in?

Classification never raises. A file that cannot be read or parsed falls back
to line-text heuristics.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Literal, Optional, Tuple

import tree_sitter as ts
import tree_sitter_javascript as ts_js
import tree_sitter_typescript as ts_ts

from vlayer.config.schema import Confidence

logger = logging.getLogger(__name__)

ContextKind = Literal["code", "string", "comment", "template", "test"]

_TEST_FILE_PATTERNS = [
    re.compile(r"\.(?:test|spec)\.(?:ts|tsx|js|jsx)$"),
    re.compile(r"(?:^|/)__tests__/"),
    re.compile(r"(?:^|/)tests?/"),
    re.compile(r"(?:^|/)test_[^/]*\.py$"),
]

_COMMENT_PREFIXES = ("//", "/*", "*")

# file suffix -> tree-sitter grammar name
_GRAMMARS = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

_STRING_NODES = {"string"}
_TEMPLATE_NODES = {"template_string"}
_JSX_TEXT_NODES = {"jsx_text"}

_languages: Dict[str, ts.Language] = {}


@dataclass(frozen=True)
class SemanticContext:
    confidence: Confidence
    context: ContextKind
    in_test_file: bool


@dataclass(frozen=True)
class ContextRequest:
    """One entry for :meth:`SemanticAnalyzer.batch_analyze`."""

    file: str
    line: Optional[int]
    pattern: Optional[str] = None
    content: Optional[str] = None


def is_test_file(path: str) -> bool:
    posix = path.replace("\\", "/")
    return any(p.search(posix) for p in _TEST_FILE_PATTERNS)


def _get_language(name: str) -> ts.Language:
    if name not in _languages:
        if name == "javascript":
            _languages[name] = ts.Language(ts_js.language())
        elif name == "typescript":
            _languages[name] = ts.Language(ts_ts.language_typescript())
        else:
            _languages[name] = ts.Language(ts_ts.language_tsx())
    return _languages[name]


def _cap_for_tests(result: SemanticContext) -> SemanticContext:
    if result.in_test_file and result.confidence != "low":
        return SemanticContext("low", result.context, True)
    return result


def _heuristic(line: str, in_test: bool) -> SemanticContext:
    """Line-text fallback used when the tree is unavailable."""
    trimmed = line.strip()
    if trimmed.startswith(_COMMENT_PREFIXES):
        return SemanticContext("low", "comment", in_test)
    if re.search(r"['\"`]", trimmed):
        return SemanticContext("low", "string", in_test)
    return SemanticContext("low" if in_test else "medium", "code", in_test)


def _node_text(node: ts.Node) -> str:
    return (node.text or b"").decode("utf-8", errors="replace")


def _template_literal_text(node: ts.Node) -> str:
    """Text of a template string with every ${...} substitution cut out."""
    raw = node.text or b""
    parts = []
    pos = node.start_byte
    for child in node.children:
        if child.type == "template_substitution":
            parts.append(raw[pos - node.start_byte : child.start_byte - node.start_byte])
            pos = child.end_byte
    parts.append(raw[pos - node.start_byte :])
    return "\x00".join(p.decode("utf-8", errors="replace") for p in parts)


def _covers(node: ts.Node, row: int) -> bool:
    return node.start_point[0] <= row <= node.end_point[0]


def _classify_node(
    node: ts.Node, row: int, pattern: Optional[str]
) -> Optional[Tuple[Confidence, ContextKind]]:
    """Return (confidence, context) for the smallest non-code node covering *row*.

    ``None`` means the line is plain executable code below *node*.
    """
    kind = node.type
    if kind == "comment":
        return "low", "comment"
    if kind in _STRING_NODES and (pattern is None or pattern in _node_text(node)):
        return "low", "string"
    if kind in _TEMPLATE_NODES and (pattern is None or pattern in _template_literal_text(node)):
        return "medium", "template"
    if kind in _JSX_TEXT_NODES and (pattern is None or pattern in _node_text(node)):
        return "low", "string"

    for child in node.children:
        if not _covers(child, row):
            continue
        found = _classify_node(child, row, pattern)
        if found is not None:
            return found
    return None


def _comment_covers(root: ts.Node, row: int) -> bool:
    """True if *row* lies inside any comment node (block comments span lines)."""
    stack = [root]
    while stack:
        node = stack.pop()
        if not _covers(node, row):
            continue
        if node.type == "comment":
            return True
        stack.extend(node.children)
    return False


class SemanticAnalyzer:
    """Classifies matches; parsed trees are cached per file for the analyzer's lifetime."""

    def __init__(self) -> None:
        self._parsers: Dict[str, ts.Parser] = {}
        self._trees: Dict[str, Optional[ts.Tree]] = {}

    def _get_parser(self, grammar: str) -> ts.Parser:
        if grammar not in self._parsers:
            self._parsers[grammar] = ts.Parser(language=_get_language(grammar))
        return self._parsers[grammar]

    def _tree_for(self, file: str, grammar: str, content: str) -> Optional[ts.Tree]:
        if file not in self._trees:
            try:
                tree = self._get_parser(grammar).parse(content.encode("utf-8"))
            except Exception as exc:  # grammar loading or parse failure
                logger.debug("tree-sitter could not parse %s: %s", file, exc)
                tree = None
            if tree is not None and tree.root_node.has_error:
                logger.debug("Syntax errors in %s, using line heuristics", file)
                tree = None
            self._trees[file] = tree
        return self._trees[file]

    def analyze_context(
        self,
        file: str,
        line: int,
        pattern: Optional[str] = None,
        content: Optional[str] = None,
    ) -> SemanticContext:
        """Classify the syntax at 1-based *line* of *file*.

        *content* may be supplied when the caller already holds the file text.
        When *pattern* is given, a string literal only counts if it contains
        the pattern; otherwise the search continues into sibling nodes.
        """
        in_test = is_test_file(file)
        grammar = _GRAMMARS.get(Path(file).suffix.lower())
        if grammar is None:
            return _cap_for_tests(SemanticContext("medium", "code", in_test))

        if content is None:
            try:
                content = Path(file).read_text(encoding="utf-8", errors="replace")
            except OSError:
                return _cap_for_tests(SemanticContext("medium", "code", in_test))

        lines = content.split("\n")
        if line < 1 or line > len(lines) or not lines[line - 1].strip():
            return _cap_for_tests(SemanticContext("medium", "code", in_test))

        target = lines[line - 1]
        if target.strip().startswith(_COMMENT_PREFIXES):
            return SemanticContext("low", "comment", in_test)

        tree = self._tree_for(file, grammar, content)
        if tree is None:
            return _cap_for_tests(_heuristic(target, in_test))

        row = line - 1
        root = tree.root_node
        if _comment_covers(root, row):
            return SemanticContext("low", "comment", in_test)

        found = _classify_node(root, row, pattern)
        if found is None:
            return _cap_for_tests(SemanticContext("high", "code", in_test))
        confidence, kind = found
        return _cap_for_tests(SemanticContext(confidence, kind, in_test))

    def batch_analyze(self, requests: Iterable[ContextRequest]) -> List[SemanticContext]:
        results: List[SemanticContext] = []
        for req in requests:
            if not req.line:
                results.append(
                    _cap_for_tests(SemanticContext("medium", "code", is_test_file(req.file)))
                )
                continue
            results.append(self.analyze_context(req.file, req.line, req.pattern, req.content))
        return results


def analyze_context(
    file: str,
    line: int,
    pattern: Optional[str] = None,
    content: Optional[str] = None,
) -> SemanticContext:
    """One-shot classification without tree caching."""
    return SemanticAnalyzer().analyze_context(file, line, pattern, content)


def batch_analyze(requests: Iterable[ContextRequest]) -> List[SemanticContext]:
    return SemanticAnalyzer().batch_analyze(requests)
