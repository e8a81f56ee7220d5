"""Scanner contract and the shared line-by-line pattern loop."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from vlayer.config.schema import VlayerConfig
from vlayer.findings.context import get_context_lines
from vlayer.findings.models import Finding
from vlayer.rules.models import PatternRule
from vlayer.scanner.semantic import SemanticAnalyzer, is_test_file

logger = logging.getLogger(__name__)

_COMMENT_LINE_RE = re.compile(r"^\s*(?://|#|/\*|\*)")


def is_comment_line(line: str) -> bool:
    return _COMMENT_LINE_RE.match(line) is not None


@dataclass
class ScanContext:
    """Everything a scanner may consult besides its own file list.

    File reads go through :meth:`read_text` so that every scanner sees the
    same size cap and nothing is read twice within a scan.
    """

    base_path: Path
    config: VlayerConfig = field(default_factory=VlayerConfig)
    all_files: List[Path] = field(default_factory=list)
    semantic: SemanticAnalyzer = field(default_factory=SemanticAnalyzer, repr=False)
    _texts: Dict[Path, Optional[str]] = field(default_factory=dict, init=False, repr=False)

    @property
    def context_size(self) -> int:
        return self.config.scan.context_lines

    def relpath(self, path: Path) -> str:
        """Posix path of *path* relative to the scan root."""
        try:
            return path.resolve().relative_to(self.base_path.resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    def read_text(self, path: Path) -> Optional[str]:
        """Return file text, or None if unreadable or over the size cap."""
        if path not in self._texts:
            text: Optional[str] = None
            try:
                if path.stat().st_size <= self.config.scan.max_file_size_kb * 1024:
                    text = path.read_text(encoding="utf-8", errors="replace")
                else:
                    logger.debug("Skipping %s: larger than %d KB", path, self.config.scan.max_file_size_kb)
            except OSError as exc:
                logger.debug("Skipping unreadable file %s: %s", path, exc)
            self._texts[path] = text
        return self._texts[path]


class Scanner(Protocol):
    name: str
    category: str

    def scan(self, files: Sequence[Path], context: ScanContext) -> List[Finding]: ...


class PatternScanner:
    """Base for scanners driven by a list of :class:`PatternRule`.

    For each eligible file and each non-empty, non-comment line, every rule's
    positives are tried in order. A hit survives when no line, window or
    file negative applies and :meth:`accept` agrees. Subclasses narrow the
    behaviour through class attributes and the hook methods.
    """

    name: str = ""
    category: str = ""
    extensions: tuple[str, ...] = ()
    rules: List[PatternRule] = []
    skip_comments: bool = True
    quote_code: bool = True  # append the offending line to the description
    context_size: Optional[int] = None  # None -> config.scan.context_lines

    # ---- file selection ----

    def accepts(self, rel_path: str) -> bool:
        return rel_path.lower().endswith(self.extensions)

    def rules_for_file(self, rel_path: str, content: str) -> List[PatternRule]:
        in_test = is_test_file(rel_path)
        return [
            r for r in self.rules
            if not (r.skip_test_files and in_test)
            and not r.is_file_negated(rel_path, content)
        ]

    # ---- hooks ----

    def accept(
        self,
        rule: PatternRule,
        match: re.Match[str],
        lines: List[str],
        index: int,
        rel_path: str,
        context: ScanContext,
    ) -> bool:
        """Extra per-hit check. Return False to drop the hit."""
        return True

    def confidence_for(
        self,
        rule: PatternRule,
        match: re.Match[str],
        rel_path: str,
        content: str,
        index: int,
        context: ScanContext,
    ) -> str:
        return rule.confidence

    def fix_type_for(self, rule: PatternRule, line: str) -> Optional[str]:
        return rule.fix_type

    # ---- scanning ----

    def scan(self, files: Sequence[Path], context: ScanContext) -> List[Finding]:
        findings: List[Finding] = []
        for path in files:
            rel = context.relpath(path)
            if not self.accepts(rel):
                continue
            content = context.read_text(path)
            if content is None:
                continue
            findings.extend(self.scan_file(rel, content, context))
        return findings

    def scan_file(self, rel_path: str, content: str, context: ScanContext) -> List[Finding]:
        rules = self.rules_for_file(rel_path, content)
        if not rules:
            return []
        lines = content.split("\n")
        findings: List[Finding] = []
        reported: set[str] = set()

        for index, line in enumerate(lines):
            if not line.strip():
                continue
            if self.skip_comments and is_comment_line(line):
                continue
            for rule in rules:
                if rule.per_file and rule.id in reported:
                    continue
                m = rule.match(line)
                if m is None or rule.is_negated(line):
                    continue
                if rule.has_window and rule.is_context_negated(window(lines, index, rule)):
                    continue
                if not self.accept(rule, m, lines, index, rel_path, context):
                    continue
                findings.append(self.make_finding(rule, m, lines, index, rel_path, content, context))
                reported.add(rule.id)
        return findings

    def make_finding(
        self,
        rule: PatternRule,
        match: re.Match[str],
        lines: List[str],
        index: int,
        rel_path: str,
        content: str,
        context: ScanContext,
    ) -> Finding:
        line = lines[index]
        description = rule.description
        if self.quote_code:
            description = f"{description}\n\nCode: {line.strip()}"
        size = self.context_size if self.context_size is not None else context.context_size
        return Finding(
            id=rule.id,
            category=rule.category,
            severity=rule.severity,
            title=rule.name,
            description=description,
            file=rel_path,
            line=index + 1,
            column=match.start() + 1,
            recommendation=rule.recommendation,
            regulatory_reference=rule.regulatory_reference or None,
            context_lines=get_context_lines(lines, index, size),
            fix_type=self.fix_type_for(rule, line),
            confidence=self.confidence_for(rule, match, rel_path, content, index, context),
        )


def window(lines: List[str], index: int, rule: PatternRule) -> str:
    """Join the lines around *index* that the rule's window negatives inspect."""
    start = max(0, index - rule.window_before)
    chunk = lines[start:index + rule.window_after + 1]
    if rule.window_strips_comments:
        chunk = [l for l in chunk if not is_comment_line(l)]
    return "\n".join(chunk)
