"""Inline ``vlayer-ignore`` suppression comments.

Syntax (``//``, ``#`` or ``/* */`` comments)::

    // vlayer-ignore phi-ssn-hardcoded -- synthetic fixture data
    # vlayer-ignore ERROR-* -- handled by the gateway

  - A comment on line N suppresses matching findings on line N and N+1.
  - The rule token is an exact id or a glob (``*`` matches anything).
  - The ``-- <reason>`` justification is mandatory. A comment without one is
    recorded but never suppresses anything.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from vlayer.findings.models import Finding, SuppressionInfo

_SUPPRESS_RE = re.compile(
    r"(?://|#|/\*)\s*vlayer-ignore\s+([A-Za-z0-9_\-*]+)"
    r"(?:\s+--\s*(.*?))?\s*(?:\*/)?\s*$"
)


@dataclass(frozen=True)
class SuppressionComment:
    line: int
    rule_pattern: str
    reason: str  # empty when no justification was given

    @property
    def comment(self) -> str:
        return f"vlayer-ignore {self.rule_pattern} -- {self.reason}"


def parse_suppression(line_content: str) -> Optional[SuppressionComment]:
    """Parse a single line. ``line`` on the result is 0 and must be filled in."""
    m = _SUPPRESS_RE.search(line_content)
    if m is None:
        return None
    return SuppressionComment(line=0, rule_pattern=m.group(1), reason=(m.group(2) or "").strip())


def extract_suppressions(lines: List[str]) -> Dict[int, SuppressionComment]:
    """Map 1-based line number to the suppression comment on that line."""
    found: Dict[int, SuppressionComment] = {}
    for index, content in enumerate(lines):
        parsed = parse_suppression(content)
        if parsed is not None:
            found[index + 1] = SuppressionComment(
                line=index + 1, rule_pattern=parsed.rule_pattern, reason=parsed.reason
            )
    return found


def matches_rule_pattern(finding_id: str, pattern: str) -> bool:
    if pattern == "*" or pattern == finding_id:
        return True
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.fullmatch(regex, finding_id) is not None


class SuppressionChecker:
    """Check whether a finding is silenced by an inline comment.

    Files are read once and cached; unreadable files never suppress.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._cache: Dict[str, Dict[int, SuppressionComment]] = {}

    def register_lines(self, file: str, lines: List[str]) -> None:
        self._cache[file] = extract_suppressions(lines)

    def _comments_for(self, file: str) -> Dict[int, SuppressionComment]:
        if file not in self._cache:
            try:
                text = (self._base / file).read_text(encoding="utf-8", errors="replace")
            except OSError:
                self._cache[file] = {}
            else:
                self.register_lines(file, text.split("\n"))
        return self._cache[file]

    def is_suppressed(self, file: str, line_no: int, rule_id: str) -> Optional[SuppressionInfo]:
        """Return a SuppressionInfo if the finding should be suppressed, else None."""
        comments = self._comments_for(file)
        # preceding line first, then same line
        for candidate in (line_no - 1, line_no):
            entry = comments.get(candidate)
            if entry is None or not entry.reason:
                continue
            if matches_rule_pattern(rule_id, entry.rule_pattern):
                return SuppressionInfo(
                    rule_pattern=entry.rule_pattern,
                    reason=entry.reason,
                    comment=entry.comment,
                    line=entry.line,
                )
        return None


def apply_suppressions(findings: List[Finding], base_path: Path) -> List[Finding]:
    """Tag findings silenced by inline comments. Mutates and returns *findings*."""
    checker = SuppressionChecker(base_path)
    for finding in findings:
        if not finding.file or not finding.line:
            continue
        info = checker.is_suppressed(finding.file, finding.line, finding.id)
        if info is not None:
            finding.suppressed = True
            finding.suppression = info
    return findings
