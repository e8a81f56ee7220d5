"""Rule data models: patterns stored as strings, compiled lazily."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Literal, Optional

from vlayer.config.schema import Severity


@dataclass(frozen=True)
class RuleFix:
    """Deterministic fix attached to a custom rule."""

    type: Literal["replace", "remove", "wrap"]
    replacement: Optional[str] = None
    wrap_before: Optional[str] = None
    wrap_after: Optional[str] = None


@dataclass
class Rule:
    """A user-authored rule loaded from YAML.

    ``pattern`` and ``must_not_contain`` stay raw strings so the rule remains
    serialisable. Compiled regexes are built on first access and cached.
    """

    id: str
    name: str
    description: str
    category: str
    severity: Severity
    pattern: str
    recommendation: str
    flags: str = "gi"
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None
    must_not_contain: Optional[str] = None
    regulatory_reference: Optional[str] = None
    fix: Optional[RuleFix] = None
    source: Optional[str] = None  # file the rule was loaded from

    _compiled_pattern: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )
    _compiled_must_not_contain: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def compiled_pattern(self) -> re.Pattern[str]:
        if self._compiled_pattern is None:
            from vlayer.rules.compiler import compile_flags

            self._compiled_pattern = re.compile(self.pattern, compile_flags(self.flags))
        return self._compiled_pattern

    @property
    def compiled_must_not_contain(self) -> Optional[re.Pattern[str]]:
        if self.must_not_contain is None:
            return None
        if self._compiled_must_not_contain is None:
            from vlayer.rules.compiler import compile_flags

            self._compiled_must_not_contain = re.compile(
                self.must_not_contain, compile_flags(self.flags)
            )
        return self._compiled_must_not_contain

    @property
    def fix_type(self) -> Optional[str]:
        return f"custom-{self.id}" if self.fix is not None else None


def _compile_all(patterns: List[str], flags: int) -> List[re.Pattern[str]]:
    return [re.compile(p, flags) for p in patterns]


@dataclass
class PatternRule:
    """A built-in detection rule evaluated by one of the pattern scanners.

    A line is a hit when any of ``patterns`` matches it and no negative
    applies. Negatives come in three scopes:

      - ``negative_patterns``: the matched line itself.
      - ``context_negative_patterns``: the window of ``window_before`` /
        ``window_after`` lines around the hit. Comment lines are dropped from
        the window unless ``window_strips_comments`` is off.
      - ``file_negative_patterns``: the file path or the whole file content.
    """

    id: str
    name: str
    description: str
    category: str
    severity: Severity
    patterns: List[str]
    recommendation: str
    regulatory_reference: str = ""
    negative_patterns: List[str] = field(default_factory=list)
    context_negative_patterns: List[str] = field(default_factory=list)
    file_negative_patterns: List[str] = field(default_factory=list)
    window_before: int = 0
    window_after: int = 0
    window_strips_comments: bool = True
    fix_type: Optional[str] = None
    confidence: Literal["high", "medium", "low"] = "high"
    skip_test_files: bool = False
    per_file: bool = False  # report only the first hit in a file
    ignore_case: bool = True

    _compiled: Optional[List[re.Pattern[str]]] = field(
        default=None, init=False, repr=False, compare=False
    )
    _compiled_negative: Optional[List[re.Pattern[str]]] = field(
        default=None, init=False, repr=False, compare=False
    )
    _compiled_context_negative: Optional[List[re.Pattern[str]]] = field(
        default=None, init=False, repr=False, compare=False
    )
    _compiled_file_negative: Optional[List[re.Pattern[str]]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def _flags(self) -> int:
        return re.IGNORECASE if self.ignore_case else 0

    @property
    def compiled_patterns(self) -> List[re.Pattern[str]]:
        if self._compiled is None:
            self._compiled = _compile_all(self.patterns, self._flags)
        return self._compiled

    @property
    def compiled_negative_patterns(self) -> List[re.Pattern[str]]:
        if self._compiled_negative is None:
            self._compiled_negative = _compile_all(self.negative_patterns, self._flags)
        return self._compiled_negative

    @property
    def compiled_context_negative_patterns(self) -> List[re.Pattern[str]]:
        if self._compiled_context_negative is None:
            self._compiled_context_negative = _compile_all(
                self.context_negative_patterns, self._flags
            )
        return self._compiled_context_negative

    @property
    def compiled_file_negative_patterns(self) -> List[re.Pattern[str]]:
        if self._compiled_file_negative is None:
            self._compiled_file_negative = _compile_all(
                self.file_negative_patterns, self._flags
            )
        return self._compiled_file_negative

    @property
    def has_window(self) -> bool:
        return bool(self.context_negative_patterns)

    def match(self, line: str) -> Optional[re.Match[str]]:
        """Return the first positive match on *line*, if any."""
        for pattern in self.compiled_patterns:
            m = pattern.search(line)
            if m is not None:
                return m
        return None

    def is_negated(self, line: str) -> bool:
        return any(p.search(line) for p in self.compiled_negative_patterns)

    def is_context_negated(self, window: str) -> bool:
        return any(p.search(window) for p in self.compiled_context_negative_patterns)

    def is_file_negated(self, path: str, content: str) -> bool:
        return any(
            p.search(path) or p.search(content) for p in self.compiled_file_negative_patterns
        )
