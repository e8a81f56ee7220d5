"""Credential scanner: weak password hashing, hardcoded secrets, NEXT_PUBLIC_ leaks."""

from __future__ import annotations

import re
from typing import List, Optional

from vlayer.rules.builtin.credentials import (
    ALL_CREDENTIAL_RULES,
    HARDCODED_CREDENTIALS,
    PASSWORD_CONTEXT_RE,
    WEAK_PASSWORD_HASH,
)
from vlayer.rules.models import PatternRule
from vlayer.scanner.base import PatternScanner, ScanContext

_PASSWORD_CONTEXT = re.compile(PASSWORD_CONTEXT_RE, re.IGNORECASE)
_ASSIGNED_VALUE = re.compile(r"[:=]\s*['\"`]([^'\"`]+)['\"`]")
_PLACEHOLDER_VALUE = re.compile(
    r"^(?:your|my|the|an?[-_\s]|test|example|demo|sample|placeholder|xxx|changeme|replace|todo)",
    re.IGNORECASE,
)
_WEAK_VALUE = re.compile(r"^(?:12345|qwerty|password|admin|test)", re.IGNORECASE)

_API_KEY_NAME = re.compile(r"api[-_]?key|apikey", re.IGNORECASE)
_PASSWORD_NAME = re.compile(r"password|passwd|pwd", re.IGNORECASE)


def is_placeholder_value(value: str) -> bool:
    """True for literals that are obviously not real secrets."""
    return (
        len(value) < 8
        or _PLACEHOLDER_VALUE.match(value) is not None
        or _WEAK_VALUE.match(value) is not None
    )


class CredentialsScanner(PatternScanner):
    name = "Credential Security Scanner"
    category = "encryption"
    extensions = (
        ".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".go", ".rb", ".php", ".cs",
        ".env", ".yml", ".yaml", ".json",
    )
    rules = ALL_CREDENTIAL_RULES

    def accept(
        self,
        rule: PatternRule,
        match: re.Match[str],
        lines: List[str],
        index: int,
        rel_path: str,
        context: ScanContext,
    ) -> bool:
        if rule is WEAK_PASSWORD_HASH:
            # only password-adjacent hashing counts
            around = "\n".join(lines[max(0, index - 5):index + 6])
            return _PASSWORD_CONTEXT.search(around) is not None
        if rule is HARDCODED_CREDENTIALS:
            value = _ASSIGNED_VALUE.search(lines[index])
            return value is None or not is_placeholder_value(value.group(1))
        return True

    def fix_type_for(self, rule: PatternRule, line: str) -> Optional[str]:
        if rule is not HARDCODED_CREDENTIALS:
            return rule.fix_type
        if _PASSWORD_NAME.search(line):
            return "hardcoded-password"
        if _API_KEY_NAME.search(line):
            return "api-key-exposed"
        return "hardcoded-secret"
