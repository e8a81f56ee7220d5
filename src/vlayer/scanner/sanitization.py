"""Input sanitization scanner: raw request input in queries, unrestricted uploads."""

from __future__ import annotations

import re
from typing import Optional

from vlayer.rules.builtin.sanitization import ALL_SANITIZATION_RULES, UNSANITIZED_DB_INPUT
from vlayer.rules.models import PatternRule
from vlayer.scanner.base import PatternScanner

_TEMPLATE_QUERY = re.compile(r"`[^`]*\$\{")
_CONCAT_QUERY = re.compile(r"[\"']\s*\+\s*\w")


class SanitizationScanner(PatternScanner):
    name = "Input Sanitization Scanner"
    category = "access-control"
    extensions = (".ts", ".tsx", ".js", ".jsx")
    rules = ALL_SANITIZATION_RULES

    def fix_type_for(self, rule: PatternRule, line: str) -> Optional[str]:
        # only raw SQL strings can be parameterized mechanically
        if rule is not UNSANITIZED_DB_INPUT:
            return rule.fix_type
        if _TEMPLATE_QUERY.search(line):
            return "sql-injection-template"
        if _CONCAT_QUERY.search(line):
            return "sql-injection-concat"
        return None
