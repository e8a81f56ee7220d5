"""PHI exposure scanner.

Confidence comes from the semantic classifier, so an SSN-shaped literal in a
comment or test fixture ranks below the same text in live code.
"""

from __future__ import annotations

import re

from vlayer.rules.builtin.phi import ALL_PHI_RULES
from vlayer.rules.models import PatternRule
from vlayer.scanner.base import PatternScanner, ScanContext


class PhiScanner(PatternScanner):
    name = "PHI Exposure Scanner"
    category = "phi-exposure"
    extensions = (".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".go", ".rb", ".php")
    rules = ALL_PHI_RULES
    skip_comments = False
    quote_code = False

    def confidence_for(
        self,
        rule: PatternRule,
        match: re.Match[str],
        rel_path: str,
        content: str,
        index: int,
        context: ScanContext,
    ) -> str:
        result = context.semantic.analyze_context(
            rel_path, index + 1, pattern=match.group(0), content=content
        )
        return result.confidence
