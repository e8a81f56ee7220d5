"""Encryption scanner: weak algorithms, plaintext transport, unencrypted backups."""

from __future__ import annotations

import re
from typing import List

from vlayer.config.loader import is_safe_http_url
from vlayer.rules.builtin.encryption import ALL_ENCRYPTION_RULES, PLAIN_HTTP
from vlayer.rules.models import PatternRule
from vlayer.scanner.base import PatternScanner, ScanContext


class EncryptionScanner(PatternScanner):
    name = "Encryption Scanner"
    category = "encryption"
    extensions = (
        ".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".go", ".rb", ".php",
        ".env", ".yaml", ".yml", ".json", ".xml",
    )
    rules = ALL_ENCRYPTION_RULES
    skip_comments = False
    quote_code = False

    def accept(
        self,
        rule: PatternRule,
        match: re.Match[str],
        lines: List[str],
        index: int,
        rel_path: str,
        context: ScanContext,
    ) -> bool:
        if rule is PLAIN_HTTP:
            return not is_safe_http_url(lines[index], context.config.scan.safe_http_domains)
        return True
