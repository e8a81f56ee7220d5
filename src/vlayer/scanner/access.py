"""Access control scanner: hardcoded admin privilege, auth bypass, CORS and session gaps."""

from __future__ import annotations

from typing import List

from vlayer.rules.builtin.access import ALL_ACCESS_RULES, CLIENT_SIDE_DUPLICATES
from vlayer.rules.builtin.rbac import SERVICE_ROLE_CLIENT_SIDE
from vlayer.rules.models import PatternRule
from vlayer.scanner.base import PatternScanner
from vlayer.scanner.rbac import RbacScanner, is_client_side_file


def rbac_covers_admin_defaults(rel_path: str, content: str) -> bool:
    """True when RBAC-002 already checks this file for admin defaults."""
    return (
        RbacScanner().accepts(rel_path)
        and is_client_side_file(rel_path, content)
        and not SERVICE_ROLE_CLIENT_SIDE.is_file_negated(rel_path, content)
    )


class AccessScanner(PatternScanner):
    name = "Access Control Scanner"
    category = "access-control"
    extensions = (".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".go", ".rb", ".php", ".sql")
    rules = ALL_ACCESS_RULES

    def rules_for_file(self, rel_path: str, content: str) -> List[PatternRule]:
        rules = super().rules_for_file(rel_path, content)
        if rbac_covers_admin_defaults(rel_path, content):
            rules = [r for r in rules if r not in CLIENT_SIDE_DUPLICATES]
        return rules
