"""RBAC scanner: unauthorised PHI access, privileged keys in client code, SELECT * on PHI."""

from __future__ import annotations

import re
from typing import List

from vlayer.rules.builtin.rbac import ALL_RBAC_RULES, SERVICE_ROLE_CLIENT_SIDE
from vlayer.rules.models import PatternRule
from vlayer.scanner.base import PatternScanner

_SERVER_INDICATORS = [
    re.compile(p, re.IGNORECASE)
    for p in (r"/api/", r"\.server\.", r"getServerSideProps", r"getStaticProps", r"use server")
]
_CLIENT_INDICATORS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"/(?:components?|pages?|app)/",
        r"\.client\.",
        r"use client",
        r"useState|useEffect|useContext",
        r"window\.",
        r"document\.",
    )
]
_WEB_DIRS = re.compile(r"/(?:src|components?|pages?|app|views?)/", re.IGNORECASE)


def is_client_side_file(rel_path: str, content: str) -> bool:
    """Guess whether a file ships to the browser. Server indicators win."""
    path = "/" + rel_path
    if any(p.search(path) or p.search(content) for p in _SERVER_INDICATORS):
        return False
    if any(p.search(path) or p.search(content) for p in _CLIENT_INDICATORS):
        return True
    return _WEB_DIRS.search(path) is not None


class RbacScanner(PatternScanner):
    name = "RBAC Scanner"
    category = "access-control"
    extensions = (".js", ".ts", ".jsx", ".tsx", ".sql", ".prisma")
    rules = ALL_RBAC_RULES

    def rules_for_file(self, rel_path: str, content: str) -> List[PatternRule]:
        rules = super().rules_for_file(rel_path, content)
        if not is_client_side_file(rel_path, content):
            rules = [r for r in rules if r is not SERVICE_ROLE_CLIENT_SIDE]
        return rules
