"""AI agent skill manifest scanner (SKILL.md, skills/ directories, .clawrc)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

from vlayer.findings.models import Finding
from vlayer.rules.builtin.skills import ALL_SKILL_RULES
from vlayer.scanner.base import PatternScanner, ScanContext

_AUTHOR_RE = re.compile(r"(?:author|by|created.by):\s*(.+)", re.IGNORECASE)
_SOURCE_RE = re.compile(r"(?:source|repository|url):\s*(.+)", re.IGNORECASE)
_PERMISSIONS_RE = re.compile(r"(?:permissions?|requires?):\s*(.+)", re.IGNORECASE)
_VERSION_RE = re.compile(r"version:\s*(.+)", re.IGNORECASE)
_TITLE_RE = re.compile(r"^#\s+(.+)")
_SYSTEM_MODIFICATION_RE = re.compile(r"(?:rm|mv|chmod|chown)\s+-rf?\s+/")


@dataclass
class SkillMetadata:
    author: Optional[str] = None
    source: Optional[str] = None
    permissions: List[str] = field(default_factory=list)
    permissions_line: Optional[int] = None
    version: Optional[str] = None
    name: Optional[str] = None


def extract_skill_metadata(content: str) -> SkillMetadata:
    """Pull author, source, permissions, version and title out of a manifest."""
    meta = SkillMetadata()
    for index, line in enumerate(content.split("\n")):
        m = _AUTHOR_RE.search(line)
        if m:
            meta.author = m.group(1).strip()
        m = _SOURCE_RE.search(line)
        if m:
            meta.source = m.group(1).strip()
        m = _PERMISSIONS_RE.search(line)
        if m:
            meta.permissions = [p.strip() for p in m.group(1).split(",")]
            meta.permissions_line = index + 1
        m = _VERSION_RE.search(line)
        if m:
            meta.version = m.group(1).strip()
        m = _TITLE_RE.match(line)
        if m and meta.name is None:
            meta.name = m.group(1).strip()
    return meta


def is_skill_file(rel_path: str) -> bool:
    path = "/" + rel_path
    return (
        path.endswith(("SKILL.md", "skill.md", ".skill.md"))
        or "/skills/" in path
        or "/.clawrc/" in path
    )


class SkillsScanner(PatternScanner):
    name = "AI Agent Skills Scanner"
    category = "access-control"
    rules = ALL_SKILL_RULES
    skip_comments = False
    quote_code = False
    context_size = 3

    def accepts(self, rel_path: str) -> bool:
        return is_skill_file(rel_path)

    def scan_file(self, rel_path: str, content: str, context: ScanContext) -> List[Finding]:
        findings = super().scan_file(rel_path, content, context)
        findings.extend(self._metadata_findings(rel_path, content))
        return findings

    def _metadata_findings(self, rel_path: str, content: str) -> List[Finding]:
        findings: List[Finding] = []
        meta = extract_skill_metadata(content)

        if "*" in meta.permissions or "all" in meta.permissions:
            findings.append(Finding(
                id="skill-excessive-permissions",
                category="access-control",
                severity="high",
                title="Skill requests excessive permissions",
                description=(
                    "Skill requests wildcard permissions (*). This violates principle of "
                    "least privilege."
                ),
                file=rel_path,
                line=meta.permissions_line or 1,
                recommendation=(
                    "Limit skill permissions to specific actions needed. Use whitelist approach."
                ),
                regulatory_reference="§164.308(a)(4) - Access Controls",
                confidence="high",
            ))

        if not meta.author and not meta.source:
            findings.append(Finding(
                id="skill-unknown-author",
                category="access-control",
                severity="medium",
                title="Skill from unknown/unverified source",
                description="Skill has no author or source attribution. Cannot verify authenticity.",
                file=rel_path,
                line=1,
                recommendation=(
                    "Only install skills from trusted sources (e.g., verified ClawHub publishers)."
                ),
                confidence="medium",
            ))

        for index, line in enumerate(content.split("\n")):
            if _SYSTEM_MODIFICATION_RE.search(line):
                findings.append(Finding(
                    id="skill-system-modification",
                    category="access-control",
                    severity="critical",
                    title="Skill attempts to modify system files",
                    description="Skill contains commands that modify critical system files",
                    file=rel_path,
                    line=index + 1,
                    recommendation=(
                        "REJECT THIS SKILL. System file modifications are extremely dangerous."
                    ),
                    confidence="high",
                ))
                break
        return findings
