"""Scrub PHI-shaped values from code before it leaves the machine.

Every match is replaced by an indexed placeholder such as ``[PHI_SSN_1]``.
The replacement map stays local and is only used to restore text for local
reports.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List

# (placeholder name, label for warnings, pattern); order matters, SSNs
# must be taken before the phone pattern can see them.
PHI_PATTERNS = [
    ("SSN", "SSN", re.compile(r"\b\d{3}-\d{2}-\d{4}\b")),
    ("EMAIL", "Email", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")),
    ("PHONE", "Phone", re.compile(r"\b(?:\+?1[-.]?)?\(?\d{3}\)?[-.]?\d{3}[-.]?\d{4}\b")),
    (
        "DOB",
        "Date of Birth",
        re.compile(r"\b(?:0[1-9]|1[0-2])[-/](?:0[1-9]|[12]\d|3[01])[-/](?:19|20)\d{2}\b"),
    ),
    ("MRN", "Medical Record Number", re.compile(r"\bMRN[-:\s]*\d{6,10}\b", re.IGNORECASE)),
    ("IP", "IP Address", re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")),
]


@dataclass
class SanitizationResult:
    sanitized_code: str
    phi_found: int = 0
    replacement_map: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


def sanitize_for_ai(code: str, file_path: str) -> SanitizationResult:
    result = SanitizationResult(sanitized_code=code)

    for name, label, pattern in PHI_PATTERNS:
        counter = 0

        def _replace(m: re.Match[str]) -> str:
            nonlocal counter
            counter += 1
            placeholder = f"[PHI_{name}_{counter}]"
            result.replacement_map[placeholder] = m.group(0)
            return placeholder

        result.sanitized_code = pattern.sub(_replace, result.sanitized_code)
        if counter:
            result.phi_found += counter
            result.warnings.append(f"Found {counter} {label} pattern(s) in {file_path}")

    if result.phi_found:
        result.warnings.append(
            f"PHI detected and sanitized before AI analysis ({result.phi_found} instances)"
        )
    return result


def restore_sanitized_code(sanitized: str, replacement_map: Dict[str, str]) -> str:
    """Put original values back. Local output only, never for outbound text."""
    restored = sanitized
    for placeholder, original in replacement_map.items():
        restored = restored.replace(placeholder, original)
    return restored
