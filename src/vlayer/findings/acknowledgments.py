"""Acknowledged (accepted-risk) findings declared in the config file.

An entry matches a finding when its file glob matches the finding's path and
every optional matcher it sets (``id``, ``category``, ``severity``) agrees.
The first matching entry wins. Entries past ``expires_at`` still tag the
finding, but flagged ``expired`` so scoring gives it full weight again.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from fnmatch import fnmatch
from typing import Any, Iterable, List, Mapping, Optional

from vlayer.config.schema import AcknowledgedFinding
from vlayer.findings.models import AcknowledgmentInfo, Finding


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (or TOML date/datetime) into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_acknowledged_finding(entry: Mapping[str, Any]) -> List[str]:
    """Return a list of problems with a raw acknowledgment entry (empty if valid)."""
    errors: List[str] = []
    for key in ("pattern", "reason", "acknowledged_by"):
        value = entry.get(key)
        if not value or not isinstance(value, str):
            errors.append(f"'{key}' is required and must be a string")

    acknowledged_at = entry.get("acknowledged_at")
    if not acknowledged_at:
        errors.append("'acknowledged_at' is required")
    elif parse_timestamp(acknowledged_at) is None:
        errors.append("'acknowledged_at' must be a valid ISO 8601 date")

    expires_at = entry.get("expires_at")
    if expires_at and parse_timestamp(expires_at) is None:
        errors.append("'expires_at' must be a valid ISO 8601 date")
    return errors


def _id_matches(id_pattern: str, finding_id: str) -> bool:
    regex = ".*".join(re.escape(part) for part in id_pattern.split("*"))
    return re.search(regex, finding_id) is not None


def is_expired(entry: AcknowledgedFinding, now: Optional[datetime] = None) -> bool:
    if not entry.expires_at:
        return False
    expires = parse_timestamp(entry.expires_at)
    if expires is None:
        return False
    return expires < (now or datetime.now(timezone.utc))


def match_acknowledgment(
    finding: Finding,
    entries: Iterable[AcknowledgedFinding],
    now: Optional[datetime] = None,
) -> Optional[AcknowledgmentInfo]:
    """Return acknowledgment metadata for the first entry matching *finding*."""
    for entry in entries:
        if not fnmatch(finding.file, entry.pattern):
            continue
        if entry.id and not _id_matches(entry.id, finding.id):
            continue
        if entry.category and entry.category != finding.category:
            continue
        if entry.severity and entry.severity != finding.severity:
            continue
        return AcknowledgmentInfo(
            reason=entry.reason,
            acknowledged_by=entry.acknowledged_by,
            acknowledged_at=str(entry.acknowledged_at),
            ticket_url=entry.ticket_url,
            expires_at=str(entry.expires_at) if entry.expires_at else None,
            expired=is_expired(entry, now),
        )
    return None


def apply_acknowledgments(
    findings: List[Finding],
    entries: List[AcknowledgedFinding],
    now: Optional[datetime] = None,
) -> List[Finding]:
    """Tag findings covered by an acknowledgment entry. Mutates and returns *findings*."""
    if not entries:
        return findings
    for finding in findings:
        info = match_acknowledgment(finding, entries, now)
        if info is not None:
            finding.acknowledged = True
            finding.acknowledgment = info
    return findings
