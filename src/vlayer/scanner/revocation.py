"""Token revocation scanner: JWTs without revocation, long-lived tokens."""

from __future__ import annotations

import re
from typing import List, Optional

from vlayer.rules.builtin.revocation import ALL_REVOCATION_RULES, MAX_TOKEN_LIFETIME_SECONDS
from vlayer.rules.models import PatternRule
from vlayer.scanner.base import PatternScanner, ScanContext

# Units understood by jsonwebtoken's duration strings. "m" is minutes.
_UNIT_SECONDS = {
    "ms": 0.001, "msec": 0.001, "msecs": 0.001, "millisecond": 0.001, "milliseconds": 0.001,
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hr": 3600, "hrs": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
    "w": 604800, "week": 604800, "weeks": 604800,
    "mo": 2592000, "month": 2592000, "months": 2592000,
    "y": 31557600, "yr": 31557600, "yrs": 31557600, "year": 31557600, "years": 31557600,
}

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-z]*)\s*$", re.IGNORECASE)


def token_lifetime_seconds(expiry: str) -> Optional[float]:
    """Seconds described by an ``expiresIn`` value, or None if unparseable.

    Bare numbers (and products like ``60 * 60 * 24``) are seconds. Quoted
    strings take a unit suffix; a quoted number without one is milliseconds,
    as jsonwebtoken reads it.
    """
    expiry = expiry.strip()
    if expiry[:1] in ("'", '"', "`"):
        m = _DURATION_RE.match(expiry[1:-1])
        if m is None:
            return None
        unit = m.group(2).lower() or "ms"
        if unit not in _UNIT_SECONDS:
            return None
        return float(m.group(1)) * _UNIT_SECONDS[unit]
    total = 1.0
    for factor in expiry.split("*"):
        total *= float(factor.strip().replace("_", ""))
    return total


class RevocationScanner(PatternScanner):
    name = "Token Revocation Scanner"
    category = "access-control"
    extensions = (".ts", ".tsx", ".js", ".jsx")
    rules = ALL_REVOCATION_RULES

    def accept(
        self,
        rule: PatternRule,
        match: re.Match[str],
        lines: List[str],
        index: int,
        rel_path: str,
        context: ScanContext,
    ) -> bool:
        expiry = match.groupdict().get("expiry")
        if expiry is None:
            return True
        seconds = token_lifetime_seconds(expiry)
        return seconds is not None and seconds > MAX_TOKEN_LIFETIME_SECONDS
