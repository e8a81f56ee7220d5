"""Custom rule validation and compilation.

Regex flags in rule files use the single-letter form (``gi``, ``ims``).
They map onto :mod:`re` as a small capability set; ``g`` is accepted and
ignored because every scanner already searches each line independently.
"""

from __future__ import annotations

import re
from typing import Any, List, Mapping

from vlayer.config.schema import CATEGORIES, SEVERITIES
from vlayer.rules.models import Rule, RuleFix

RULE_ID_RE = re.compile(r"^[a-z0-9-]+$")

FLAG_MAP: dict[str, int] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,
}

FIX_TYPES = ("replace", "remove", "wrap")

REQUIRED_FIELDS = ("id", "name", "description", "category", "severity", "pattern", "recommendation")


def compile_flags(flags: str) -> int:
    """Translate a flag string into ``re`` flags. Unsupported letters raise ValueError."""
    value = 0
    for letter in flags:
        if letter not in FLAG_MAP:
            raise ValueError(
                f"Unsupported regex flag {letter!r} (supported: {''.join(FLAG_MAP)})"
            )
        value |= FLAG_MAP[letter]
    return value


def _check_regex(value: str, flags: int, label: str, errors: List[str]) -> None:
    try:
        re.compile(value, flags)
    except re.error as exc:
        errors.append(f"{label}: {exc}")


def validate_rule(data: Mapping[str, Any]) -> List[str]:
    """Return validation problems for one raw rule mapping (empty when valid)."""
    errors: List[str] = []

    for key in REQUIRED_FIELDS:
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{key}: is required")

    rule_id = data.get("id")
    if isinstance(rule_id, str) and rule_id and not RULE_ID_RE.match(rule_id):
        errors.append("id: Rule ID must be lowercase alphanumeric with hyphens")

    category = data.get("category")
    if isinstance(category, str) and category and category not in CATEGORIES:
        errors.append(f"category: must be one of {', '.join(CATEGORIES)}")

    severity = data.get("severity")
    if isinstance(severity, str) and severity and severity not in SEVERITIES:
        errors.append(f"severity: must be one of {', '.join(SEVERITIES)}")

    flags_value = data.get("flags", "gi")
    flags = 0
    if not isinstance(flags_value, str):
        errors.append("flags: must be a string")
    else:
        try:
            flags = compile_flags(flags_value)
        except ValueError as exc:
            errors.append(f"flags: {exc}")

    pattern = data.get("pattern")
    if isinstance(pattern, str) and pattern:
        _check_regex(pattern, flags, "Invalid regex pattern", errors)

    must_not = data.get("mustNotContain", data.get("must_not_contain"))
    if must_not is not None:
        if not isinstance(must_not, str):
            errors.append("mustNotContain: must be a string")
        else:
            _check_regex(must_not, flags, "Invalid mustNotContain regex", errors)

    for key in ("include", "exclude"):
        globs = data.get(key)
        if globs is not None and (
            not isinstance(globs, list) or not all(isinstance(g, str) for g in globs)
        ):
            errors.append(f"{key}: must be a list of glob strings")

    fix = data.get("fix")
    if fix is not None:
        if not isinstance(fix, dict) or fix.get("type") not in FIX_TYPES:
            errors.append(f"fix.type: must be one of {', '.join(FIX_TYPES)}")
        elif fix["type"] == "wrap":
            wrapper = fix.get("wrapper")
            if not isinstance(wrapper, dict) or "before" not in wrapper or "after" not in wrapper:
                errors.append("fix.wrapper: 'before' and 'after' are required for wrap fixes")
        elif fix["type"] == "replace" and not isinstance(fix.get("replacement"), str):
            errors.append("fix.replacement: is required for replace fixes")

    return errors


def compile_rule(data: Mapping[str, Any], source: str | None = None) -> Rule:
    """Build a Rule from a validated mapping. Call :func:`validate_rule` first."""
    fix = None
    raw_fix = data.get("fix")
    if isinstance(raw_fix, dict):
        wrapper = raw_fix.get("wrapper") or {}
        fix = RuleFix(
            type=raw_fix["type"],
            replacement=raw_fix.get("replacement"),
            wrap_before=wrapper.get("before"),
            wrap_after=wrapper.get("after"),
        )

    rule = Rule(
        id=data["id"],
        name=data["name"],
        description=data["description"],
        category=data["category"],
        severity=data["severity"],
        pattern=data["pattern"],
        recommendation=data["recommendation"],
        flags=data.get("flags", "gi"),
        include=data.get("include"),
        exclude=data.get("exclude"),
        must_not_contain=data.get("mustNotContain", data.get("must_not_contain")),
        regulatory_reference=data.get("regulatoryReference", data.get("hipaaReference")),
        fix=fix,
        source=source,
    )
    # Compile now, not inside the scan loop
    _ = rule.compiled_pattern
    _ = rule.compiled_must_not_contain
    return rule
