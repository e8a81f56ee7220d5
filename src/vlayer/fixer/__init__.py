"""Deterministic line-level fixes with audit evidence."""

from vlayer.fixer.apply import FixReport, FixResult, apply_fixes, group_by_file
from vlayer.fixer.strategies import FIX_STRATEGIES, apply_custom_fix, apply_fix_strategy

__all__ = [
    "FIX_STRATEGIES",
    "FixReport",
    "FixResult",
    "apply_custom_fix",
    "apply_fix_strategy",
    "apply_fixes",
    "group_by_file",
]
