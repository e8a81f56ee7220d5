"""Rule models, compiler, registry, and built-in pattern sets."""

from vlayer.rules.compiler import compile_flags, compile_rule, validate_rule
from vlayer.rules.models import PatternRule, Rule, RuleFix
from vlayer.rules.registry import (
    RuleLoadError,
    RuleLoadResult,
    RuleRegistry,
    load_custom_rules,
    load_rules_file,
    validate_rules_file,
)

__all__ = [
    "PatternRule",
    "Rule",
    "RuleFix",
    "RuleLoadError",
    "RuleLoadResult",
    "RuleRegistry",
    "compile_flags",
    "compile_rule",
    "load_custom_rules",
    "load_rules_file",
    "validate_rule",
    "validate_rules_file",
]
