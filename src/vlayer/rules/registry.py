"""Rule registry: loads custom rule files in priority order, keeps load errors."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from vlayer.rules.compiler import compile_rule, validate_rule
from vlayer.rules.models import Rule

logger = logging.getLogger(__name__)

ROOT_RULE_FILES = ("vlayer-rules.yaml", "vlayer-rules.yml")
RULES_DIR = Path(".vlayer") / "rules"


@dataclass(frozen=True)
class RuleLoadError:
    """A rule file or single rule that could not be loaded."""

    file: str
    error: str
    details: Optional[str] = None
    rule_id: Optional[str] = None

    def __str__(self) -> str:
        text = f"{self.file}: {self.error}"
        return f"{text} ({self.details})" if self.details else text


@dataclass
class RuleLoadResult:
    rules: List[Rule] = field(default_factory=list)
    errors: List[RuleLoadError] = field(default_factory=list)
    sources: List[Path] = field(default_factory=list)


class RuleRegistry:
    """Central store for custom rules. Later registration of an id wins."""

    def __init__(self) -> None:
        self._rules: Dict[str, Rule] = {}

    # ---- registration ----

    def register(self, rule: Rule) -> None:
        # re-insert so iteration order follows the winning definition
        self._rules.pop(rule.id, None)
        self._rules[rule.id] = rule

    def register_many(self, rules: List[Rule]) -> None:
        for r in rules:
            self.register(r)

    # ---- queries ----

    @property
    def all_rules(self) -> List[Rule]:
        return list(self._rules.values())

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def __len__(self) -> int:
        return len(self._rules)


def load_rules_file(path: Path) -> RuleLoadResult:
    """Parse and compile one YAML rules file. Never raises."""
    result = RuleLoadResult(sources=[path])
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        result.errors.append(
            RuleLoadError(file=str(path), error="Failed to parse YAML file", details=str(exc))
        )
        return result

    if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
        result.errors.append(
            RuleLoadError(
                file=str(path),
                error="Invalid rules file format",
                details="expected a mapping with 'version' and a 'rules' list",
            )
        )
        return result

    for index, entry in enumerate(data["rules"]):
        if not isinstance(entry, dict):
            result.errors.append(
                RuleLoadError(
                    file=str(path),
                    error=f"Validation error in rule #{index + 1}",
                    details="rule must be a mapping",
                )
            )
            continue
        rule_id = entry.get("id") if isinstance(entry.get("id"), str) else f"#{index + 1}"
        problems = validate_rule(entry)
        if problems:
            result.errors.append(
                RuleLoadError(
                    file=str(path),
                    error=f'Validation error in rule "{rule_id}"',
                    details="; ".join(problems),
                    rule_id=rule_id,
                )
            )
            continue
        result.rules.append(compile_rule(entry, source=str(path)))
    return result


def find_rule_sources(
    base_path: Path, explicit: Optional[str] = None
) -> tuple[List[Path], List[RuleLoadError]]:
    """Return rule files in load order; a later file overrides earlier ids.

    An explicit path short-circuits discovery; when it does not exist the
    caller gets a load error and no sources.
    """
    if explicit:
        custom = Path(explicit)
        if not custom.is_absolute():
            custom = base_path / custom
        if custom.is_file():
            return [custom], []
        return [], [RuleLoadError(file=str(custom), error="Specified rules file not found")]

    sources = [base_path / name for name in ROOT_RULE_FILES if (base_path / name).is_file()]
    rules_dir = base_path / RULES_DIR
    if rules_dir.is_dir():
        sources.extend(
            p for p in sorted(rules_dir.iterdir())
            if p.is_file() and p.suffix in (".yaml", ".yml")
        )
    return sources, []


def load_custom_rules(base_path: Path, explicit: Optional[str] = None) -> RuleLoadResult:
    """Load every custom rule source for *base_path*, deduplicated by id."""
    sources, errors = find_rule_sources(base_path, explicit)
    registry = RuleRegistry()
    result = RuleLoadResult(errors=list(errors), sources=list(sources))

    for path in sources:
        loaded = load_rules_file(path)
        registry.register_many(loaded.rules)
        result.errors.extend(loaded.errors)

    for err in result.errors:
        logger.warning("Custom rule load error: %s", err)

    result.rules = registry.all_rules
    return result


def validate_rules_file(path: Path) -> Dict[str, object]:
    """Validate a single rules file: ``{valid, rule_count, errors}``."""
    loaded = load_rules_file(path)
    return {
        "valid": not loaded.errors,
        "rule_count": len(loaded.rules),
        "errors": loaded.errors,
    }
