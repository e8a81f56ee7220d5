"""Load and merge configuration from .vlayer.toml, CLI flags, and env vars."""

from __future__ import annotations

import dataclasses
import os
import re
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from vlayer.config.defaults import DEFAULT_EXCLUDES, DEFAULT_SAFE_HTTP_DOMAINS
from vlayer.config.schema import (
    CATEGORIES,
    AcknowledgedFinding,
    AIConfig,
    OutputConfig,
    ScanConfig,
    ScoringConfig,
    VlayerConfig,
)

CONFIG_FILENAME = ".vlayer.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(project_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = project_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.get(section, {}).items() if k in valid_fields}
    return cls(**filtered)


def _build_acknowledgments(raw: Dict[str, Any]) -> List[AcknowledgedFinding]:
    from vlayer.findings.acknowledgments import validate_acknowledged_finding

    entries: List[AcknowledgedFinding] = []
    valid_fields = {f.name for f in dataclasses.fields(AcknowledgedFinding)}
    for index, item in enumerate(raw.get("acknowledged_findings", [])):
        if not isinstance(item, dict):
            raise ConfigError(f"acknowledged_findings[{index}] must be a table")
        # TOML may hand back native dates; keep ISO strings on the model
        item = {
            k: v.isoformat() if isinstance(v, (date, datetime)) else v
            for k, v in item.items()
        }
        errors = validate_acknowledged_finding(item)
        if errors:
            raise ConfigError(
                f"acknowledged_findings[{index}]: " + "; ".join(errors)
            )
        entries.append(
            AcknowledgedFinding(**{k: v for k, v in item.items() if k in valid_fields})
        )
    return entries


def _merged(defaults: Iterable[str], values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys([*defaults, *values]))


def _merge_defaults(cfg: VlayerConfig) -> None:
    """Merge list settings with built-in defaults instead of replacing them."""
    cfg.scan.exclude = _merged(DEFAULT_EXCLUDES, cfg.scan.exclude)
    cfg.scan.ignore_paths = _merged((), cfg.scan.ignore_paths)
    cfg.scan.safe_http_domains = _merged(DEFAULT_SAFE_HTTP_DOMAINS, cfg.scan.safe_http_domains)


def _split_env(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _merge_env_overrides(cfg: VlayerConfig) -> None:
    """Apply VLAYER_* environment variable overrides."""
    if val := os.environ.get("VLAYER_CATEGORIES"):
        cfg.scan.categories = [c for c in _split_env(val) if c in CATEGORIES]
    if val := os.environ.get("VLAYER_EXCLUDE"):
        cfg.scan.exclude.extend(_split_env(val))
    if val := os.environ.get("VLAYER_FORMAT"):
        if val in ("terminal", "json", "sarif"):
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("VLAYER_MIN_CONFIDENCE"):
        if val in ("high", "medium", "low"):
            cfg.scan.min_confidence = val  # type: ignore[assignment]
    if val := os.environ.get("VLAYER_AI_BUDGET_CENTS"):
        try:
            cfg.ai.budget_cents = float(val)
        except ValueError:
            pass


def load_config(
    project_root: Path,
    config_override: Optional[str] = None,
) -> VlayerConfig:
    """Load, validate, and return a VlayerConfig."""
    config_path = find_config_file(project_root, config_override)

    if config_path is None:
        cfg = VlayerConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = VlayerConfig(
                version=str(raw.get("version", "1.0")),
                scan=_build_section(raw, ScanConfig, "scan"),
                output=_build_section(raw, OutputConfig, "output"),
                scoring=_build_section(raw, ScoringConfig, "scoring"),
                ai=_build_section(raw, AIConfig, "ai"),
                acknowledged_findings=_build_acknowledgments(raw),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc

    _merge_defaults(cfg)
    _merge_env_overrides(cfg)
    return cfg


def is_path_ignored(file_path: str, patterns: Iterable[str]) -> bool:
    """Return True if *file_path* matches an ignore pattern.

    Patterns containing ``*`` are treated as loose globs (``*`` becomes ``.*``
    and the result is searched anywhere in the path); everything else is a
    plain substring match.
    """
    for pattern in patterns:
        if "*" in pattern:
            regex = ".*".join(re.escape(part) for part in pattern.split("*"))
            if re.search(regex, file_path):
                return True
        elif pattern in file_path:
            return True
    return False


def is_safe_http_url(text: str, safe_domains: Iterable[str]) -> bool:
    """Return True if *text* references one of the safe plain-HTTP domains."""
    return any(domain in text for domain in safe_domains)
