"""Configuration loading, schema, and defaults."""

from vlayer.config.loader import (
    ConfigError,
    is_path_ignored,
    is_safe_http_url,
    load_config,
)
from vlayer.config.schema import (
    AcknowledgedFinding,
    Severity,
    VlayerConfig,
    severity_at_or_above,
)

__all__ = [
    "AcknowledgedFinding",
    "ConfigError",
    "Severity",
    "VlayerConfig",
    "is_path_ignored",
    "is_safe_http_url",
    "load_config",
    "severity_at_or_above",
]
