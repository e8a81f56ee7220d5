"""Audit logging rules: PHI operations that leave no log trail."""

from vlayer.rules.models import PatternRule

AUDIT_REFERENCE = "§164.312(b)"

LOGGING_FRAMEWORKS = (
    "winston",
    "bunyan",
    "pino",
    "log4js",
    "morgan",
    "logging",
    "logger",
    "structlog",
    "loguru",
)

# Dependency manifests checked for a logging framework.
MANIFEST_NAMES = ("package.json", "requirements.txt", "pyproject.toml")

PHI_KEYWORDS_RE = r"patient|health|medical|diagnosis|treatment"
LOGGING_CALL_RE = r"\.(log|info|warn|error|audit)\s*\(|logger\."

NO_FRAMEWORK_ID = "audit-no-framework"
NO_FRAMEWORK_TITLE = "No audit logging framework detected"
NO_FRAMEWORK_DESCRIPTION = "No recognized logging framework found in dependencies."
NO_FRAMEWORK_RECOMMENDATION = (
    "Implement structured audit logging using winston, pino, structlog or similar."
)


def _action(action: str, pattern: str) -> PatternRule:
    return PatternRule(
        id=f"audit-unlogged-{action}",
        name=f"PHI {action} operation may lack audit logging",
        description=(
            f"A {action} operation on PHI-related data was found without apparent audit "
            "logging in this file."
        ),
        category="audit-logging",
        severity="medium",
        patterns=[pattern],
        recommendation=(
            f"Log all {action} operations on PHI with timestamp, user ID, and action details."
        ),
        regulatory_reference=AUDIT_REFERENCE,
        per_file=True,
    )


AUDIT_ACTION_RULES = [
    _action("create", r"\.(create|insert|save|add)\s*\("),
    _action("update", r"\.(update|modify|patch|put)\s*\("),
    _action("delete", r"\.(delete|remove|destroy)\s*\("),
    _action("read", r"\.(read|get|find|fetch|select)\s*\("),
    _action("auth", r"\.(login|authenticate|authorize)\s*\("),
]

ALL_AUDIT_RULES = list(AUDIT_ACTION_RULES)
