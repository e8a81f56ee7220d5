"""Error handling scanner: error details sent to clients, PHI in logs."""

from vlayer.rules.builtin.errors import ALL_ERROR_RULES
from vlayer.scanner.base import PatternScanner


class ErrorsScanner(PatternScanner):
    name = "Error Handling Security Scanner"
    category = "audit-logging"
    extensions = (".ts", ".tsx", ".js", ".jsx")
    rules = ALL_ERROR_RULES
    skip_comments = False
