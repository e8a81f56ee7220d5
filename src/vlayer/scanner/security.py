"""Application security scanner: XSS sinks, eval, string-built SQL, credentials in DB URIs."""

from vlayer.rules.builtin.security import ALL_SECURITY_RULES
from vlayer.scanner.base import PatternScanner


class SecurityScanner(PatternScanner):
    name = "Security Scanner"
    category = "access-control"
    extensions = (".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".go", ".rb", ".php", ".env", ".sql")
    rules = ALL_SECURITY_RULES
