"""Authentication scanner: MFA missing from auth configuration, login flows and bypass flags."""

from vlayer.rules.builtin.authentication import ALL_AUTHENTICATION_RULES
from vlayer.scanner.base import PatternScanner


class AuthenticationScanner(PatternScanner):
    name = "Authentication Scanner"
    category = "access-control"
    extensions = (".js", ".ts", ".jsx", ".tsx", ".json", ".yaml", ".yml", ".env")
    rules = ALL_AUTHENTICATION_RULES
