"""Built-in rules, aggregated across every pattern scanner."""

from vlayer.rules.builtin.access import ALL_ACCESS_RULES
from vlayer.rules.builtin.audit import ALL_AUDIT_RULES
from vlayer.rules.builtin.authentication import ALL_AUTHENTICATION_RULES
from vlayer.rules.builtin.credentials import ALL_CREDENTIAL_RULES
from vlayer.rules.builtin.encryption import ALL_ENCRYPTION_RULES
from vlayer.rules.builtin.errors import ALL_ERROR_RULES
from vlayer.rules.builtin.phi import ALL_PHI_RULES
from vlayer.rules.builtin.rbac import ALL_RBAC_RULES
from vlayer.rules.builtin.retention import ALL_RETENTION_RULES
from vlayer.rules.builtin.revocation import ALL_REVOCATION_RULES
from vlayer.rules.builtin.sanitization import ALL_SANITIZATION_RULES
from vlayer.rules.builtin.security import ALL_SECURITY_RULES
from vlayer.rules.builtin.skills import ALL_SKILL_RULES
from vlayer.rules.models import PatternRule

ALL_BUILTIN_RULES: list[PatternRule] = [
    *ALL_PHI_RULES,
    *ALL_ENCRYPTION_RULES,
    *ALL_CREDENTIAL_RULES,
    *ALL_ERROR_RULES,
    *ALL_AUDIT_RULES,
    *ALL_RBAC_RULES,
    *ALL_AUTHENTICATION_RULES,
    *ALL_REVOCATION_RULES,
    *ALL_RETENTION_RULES,
    *ALL_SANITIZATION_RULES,
    *ALL_SECURITY_RULES,
    *ALL_ACCESS_RULES,
    *ALL_SKILL_RULES,
]

__all__ = ["ALL_BUILTIN_RULES"]
