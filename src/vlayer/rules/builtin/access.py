"""Access control rules: hardcoded privilege, authentication bypass, open CORS, endless sessions."""

from vlayer.rules.models import PatternRule

ACCESS_REFERENCE = "§164.312(a)(1), §164.312(d)"

HARDCODED_ADMIN_ROLE = PatternRule(
    id="access-hardcoded-admin",
    name="Hardcoded admin role",
    description="Hardcoded administrative role assignment detected.",
    category="access-control",
    severity="high",
    patterns=[r"role\s*[:=]\s*['\"`](?:admin|root|superuser)['\"`]"],
    skip_test_files=True,
    recommendation="Use role-based access control (RBAC) with proper authentication.",
    regulatory_reference=ACCESS_REFERENCE,
)

AUTH_BYPASS = PatternRule(
    id="access-auth-bypass",
    name="Potential authentication bypass",
    description="Code pattern suggests authentication may be bypassed.",
    category="access-control",
    severity="critical",
    patterns=[r"bypass.*auth", r"auth.*bypass", r"skip.*auth"],
    skip_test_files=True,
    recommendation="Remove any authentication bypass mechanisms in production code.",
    regulatory_reference=ACCESS_REFERENCE,
)

ADMIN_FLAG = PatternRule(
    id="access-admin-flag",
    name="Hardcoded admin flag",
    description="Admin privileges set via hardcoded flag.",
    category="access-control",
    severity="medium",
    patterns=[r"isAdmin\s*[:=]\s*true\b", r"\badmin\s*[:=]\s*true\b"],
    skip_test_files=True,
    recommendation="Determine admin status through secure authentication flow.",
    regulatory_reference=ACCESS_REFERENCE,
)

CORS_WILDCARD = PatternRule(
    id="access-cors-wildcard",
    name="CORS wildcard origin",
    description="CORS configured to allow all origins.",
    category="access-control",
    severity="high",
    patterns=[r"allow.*origin.*['\"`]\*['\"`]", r"\borigin\s*:\s*['\"`]\*['\"`]"],
    recommendation="Restrict CORS to specific trusted domains for PHI-handling endpoints.",
    regulatory_reference=ACCESS_REFERENCE,
)

NO_SESSION_EXPIRY = PatternRule(
    id="access-no-session-expiry",
    name="Session without expiration",
    description="Session configured without expiration.",
    category="access-control",
    severity="high",
    patterns=[r"session.*expires?\s*[:=]\s*0\b", r"maxAge\s*:\s*0\b"],
    recommendation=(
        "Implement automatic session timeout for PHI access (HIPAA recommends 15 min idle)."
    ),
    regulatory_reference=ACCESS_REFERENCE,
)

# RBAC-002 already reports these two in browser-side code.
CLIENT_SIDE_DUPLICATES = (HARDCODED_ADMIN_ROLE, ADMIN_FLAG)

ALL_ACCESS_RULES = [HARDCODED_ADMIN_ROLE, AUTH_BYPASS, ADMIN_FLAG, CORS_WILDCARD, NO_SESSION_EXPIRY]
