"""Multi-factor authentication rules."""

from vlayer.rules.models import PatternRule

AUTHENTICATION_REFERENCE = "NPRM §164.312(d) - Person or Entity Authentication"

AUTH_CONFIG_NO_MFA = PatternRule(
    id="MFA-001",
    name="Authentication Configuration Without MFA Enabled",
    description=(
        "Auth provider configuration (NextAuth, Clerk, Auth0, Supabase) does not have "
        "MFA/2FA/TOTP enabled"
    ),
    category="access-control",
    severity="critical",
    regulatory_reference=AUTHENTICATION_REFERENCE,
    patterns=[
        r"NextAuth\s*\(",
        r"export\s+(?:default\s+)?NextAuth",
        r"authOptions\s*[:=]",
        r"ClerkProvider",
        r"clerk\.(?:setup|configure)",
        r"Auth0Provider",
        r"auth0\.WebAuth",
        r"new\s+Auth0Client",
        r"supabase\.auth\.signUp",
        r"createClient.*?supabase",
        r"authConfig\s*[:=]",
        r"authentication\s*:\s*\{",
    ],
    # any MFA mention anywhere in the file counts as configured
    file_negative_patterns=[
        r"mfa",
        r"2fa",
        r"totp",
        r"otp",
        r"multiFactor",
        r"multi[-_]factor",
        r"twoFactor",
        r"two[-_]factor",
        r"authenticator",
    ],
    per_file=True,
    recommendation=(
        "Enable MFA in your auth provider configuration. For NextAuth: add adapter with MFA support. "
        "For Clerk: enable MFA in dashboard. For Auth0: enable MFA in tenant settings. For Supabase: "
        "enable MFA in auth settings."
    ),
)

LOGIN_NO_SECOND_FACTOR = PatternRule(
    id="MFA-002",
    name="Login Flow Without Second Factor Authentication",
    description=(
        "Login/sign-in flow authenticates with only email and password without requiring second "
        "factor verification"
    ),
    category="access-control",
    severity="high",
    regulatory_reference=AUTHENTICATION_REFERENCE,
    patterns=[
        r"(?:signIn|login|authenticate)\s*\([^)]*(?:email|username)[^)]*password",
        r"(?:signIn|login|authenticate)\s*\(\s*\{[^}]*(?:email|username)[^}]*password[^}]*\}",
        r"credentials\s*:\s*\{[^}]*(?:email|username)[^}]*password[^}]*\}",
        r"(?:email|username)\s*,\s*password\s*\)",
        r"password\s*,\s*(?:email|username)\s*\)",
    ],
    context_negative_patterns=[
        r"mfaToken",
        r"totpCode",
        r"verificationCode",
        r"twoFactorCode",
        r"authenticatorCode",
        r"otp",
        r"mfaVerified",
        r"requireMfa",
        r"checkMfa",
        r"verifyMfa",
    ],
    window_after=5,
    window_strips_comments=False,
    recommendation=(
        "Add second factor verification to login flow. After successful password authentication, "
        "require MFA token/TOTP code before granting access. Example: if (user.mfaEnabled && "
        '!mfaToken) return { error: "MFA required" }'
    ),
)

MFA_BYPASS = PatternRule(
    id="MFA-003",
    name="MFA Bypass Detected in Code",
    description="Code explicitly bypasses, skips, or disables MFA requirements",
    category="access-control",
    severity="critical",
    regulatory_reference=AUTHENTICATION_REFERENCE,
    patterns=[
        r"skipMfa",
        r"bypassMfa",
        r"disableMfa",
        r"ignoreMfa",
        r"mfaEnabled\s*[:=]\s*false",
        r"requireMfa\s*[:=]\s*false",
        r"require(?:Two|2)Factor\s*[:=]\s*false",
        r"mfa\s*:\s*\{\s*enabled\s*:\s*false",
        r"twoFactor\s*:\s*false",
        r"if\s*\([^)]*skip.*mfa",
        r"if\s*\([^)]*!.*(?:mfa|2fa|totp)",
        r"process\.env\.(?:SKIP|DISABLE|BYPASS).*MFA",
    ],
    context_negative_patterns=[
        r"//.*test",
        r"/\*.*test",
        r"describe\(",
        r"it\(",
        r"test\(",
        r"\.test\.",
        r"\.spec\.",
        r"console\.(?:log|warn|error)",
        r"throw.*error",
    ],
    window_after=5,
    window_strips_comments=False,
    recommendation=(
        "Remove MFA bypass code. MFA should be mandatory for all users accessing PHI. If testing is "
        "needed, use proper test isolation instead of disabling MFA in production code."
    ),
)

ALL_AUTHENTICATION_RULES = [AUTH_CONFIG_NO_MFA, LOGIN_NO_SECOND_FACTOR, MFA_BYPASS]
