"""Credential rules: weak password hashing, hardcoded secrets, public env leaks."""

from vlayer.rules.models import PatternRule

PASSWORD_CONTEXT_RE = r"password|passwd|pwd|credential|auth"

WEAK_PASSWORD_HASH = PatternRule(
    id="CRED-001",
    name="Weak Password Hashing Algorithm Detected",
    description=(
        "Using MD5, SHA1, or SHA256 for password hashing instead of secure algorithms "
        "like bcrypt, argon2, or scrypt"
    ),
    category="encryption",
    severity="critical",
    regulatory_reference="45 CFR §164.312(d) - Person or Entity Authentication",
    patterns=[
        r"createHash\s*\(\s*['\"`](?:md5|sha1|sha-?1|sha256|sha-?256)['\"`]\s*\)",
        r"hashlib\.(?:md5|sha1|sha256)\s*\(",
        r"(?:md5|sha1|sha256).*?(?:password|pass|pwd|hash)",
        r"(?:password|pass|pwd).*?(?:md5|sha1|sha256)",
    ],
    context_negative_patterns=[
        r"bcrypt",
        r"argon2",
        r"scrypt",
        r"pbkdf2",
        r"//.*(?:don't|do not|avoid|never).*md5",
        r"/\*.*(?:don't|do not|avoid|never).*md5",
        r"checksum",
        r"file.*hash",
        r"integrity",
    ],
    window_before=5,
    window_after=5,
    window_strips_comments=False,
    recommendation=(
        "Use bcrypt, argon2, or scrypt for password hashing. Example: await bcrypt.hash(password, 10) "
        "or await argon2.hash(password). Never use MD5, SHA1, or simple SHA256 for passwords."
    ),
)

HARDCODED_CREDENTIALS = PatternRule(
    id="CRED-002",
    name="Hardcoded Credentials Detected",
    description=(
        "Credentials (password, apiKey, secret, token, connectionString) hardcoded as string "
        "literals instead of using environment variables"
    ),
    category="encryption",
    severity="critical",
    regulatory_reference="45 CFR §164.312(a)(2)(i) - Unique User Identification",
    patterns=[
        r"(?:password|passwd|pwd)\s*[:=]\s*['\"`][^'\"`]{8,}['\"`]",
        r"(?:api[-_]?key|apikey)\s*[:=]\s*['\"`][^'\"`]{8,}['\"`]",
        r"(?:secret|private[-_]?key|privatekey)\s*[:=]\s*['\"`][^'\"`]{8,}['\"`]",
        r"(?:token|auth[-_]?token|access[-_]?token)\s*[:=]\s*['\"`][^'\"`]{16,}['\"`]",
        r"(?:connection[-_]?string|connectionstring|database[-_]?url)\s*[:=]\s*['\"`][^'\"`]{10,}['\"`]",
        r"['\"`]Bearer\s+[A-Za-z0-9_\-\.]{16,}['\"`]",
        r"(?:aws|service|client)[-_]?(?:key|secret)\s*[:=]\s*['\"`][A-Za-z0-9+/]{20,}['\"`]",
    ],
    negative_patterns=[
        r"process\.env",
        r"import\.meta\.env",
        r"env\.",
        r"ENV\[",
        r"getenv",
        r"your[-_]?(?:key|secret|password|token)",
        r"(?:placeholder|example|dummy|test|sample)",
        r"changeme",
        r"replace[-_]?(?:this|me)",
        r"(?:xxx|yyy|zzz)",
        r"['\"]\s*['\"]",
        r"\$\{",
        r"//",
        r"/\*",
    ],
    recommendation=(
        "Move credentials to environment variables. Use process.env.PASSWORD or a secure secrets "
        "manager. Never commit credentials to source control. Add credentials to .gitignore."
    ),
    fix_type="hardcoded-password",
)

NEXT_PUBLIC_SECRETS = PatternRule(
    id="CRED-003",
    name="Secrets Exposed to Client via NEXT_PUBLIC_ Prefix",
    description=(
        "Sensitive credentials exposed to client-side code using NEXT_PUBLIC_ environment "
        "variable prefix"
    ),
    category="encryption",
    severity="critical",
    regulatory_reference="45 CFR §164.312(a)(2)(i) - Unique User Identification",
    patterns=[
        r"NEXT_PUBLIC_SECRET",
        r"NEXT_PUBLIC_.*?KEY",
        r"NEXT_PUBLIC_.*?PASSWORD",
        r"NEXT_PUBLIC_SERVICE_ROLE",
        r"NEXT_PUBLIC_.*?TOKEN",
        r"NEXT_PUBLIC_.*?PRIVATE",
        r"NEXT_PUBLIC_DATABASE",
        r"NEXT_PUBLIC_.*?ADMIN",
    ],
    negative_patterns=[
        r"NEXT_PUBLIC_(?:SUPABASE|FIREBASE|CLERK)_(?:ANON|PUBLISHABLE)_KEY",
        r"NEXT_PUBLIC_.*?PUBLISHABLE",
        r"NEXT_PUBLIC_.*?PUBLIC_KEY",
        r"NEXT_PUBLIC_(?:GA|GTM|ANALYTICS|MIXPANEL|SEGMENT)_",
        r"NEXT_PUBLIC_(?:APP|SITE|BASE)_(?:URL|NAME|VERSION)",
        r"NEXT_PUBLIC_FEATURE_",
        r"//.*(?:don't|do not|avoid|never)",
    ],
    recommendation=(
        "Remove NEXT_PUBLIC_ prefix from sensitive variables. Use server-side environment variables "
        "(without NEXT_PUBLIC_) and access them in API routes or getServerSideProps. Only use "
        "NEXT_PUBLIC_ for truly public values like API endpoints or publishable keys."
    ),
)

ALL_CREDENTIAL_RULES = [WEAK_PASSWORD_HASH, HARDCODED_CREDENTIALS, NEXT_PUBLIC_SECRETS]
