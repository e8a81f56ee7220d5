"""Token revocation rules: JWTs without server-side revocation, long expirations."""

from vlayer.rules.models import PatternRule

REVOCATION_REFERENCE = "NPRM §164.308(a)(3)(ii)(C) - Access Revocation"
MAX_TOKEN_LIFETIME_SECONDS = 24 * 60 * 60

JWT_WITHOUT_REVOCATION = PatternRule(
    id="REVOKE-001",
    name="JWT Without Server-Side Revocation Mechanism",
    description=(
        "JWT token generation (jwt.sign, jsonwebtoken, jose) without server-side revocation "
        "mechanism (revoke, blacklist, allowlist, tokenStore, invalidate, denylist). HIPAA NPRM "
        "requires ability to revoke access within 1 hour."
    ),
    category="access-control",
    severity="high",
    regulatory_reference=REVOCATION_REFERENCE,
    patterns=[
        r"jwt\.sign\s*\(",
        r"jsonwebtoken\.sign\s*\(",
        r"new\s+(?:SignJWT|CompactSign)\s*\(",
        r"jose\.(?:SignJWT|sign)",
        r"(?:create|generate)(?:Access)?Token\s*\([^)]*\)",
        r"\.sign\s*\([^)]*jwt",
    ],
    context_negative_patterns=[
        r"revoke",
        r"blacklist",
        r"allowlist",
        r"whitelist",
        r"denylist",
        r"tokenStore",
        r"invalidate",
        r"revokedTokens",
        r"tokenBlacklist",
        r"redis",
        r"session",
        r"tokenRepository",
        r"saveToken",
        r"storeToken",
        r"express-jwt-blacklist",
        r"jwt-redis",
        r"revocation.*handled",
        r"revoke.*separate",
    ],
    window_before=20,
    window_after=10,
    recommendation=(
        "Implement server-side token revocation mechanism. Store active tokens in Redis/database "
        "with TTL, or maintain a blacklist of revoked tokens. Example: await "
        'redis.set(`token:${userId}`, token, "EX", 3600); await redis.del(`token:${userId}`) to '
        "revoke. HIPAA requires ability to revoke access within 1 hour."
    ),
)

# The expiresIn value is captured as "expiry" and compared to
# MAX_TOKEN_LIFETIME_SECONDS by the scanner.
EXCESSIVE_TOKEN_EXPIRATION = PatternRule(
    id="REVOKE-002",
    name="Excessive Token Expiration Time",
    description=(
        'JWT token with excessive expiration time. Access tokens should expire within 24 hours '
        '(expiresIn: "24h" or less). Refresh tokens should not exceed 7 days for sensitive data.'
    ),
    category="access-control",
    severity="medium",
    regulatory_reference=REVOCATION_REFERENCE,
    patterns=[
        r"expiresIn\s*:\s*(?P<expiry>['\"`][^'\"`]*['\"`]|\d[\d_]*(?:\s*\*\s*\d[\d_]*)*)",
        r"maxAge\s*:\s*(?:6[1-9]\d{7}|[7-9]\d{8}|\d{9,})\b",
        r"exp\s*:\s*Math\.floor\s*\([^)]*\+\s*(?:2[5-9]|[3-9]\d|\d{3,})\s*\*\s*(?:60\s*\*\s*60|3600)",
    ],
    context_negative_patterns=[
        r"refresh.*token",
        r"refreshToken",
        r"remember.*me",
        r"rememberMe",
        r"api.*key",
        r"apiKey",
    ],
    window_before=10,
    window_after=5,
    recommendation=(
        'Use short-lived access tokens (<= 24 hours): expiresIn: "1h" or expiresIn: "15m". For '
        "longer sessions, implement refresh token rotation. Example: accessToken with expiresIn: "
        '"1h", refreshToken with expiresIn: "7d". Reduce attack window if token is compromised.'
    ),
)

ALL_REVOCATION_RULES = [JWT_WITHOUT_REVOCATION, EXCESSIVE_TOKEN_EXPIRATION]
