"""Encryption rules: weak algorithms, plaintext transport, unencrypted backups."""

from __future__ import annotations

from typing import Optional

from vlayer.config.schema import Severity
from vlayer.rules.models import PatternRule

WEAK_CRYPTO_REFERENCE = "§164.312(a)(2)(iv), §164.312(e)(2)(ii)"
TRANSMISSION_REFERENCE = "§164.312(e)(1)"

WEAK_CRYPTO_RECOMMENDATION = (
    "Use AES-256-GCM for encryption and SHA-256 or stronger for hashing."
)
TRANSMISSION_RECOMMENDATION = "Enforce TLS 1.2+ for all data transmission containing PHI."


def _weak(rule_id: str, issue: str, severity: Severity, pattern: str, ignore_case: bool = True) -> PatternRule:
    return PatternRule(
        id=f"enc-weak-{rule_id}",
        name=f"Weak cryptography: {issue}",
        description=f"{issue} is not suitable for protecting PHI.",
        category="encryption",
        severity=severity,
        patterns=[pattern],
        recommendation=WEAK_CRYPTO_RECOMMENDATION,
        regulatory_reference=WEAK_CRYPTO_REFERENCE,
        ignore_case=ignore_case,
    )


def _missing(rule_id: str, issue: str, severity: Severity, pattern: str, fix_type: Optional[str] = None) -> PatternRule:
    return PatternRule(
        id=f"enc-missing-{rule_id}",
        name=f"Encryption issue: {issue}",
        description=f"{issue} may expose PHI during transmission.",
        category="encryption",
        severity=severity,
        patterns=[pattern],
        recommendation=TRANSMISSION_RECOMMENDATION,
        regulatory_reference=TRANSMISSION_REFERENCE,
        fix_type=fix_type,
    )


# ---- weak algorithms ----

WEAK_MD5 = _weak("md5", "MD5 hash function", "high", r"\bmd5\s*\(")
WEAK_SHA1 = _weak("sha1", "SHA1 hash function", "medium", r"\bsha1\s*\(")
WEAK_DES = _weak("des", "DES encryption", "critical", r"\bdes\b")
WEAK_RC4 = _weak("rc4", "RC4 encryption", "critical", r"\b(rc4|arcfour)\b")
WEAK_CREATE_CIPHER = _weak("create-cipher", "Deprecated cipher method", "high", r"createCipher\s*\(")
WEAK_ECB = _weak("ecb", "ECB mode encryption", "high", r"\bECB\b", ignore_case=False)

# ---- transport and backups ----

PLAIN_HTTP = _missing(
    "http", "Unencrypted HTTP URL", "high", r"http://(?!localhost|127\.0\.0\.1)", fix_type="http-url"
)
SSL_DISABLED = _missing("ssl-disabled", "SSL disabled", "critical", r"ssl\s*[:=]\s*false")
SSL_VERIFY_DISABLED = _missing(
    "ssl-verify", "SSL verification disabled", "critical", r"verify\s*[:=]\s*false.*ssl"
)
TLS_VALIDATION_DISABLED = _missing(
    "tls-validation",
    "TLS certificate validation disabled",
    "critical",
    r"rejectUnauthorized\s*:\s*false",
)
BACKUP_ENCRYPTION_DISABLED = _missing(
    "backup-encryption",
    "Backup encryption disabled",
    "critical",
    r"backup.*encrypt\s*[:=]\s*false|encrypt\s*[:=]\s*false.*backup",
    fix_type="backup-unencrypted",
)
BACKUP_NO_SSL = _missing(
    "backup-ssl",
    "Database backup without SSL",
    "high",
    r"mysqldump(?!.*--ssl).*password|pg_dump(?!.*--ssl)",
)
BACKUP_PLAIN_FILE = _missing(
    "backup-file",
    "Unencrypted backup file format",
    "high",
    r"backup.*(\.sql|\.csv|\.json|\.txt)\b(?!.*encrypt|.*gpg|.*aes)",
    fix_type="backup-unencrypted",
)
BACKUP_PHI_WRITE = _missing(
    "backup-phi",
    "PHI backup without encryption",
    "critical",
    r"writeFile.*backup.*patient|patient.*backup.*writeFile",
    fix_type="backup-unencrypted",
)
BACKUP_S3_NO_SSE = _missing(
    "backup-s3",
    "S3 backup without server-side encryption",
    "high",
    r"s3.*upload.*backup(?!.*encrypt|.*sse|.*kms)",
)
BACKUP_STORAGE = _missing(
    "backup-storage",
    "Backup storage without encryption specified",
    "medium",
    r"backup.*storage(?!.*encrypt)|storage.*backup(?!.*encrypt)",
)

WEAK_CRYPTO_RULES = [WEAK_MD5, WEAK_SHA1, WEAK_DES, WEAK_RC4, WEAK_CREATE_CIPHER, WEAK_ECB]

MISSING_ENCRYPTION_RULES = [
    PLAIN_HTTP,
    SSL_DISABLED,
    SSL_VERIFY_DISABLED,
    TLS_VALIDATION_DISABLED,
    BACKUP_ENCRYPTION_DISABLED,
    BACKUP_NO_SSL,
    BACKUP_PLAIN_FILE,
    BACKUP_PHI_WRITE,
    BACKUP_S3_NO_SSE,
    BACKUP_STORAGE,
]

ALL_ENCRYPTION_RULES = WEAK_CRYPTO_RULES + MISSING_ENCRYPTION_RULES
