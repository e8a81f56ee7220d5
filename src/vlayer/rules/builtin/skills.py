"""Rules for AI agent skill manifests (SKILL.md and friends).

Skill findings map onto the compliance categories: PHI literals stay
``phi-exposure``, credential leaks and malicious commands become
``access-control``, and HIPAA violations (mostly transport and storage)
become ``encryption``.
"""

from __future__ import annotations

from typing import Optional

from vlayer.config.schema import Severity
from vlayer.rules.models import PatternRule

SKILL_CATEGORY_MAP = {
    "phi-exposure": "phi-exposure",
    "credential-leak": "access-control",
    "malicious": "access-control",
    "hipaa-violation": "encryption",
}

PHI_DISCLOSURE = "§164.502(a) - PHI Use and Disclosure"
TRANSMISSION_SECURITY = "§164.312(e)(1) - Transmission Security"


def _skill(
    rule_id: str,
    name: str,
    kind: str,
    severity: Severity,
    pattern: str,
    description: str,
    recommendation: str,
    reference: Optional[str] = None,
    ignore_case: bool = True,
) -> PatternRule:
    return PatternRule(
        id=rule_id,
        name=name,
        description=description,
        category=SKILL_CATEGORY_MAP[kind],
        severity=severity,
        patterns=[pattern],
        recommendation=recommendation,
        regulatory_reference=reference or "",
        ignore_case=ignore_case,
    )


PHI_EXPOSURE_RULES = [
    _skill(
        "skill-phi-hardcoded-ssn", "Hardcoded SSN in skill prompt", "phi-exposure", "critical",
        r"\b\d{3}[-\s]?\d{2}[-\s]?\d{4}\b",
        "Social Security Number found in skill definition",
        "Never hardcode PHI in skill prompts. Use placeholders like {{patient_id}} instead.",
        PHI_DISCLOSURE, ignore_case=False,
    ),
    _skill(
        "skill-phi-patient-name", "Patient name in example", "phi-exposure", "high",
        r"(?:patient|client|user)(?:\s+name)?[:=]\s*['\"]?(?!\{\{)[A-Z][a-z]+\s+[A-Z][a-z]+['\"]?",
        "Real patient name appears in skill prompt example",
        'Use fictional names (e.g., "John Doe") or template variables {{patient_name}}',
        PHI_DISCLOSURE,
    ),
    _skill(
        "skill-phi-dob", "Date of birth in prompt", "phi-exposure", "high",
        r"(?:dob|date.{0,5}birth|birthdate)[:=]\s*['\"]?\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}['\"]?",
        "Date of birth found in skill definition",
        "Use template variable {{date_of_birth}} instead of actual dates",
        PHI_DISCLOSURE,
    ),
    _skill(
        "skill-phi-mrn", "Medical Record Number exposed", "phi-exposure", "critical",
        r"(?:mrn|medical.{0,10}record.{0,10}number)[:=]\s*['\"]?\d{6,}['\"]?",
        "Medical Record Number found in skill prompt",
        "Never include real MRNs. Use {{medical_record_number}} placeholder.",
        PHI_DISCLOSURE,
    ),
    _skill(
        "skill-phi-diagnosis", "Diagnosis code in prompt", "phi-exposure", "medium",
        r"(?:diagnosis|icd.?10?|condition)[:=]\s*['\"]?[A-Z]\d{2}(?:\.\d{1,2})?['\"]?",
        "ICD diagnosis code found in skill example",
        "Use generic examples or template variables for diagnoses",
        PHI_DISCLOSURE,
    ),
]

CREDENTIAL_LEAK_RULES = [
    _skill(
        "skill-api-key-exposed", "API key in skill configuration", "credential-leak", "critical",
        r"(?:api.{0,5}key|apikey|access.{0,5}key)[:=]\s*['\"]?[A-Za-z0-9_\-]{20,}['\"]?",
        "Hardcoded API key found in skill",
        "Use environment variables: ${ANTHROPIC_API_KEY} or prompt user for keys",
    ),
    _skill(
        "skill-aws-credentials", "AWS credentials exposed", "credential-leak", "critical",
        r"(?:AKIA|aws_access_key_id|aws_secret_access_key)[:=\s]['\"]?[A-Z0-9]{20,}['\"]?",
        "AWS credentials found in skill definition",
        "Never hardcode AWS credentials. Use IAM roles or environment variables.",
    ),
    _skill(
        "skill-database-password", "Database password in connection string", "credential-leak",
        "critical",
        r"(?:postgres|mysql|mongodb)://[^:]+:([^@\s]{4,})@",
        "Database password exposed in connection string",
        "Use environment variables: ${DB_PASSWORD} or credential manager",
    ),
    _skill(
        "skill-bearer-token", "Bearer token hardcoded", "credential-leak", "critical",
        r"bearer\s+[A-Za-z0-9_\-\.]{20,}",
        "Bearer authentication token found in skill",
        "Tokens should be fetched securely at runtime, not hardcoded",
    ),
    _skill(
        "skill-private-key", "Private key in skill", "credential-leak", "critical",
        r"-----BEGIN (?:RSA |EC )?PRIVATE KEY-----",
        "Private cryptographic key found in skill definition",
        "Never include private keys. Use key management service.",
        ignore_case=False,
    ),
]

MALICIOUS_RULES = [
    _skill(
        "skill-data-exfiltration", "Data exfiltration detected", "malicious", "critical",
        r"curl\s+(?:-X\s+POST\s+)?(?:https?://)?(?!localhost|127\.0\.0\.1|api\.(?:anthropic|openai)\.com)[^\s]+.*?\|",
        "Potential data exfiltration via curl to external domain",
        "Review external API calls. Healthcare data should not be sent to unknown endpoints.",
        "§164.308(a)(4) - Access Controls", ignore_case=False,
    ),
    _skill(
        "skill-reverse-shell", "Reverse shell attempt", "malicious", "critical",
        r"(?:bash|sh|zsh)\s+-[ci]\s+['\"].*?/dev/tcp/|nc\s+-[el]|ncat\s+--exec",
        "Reverse shell command detected - potential backdoor",
        "REJECT THIS SKILL. This is a clear malicious pattern.",
        ignore_case=False,
    ),
    _skill(
        "skill-atomic-stealer", "Atomic Stealer pattern", "malicious", "critical",
        r"(?:curl|wget).*?\.sh\s*\|\s*(?:bash|sh)|base64\s+-d.*?\|\s*(?:bash|sh)",
        "Pattern matches known Atomic Stealer malware distribution",
        "REJECT THIS SKILL. This matches known malware distribution signatures.",
        ignore_case=False,
    ),
    _skill(
        "skill-credential-scraper", "Credential scraping detected", "malicious", "high",
        r"(?:cat|grep|find).*?(?:\.aws|\.ssh|\.env|password|credential|secret)",
        "Commands that search for credential files",
        "Verify legitimacy. Skills should not scrape credential files.",
    ),
    _skill(
        "skill-obfuscated-command", "Obfuscated command execution", "malicious", "high",
        r"eval\s*\$\(|`.*?`|\$\{[^}]*?\}",
        "Command substitution or eval - common in malware",
        "Review carefully. Obfuscation often hides malicious intent.",
        ignore_case=False,
    ),
]

HIPAA_VIOLATION_RULES = [
    _skill(
        "skill-http-phi-transmission", "PHI transmitted over HTTP", "hipaa-violation", "critical",
        r"(?:curl|fetch|axios|request).*?http://(?!localhost|127\.0\.0\.1).*?(?:patient|phi|health|medical)",
        "Skill transmits PHI over unencrypted HTTP",
        "Use HTTPS for all PHI transmission. HTTP violates HIPAA encryption requirements.",
        TRANSMISSION_SECURITY,
    ),
    _skill(
        "skill-no-audit-logging", "PHI access without audit logging", "hipaa-violation", "high",
        r"(?:SELECT|UPDATE|DELETE).*?FROM.*?(?:patient|phi|health_record)(?!.*?(?:log|audit))",
        "Skill accesses PHI database without audit logging",
        "Add audit logging: auditLog.record({ action, userId, resourceId })",
        "§164.308(a)(1)(ii)(D) - Audit Controls",
    ),
    _skill(
        "skill-phi-in-logs", "PHI logged to console/files", "hipaa-violation", "high",
        r"(?:console\.log|print|echo|logger\.).*?(?:\$\{?patient|\$\{?phi|medical_record)",
        "Skill logs PHI to console or log files",
        'Never log PHI. Use redacted logging: logger.info({ patientId: "***" })',
        PHI_DISCLOSURE,
    ),
    _skill(
        "skill-phi-in-url", "PHI in URL parameters", "hipaa-violation", "critical",
        r"(?:\?|&)(?:ssn|dob|mrn|diagnosis)=",
        "Skill passes PHI in URL query parameters",
        "Use POST with encrypted body. URLs are logged by proxies/servers.",
        TRANSMISSION_SECURITY,
    ),
    _skill(
        "skill-no-encryption", "Missing encryption for PHI storage", "hipaa-violation", "critical",
        r"(?:localStorage|sessionStorage|\.setItem).*?(?:patient|phi|health)",
        "Skill stores PHI in browser storage without encryption",
        "Use encrypted storage or server-side session storage only.",
        "§164.312(a)(2)(iv) - Encryption",
    ),
]

ALL_SKILL_RULES = PHI_EXPOSURE_RULES + CREDENTIAL_LEAK_RULES + MALICIOUS_RULES + HIPAA_VIOLATION_RULES
