"""Error-handling rules: error details returned to clients, PHI in logs and throws."""

from vlayer.rules.models import PatternRule

_PHI_TERMS = r"(?:patient|ssn|dob|mrn|diagnosis|medication|health[-_]?record)"

UNSANITIZED_ERROR_RESPONSE = PatternRule(
    id="ERROR-001",
    name="Unsanitized Error Details Sent to User",
    description=(
        "Response sends error.stack or error.message directly to user without sanitization, "
        "potentially exposing sensitive system information"
    ),
    category="audit-logging",
    severity="high",
    regulatory_reference="45 CFR §164.312(b) - Audit Controls",
    patterns=[
        r"res\.(?:send|json)\s*\([^)]*err(?:or)?\.stack",
        r"res\.(?:send|json)\s*\([^)]*err(?:or)?\.message",
        r"res\.(?:send|json)\s*\(\s*err(?:or)?\s*\)",
        r"return.*?res\.(?:send|json)\s*\(\s*err(?:or)?\s*\)",
        r"response\.(?:send|json)\s*\([^)]*err(?:or)?\.(?:stack|message)",
        r"next\s*\(\s*err(?:or)?\s*\)",
        r"throw.*?err(?:or)?\.stack",
    ],
    # logging the error is fine; only the response path is unsafe
    negative_patterns=[
        r"safe.*?error",
        r"filterError",
        r"['\"](?:An error occurred|Internal server error|Something went wrong)",
        r"console\.",
        r"logger\.",
        r"log\(",
    ],
    context_negative_patterns=[
        r"sanitize",
        r"process\.env\.NODE_ENV\s*===?\s*['\"]development['\"]",
        r"isDevelopment",
    ],
    window_before=5,
    window_after=5,
    window_strips_comments=False,
    recommendation=(
        "Never send error.stack or error.message directly to users. Use generic error messages for "
        'production. Example: res.status(500).json({ error: "An error occurred" }). Log detailed '
        "errors server-side only."
    ),
)

PHI_IN_ERROR_LOGS = PatternRule(
    id="ERROR-002",
    name="PHI Data in Error Logs or Thrown Errors",
    description=(
        "Protected Health Information (patient, ssn, dob, mrn, diagnosis, medication, "
        "healthRecord) exposed in console logs, logger, or thrown errors"
    ),
    category="phi-exposure",
    severity="critical",
    regulatory_reference=(
        "45 CFR §164.312(b) - Audit Controls; §164.312(c) - Integrity Controls"
    ),
    patterns=[
        rf"console\.(?:log|error|warn|info|debug)\s*\([^)]*{_PHI_TERMS}",
        rf"logger\.(?:error|warn|info|debug|log)\s*\([^)]*{_PHI_TERMS}",
        rf"throw\s+(?:new\s+)?Error\s*\([^)]*{_PHI_TERMS}",
        rf"log\.(?:error|warn|info|debug)\s*\([^)]*{_PHI_TERMS}",
        r"console\.[a-z]+\s*\([^)]*patient(?:Data|Info|Record|Object)",
        r"logger\.[a-z]+\s*\([^)]*health[-_]?record",
    ],
    negative_patterns=[
        r"['\"]Patient not found['\"]",
        r"['\"]Invalid patient ID['\"]",
        r"['\"]Health record",
        r"patient[-_]?id\b",
        r"\.test\.",
        r"\.spec\.",
        r"describe\(",
    ],
    context_negative_patterns=[r"redact", r"mask", r"sanitize", r"obfuscate"],
    window_before=5,
    window_after=5,
    window_strips_comments=False,
    skip_test_files=True,
    recommendation=(
        "Never log PHI in error messages. Redact sensitive data before logging. Example: "
        'logger.error("Error processing patient", { patientId: redact(patient.id) }). '
        "Use patient IDs only, never full PHI."
    ),
    fix_type="phi-console-log",
)

ALL_ERROR_RULES = [UNSANITIZED_ERROR_RESPONSE, PHI_IN_ERROR_LOGS]
