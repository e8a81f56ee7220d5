"""PHI exposure rules: identifiers hardcoded in source or written to logs."""

from vlayer.rules.models import PatternRule

PHI_REFERENCE = "§164.502, §164.514"

SSN_HARDCODED = PatternRule(
    id="phi-ssn-hardcoded",
    name="Potential SSN detected",
    description="A pattern matching Social Security Number format was found in the code.",
    category="phi-exposure",
    severity="critical",
    patterns=[r"\b\d{3}-\d{2}-\d{4}\b"],
    recommendation="Remove hardcoded SSN. Use secure storage and encryption for sensitive identifiers.",
    regulatory_reference=PHI_REFERENCE,
)

PATIENT_NAME_LOG = PatternRule(
    id="phi-patient-name-log",
    name="Patient name in console output",
    description="Patient names may be logged to console, exposing PHI.",
    category="phi-exposure",
    severity="high",
    patterns=[r"console\.(log|info|debug|warn|error)\s*\([^)]*patient.*name"],
    recommendation="Remove patient identifiers from logs. Use anonymized IDs for debugging.",
    regulatory_reference=PHI_REFERENCE,
    fix_type="phi-console-log",
)

MEDICAL_RECORD_NUMBER = PatternRule(
    id="phi-medical-record-number",
    name="Medical Record Number exposure",
    description="A hardcoded medical record number was detected.",
    category="phi-exposure",
    severity="high",
    patterns=[r"\b(mrn|medical.?record.?number)\s*[:=]\s*['\"`]\d+['\"`]"],
    recommendation="Never hardcode MRNs. Fetch from secure, encrypted storage.",
    regulatory_reference=PHI_REFERENCE,
)

DOB_EXPOSED = PatternRule(
    id="phi-dob-exposed",
    name="Date of birth exposure",
    description="Date of birth information may be hardcoded or improperly handled.",
    category="phi-exposure",
    severity="high",
    patterns=[r"\b(date.?of.?birth|dob|birth.?date)\s*[:=]\s*['\"`]"],
    recommendation="Encrypt DOB at rest and in transit. Apply minimum necessary principle.",
    regulatory_reference=PHI_REFERENCE,
)

DIAGNOSIS_CODE = PatternRule(
    id="phi-diagnosis-code",
    name="Diagnosis code in source",
    description="ICD-10 diagnosis codes found in source code.",
    category="phi-exposure",
    severity="medium",
    patterns=[r"\b(icd.?10|diagnosis.?code|icd.?code)\s*[:=]\s*['\"`][A-Z]\d{2}"],
    recommendation="Load diagnosis codes from secure configuration, not source code.",
    regulatory_reference=PHI_REFERENCE,
)

PHI_IN_URL = PatternRule(
    id="phi-in-url",
    name="PHI identifier in URL pattern",
    description="URL pattern suggests PHI may be exposed in URLs.",
    category="phi-exposure",
    severity="high",
    patterns=[r"/(patient|user)/\d+/(ssn|dob|mrn|diagnosis)"],
    recommendation="Never include PHI in URLs. Use opaque tokens or encrypted identifiers.",
    regulatory_reference=PHI_REFERENCE,
)

EMAIL_PHI_CONTEXT = PatternRule(
    id="phi-email-phi-context",
    name="Patient email handling detected",
    description="Code handles patient email addresses which are PHI.",
    category="phi-exposure",
    severity="medium",
    patterns=[r"patient.*email|email.*patient"],
    recommendation="Ensure patient emails are encrypted and access is logged.",
    regulatory_reference=PHI_REFERENCE,
)

ALL_PHI_RULES = [
    SSN_HARDCODED,
    PATIENT_NAME_LOG,
    MEDICAL_RECORD_NUMBER,
    DOB_EXPOSED,
    DIAGNOSIS_CODE,
    PHI_IN_URL,
    EMAIL_PHI_CONTEXT,
]
