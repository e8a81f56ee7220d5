"""LLM-backed detection rules: one system prompt and one user prompt per rule."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

_RESPONSE_FORMAT = """\
Respond in JSON:
{{
  "findings": [
    {{
      "line": number,
      "severity": {severities},
      "message": "Brief description of the violation",
      "suggestion": "How to fix it, be specific",
      "hipaaReference": "{reference}",
      "confidence": 0.0-1.0
    }}
  ],
  "summary": "Overall assessment"
}}

If no violations found, return an empty findings array."""


@dataclass(frozen=True)
class AIRule:
    id: str
    name: str
    category: str
    system_prompt: str
    task: str
    reference: str
    severities: str = '"critical" | "high" | "medium"'

    def user_prompt(self, sanitized_code: str, file_path: str) -> str:
        return (
            f"Analyze this file for {self.name} violations:\n\n"
            f"File: {file_path}\n"
            f"Code:\n```\n{sanitized_code}\n```\n\n"
            f"{self.task}\n\n"
            + _RESPONSE_FORMAT.format(severities=self.severities, reference=self.reference)
        )


MINIMUM_NECESSARY = AIRule(
    id="HIPAA-PHI-003",
    name="Minimum Necessary Access",
    category="phi-exposure",
    reference="§164.502(b) - Minimum Necessary Standard",
    severities='"high" | "medium"',
    task="Find instances where the code fetches or returns more PHI than necessary.",
    system_prompt="""\
You are a HIPAA compliance expert analyzing code for Minimum Necessary Standard violations.

HIPAA §164.502(b) requires limiting PHI to the minimum necessary for the intended purpose.

Look for:
- SELECT * or whole patient objects where only a few fields are used
- API responses carrying ssn, diagnosis or medications for features that only need basic info
- GraphQL/REST endpoints with overly broad field selection
- Joins against PHI tables the feature does not need

Be contextual: a patient detail page legitimately needs full patient data, a patient list
or appointment calendar does not. Admin endpoints may need more than patient-facing ones.""",
)

PHI_ENCRYPTION = AIRule(
    id="HIPAA-SEC-001",
    name="PHI Encryption",
    category="encryption",
    reference="§164.312(a)(2)(iv) or §164.312(e)(1)",
    task="Find instances where PHI is transmitted or stored without proper encryption.",
    system_prompt="""\
You are a HIPAA compliance expert analyzing code for encryption violations.

HIPAA §164.312(a)(2)(iv) and §164.312(e)(1) require encryption of PHI in transit and at rest.

Look for:
- HTTP URLs in API calls that transmit PHI
- Database connection strings without SSL/TLS
- localStorage, sessionStorage or cookies holding sensitive fields
- File writes of PHI without an encryption wrapper
- Weak crypto such as MD5, DES, RC4, or SHA1 for passwords

Be contextual: localhost HTTP in tests is acceptable, public data needs no encryption, and
infrastructure-level encryption may not be visible in code.""",
)

ROLE_BASED_ACCESS = AIRule(
    id="HIPAA-ACCESS-001",
    name="Role-Based Access Control",
    category="access-control",
    reference="§164.308(a)(4) - Access Controls",
    task="Find PHI access paths that lack authentication or role checks.",
    system_prompt="""\
You are a HIPAA compliance expert analyzing code for access control violations.

HIPAA §164.308(a)(4) requires access controls limiting PHI to authorized personnel.

Look for:
- API routes handling PHI without auth middleware
- Hardcoded role strings instead of dynamic RBAC
- Client-side only authorization
- Access-Control-Allow-Origin: * on PHI endpoints
- Direct object references without ownership validation (IDOR)

Be contextual: router-level middleware may protect every route, and public health content
needs no authentication.""",
)

AUDIT_LOGGING = AIRule(
    id="HIPAA-AUDIT-001",
    name="Audit Logging",
    category="audit-logging",
    reference="§164.308(a)(1)(ii)(D) - Audit Controls",
    severities='"high" | "medium"',
    task="Find PHI operations and authentication events that leave no audit record.",
    system_prompt="""\
You are a HIPAA compliance expert analyzing code for audit logging violations.

HIPAA §164.308(a)(1)(ii)(D) and §164.312(b) require audit controls that record PHI access.
An audit entry needs the actor, a timestamp, the action, the resource and the outcome.

Look for:
- Reads, writes or deletes on PHI tables with no following log statement
- Endpoints returning patient data without an audit call
- Login, logout and role changes that are not logged
- PHI exports or bulk operations without logging

Be contextual: helpers may rely on their caller to log, and test files need no audit logging.""",
)

DATA_RETENTION = AIRule(
    id="HIPAA-RETENTION-001",
    name="Data Retention",
    category="data-retention",
    reference="§164.530(j) - Retention Requirements",
    severities='"high" | "medium"',
    task="Find deletions and storage patterns that break PHI retention requirements.",
    system_prompt="""\
You are a HIPAA compliance expert analyzing code for data retention violations.

HIPAA §164.530(j) requires retaining PHI and documentation for at least 6 years, and secure
deletion once data is no longer needed.

Look for:
- Hard deletes with no archive or audit entry
- Immediate permanent deletion without a soft-delete period
- Missing createdAt/deletedAt fields or TTL configuration
- File deletion of PHI without secure wiping

Be contextual: test data can be hard deleted, non-PHI data needs no special retention, and
event-sourced systems retain history by design.""",
)

SESSION_MANAGEMENT = AIRule(
    id="HIPAA-AUTH-001",
    name="Session Management",
    category="access-control",
    reference="§164.312(a)(2)(i) - Unique User ID, §164.312(d) - Automatic Logoff",
    task="Find session handling that lacks expiry, secure cookies or proper invalidation.",
    system_prompt="""\
You are a HIPAA compliance expert analyzing code for session management violations.

HIPAA §164.312(a)(2)(i) requires unique user identification and §164.312(d) automatic logoff.

Look for:
- Sessions without timeout (maxAge: Infinity, no TTL)
- Cookies missing secure, httpOnly or sameSite
- JWTs without an exp claim
- Login that does not regenerate the session id, logout that does not destroy it
- Session tokens in localStorage
- Timeouts longer than 15 minutes for PHI access

Be contextual: development settings may use longer timeouts and some frameworks secure
sessions by default.""",
)

AI_RULES: List[AIRule] = [
    MINIMUM_NECESSARY,
    PHI_ENCRYPTION,
    ROLE_BASED_ACCESS,
    AUDIT_LOGGING,
    DATA_RETENTION,
    SESSION_MANAGEMENT,
]
