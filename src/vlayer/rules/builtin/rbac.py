"""Role-based access control rules."""

from vlayer.rules.models import PatternRule

ACCESS_CONTROL_REFERENCE = "45 CFR §164.312(a)(1) - Access Control"

_PHI_TABLES = (
    r"(?:patients?|health_records?|medical_records?|diagnos[ei]s|treatments?|prescriptions?"
    r"|medications?|encounters?|visits?|lab_results?)"
)

PHI_ACCESS_NO_AUTHZ = PatternRule(
    id="RBAC-001",
    name="PHI Data Access Without Role/Permission Verification",
    description=(
        "Database query accessing PHI data (patient, health, medical, diagnosis, treatment, "
        "prescription) without role or permission verification"
    ),
    category="access-control",
    severity="high",
    regulatory_reference=ACCESS_CONTROL_REFERENCE,
    patterns=[
        rf"(?:from|FROM)\s+{_PHI_TABLES}",
        rf"\.(?:from|table)\s*\(\s*['\"`]{_PHI_TABLES}['\"`]",
        r"(?:Patient|HealthRecord|MedicalRecord|Diagnosis|Treatment|Prescription|Medication"
        r"|Encounter|Visit|LabResult)\.(?:find|findOne|findAll|findMany|query|where)",
        r"supabase\.from\s*\(\s*['\"`](?:patients?|health_records?|medical_records?|diagnos[ei]s"
        r"|treatments?|prescriptions?|medications?)['\"`]",
        r"prisma\.(?:patient|healthRecord|medicalRecord|diagnosis|treatment|prescription|medication)"
        r"\.(?:findMany|findUnique|findFirst)",
    ],
    context_negative_patterns=[
        r"role",
        r"permission",
        r"authorize",
        r"isAdmin",
        r"canAccess",
        r"hasPermission",
        r"checkAccess",
        r"verifyRole",
        r"requireRole",
        r"isAuthorized",
        r"checkPermission",
    ],
    window_before=10,
    window_after=5,
    window_strips_comments=False,
    recommendation=(
        "Add role/permission verification before accessing PHI data. Example: if "
        '(!hasPermission(user, "read:patients")) throw new Error("Unauthorized"). Implement RBAC '
        "middleware to verify user roles before database queries."
    ),
)

SERVICE_ROLE_CLIENT_SIDE = PatternRule(
    id="RBAC-002",
    name="Service Role Key or Admin Default in Client Code",
    description=(
        "Privileged service_role key exposed in client-side code, isAdmin set to true as default, "
        "or conditions that always grant admin access"
    ),
    category="access-control",
    severity="critical",
    regulatory_reference=ACCESS_CONTROL_REFERENCE,
    patterns=[
        r"service_role",
        r"serviceRole",
        r"isAdmin\s*[:=]\s*true",
        r"role\s*[:=]\s*['\"`]admin['\"`]",
        r"admin\s*:\s*true",
        r"if\s*\(\s*true\s*\).*admin",
        r"const\s+isAdmin\s*=\s*true",
        r"let\s+isAdmin\s*=\s*true",
        r"userId\s*===?\s*['\"`]admin['\"`]",
        r"email\s*===?\s*['\"`]admin@",
    ],
    file_negative_patterns=[
        r"/api/",
        r"\.server\.",
        r"getServerSideProps",
        r"getStaticProps",
        r"process\.env",
        r"\.test\.",
        r"\.spec\.",
        r"describe\(",
    ],
    recommendation=(
        "Remove service_role keys from client-side code - these should only exist in server-side "
        "API routes. Never default isAdmin to true. Implement proper role assignment based on "
        "authenticated user data from secure backend."
    ),
)

SELECT_ALL_PHI = PatternRule(
    id="RBAC-003",
    name="SELECT * on PHI Tables Violates Minimum Necessary Principle",
    description=(
        'Query uses SELECT * or .select("*") on tables containing PHI, retrieving more data than '
        "necessary in violation of HIPAA minimum necessary principle"
    ),
    category="access-control",
    severity="medium",
    regulatory_reference="45 CFR §164.502(b) - Minimum Necessary Requirement",
    patterns=[
        rf"SELECT\s+\*\s+FROM\s+{_PHI_TABLES}",
        r"\.select\s*\(\s*['\"`]\*['\"`]\s*\)",
        r"\.select\s*\(\s*\*\s*\)",
        r"\.findMany\s*\(\s*\{[^}]*\}\s*\)(?!.*select)",
        r"\.find\s*\(\s*\{[^}]*\}\s*\)(?!.*select)",
        r"supabase\.from\s*\([^)]*(?:patient|health|medical|diagnosis|treatment|prescription)"
        r"[^)]*\)\.select\s*\(\s*['\"`]\*['\"`]",
    ],
    context_negative_patterns=[
        r"\.select\s*\(\s*['\"`][a-zA-Z_,\s]+['\"`]\s*\)",
        r"SELECT\s+[a-zA-Z_,\s]+\s+FROM",
        r"select\s*:\s*\{",
        r"pick\s*\(",
        r"omit\s*\(",
    ],
    window_before=2,
    window_after=2,
    window_strips_comments=False,
    recommendation=(
        "Select only the minimum necessary fields required for the operation. Example: Instead of "
        "SELECT * FROM patients, use SELECT id, name, dob FROM patients. For ORMs: "
        '.select("id, name, dob") or use field projections.'
    ),
)

ALL_RBAC_RULES = [PHI_ACCESS_NO_AUTHZ, SERVICE_ROLE_CLIENT_SIDE, SELECT_ALL_PHI]
