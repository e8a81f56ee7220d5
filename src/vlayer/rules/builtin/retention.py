"""Data retention and operational rules."""

from vlayer.rules.models import PatternRule

RETENTION_REFERENCE = "§164.530(j)"

# HIPAA retention is six years from creation or last effective date.
MIN_RETENTION_DAYS = 2190

SHORT_RETENTION = PatternRule(
    id="retention-short-retention",
    name="PHI retention period may be too short",
    description="Data deletion configured with period shorter than HIPAA requirements.",
    category="data-retention",
    severity="high",
    regulatory_reference=RETENTION_REFERENCE,
    patterns=[r"deleteAfter\s*[:=]\s*(\d+)\s*(day|hour|minute)"],
    recommendation="HIPAA requires PHI retention for 6 years from creation or last effective date.",
)

UNLOGGED_DELETE = PatternRule(
    id="retention-unlogged-delete",
    name="Data deletion without apparent logging",
    description="Data deletion operation without visible audit logging.",
    category="data-retention",
    severity="medium",
    regulatory_reference=RETENTION_REFERENCE,
    patterns=[r"\.delete\s*\(\s*\)(?!.*audit|.*log)"],
    recommendation="Log all PHI deletions with timestamp, user, and record identifiers.",
)

BULK_DELETE = PatternRule(
    id="retention-bulk-delete",
    name="Bulk data deletion operation",
    description="Bulk deletion (TRUNCATE/DROP) could delete PHI without proper retention.",
    category="data-retention",
    severity="critical",
    regulatory_reference=RETENTION_REFERENCE,
    patterns=[r"truncate\s+table|drop\s+table"],
    recommendation="Implement soft-delete with retention periods before permanent deletion.",
)

BACKUP_DISABLED = PatternRule(
    id="retention-backup-disabled",
    name="Backup may be disabled",
    description="Code pattern suggests backups might be disabled.",
    category="data-retention",
    severity="high",
    regulatory_reference=RETENTION_REFERENCE,
    patterns=[r"backup.*disable|disable.*backup"],
    recommendation="Maintain encrypted backups with proper retention for disaster recovery.",
)

PHI_CACHE = PatternRule(
    id="retention-phi-cache",
    name="PHI caching detected",
    description="Patient data may be cached, requiring retention policy consideration.",
    category="data-retention",
    severity="medium",
    regulatory_reference=RETENTION_REFERENCE,
    patterns=[r"cache.*patient|patient.*cache"],
    recommendation="Ensure cached PHI has appropriate TTL and is encrypted at rest.",
)

# ---- operational ----

DATABASE_WITHOUT_BACKUP = PatternRule(
    id="BACKUP-001",
    name="Database Without Backup Configuration",
    description=(
        "Database usage detected (supabase, prisma, mongoose, drizzle, typeorm, sequelize, knex) "
        "without backup/snapshot/replicate configuration references in project. Advisory: Full "
        "verification requires infrastructure inspection."
    ),
    category="data-retention",
    severity="medium",
    regulatory_reference="45 CFR §164.308(a)(7)(ii)(A) - Data Backup Plan",
    patterns=[
        r"import.*from\s+['\"]@supabase/supabase-js['\"]",
        r"import.*from\s+['\"]@prisma/client['\"]",
        r"import.*from\s+['\"]prisma['\"]",
        r"import.*from\s+['\"]mongoose['\"]",
        r"import.*from\s+['\"]drizzle-orm['\"]",
        r"import.*from\s+['\"]typeorm['\"]",
        r"import.*from\s+['\"]sequelize['\"]",
        r"import.*from\s+['\"]knex['\"]",
        r"new\s+PrismaClient\s*\(",
        r"mongoose\.connect\s*\(",
        r"createClient\s*\(.*supabase",
        r"new\s+Sequelize\s*\(",
        r"createConnection\s*\(.*typeorm",
    ],
    # project-wide: any of these in any scanned file means backups are handled
    file_negative_patterns=[
        r"backup",
        r"snapshot",
        r"replicate",
        r"pg_dump",
        r"mongodump",
        r"restore",
        r"\.backup\(",
        r"backupSchedule",
        r"automaticBackup",
    ],
    confidence="low",
    recommendation=(
        "Configure automated database backups. Examples: Enable Supabase automatic backups, "
        "configure Prisma backup scripts, set up MongoDB Atlas continuous backups, or use "
        "pg_dump/mongodump in CI/CD. Document backup schedule and retention policy."
    ),
)

PHI_RECORDS_WITHOUT_RETENTION = PatternRule(
    id="RETENTION-001",
    name="PHI Records Created Without Retention Fields",
    description=(
        "PHI record creation (insert/create/save/upsert on patient/health/medical/clinical tables) "
        "without retention fields (expiresAt, ttl, retainUntil, retentionPeriod, deleteAfter). "
        "HIPAA requires minimum necessary retention periods."
    ),
    category="data-retention",
    severity="medium",
    regulatory_reference="45 CFR §164.316(b)(2)(i) - Retention Period",
    patterns=[
        r"prisma\.patient\.create\s*\(",
        r"prisma\.health.*\.create\s*\(",
        r"prisma\.medical.*\.create\s*\(",
        r"prisma\.clinical.*\.create\s*\(",
        r"prisma\.patient\.upsert\s*\(",
        r"prisma\.health.*\.upsert\s*\(",
        r"Patient\.create\s*\(",
        r"Health.*\.create\s*\(",
        r"Medical.*\.create\s*\(",
        r"Clinical.*\.create\s*\(",
        r"new\s+Patient\s*\(.*\)\.save\s*\(",
        r"db\.insert\s*\(\s*(?:patient|health|medical|clinical)",
        r"\.insert\s*\(.*\)\s*\.into\s*\(\s*['\"`](?:patient|health)",
        r"Health.*Model\.create\s*\(",
        r"Medical.*\.upsert\s*\(",
        r"db\.insert\s*\(.*patient.*\)",
        r"insertInto\s*\(\s*patient",
        r"supabase\.from\s*\(\s*['\"`](?:patient|health|medical).*['\"]\s*\)\.insert",
    ],
    context_negative_patterns=[
        r"expiresAt",
        r"ttl",
        r"retainUntil",
        r"retentionPeriod",
        r"deleteAfter",
        r"retention_date",
        r"expiration",
        r"expires_at",
        r"retain_until",
        r"delete_after",
        r"\.test\.",
        r"\.spec\.",
        r"describe\(",
        r"it\(",
    ],
    window_before=5,
    window_after=9,
    confidence="medium",
    recommendation=(
        "Add retention fields to PHI record creation. Example: { ...patientData, expiresAt: new "
        "Date(Date.now() + 7 * 365 * 24 * 60 * 60 * 1000) } or { ...data, retentionPeriod: "
        '"7years", deleteAfter: calculateDeleteDate() }. Define retention policy based on record '
        "type and regulatory requirements."
    ),
)

BODY_PARSER_WITHOUT_LIMIT = PatternRule(
    id="API-002",
    name="JSON Body Parser Without Size Limit",
    description=(
        "express.json() or bodyParser.json() configured without limit option. Unlimited body size "
        "can lead to DoS attacks via large payload submissions."
    ),
    category="access-control",
    severity="low",
    regulatory_reference="45 CFR §164.308(a)(1)(ii)(D) - System Security",
    patterns=[
        r"express\.json\s*\(\s*\)",
        r"bodyParser\.json\s*\(\s*\)",
        r"express\.json\s*\(\s*\{\s*\}\s*\)",
        r"bodyParser\.json\s*\(\s*\{\s*\}\s*\)",
    ],
    context_negative_patterns=[
        r"limit\s*:",
        r"\{\s*limit",
        r"\"limit\"",
        r"'limit'",
        r"size:",
        r"maxBodySize",
    ],
    window_before=2,
    window_after=2,
    confidence="medium",
    recommendation=(
        'Configure body size limits. Example: app.use(express.json({ limit: "10mb" })) or '
        'bodyParser.json({ limit: "1mb" }). Set limit based on expected payload size. Typical '
        "values: 1mb for APIs, 10mb for file uploads."
    ),
)

RETENTION_RULES = [SHORT_RETENTION, UNLOGGED_DELETE, BULK_DELETE, BACKUP_DISABLED, PHI_CACHE]

OPERATIONAL_RULES = [PHI_RECORDS_WITHOUT_RETENTION, BODY_PARSER_WITHOUT_LIMIT]

ALL_RETENTION_RULES = RETENTION_RULES + [DATABASE_WITHOUT_BACKUP] + OPERATIONAL_RULES
