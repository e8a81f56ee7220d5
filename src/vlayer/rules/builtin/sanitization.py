"""Input sanitization rules: raw request data in queries, unchecked uploads."""

from vlayer.rules.models import PatternRule

SANITIZATION_REFERENCE = "NPRM Anti-malware"

_DB_CALL = r"(?:insert|update|query|sql|where|execute)\s*\([^)]*"
_REQ_INPUT = r"req\.(?:body|params|query)"

UNSANITIZED_DB_INPUT = PatternRule(
    id="SANITIZE-001",
    name="Unsanitized User Input in Database Operations",
    description=(
        "User input from req.body, req.params, or req.query used directly in database operations "
        "(insert, update, query, sql, where) without validation (zod, yup, joi, validate, "
        "sanitize, parse)"
    ),
    category="access-control",
    severity="critical",
    regulatory_reference=SANITIZATION_REFERENCE,
    patterns=[
        _DB_CALL + r"req\.body",
        _DB_CALL + r"req\['body'\]",
        _DB_CALL + r"req\.params",
        _DB_CALL + r"req\['params'\]",
        _DB_CALL + r"req\.query",
        _DB_CALL + r"req\['query'\]",
        r"(?:sql|query|execute)\s*`[^`]*\$\{" + _REQ_INPUT,
        r"(?:SELECT|INSERT|UPDATE|DELETE).*?\+\s*" + _REQ_INPUT,
        r"prisma\.\w+\.(?:create|update|upsert|delete)\s*\([^)]*" + _REQ_INPUT,
        r"(?:create|findOneAndUpdate|updateOne|updateMany)\s*\([^)]*" + _REQ_INPUT,
        r"(?:save|insert|update)\s*\([^)]*" + _REQ_INPUT,
        r"knex\s*\([^)]*\)\.(?:insert|update|where)\s*\([^)]*" + _REQ_INPUT,
        r"\.(?:values|set|data)\s*\([^)]*" + _REQ_INPUT,
        r"\w+\.create\s*\(\s*" + _REQ_INPUT,
    ],
    context_negative_patterns=[
        r"zod",
        r"yup",
        r"joi",
        r"validate",
        r"sanitize",
        r"parse(?:Int|Float|Body)?",
        r"safeParse",
        r"schema\.validate",
        r"\.schema\(",
        r"typeof\s+",
        r"instanceof\s+",
        r"validationResult",
        r"express-validator",
        r"sanitized",
        r"validated",
        r"checked",
    ],
    window_before=10,
    window_after=5,
    recommendation=(
        "Always validate and sanitize user input before database operations. Use validation "
        "libraries like Zod, Yup, or Joi. Example: const validated = schema.parse(req.body); await "
        "db.insert(validated). Never use raw req.body/params/query directly in database operations."
    ),
)

INSECURE_FILE_UPLOAD = PatternRule(
    id="SANITIZE-002",
    name="Insecure File Upload Configuration",
    description=(
        "File upload configuration (multer, formidable, busboy) missing fileFilter, limits, or "
        "MIME type validation"
    ),
    category="access-control",
    severity="high",
    regulatory_reference=SANITIZATION_REFERENCE,
    patterns=[
        r"multer\s*\(\s*\{",
        r"(?:new\s+)?formidable\.IncomingForm\s*\(",
        r"formidable\(\s*\(",
        r"(?:new\s+)?Busboy\s*\(\s*\{",
        r"busboy\s*\(\s*\{",
    ],
    # imports and requires only name the library
    negative_patterns=[r"^import\s", r"^const\s+\w+\s*=\s*require"],
    context_negative_patterns=[
        r"fileFilter",
        r"limits\s*:",
        r"fileSize",
        r"maxFileSize",
        r"mimetype",
        r"mimeType",
        r"contentType",
        r"allowedTypes",
        r"allowedMimeTypes",
        r"\.endsWith\s*\(",
        r"\.includes\s*\(",
        r"test\s*\(",
        r"validateFile",
        r"checkFileType",
        r"isValidFile",
    ],
    window_before=10,
    window_after=5,
    recommendation=(
        "Configure file upload middleware with proper validation. Example: multer({ fileFilter: "
        "(req, file, cb) => { if (allowedMimes.includes(file.mimetype)) cb(null, true); else cb(new "
        'Error("Invalid file type")); }, limits: { fileSize: 5 * 1024 * 1024 } }). Always validate '
        "file type, size, and extension."
    ),
)

ALL_SANITIZATION_RULES = [UNSANITIZED_DB_INPUT, INSECURE_FILE_UPLOAD]
