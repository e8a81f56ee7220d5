"""Application security rules: XSS sinks, dynamic code execution, SQL building, DB URIs."""

from vlayer.rules.models import PatternRule

SECURITY_REFERENCE = "§164.312(a)(1), §164.312(d)"

# Raw request input in a query belongs to SANITIZE-001.
_REQUEST_INPUT = r"req(?:uest)?\.(?:body|params|query)"

# ---- XSS sinks ----

INNERHTML_UNSANITIZED = PatternRule(
    id="security-innerhtml-unsanitized",
    name="Unsanitized innerHTML assignment",
    description="Direct innerHTML assignment without sanitization can lead to XSS vulnerabilities.",
    category="access-control",
    severity="high",
    patterns=[r"innerHTML\s*=\s*[^'\"`\s;]+"],
    negative_patterns=[r"DOMPurify", r"sanitize"],
    recommendation=(
        "Use textContent for text, or sanitize HTML with DOMPurify before innerHTML assignment."
    ),
    regulatory_reference=SECURITY_REFERENCE,
    fix_type="innerhtml-unsanitized",
)

DANGEROUS_INNERHTML_REACT = PatternRule(
    id="security-dangerous-innerhtml-react",
    name="dangerouslySetInnerHTML usage",
    description="Using dangerouslySetInnerHTML can expose the application to XSS attacks.",
    category="access-control",
    severity="high",
    patterns=[r"dangerouslySetInnerHTML\s*=\s*\{\s*\{\s*__html:"],
    negative_patterns=[r"DOMPurify", r"sanitize"],
    recommendation="Sanitize content with DOMPurify before using dangerouslySetInnerHTML.",
    regulatory_reference=SECURITY_REFERENCE,
)

DOCUMENT_WRITE = PatternRule(
    id="security-document-write",
    name="document.write usage",
    description="document.write can be exploited for XSS and blocks page rendering.",
    category="access-control",
    severity="medium",
    patterns=[r"document\.write(?:ln)?\s*\("],
    recommendation="Use DOM manipulation methods (appendChild, insertAdjacentHTML) instead.",
    regulatory_reference=SECURITY_REFERENCE,
)

# ---- dynamic code execution ----

EVAL_USAGE = PatternRule(
    id="security-eval-usage",
    name="eval() usage detected",
    description="Using eval() can execute arbitrary code and is a security risk.",
    category="access-control",
    severity="critical",
    patterns=[r"(?<![\w.$])eval\s*\(\s*[^)]*\)"],
    recommendation="Avoid eval(). Use safer alternatives like JSON.parse() for data parsing.",
    regulatory_reference=SECURITY_REFERENCE,
)

FUNCTION_CONSTRUCTOR = PatternRule(
    id="security-function-constructor",
    name="Function constructor usage",
    description="The Function constructor can execute arbitrary code like eval().",
    category="access-control",
    severity="high",
    patterns=[r"new\s+Function\s*\([^)]*\)"],
    recommendation="Avoid dynamic code execution. Use predefined functions instead.",
    regulatory_reference=SECURITY_REFERENCE,
)

# ---- SQL built from strings ----

SQL_STRING_CONCAT = PatternRule(
    id="security-sql-string-concat",
    name="SQL query string concatenation",
    description="Building SQL queries with string concatenation is vulnerable to SQL injection.",
    category="access-control",
    severity="critical",
    patterns=[r"['\"`]\s*\+\s*[^+]+\s*\+\s*['\"`]\s*(?:FROM|WHERE|AND|OR|INSERT|UPDATE|DELETE|SELECT)\b"],
    negative_patterns=[_REQUEST_INPUT],
    recommendation=(
        "Use parameterized queries or prepared statements. Never concatenate user input into SQL."
    ),
    regulatory_reference=SECURITY_REFERENCE,
    fix_type="sql-injection-concat",
)

SQL_TEMPLATE_LITERAL = PatternRule(
    id="security-sql-template-literal",
    name="SQL query with template literal interpolation",
    description="Interpolating variables directly into SQL queries enables SQL injection.",
    category="access-control",
    severity="critical",
    patterns=[
        r"\$\{[^}]+\}\s*(?:FROM|WHERE|AND|OR|INSERT|UPDATE|DELETE|SELECT)\b",
        r"query\s*\(\s*['\"`].*\$\{",
        r"raw\s*\(\s*['\"`].*\$\{",
    ],
    negative_patterns=[_REQUEST_INPUT],
    recommendation=(
        'Use parameterized queries: query("SELECT * FROM users WHERE id = $1", [userId]). Even '
        "with raw queries, bind user-supplied values as parameters."
    ),
    regulatory_reference=SECURITY_REFERENCE,
    fix_type="sql-injection-template",
)

EXECUTE_STRING_CONCAT = PatternRule(
    id="security-execute-string-concat",
    name="SQL execute with string concatenation",
    description="Concatenating strings in SQL execute statements enables injection.",
    category="access-control",
    severity="critical",
    patterns=[r"execute\s*\(\s*['\"`].*\+"],
    negative_patterns=[_REQUEST_INPUT],
    recommendation="Use parameterized queries instead of string concatenation.",
    regulatory_reference=SECURITY_REFERENCE,
    fix_type="sql-injection-concat",
)

# ---- database URIs with credentials ----

_URI_PLACEHOLDERS = [
    r"://[^:/\s]+:\$\{",
    r"://[^:/\s]+:(?:password|pass|\*+|<[^>]+>)@",
]


def _db_uri_rule(scheme_id: str, label: str, scheme: str) -> PatternRule:
    return PatternRule(
        id=f"security-{scheme_id}-uri-credentials",
        name=f"{label} URI with credentials",
        description=f"A {label} connection string with embedded credentials was detected.",
        category="access-control",
        severity="critical",
        patterns=[scheme + r"://[^:/\s'\"`]+:[^@\s'\"`]+@"],
        negative_patterns=_URI_PLACEHOLDERS,
        recommendation="Use environment variables for database connection strings.",
        regulatory_reference=SECURITY_REFERENCE,
    )


MONGODB_URI_CREDENTIALS = _db_uri_rule("mongodb", "MongoDB", r"mongodb(?:\+srv)?")
POSTGRES_URI_CREDENTIALS = _db_uri_rule("postgres", "PostgreSQL", r"postgres(?:ql)?")
MYSQL_URI_CREDENTIALS = _db_uri_rule("mysql", "MySQL", r"mysql")

ALL_SECURITY_RULES = [
    INNERHTML_UNSANITIZED,
    DANGEROUS_INNERHTML_REACT,
    DOCUMENT_WRITE,
    EVAL_USAGE,
    FUNCTION_CONSTRUCTOR,
    SQL_STRING_CONCAT,
    SQL_TEMPLATE_LITERAL,
    EXECUTE_STRING_CONCAT,
    MONGODB_URI_CREDENTIALS,
    POSTGRES_URI_CREDENTIALS,
    MYSQL_URI_CREDENTIALS,
]
