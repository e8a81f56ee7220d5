"""Default configuration values and starter .vlayer.toml template."""

DEFAULT_EXCLUDES: list[str] = [
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/coverage/**",
    "**/.vlayer/**",
    "**/__pycache__/**",
    "**/.venv/**",
]

DEFAULT_SAFE_HTTP_DOMAINS: list[str] = [
    # XML namespaces
    "www.w3.org",
    "w3.org",
    "xmlns.com",
    "purl.org",
    "ns.adobe.com",
    # CDNs
    "cdnjs.cloudflare.com",
    "unpkg.com",
    "jsdelivr.net",
    "cdn.jsdelivr.net",
    "googleapis.com",
    "fonts.googleapis.com",
    "ajax.googleapis.com",
    "gstatic.com",
    "fonts.gstatic.com",
    "cloudflare.com",
    "bootstrapcdn.com",
    "maxcdn.bootstrapcdn.com",
    "stackpath.bootstrapcdn.com",
    "code.jquery.com",
    "cdn.tailwindcss.com",
    # Schemas and standards
    "schema.org",
    "ogp.me",
    "rdfs.org",
    # Healthcare standards
    "hl7.org",
    "www.hl7.org",
    "fhir.org",
    "terminology.hl7.org",
    "loinc.org",
    "snomed.info",
    "icd.who.int",
    "unitsofmeasure.org",
    "nucc.org",
    "ada.org",
    "x12.org",
    # Licenses and package registries
    "opensource.org",
    "creativecommons.org",
    "spdx.org",
    "json-schema.org",
    "yaml.org",
    "xml.org",
    "maven.apache.org",
    "www.apache.org",
    "registry.npmjs.org",
    "pypi.org",
    "rubygems.org",
    "crates.io",
    "pkg.go.dev",
    "mvnrepository.com",
    # Documentation
    "example.com",
    "example.org",
    "localhost",
    "127.0.0.1",
]

DEFAULT_TOML = """\
# vlayer configuration
version = "1.0"

[scan]
# categories = ["phi-exposure", "encryption", "audit-logging", "access-control", "data-retention"]
# exclude = ["**/fixtures/**"]
# ignore_paths = ["scripts/*", "legacy"]
# safe_http_domains = ["internal.example.net"]
context_lines = 2
# custom_rules_path = "compliance/vlayer-rules.yaml"
# min_confidence = "medium"   # high | medium | low

[output]
format = "terminal"           # terminal | json | sarif
show_summary = true

[scoring]
fail_under = 0                # exit 1 when the compliance score is below this
profile = "dashboard"         # dashboard (90/70) | reporter (80/60)

[ai]
enabled = false
# budget_cents = 50
# max_calls_per_minute = 20
# max_calls_per_scan = 50
# cache_ttl_hours = 24

# [[acknowledged_findings]]
# pattern = "src/legacy/**"
# id = "phi-*"
# reason = "Legacy module scheduled for removal"
# acknowledged_by = "security@example.com"
# acknowledged_at = "2026-01-15T00:00:00Z"
# ticket_url = "https://tracker.example.com/SEC-42"
# expires_at = "2026-06-30T00:00:00Z"
"""
