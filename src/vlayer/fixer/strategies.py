"""Line-level fix strategies keyed by fix type.

A strategy takes one source line and returns the fixed line, or None when
the line does not have the shape it knows how to rewrite.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, List, Optional

from vlayer.rules.models import Rule

Strategy = Callable[[str, bool], Optional[str]]

CUSTOM_PREFIX = "custom-"

_VAR_NAME = re.compile(r"(?:const|let|var)\s+(\w+)|(\w+)\s*[:=]")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")

_PASSWORD_ASSIGN = re.compile(r"(password|passwd|pwd)(\s*[:=]\s*)(['\"`])[^'\"`]+\3", re.IGNORECASE)
_SECRET_ASSIGN = re.compile(r"(secret)(\s*[:=]\s*)(['\"`])[^'\"`]+\3", re.IGNORECASE)
_API_KEY_ASSIGN = re.compile(r"(api[_-]?key|apikey)(\s*[:=]\s*)(['\"`])[^'\"`]+\3", re.IGNORECASE)

_CONSOLE_CALL = re.compile(r"^(\s*)console\.(?:log|info|debug|warn|error)\s*\(")
_HTTP_LOCAL = ("http://localhost", "http://127.0.0.1")
_INNER_HTML = re.compile(r"\.innerHTML\s*=")

_SQL_TEMPLATE_CALL = re.compile(r"([\w.]+)\s*\(\s*`([^`]*)`\s*\)")
_INTERPOLATION = re.compile(r"\$\{([^}]+)\}")
_SQL_CONCAT_CALL = re.compile(r"([\w.]+)\s*\(\s*\"([^\"]+)\"\s*\+\s*([\w.]+)\s*\+\s*\"([^\"]*)\"\s*\)")

_ENCRYPT_FALSE = re.compile(r"(encrypt(?:ion|ed)?\s*[:=]\s*)false\b", re.IGNORECASE)


def to_env_name(name: str) -> str:
    """``dbPassword`` / ``db-password`` -> ``DB_PASSWORD``."""
    return re.sub(r"[-\s]+", "_", _CAMEL_BOUNDARY.sub(r"\1_\2", name)).upper()


def extract_var_name(line: str) -> Optional[str]:
    m = _VAR_NAME.search(line)
    if m is None:
        return None
    return m.group(1) or m.group(2)


def _env_reference(name: str, python: bool) -> str:
    return f'os.environ["{name}"]' if python else f"process.env.{name}"


def _replace_literal(pattern: re.Pattern[str], default_env: str) -> Strategy:
    def strategy(line: str, python: bool) -> Optional[str]:
        if pattern.search(line) is None:
            return None
        var = extract_var_name(line)
        env = to_env_name(var) if var else default_env
        return pattern.sub(
            lambda m: f"{m.group(1)}{m.group(2)}{_env_reference(env, python)}", line, count=1
        )

    return strategy


def fix_console_log(line: str, python: bool) -> Optional[str]:
    m = _CONSOLE_CALL.match(line)
    if m is None:
        return None
    return f"{m.group(1)}// [VLAYER] PHI logging removed - review needed: {line.strip()}"


def fix_http_url(line: str, python: bool) -> Optional[str]:
    if "http://" not in line or any(local in line for local in _HTTP_LOCAL):
        return None
    return line.replace("http://", "https://")


def fix_inner_html(line: str, python: bool) -> Optional[str]:
    if _INNER_HTML.search(line) is None:
        return None
    return _INNER_HTML.sub(".textContent =", line, count=1)


def fix_sql_template(line: str, python: bool) -> Optional[str]:
    """query(`... ${id}`) -> query('... ?', [id])"""
    m = _SQL_TEMPLATE_CALL.search(line)
    if m is None or _INTERPOLATION.search(m.group(2)) is None:
        return None
    params = [v.strip() for v in _INTERPOLATION.findall(m.group(2))]
    sql = _INTERPOLATION.sub("?", m.group(2)).replace("'?'", "?")
    replacement = f"{m.group(1)}('{sql}', [{', '.join(params)}])"
    return line[:m.start()] + replacement + line[m.end():]


def fix_sql_concat(line: str, python: bool) -> Optional[str]:
    """query("... '" + id + "'") -> query('... ?', [id]); only the single-variable shape."""
    m = _SQL_CONCAT_CALL.search(line)
    if m is None:
        return None
    func, before, variable, after = m.groups()
    # drop the quotes that surrounded the concatenated value
    before = before.rstrip()
    if before.endswith("'"):
        before = before[:-1].rstrip()
    if after.startswith("'"):
        after = after[1:]
    sql = f"{before} ?{after}"
    replacement = f"{func}('{sql}', [{variable}])"
    return line[:m.start()] + replacement + line[m.end():]


def fix_backup_encryption(line: str, python: bool) -> Optional[str]:
    if _ENCRYPT_FALSE.search(line) is None:
        return None
    literal = "True" if python else "true"
    return _ENCRYPT_FALSE.sub(lambda m: m.group(1) + literal, line)


FIX_STRATEGIES: Dict[str, Strategy] = {
    "hardcoded-password": _replace_literal(_PASSWORD_ASSIGN, "PASSWORD"),
    "hardcoded-secret": _replace_literal(_SECRET_ASSIGN, "SECRET"),
    "api-key-exposed": _replace_literal(_API_KEY_ASSIGN, "API_KEY"),
    "phi-console-log": fix_console_log,
    "http-url": fix_http_url,
    "innerhtml-unsanitized": fix_inner_html,
    "sql-injection-template": fix_sql_template,
    "sql-injection-concat": fix_sql_concat,
    "backup-unencrypted": fix_backup_encryption,
}


# ---- custom rule fixes ----

def _js_replacement(replacement: str) -> str:
    # rule files use $1-style group references
    return re.sub(r"\$(\d+)", r"\\g<\1>", replacement.replace("\\", "\\\\"))


def apply_custom_fix(line: str, rule: Rule) -> Optional[str]:
    fix = rule.fix
    if fix is None:
        return None
    pattern = rule.compiled_pattern
    if pattern.search(line) is None:
        return None
    if fix.type == "replace":
        return pattern.sub(_js_replacement(fix.replacement or ""), line)
    if fix.type == "remove":
        stripped = pattern.sub("", line)
        return "" if not stripped.strip() else stripped
    if fix.type == "wrap":
        before, after = fix.wrap_before or "", fix.wrap_after or ""
        return pattern.sub(lambda m: f"{before}{m.group(0)}{after}", line)
    return None


def apply_fix_strategy(
    line: str,
    fix_type: str,
    *,
    file_path: str = "",
    rules: Optional[Iterable[Rule]] = None,
) -> Optional[str]:
    """Fixed version of *line*, or None when no strategy applies."""
    if fix_type.startswith(CUSTOM_PREFIX):
        rule_id = fix_type[len(CUSTOM_PREFIX):]
        for rule in rules or ():
            if rule.id == rule_id:
                return apply_custom_fix(line, rule)
        return None
    strategy = FIX_STRATEGIES.get(fix_type)
    if strategy is None:
        return None
    return strategy(line, file_path.endswith(".py"))


# ---- python imports ----

_OS_IMPORT = re.compile(r"^import\s+(?:[\w.]+\s*,\s*)*os\b(?!\s+as\b)", re.MULTILINE)


def needs_os_import(lines: List[str]) -> bool:
    """True when fixed Python code reads os.environ without importing os."""
    text = "\n".join(lines)
    return "os.environ" in text and _OS_IMPORT.search(text) is None


def import_insert_index(lines: List[str]) -> int:
    """Index for a new top-level import: after comments, docstring and __future__."""
    i = 0
    while i < len(lines) and lines[i].startswith("#"):
        i += 1
    stripped = lines[i].lstrip() if i < len(lines) else ""
    if stripped.startswith(('"""', "'''")):
        quote = stripped[:3]
        if stripped.count(quote) < 2:
            i += 1
            while i < len(lines) and quote not in lines[i]:
                i += 1
        i += 1
    j = i
    while j < len(lines) and (not lines[j].strip() or lines[j].startswith("from __future__")):
        if lines[j].startswith("from __future__"):
            i = j + 1
        j += 1
    return i
