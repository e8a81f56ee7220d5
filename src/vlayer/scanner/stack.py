"""Best-effort technology stack detection from dependency manifests."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Set, Tuple

logger = logging.getLogger(__name__)

# Ordered: the first matching entry wins.
FRAMEWORKS: List[Tuple[str, Tuple[str, ...]]] = [
    ("nextjs", ("next",)),
    ("nuxt", ("nuxt",)),
    ("angular", ("@angular/core",)),
    ("nestjs", ("@nestjs/core",)),
    ("react", ("react", "react-dom")),
    ("vue", ("vue",)),
    ("express", ("express",)),
    ("fastify", ("fastify",)),
    ("koa", ("koa",)),
    ("hono", ("hono",)),
    ("django", ("django",)),
    ("fastapi", ("fastapi",)),
    ("flask", ("flask",)),
]

DATABASES: List[Tuple[str, Tuple[str, ...]]] = [
    ("supabase", ("@supabase/supabase-js", "@supabase/ssr", "@supabase/auth-helpers-nextjs")),
    ("firebase", ("firebase", "firebase-admin", "@firebase/firestore")),
    ("prisma", ("@prisma/client", "prisma")),
    ("drizzle", ("drizzle-orm",)),
    ("postgresql", ("pg", "postgres", "@vercel/postgres", "psycopg2", "psycopg2-binary", "asyncpg")),
    ("mysql", ("mysql", "mysql2", "pymysql")),
    ("mongodb", ("mongodb", "mongoose", "pymongo", "motor")),
    ("sqlalchemy", ("sqlalchemy",)),
]

AUTH_PROVIDERS: List[Tuple[str, Tuple[str, ...]]] = [
    ("nextauth", ("next-auth", "@auth/core")),
    ("clerk", ("@clerk/nextjs", "@clerk/clerk-react", "@clerk/clerk-sdk-node")),
    ("auth0", ("@auth0/nextjs-auth0", "@auth0/auth0-react", "auth0")),
    ("supabase-auth", ("@supabase/auth-helpers-nextjs", "@supabase/auth-helpers-react")),
    ("firebase-auth", ("@firebase/auth",)),
    ("lucia", ("lucia",)),
    ("passport", ("passport",)),
    ("authlib", ("authlib",)),
    ("django-allauth", ("django-allauth",)),
]

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def _package_json_deps(path: Path) -> Set[str]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return set()
    deps: Set[str] = set()
    for key in ("dependencies", "devDependencies"):
        section = data.get(key) if isinstance(data, dict) else None
        if isinstance(section, dict):
            deps.update(section)
    return deps


def _requirements_deps(path: Path) -> Set[str]:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return set()
    deps: Set[str] = set()
    for line in lines:
        if line.strip().startswith(("#", "-")):
            continue
        m = _REQUIREMENT_NAME.match(line)
        if m:
            deps.add(m.group(1).lower())
    return deps


def _first_match(table: List[Tuple[str, Tuple[str, ...]]], deps: Set[str]) -> str:
    for name, packages in table:
        if any(p in deps for p in packages):
            return name
    return "unknown"


def detect_stack(base_path: Path) -> Dict[str, object]:
    """Return ``{framework, database, auth, dependencies}`` for *base_path*."""
    deps: Set[str] = set()
    package_json = base_path / "package.json"
    if package_json.is_file():
        deps |= _package_json_deps(package_json)
    requirements = base_path / "requirements.txt"
    if requirements.is_file():
        deps |= _requirements_deps(requirements)

    return {
        "framework": _first_match(FRAMEWORKS, deps),
        "database": _first_match(DATABASES, deps),
        "auth": _first_match(AUTH_PROVIDERS, deps),
        "dependencies": sorted(deps),
    }
