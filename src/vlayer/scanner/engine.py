"""Scan entrypoint: discovery, scanners, lifecycle, optional AI and fixes.

A scan only raises for a missing target path, an unreadable explicit config
file, or AI explicitly required without a key. Everything else (unreadable
files, bad custom rules, failing AI calls) degrades to a partial result.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import List, Optional, Sequence

from vlayer.config.defaults import DEFAULT_EXCLUDES
from vlayer.config.loader import is_path_ignored, load_config
from vlayer.config.schema import VlayerConfig
from vlayer.findings.acknowledgments import apply_acknowledgments
from vlayer.findings.aggregator import deduplicate, filter_by_confidence
from vlayer.findings.baseline import apply_baseline, load_baseline
from vlayer.findings.models import Finding, ScanResult
from vlayer.rules.registry import load_custom_rules
from vlayer.scanner.access import AccessScanner
from vlayer.scanner.audit import AuditScanner
from vlayer.scanner.authentication import AuthenticationScanner
from vlayer.scanner.base import ScanContext, Scanner
from vlayer.scanner.credentials import CredentialsScanner
from vlayer.scanner.custom import CustomRuleScanner
from vlayer.scanner.encryption import EncryptionScanner
from vlayer.scanner.errors import ErrorsScanner
from vlayer.scanner.phi import PhiScanner
from vlayer.scanner.rbac import RbacScanner
from vlayer.scanner.retention import OperationalScanner, RetentionScanner
from vlayer.scanner.revocation import RevocationScanner
from vlayer.scanner.sanitization import SanitizationScanner
from vlayer.scanner.security import SecurityScanner
from vlayer.scanner.skills import SkillsScanner
from vlayer.scanner.stack import detect_stack
from vlayer.scanner.suppression import apply_suppressions

logger = logging.getLogger(__name__)

ALL_SCANNERS: List[Scanner] = [
    PhiScanner(),
    EncryptionScanner(),
    CredentialsScanner(),
    ErrorsScanner(),
    AuditScanner(),
    RbacScanner(),
    AuthenticationScanner(),
    RevocationScanner(),
    RetentionScanner(),
    OperationalScanner(),
    SanitizationScanner(),
    SecurityScanner(),
    AccessScanner(),
    SkillsScanner(),
]


class ScanError(Exception):
    """Raised when a scan cannot start at all."""


@dataclass
class ScanOptions:
    path: str
    categories: Optional[List[str]] = None
    exclude: List[str] = field(default_factory=list)
    config_file: Optional[str] = None
    config: Optional[VlayerConfig] = None
    fix: bool = False
    baseline_file: Optional[str] = None
    min_confidence: Optional[str] = None
    ai: bool = False
    ai_triage: bool = False
    ai_required: bool = False  # raise instead of skipping when no API key is set


def _excluded(rel: str, patterns: Sequence[str], is_dir: bool = False) -> bool:
    rooted = "/" + rel + ("/" if is_dir else "")
    return any(fnmatch(rooted, p) or fnmatch(rel, p) for p in patterns)


def discover_files(base: Path, exclude: Sequence[str], ignore_paths: Sequence[str]) -> List[Path]:
    """Walk *base* and return files not matched by an exclude glob or ignore path."""
    patterns = list(dict.fromkeys([*DEFAULT_EXCLUDES, *exclude]))
    found: List[Path] = []
    for root, dirs, files in os.walk(base):
        rel_root = Path(root).relative_to(base).as_posix()
        prefix = "" if rel_root == "." else rel_root + "/"
        # prune in place so os.walk never descends into excluded trees
        dirs[:] = sorted(d for d in dirs if not _excluded(prefix + d, patterns, is_dir=True))
        for name in sorted(files):
            rel = prefix + name
            if _excluded(rel, patterns) or is_path_ignored(rel, ignore_paths):
                continue
            found.append(Path(root) / name)
    return found


def _run_scanner(scanner: Scanner, files: List[Path], context: ScanContext) -> List[Finding]:
    try:
        return scanner.scan(files, context)
    except Exception:
        # one broken scanner must not sink the whole scan
        logger.exception("Scanner %s failed", scanner.name)
        return []


def run_scanners(
    scanners: Sequence[Scanner], files: List[Path], context: ScanContext
) -> List[Finding]:
    findings: List[Finding] = []
    if not scanners:
        return findings
    with ThreadPoolExecutor(max_workers=min(8, len(scanners))) as pool:
        futures = [pool.submit(_run_scanner, s, files, context) for s in scanners]
        for future in futures:
            findings.extend(future.result())
    return findings


def _run_ai(
    files: List[Path],
    findings: List[Finding],
    config: VlayerConfig,
    base: Path,
    *,
    detect: bool,
    triage: bool,
    required: bool,
) -> tuple[List[Finding], Optional[dict]]:
    from vlayer.ai.cost_tracker import CostTracker
    from vlayer.ai.rate_limiter import RateLimiter
    from vlayer.ai.scanner import run_ai_scan, run_ai_triage
    from vlayer.ai.settings import AISettings

    settings = AISettings.from_config(config.ai)
    # one call cap and one budget for detection and triage together
    rate_limiter = RateLimiter(settings.max_calls_per_minute, settings.max_calls_per_scan)
    cost_tracker = CostTracker(settings.budget_cents)

    async def _both() -> tuple[List[Finding], Optional[dict]]:
        merged, stats = findings, None
        if detect:
            result = await run_ai_scan(
                files, base, settings, required=required,
                rate_limiter=rate_limiter, cost_tracker=cost_tracker,
            )
            merged = merged + result.findings
            stats = result.stats.to_dict()
        if triage:
            merged = await run_ai_triage(
                merged, base, settings, required=required,
                rate_limiter=rate_limiter, cost_tracker=cost_tracker,
            )
            if stats is not None:
                stats["costCents"] = round(cost_tracker.get_estimated_cost_cents(), 4)
        return merged, stats

    return asyncio.run(_both())


def scan(options: ScanOptions) -> ScanResult:
    """Run the full scan pipeline described by *options*."""
    start = time.perf_counter()

    base = Path(options.path).resolve()
    if not base.exists():
        raise ScanError(f"Path does not exist: {options.path}")

    config = options.config or load_config(base, options.config_file)
    categories = options.categories or config.scan.categories

    files = [base] if base.is_file() else discover_files(
        base, [*config.scan.exclude, *options.exclude], config.scan.ignore_paths
    )
    root = base.parent if base.is_file() else base
    logger.info("Scanning %d files under %s", len(files), root)

    context = ScanContext(base_path=root, config=config, all_files=files)
    scanners = [s for s in ALL_SCANNERS if s.category in categories]
    findings = run_scanners(scanners, files, context)

    custom = load_custom_rules(root, config.scan.custom_rules_path)
    if custom.rules:
        logger.info("Loaded %d custom rule(s)", len(custom.rules))
        findings.extend(CustomRuleScanner(custom.rules).scan(files, context))

    ai_stats = None
    if options.ai or options.ai_triage or config.ai.enabled:
        findings, ai_stats = _run_ai(
            files,
            findings,
            config,
            root,
            detect=options.ai or config.ai.enabled,
            triage=options.ai_triage,
            required=options.ai_required,
        )

    findings = deduplicate(findings)

    apply_suppressions(findings, root)
    apply_acknowledgments(findings, config.acknowledged_findings)
    if options.baseline_file:
        baseline = load_baseline(options.baseline_file)
        if baseline is None:
            logger.warning("Baseline file %s could not be loaded", options.baseline_file)
        apply_baseline(findings, baseline)

    findings = filter_by_confidence(findings, options.min_confidence or config.scan.min_confidence)

    elapsed = round((time.perf_counter() - start) * 1000, 2)
    fix_report = None
    if options.fix:
        from vlayer.fixer.apply import apply_fixes

        fix_report = apply_fixes(
            [f for f in findings if f.is_active],
            root,
            rules=custom.rules,
            scanned_files=len(files),
            scan_duration=elapsed,
        )

    return ScanResult(
        findings=findings,
        scanned_files=len(files),
        scan_duration=elapsed,
        stack=detect_stack(root),
        load_errors=list(custom.errors),
        fix_report=fix_report,
        ai_stats=ai_stats,
    )
