"""AI entry points used by the scan engine: LLM rules and triage."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from vlayer.ai.cache import AICache
from vlayer.ai.client import AnthropicClient, LLMClient
from vlayer.ai.cost_tracker import CostTracker
from vlayer.ai.rate_limiter import RateLimiter
from vlayer.ai.rules import AI_RULES, AIRule
from vlayer.ai.runner import RuleRunner
from vlayer.ai.settings import API_KEY_ENV_VARS, AISettings
from vlayer.ai.triage import apply_verdict, triage_findings
from vlayer.findings.models import Finding

logger = logging.getLogger(__name__)

CODE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py", ".java", ".go", ".rb", ".php")


class AIUnavailableError(Exception):
    """AI analysis was required but no API key is configured."""


@dataclass
class AIScanStats:
    files_scanned: int = 0
    ai_calls_made: int = 0
    cost_cents: float = 0.0
    cache_hits: int = 0
    phi_patterns_scrubbed: int = 0

    def to_dict(self) -> Dict[str, float]:
        return {
            "filesScanned": self.files_scanned,
            "aiCallsMade": self.ai_calls_made,
            "costCents": round(self.cost_cents, 4),
            "cacheHits": self.cache_hits,
            "phiPatternsScrubbed": self.phi_patterns_scrubbed,
        }


@dataclass
class AIScanResult:
    findings: List[Finding] = field(default_factory=list)
    stats: AIScanStats = field(default_factory=AIScanStats)


def _resolve_client(
    settings: AISettings, client: Optional[LLMClient], required: bool, purpose: str
) -> Optional[LLMClient]:
    if client is not None:
        return client
    if settings.api_key:
        return AnthropicClient(settings.api_key)
    message = f"AI {purpose} disabled: none of {', '.join(API_KEY_ENV_VARS)} is set"
    if required:
        raise AIUnavailableError(message)
    logger.warning(message)
    return None


def _relpath(path: Path, base: Path) -> str:
    try:
        return path.resolve().relative_to(base.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def _read_code(path: Path, max_size: int) -> Optional[str]:
    if not path.name.lower().endswith(CODE_EXTENSIONS):
        return None
    try:
        if path.stat().st_size > max_size:
            logger.debug("Skipping %s for AI: larger than %d bytes", path, max_size)
            return None
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Skipping unreadable file %s: %s", path, exc)
        return None


async def run_ai_scan(
    files: Sequence[Path],
    base: Path,
    settings: AISettings,
    *,
    client: Optional[LLMClient] = None,
    required: bool = False,
    rules: Sequence[AIRule] = AI_RULES,
    rate_limiter: Optional[RateLimiter] = None,
    cost_tracker: Optional[CostTracker] = None,
) -> AIScanResult:
    """Run every AI rule on each eligible code file under the per-scan limits.

    Pass the same *rate_limiter* and *cost_tracker* to :func:`run_ai_triage`
    so both phases draw on one call cap and one budget.
    """
    result = AIScanResult()
    client = _resolve_client(settings, client, required, "scanning")
    if client is None:
        return result

    cache_dir = Path(settings.cache_dir)
    if not cache_dir.is_absolute():
        cache_dir = base / cache_dir
    if cost_tracker is None:
        cost_tracker = CostTracker(settings.budget_cents)
    if rate_limiter is None:
        rate_limiter = RateLimiter(settings.max_calls_per_minute, settings.max_calls_per_scan)
    cache = AICache(cache_dir, settings.cache_ttl_hours)
    runner = RuleRunner(client, settings, cost_tracker, cache, rate_limiter)

    logger.info("Running %d AI rules", len(rules))
    for path in files:
        content = _read_code(path, settings.max_file_size)
        if content is None:
            continue
        result.findings.extend(await runner.run_rules_on_file(rules, content, _relpath(path, base)))
        result.stats.files_scanned += 1
        if cost_tracker.is_over_budget():
            logger.warning("AI budget exceeded, stopping AI scan")
            break

    result.stats.ai_calls_made = runner.stats.ai_calls_made
    result.stats.cost_cents = cost_tracker.get_estimated_cost_cents()
    result.stats.cache_hits = cache.hits
    result.stats.phi_patterns_scrubbed = runner.stats.phi_patterns_scrubbed
    logger.info(cost_tracker.get_summary())
    return result


async def run_ai_triage(
    findings: List[Finding],
    base: Path,
    settings: AISettings,
    *,
    client: Optional[LLMClient] = None,
    required: bool = False,
    rate_limiter: Optional[RateLimiter] = None,
    cost_tracker: Optional[CostTracker] = None,
) -> List[Finding]:
    """Triage static findings; false positives are dropped from the returned list."""
    client = _resolve_client(settings, client, required, "triage")
    if client is None:
        return findings

    contents: Dict[str, str] = {}
    for f in findings:
        if f.source == "ai" or f.file in contents:
            continue
        text = _read_code(base / f.file, settings.max_file_size)
        if text is not None:
            contents[f.file] = text

    if rate_limiter is None:
        rate_limiter = RateLimiter(settings.max_calls_per_minute, settings.max_calls_per_scan)
    if cost_tracker is None:
        cost_tracker = CostTracker(settings.budget_cents)

    static = [f for f in findings if f.source != "ai"]
    others = [f for f in findings if f.source == "ai"]
    logger.info("Triaging %d findings", len(static))
    triaged = await triage_findings(
        static,
        contents,
        client,
        settings,
        rate_limiter=rate_limiter,
        cost_tracker=cost_tracker,
    )

    kept: List[Finding] = []
    dropped = 0
    for f in triaged:
        verdict = apply_verdict(f)
        if verdict is None:
            dropped += 1
        else:
            kept.append(verdict)
    logger.info("Triage complete: %d false positives filtered", dropped)
    return kept + others
