"""Run one AI rule against one file: cache, rate limit, budget, call, convert."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from vlayer.ai.cache import AICache
from vlayer.ai.client import LLMClient, extract_json
from vlayer.ai.cost_tracker import CostTracker
from vlayer.ai.rate_limiter import RateLimiter, RateLimitExceeded
from vlayer.ai.rules import AIRule
from vlayer.ai.sanitizer import sanitize_for_ai
from vlayer.ai.settings import AISettings
from vlayer.config.schema import SEVERITIES
from vlayer.findings.models import Finding

logger = logging.getLogger(__name__)


def confidence_label(value: Any) -> str:
    """Map a model's 0.0-1.0 confidence onto high / medium / low."""
    try:
        score = float(value)
    except (TypeError, ValueError):
        return "medium"
    if score >= 0.8:
        return "high"
    if score >= 0.5:
        return "medium"
    return "low"


def _line_of(raw: Dict[str, Any]) -> Optional[int]:
    try:
        line = int(raw.get("line"))
    except (TypeError, ValueError):
        return None
    return line if line > 0 else None


def convert_findings(rule: AIRule, file_path: str, data: Dict[str, Any]) -> List[Finding]:
    """Turn a parsed rule response into findings. Malformed entries are skipped."""
    findings: List[Finding] = []
    for raw in data.get("findings") or []:
        if not isinstance(raw, dict):
            continue
        message = str(raw.get("message") or "").strip()
        if not message:
            continue
        severity = raw.get("severity")
        if severity not in SEVERITIES:
            severity = "medium"
        findings.append(
            Finding(
                id=rule.id,
                category=rule.category,
                severity=severity,
                title=f"{rule.name}: {message}",
                description=message,
                file=file_path,
                line=_line_of(raw),
                recommendation=str(raw.get("suggestion") or ""),
                regulatory_reference=raw.get("hipaaReference") or rule.reference,
                confidence=confidence_label(raw.get("confidence")),
                source="ai",
            )
        )
    return findings


@dataclass
class RunnerStats:
    ai_calls_made: int = 0
    phi_patterns_scrubbed: int = 0


class RuleRunner:
    """Executes AI rules with the per-scan limiter, tracker and cache it is given."""

    def __init__(
        self,
        client: LLMClient,
        settings: AISettings,
        cost_tracker: CostTracker,
        cache: AICache,
        rate_limiter: RateLimiter,
    ) -> None:
        self.client = client
        self.settings = settings
        self.cost_tracker = cost_tracker
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.stats = RunnerStats()

    async def run_rule(self, rule: AIRule, content: str, file_path: str) -> List[Finding]:
        cached = self.cache.get(content, rule.id)
        if isinstance(cached, dict):
            logger.debug("AI cache hit for %s on %s", rule.id, file_path)
            return convert_findings(rule, file_path, cached)

        try:
            await self.rate_limiter.wait_if_needed()
        except RateLimitExceeded as exc:
            logger.warning("%s; skipping %s on %s", exc, rule.id, file_path)
            return []

        if self.cost_tracker.is_over_budget():
            logger.warning(
                "AI budget of %.0f cents exhausted; skipping %s on %s",
                self.cost_tracker.budget_cents, rule.id, file_path,
            )
            return []

        sanitized = sanitize_for_ai(content, file_path)
        self.stats.phi_patterns_scrubbed += sanitized.phi_found
        for warning in sanitized.warnings:
            logger.info(warning)

        self.rate_limiter.record_call()
        self.stats.ai_calls_made += 1
        try:
            response = await self.client.complete(
                rule.system_prompt,
                rule.user_prompt(sanitized.sanitized_code, file_path),
                model=self.settings.model,
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
            )
            self.cost_tracker.track_usage(response.input_tokens, response.output_tokens)
            data = extract_json(response.text)
        except Exception as exc:
            logger.warning("AI rule %s failed on %s: %s", rule.id, file_path, exc)
            return []

        self.cache.set(content, rule.id, data)
        return convert_findings(rule, file_path, data)

    async def run_rules_on_file(
        self, rules: Sequence[AIRule], content: str, file_path: str
    ) -> List[Finding]:
        findings: List[Finding] = []
        for rule in rules:
            if self.cost_tracker.is_over_budget():
                logger.warning("AI budget exhausted, stopping rules for %s", file_path)
                break
            findings.extend(await self.run_rule(rule, content, file_path))
        return findings
