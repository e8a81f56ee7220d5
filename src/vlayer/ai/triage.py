"""AI triage of static findings to cut false positives."""

from __future__ import annotations

import dataclasses
import logging
from typing import List, Mapping, Optional

from vlayer.ai.client import LLMClient, extract_json
from vlayer.ai.cost_tracker import CostTracker
from vlayer.ai.rate_limiter import RateLimiter, RateLimitExceeded
from vlayer.ai.sanitizer import sanitize_for_ai
from vlayer.ai.settings import AISettings
from vlayer.findings.models import Finding, TriageInfo

logger = logging.getLogger(__name__)

VERDICTS = ("confirmed", "likely", "possible", "false_positive")
CONTEXT_RADIUS = 10

TRIAGE_SYSTEM_PROMPT = """\
You are a HIPAA compliance expert analyzing potential security findings.
Classify each finding as:
- confirmed: definitely a real security issue
- likely: probably real, needs review
- possible: might be a false positive
- false_positive: not a real issue

Common false positives:
- http://www.w3.org in XML namespaces (not an encryption issue)
- Field names like "dateOfBirth" or "ssn" in forms (not PHI exposure without actual data)
- Fake SSNs or emails in test files
- HTTP URLs in comments or documentation
- Development and localhost URLs

Be conservative: when in doubt, classify as "likely" rather than "false_positive"."""


def _fallback(reason: str) -> TriageInfo:
    return TriageInfo(verdict="likely", confidence=0.5, reasoning=reason)


def build_triage_prompt(finding: Finding, sanitized_code: str) -> str:
    lines = sanitized_code.split("\n")
    line = finding.line or 1
    start = max(0, line - CONTEXT_RADIUS)
    end = min(len(lines), line + CONTEXT_RADIUS)
    snippet = "\n".join(lines[start:end])
    return (
        "Finding to triage:\n"
        f"File: {finding.file}\n"
        f"Line: {finding.line}\n"
        f"Category: {finding.category}\n"
        f"Severity: {finding.severity}\n"
        f"Title: {finding.title}\n"
        f"Description: {finding.description}\n\n"
        f"Code context (lines {start + 1}-{end}):\n```\n{snippet}\n```\n\n"
        "Is this a real security issue or a false positive? Respond in JSON:\n"
        "{\n"
        '  "classification": "confirmed" | "likely" | "possible" | "false_positive",\n'
        '  "confidence": 0.0-1.0,\n'
        '  "reasoning": "brief explanation"\n'
        "}"
    )


async def triage_finding(
    finding: Finding,
    content: str,
    client: LLMClient,
    settings: AISettings,
    cost_tracker: Optional[CostTracker] = None,
) -> TriageInfo:
    """Ask the model for a verdict. Any failure yields likely / 0.5."""
    sanitized = sanitize_for_ai(content, finding.file)
    try:
        response = await client.complete(
            TRIAGE_SYSTEM_PROMPT,
            build_triage_prompt(finding, sanitized.sanitized_code),
            model=settings.model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
        )
        if cost_tracker is not None:
            cost_tracker.track_usage(response.input_tokens, response.output_tokens)
        data = extract_json(response.text)
        verdict = data.get("classification")
        if verdict not in VERDICTS:
            raise ValueError(f"unknown classification {verdict!r}")
        return TriageInfo(
            verdict=verdict,
            confidence=float(data.get("confidence", 0.5)),
            reasoning=str(data.get("reasoning") or ""),
        )
    except Exception as exc:
        logger.warning("Triage failed for %s at %s:%s: %s", finding.id, finding.file, finding.line, exc)
        return _fallback(f"Triage failed: {exc}")


async def triage_findings(
    findings: List[Finding],
    contents: Mapping[str, str],
    client: LLMClient,
    settings: AISettings,
    rate_limiter: Optional[RateLimiter] = None,
    cost_tracker: Optional[CostTracker] = None,
) -> List[Finding]:
    """Return copies of *findings* carrying a :class:`TriageInfo` each.

    *contents* maps a finding's relative path to the file text. Findings whose
    file text is missing, or that come after the call budget is spent, keep
    the default likely verdict.
    """
    triaged: List[Finding] = []
    exhausted = False
    for finding in findings:
        content = contents.get(finding.file)
        if content is None:
            info = _fallback("File content not available for triage")
        elif exhausted or (cost_tracker is not None and cost_tracker.is_over_budget()):
            info = _fallback("Triage skipped: AI budget exhausted")
        else:
            info = None
            if rate_limiter is not None:
                try:
                    await rate_limiter.wait_if_needed()
                    rate_limiter.record_call()
                except RateLimitExceeded as exc:
                    logger.warning("%s; remaining findings are not triaged", exc)
                    exhausted = True
                    info = _fallback("Triage skipped: AI call limit reached")
            if info is None:
                info = await triage_finding(finding, content, client, settings, cost_tracker)
        triaged.append(dataclasses.replace(finding, triage=info))
    return triaged


def apply_verdict(finding: Finding) -> Optional[Finding]:
    """Fold a triage verdict into the finding; None drops a false positive."""
    if finding.triage is None:
        return finding
    verdict = finding.triage.verdict
    if verdict == "false_positive":
        return None
    if verdict == "possible":
        finding.confidence = "low"
    elif verdict == "confirmed":
        finding.confidence = "high"
    return finding
