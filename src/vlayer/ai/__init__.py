"""Optional LLM layer: detection rules, triage, and their per-scan limits."""

from vlayer.ai.cache import AICache
from vlayer.ai.client import AnthropicClient, LLMClient, LLMResponse, extract_json
from vlayer.ai.cost_tracker import CostTracker
from vlayer.ai.rate_limiter import RateLimiter, RateLimitExceeded
from vlayer.ai.rules import AI_RULES, AIRule
from vlayer.ai.runner import RuleRunner
from vlayer.ai.sanitizer import SanitizationResult, restore_sanitized_code, sanitize_for_ai
from vlayer.ai.scanner import AIScanResult, AIScanStats, AIUnavailableError, run_ai_scan, run_ai_triage
from vlayer.ai.settings import AISettings, get_api_key, is_ai_available
from vlayer.ai.triage import triage_finding, triage_findings

__all__ = [
    "AICache",
    "AIRule",
    "AIScanResult",
    "AIScanStats",
    "AISettings",
    "AIUnavailableError",
    "AI_RULES",
    "AnthropicClient",
    "CostTracker",
    "LLMClient",
    "LLMResponse",
    "RateLimitExceeded",
    "RateLimiter",
    "RuleRunner",
    "SanitizationResult",
    "extract_json",
    "get_api_key",
    "is_ai_available",
    "restore_sanitized_code",
    "run_ai_scan",
    "run_ai_triage",
    "sanitize_for_ai",
    "triage_finding",
    "triage_findings",
]
