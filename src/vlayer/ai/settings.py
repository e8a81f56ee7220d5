"""AI layer settings: config section plus API key from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from vlayer.config.schema import AIConfig

API_KEY_ENV_VARS = ("ANTHROPIC_API_KEY", "VLAYER_AI_KEY")

# USD per million tokens
INPUT_COST_PER_MILLION = 3.0
OUTPUT_COST_PER_MILLION = 15.0


def get_api_key(env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if env is None else env
    for name in API_KEY_ENV_VARS:
        if env.get(name):
            return env[name]
    return None


def is_ai_available(env: Optional[Mapping[str, str]] = None) -> bool:
    return get_api_key(env) is not None


@dataclass
class AISettings:
    api_key: Optional[str] = None
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 2048
    temperature: float = 0.1
    max_file_size: int = 50_000
    max_calls_per_minute: int = 20
    max_calls_per_scan: int = 50
    budget_cents: float = 50.0
    cache_dir: str = ".vlayer/ai-cache"
    cache_ttl_hours: float = 24.0

    @classmethod
    def from_config(
        cls, config: AIConfig, env: Optional[Mapping[str, str]] = None
    ) -> "AISettings":
        return cls(
            api_key=get_api_key(env),
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            max_file_size=config.max_file_size,
            max_calls_per_minute=config.max_calls_per_minute,
            max_calls_per_scan=config.max_calls_per_scan,
            budget_cents=config.budget_cents,
            cache_dir=config.cache_dir,
            cache_ttl_hours=config.cache_ttl_hours,
        )
