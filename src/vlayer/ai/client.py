"""Minimal async client for the Anthropic Messages API."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Protocol

import httpx

logger = logging.getLogger(__name__)

MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class LLMResponse:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0


class LLMClient(Protocol):
    async def complete(
        self, system: str, user: str, *, model: str, max_tokens: int, temperature: float
    ) -> LLMResponse: ...


class AnthropicClient:
    """Posts one message per call; a fresh connection pool per request."""

    def __init__(self, api_key: str, timeout: float = 60.0, base_url: str = MESSAGES_URL) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url

    async def complete(
        self, system: str, user: str, *, model: str, max_tokens: int, temperature: float
    ) -> LLMResponse:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.base_url,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                    "content-type": "application/json",
                },
                json={
                    "model": model,
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "system": system,
                    "messages": [{"role": "user", "content": user}],
                },
            )
            response.raise_for_status()
            data = response.json()

        blocks = data.get("content") or []
        text = "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
        if not text:
            raise ValueError("Unexpected response type from the Messages API")
        usage = data.get("usage") or {}
        return LLMResponse(
            text=text,
            input_tokens=int(usage.get("input_tokens", 0)),
            output_tokens=int(usage.get("output_tokens", 0)),
        )


def extract_json(text: str) -> Dict[str, Any]:
    """Parse the first JSON object in a model reply (tolerates code fences and prose)."""
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        raise ValueError("No JSON found in response")
    data = json.loads(match.group())
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data
