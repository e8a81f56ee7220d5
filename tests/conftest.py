"""Shared test fixtures: sample projects, findings, a fake LLM client."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from vlayer.ai.client import LLMResponse
from vlayer.config.schema import VlayerConfig
from vlayer.findings.models import Finding


@pytest.fixture
def write_project(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative path: content}`` under a fresh project root."""
    root = tmp_path / "project"

    def _write(files: Dict[str, str]) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content), encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _write


@pytest.fixture
def config() -> VlayerConfig:
    return VlayerConfig()


@pytest.fixture
def make_finding() -> Callable[..., Finding]:
    def _make(**overrides) -> Finding:
        values = dict(
            id="CRED-002",
            category="encryption",
            severity="critical",
            title="Hardcoded Credentials Detected",
            description="Credentials hardcoded",
            file="src/db.ts",
            line=3,
            recommendation="Use environment variables",
            confidence="high",
        )
        values.update(overrides)
        return Finding(**values)

    return _make


@pytest.fixture
def password_source() -> str:
    return textwrap.dedent("""\
        import { connect } from './db';

        const password = "supersecret123";
        connect({ user: 'app', password });
    """)


@pytest.fixture
def phi_log_source() -> str:
    return textwrap.dedent("""\
        export function show(patient: Patient) {
          console.log('Patient data:', patient);
          return patient.id;
        }
    """)


class FakeLLMClient:
    """Returns queued replies in order and records every request."""

    def __init__(self, replies: Optional[List[object]] = None, default: object = None) -> None:
        self.replies = list(replies or [])
        self.default = default if default is not None else {"findings": [], "summary": "ok"}
        self.calls: List[Dict[str, object]] = []

    async def complete(self, system, user, *, model, max_tokens, temperature) -> LLMResponse:
        self.calls.append({"system": system, "user": user, "model": model})
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        text = reply if isinstance(reply, str) else json.dumps(reply)
        return LLMResponse(text=text, input_tokens=1000, output_tokens=200)


@pytest.fixture
def fake_client() -> Callable[..., FakeLLMClient]:
    return FakeLLMClient
