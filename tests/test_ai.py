"""Tests for the AI layer: limits, cache, scrubbing, rule runs and triage."""

import json
from pathlib import Path

import httpx
import pytest

from vlayer.ai.cache import AICache
from vlayer.ai.client import AnthropicClient, extract_json
from vlayer.ai.cost_tracker import CostTracker
from vlayer.ai.rate_limiter import RateLimiter, RateLimitExceeded
from vlayer.ai.rules import AI_RULES, MINIMUM_NECESSARY
from vlayer.ai.runner import RuleRunner, confidence_label, convert_findings
from vlayer.ai.sanitizer import restore_sanitized_code, sanitize_for_ai
from vlayer.ai.scanner import AIUnavailableError, run_ai_scan, run_ai_triage
from vlayer.ai.settings import AISettings, get_api_key
from vlayer.ai.triage import apply_verdict, triage_finding, triage_findings
from vlayer.config.schema import AIConfig
from vlayer.findings.models import TriageInfo


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _finding_reply(**overrides):
    entry = {
        "line": 3,
        "severity": "high",
        "message": "Returns the full patient record",
        "suggestion": "Select only the fields the view needs",
        "confidence": 0.9,
    }
    entry.update(overrides)
    return {"findings": [entry], "summary": "one issue"}


@pytest.fixture
def settings(tmp_path: Path) -> AISettings:
    return AISettings(api_key="test-key", cache_dir=str(tmp_path / "ai-cache"))


def _runner(client, settings, tmp_path, *, budget=50.0, per_scan=50):
    return RuleRunner(
        client,
        settings,
        CostTracker(budget),
        AICache(tmp_path / "ai-cache"),
        RateLimiter(20, per_scan),
    )


# ---- settings ----


class TestSettings:
    def test_api_key_lookup_order(self):
        assert get_api_key({"VLAYER_AI_KEY": "b", "ANTHROPIC_API_KEY": "a"}) == "a"
        assert get_api_key({"VLAYER_AI_KEY": "b"}) == "b"
        assert get_api_key({}) is None

    def test_from_config(self):
        cfg = AIConfig(max_calls_per_scan=5, budget_cents=10.0)
        settings = AISettings.from_config(cfg, env={"ANTHROPIC_API_KEY": "k"})
        assert settings.api_key == "k"
        assert settings.max_calls_per_scan == 5
        assert settings.budget_cents == 10.0


# ---- limits ----


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_waits_for_window(self):
        clock = FakeClock()
        limiter = RateLimiter(2, 10, clock=clock, sleep=clock.sleep)
        for _ in range(2):
            await limiter.wait_if_needed()
            limiter.record_call()
        assert limiter.can_make_call() is False

        await limiter.wait_if_needed()
        assert clock.sleeps == [60.0]
        assert limiter.can_make_call() is True

    @pytest.mark.asyncio
    async def test_scan_cap_raises(self):
        clock = FakeClock()
        limiter = RateLimiter(20, 1, clock=clock, sleep=clock.sleep)
        await limiter.wait_if_needed()
        limiter.record_call()
        with pytest.raises(RateLimitExceeded):
            await limiter.wait_if_needed()
        assert clock.sleeps == []

    def test_stats_and_reset(self):
        clock = FakeClock()
        limiter = RateLimiter(5, 10, clock=clock)
        limiter.record_call()
        clock.now = 30
        limiter.record_call()
        clock.now = 70
        assert limiter.get_stats() == {"calls_this_minute": 1, "total_calls": 2}
        limiter.reset()
        assert limiter.get_stats() == {"calls_this_minute": 0, "total_calls": 0}


class TestCostTracker:
    def test_cost_estimate(self):
        tracker = CostTracker(budget_cents=1.0)
        tracker.track_usage(1000, 200)
        assert tracker.get_estimated_cost_cents() == pytest.approx(0.6)
        assert tracker.is_over_budget() is False
        tracker.track_usage(1000, 200)
        assert tracker.is_over_budget() is True
        assert "2 calls" in tracker.get_summary()

    def test_budget_reached_exactly(self):
        tracker = CostTracker(budget_cents=0.6)
        tracker.track_usage(1000, 200)
        assert tracker.is_over_budget() is True

    def test_reset(self):
        tracker = CostTracker()
        tracker.track_usage(10, 10)
        tracker.reset()
        assert tracker.get_stats()["total_calls"] == 0


class TestAICache:
    def test_round_trip_and_hits(self, tmp_path: Path):
        cache = AICache(tmp_path, ttl_hours=1)
        assert cache.get("code", "R1") is None
        cache.set("code", "R1", {"findings": []})
        assert cache.get("code", "R1") == {"findings": []}
        assert cache.get("other code", "R1") is None
        assert cache.hits == 1

    def test_expired_entry_deleted(self, tmp_path: Path):
        clock = FakeClock(1000.0)
        cache = AICache(tmp_path, ttl_hours=1, clock=clock)
        cache.set("code", "R1", {"findings": []})
        clock.now += 3601
        assert cache.get("code", "R1") is None
        assert not cache.path_for("code", "R1").exists()

    @pytest.mark.parametrize("raw", ["[]", "\"text\"", "{\"result\": {}}", "{\"timestamp\": \"soon\"}"])
    def test_malformed_entry_is_a_miss(self, tmp_path: Path, raw):
        cache = AICache(tmp_path)
        path = cache.path_for("code", "R1")
        path.write_text(raw, encoding="utf-8")
        assert cache.get("code", "R1") is None
        assert cache.hits == 0
        assert not path.exists()

    def test_disabled(self, tmp_path: Path):
        cache = AICache(tmp_path / "c", enabled=False)
        cache.set("code", "R1", {"findings": []})
        assert cache.get("code", "R1") is None
        assert not (tmp_path / "c").exists()

    def test_clear(self, tmp_path: Path):
        cache = AICache(tmp_path)
        cache.set("a", "R1", {})
        cache.set("b", "R1", {})
        assert cache.clear() == 2
        assert cache.get("a", "R1") is None


# ---- scrubbing and parsing ----


class TestSanitizer:
    def test_placeholders(self):
        code = 'const p = { ssn: "123-45-6789", email: "jane@clinic.org", phone: "555-123-4567" };'
        result = sanitize_for_ai(code, "src/seed.ts")
        assert "[PHI_SSN_1]" in result.sanitized_code
        assert "[PHI_EMAIL_1]" in result.sanitized_code
        assert "[PHI_PHONE_1]" in result.sanitized_code
        assert "123-45-6789" not in result.sanitized_code
        assert result.phi_found == 3
        assert any("src/seed.ts" in w for w in result.warnings)

    def test_restore(self):
        code = "ssn 123-45-6789 and 987-65-4321"
        result = sanitize_for_ai(code, "a.ts")
        assert result.sanitized_code == "ssn [PHI_SSN_1] and [PHI_SSN_2]"
        assert restore_sanitized_code(result.sanitized_code, result.replacement_map) == code

    def test_clean_code_untouched(self):
        result = sanitize_for_ai("const x = 1;", "a.ts")
        assert result.sanitized_code == "const x = 1;"
        assert result.phi_found == 0
        assert result.warnings == []


class TestExtractJson:
    def test_fenced(self):
        assert extract_json('Here:\n```json\n{"findings": []}\n```') == {"findings": []}

    @pytest.mark.parametrize("text", ["no json here", '{"broken": ', "[1, 2]"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            extract_json(text)


class TestConvertFindings:
    @pytest.mark.parametrize("value, label", [(0.95, "high"), (0.8, "high"), (0.5, "medium"), (0.1, "low"), ("?", "medium")])
    def test_confidence_label(self, value, label):
        assert confidence_label(value) == label

    def test_malformed_entries(self):
        data = {
            "findings": [
                {"line": 4, "severity": "urgent", "message": "Broad select", "confidence": 0.3},
                {"line": 5, "severity": "high", "message": ""},
                "not a dict",
                {"line": 0, "severity": "high", "message": "No line"},
            ]
        }
        findings = convert_findings(MINIMUM_NECESSARY, "src/a.ts", data)
        assert len(findings) == 2
        assert findings[0].severity == "medium"
        assert findings[0].confidence == "low"
        assert findings[0].regulatory_reference == MINIMUM_NECESSARY.reference
        assert findings[1].line is None
        assert all(f.source == "ai" and f.id == "HIPAA-PHI-003" for f in findings)


# ---- client ----


class TestAnthropicClient:
    @pytest.mark.asyncio
    async def test_posts_message(self, monkeypatch):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "content": [{"type": "text", "text": '{"findings": []}'}],
                "usage": {"input_tokens": 12, "output_tokens": 3},
            })

        real = httpx.AsyncClient
        monkeypatch.setattr(
            httpx, "AsyncClient", lambda **kw: real(transport=httpx.MockTransport(handler), **kw)
        )
        response = await AnthropicClient("sk-test").complete(
            "system", "user", model="m", max_tokens=10, temperature=0.0
        )
        assert response.text == '{"findings": []}'
        assert response.input_tokens == 12
        assert seen["headers"]["x-api-key"] == "sk-test"
        assert seen["body"]["messages"] == [{"role": "user", "content": "user"}]

    @pytest.mark.asyncio
    async def test_http_error(self, monkeypatch):
        real = httpx.AsyncClient
        transport = httpx.MockTransport(lambda request: httpx.Response(529, json={}))
        monkeypatch.setattr(httpx, "AsyncClient", lambda **kw: real(transport=transport, **kw))
        with pytest.raises(httpx.HTTPStatusError):
            await AnthropicClient("sk-test").complete("s", "u", model="m", max_tokens=1, temperature=0)


# ---- rule runner ----


class TestRuleRunner:
    @pytest.mark.asyncio
    async def test_run_then_cache_hit(self, fake_client, settings, tmp_path):
        client = fake_client(replies=[_finding_reply()])
        runner = _runner(client, settings, tmp_path)

        first = await runner.run_rule(MINIMUM_NECESSARY, "const p = await getPatient();", "src/a.ts")
        assert len(first) == 1
        assert first[0].id == "HIPAA-PHI-003"
        assert first[0].confidence == "high"
        assert first[0].line == 3

        second = await runner.run_rule(MINIMUM_NECESSARY, "const p = await getPatient();", "src/a.ts")
        assert [f.title for f in second] == [f.title for f in first]
        assert len(client.calls) == 1
        assert runner.cache.hits == 1
        assert runner.stats.ai_calls_made == 1

    @pytest.mark.asyncio
    async def test_code_is_scrubbed_before_sending(self, fake_client, settings, tmp_path):
        client = fake_client()
        runner = _runner(client, settings, tmp_path)
        await runner.run_rule(MINIMUM_NECESSARY, 'const ssn = "123-45-6789";', "src/a.ts")
        assert "123-45-6789" not in client.calls[0]["user"]
        assert "[PHI_SSN_1]" in client.calls[0]["user"]
        assert runner.stats.phi_patterns_scrubbed == 1

    @pytest.mark.asyncio
    async def test_failure_returns_nothing_and_is_not_cached(self, fake_client, settings, tmp_path):
        client = fake_client(replies=[RuntimeError("overloaded"), "not json"])
        runner = _runner(client, settings, tmp_path)
        assert await runner.run_rule(MINIMUM_NECESSARY, "code", "a.ts") == []
        assert await runner.run_rule(MINIMUM_NECESSARY, "code", "a.ts") == []
        assert await runner.run_rule(MINIMUM_NECESSARY, "code", "a.ts") == []
        assert len(client.calls) == 3

    @pytest.mark.asyncio
    async def test_budget_exhausted(self, fake_client, settings, tmp_path):
        client = fake_client()
        runner = _runner(client, settings, tmp_path, budget=0)
        assert await runner.run_rule(MINIMUM_NECESSARY, "code", "a.ts") == []
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_scan_cap(self, fake_client, settings, tmp_path):
        client = fake_client()
        runner = _runner(client, settings, tmp_path, per_scan=1)
        findings = await runner.run_rules_on_file(AI_RULES[:3], "code", "a.ts")
        assert findings == []
        assert len(client.calls) == 1


# ---- triage ----


class TestTriage:
    @pytest.mark.asyncio
    async def test_verdict_parsed(self, fake_client, settings, make_finding):
        client = fake_client(replies=[{
            "classification": "false_positive", "confidence": 0.9, "reasoning": "XML namespace",
        }])
        info = await triage_finding(make_finding(), "const x = 1;", client, settings)
        assert info == TriageInfo("false_positive", 0.9, "XML namespace")

    @pytest.mark.asyncio
    async def test_unknown_verdict_falls_back(self, fake_client, settings, make_finding):
        client = fake_client(replies=[{"classification": "maybe"}])
        info = await triage_finding(make_finding(), "const x = 1;", client, settings)
        assert info.verdict == "likely"
        assert info.confidence == 0.5

    @pytest.mark.asyncio
    async def test_missing_content_and_call_cap(self, fake_client, settings, make_finding):
        client = fake_client(default={"classification": "confirmed", "confidence": 1})
        findings = [
            make_finding(file="gone.ts"),
            make_finding(file="src/db.ts", line=1),
            make_finding(file="src/db.ts", line=2),
        ]
        triaged = await triage_findings(
            findings,
            {"src/db.ts": "a\nb\nc"},
            client,
            settings,
            rate_limiter=RateLimiter(20, 1),
        )
        assert [t.triage.verdict for t in triaged] == ["likely", "confirmed", "likely"]
        assert "not available" in triaged[0].triage.reasoning
        assert "call limit" in triaged[2].triage.reasoning
        # originals are left untouched
        assert findings[1].triage is None

    @pytest.mark.parametrize(
        "verdict, confidence",
        [("confirmed", "high"), ("likely", "medium"), ("possible", "low")],
    )
    def test_apply_verdict(self, make_finding, verdict, confidence):
        finding = make_finding(confidence="medium")
        finding.triage = TriageInfo(verdict, 0.7, "")
        assert apply_verdict(finding).confidence == confidence

    def test_apply_verdict_drops_false_positive(self, make_finding):
        finding = make_finding()
        finding.triage = TriageInfo("false_positive", 0.9, "")
        assert apply_verdict(finding) is None


# ---- entry points ----


class TestRunAIScan:
    @pytest.mark.asyncio
    async def test_scans_code_files(self, fake_client, settings, write_project):
        root = write_project({"src/a.ts": "getPatient()\n", "README.md": "# docs\n"})
        client = fake_client(replies=[_finding_reply()])
        files = [root / "README.md", root / "src" / "a.ts"]

        result = await run_ai_scan(files, root, settings, client=client, rules=[MINIMUM_NECESSARY])
        assert [f.file for f in result.findings] == ["src/a.ts"]
        stats = result.stats.to_dict()
        assert stats["filesScanned"] == 1
        assert stats["aiCallsMade"] == 1
        assert stats["costCents"] == pytest.approx(0.6)

        again = await run_ai_scan(files, root, settings, client=client, rules=[MINIMUM_NECESSARY])
        assert again.stats.ai_calls_made == 0
        assert again.stats.cache_hits == 1
        assert len(again.findings) == 1

    @pytest.mark.asyncio
    async def test_budget_stops_scan(self, fake_client, tmp_path, write_project):
        root = write_project({"src/a.ts": "a()\n", "src/b.ts": "b()\n"})
        settings = AISettings(api_key="k", budget_cents=0.6, cache_dir=str(tmp_path / "cache"))
        files = [root / "src" / "a.ts", root / "src" / "b.ts"]
        result = await run_ai_scan(files, root, settings, client=fake_client(), rules=[MINIMUM_NECESSARY])
        assert result.stats.files_scanned == 1

    @pytest.mark.asyncio
    async def test_no_key(self, tmp_path):
        settings = AISettings(api_key=None)
        result = await run_ai_scan([], tmp_path, settings)
        assert result.findings == []
        with pytest.raises(AIUnavailableError):
            await run_ai_scan([], tmp_path, settings, required=True)


class TestRunAITriage:
    @pytest.mark.asyncio
    async def test_false_positive_dropped(self, fake_client, settings, write_project, make_finding, password_source):
        root = write_project({"src/db.ts": password_source})
        static = make_finding(file="src/db.ts", line=3)
        ai = make_finding(id="HIPAA-SEC-001", file="src/db.ts", line=3, source="ai")
        client = fake_client(replies=[{"classification": "false_positive", "confidence": 0.9}])

        kept = await run_ai_triage([static, ai], root, settings, client=client)
        assert kept == [ai]
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_possible_lowers_confidence(self, fake_client, settings, write_project, make_finding, password_source):
        root = write_project({"src/db.ts": password_source})
        client = fake_client(replies=[{"classification": "possible", "confidence": 0.4}])
        kept = await run_ai_triage([make_finding(file="src/db.ts")], root, settings, client=client)
        assert kept[0].confidence == "low"
        assert kept[0].triage.verdict == "possible"

    @pytest.mark.asyncio
    async def test_no_key_returns_input(self, tmp_path, make_finding):
        findings = [make_finding()]
        assert await run_ai_triage(findings, tmp_path, AISettings(api_key=None)) is findings
