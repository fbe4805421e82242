"""Tests for the AI task assistant.

All tests use mocked LLM providers and the in-memory FakeRedis from conftest.
No real API calls are made.
"""

import json
import uuid
from unittest.mock import patch

import pytest

from focusflow.services.assistant_service import (
    FALLBACK_ANALYSIS,
    AnthropicProvider,
    LLMProvider,
    OpenAIProvider,
    _check_rate_limit,
    _fallback_breakdown,
    _parse_json_object,
    analyze_task,
    break_down_task,
    create_provider,
    suggest_task_groups,
)
from tests.conftest import FakeRedis

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class MockLLMProvider(LLMProvider):
    """Mock provider that returns a preset response."""

    def __init__(self, response: str = "{}"):
        self.response = response
        self.calls: list[tuple[str, str]] = []

    async def generate(self, system_prompt: str, user_prompt: str, max_tokens: int = 500) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self.response


class FailingProvider(LLMProvider):
    """Provider that always raises an exception."""

    async def generate(self, system_prompt: str, user_prompt: str, max_tokens: int = 500) -> str:
        raise RuntimeError("LLM API error")


ANALYSIS_JSON = json.dumps({
    "category": "academic",
    "priority": "urgent",
    "estimatedDuration": 90,
    "subtasks": ["Outline", "Draft", "Edit"],
    "reasoning": "Graded coursework due soon",
})


# ---------------------------------------------------------------------------
# Provider Factory Tests
# ---------------------------------------------------------------------------


class TestCreateProvider:
    def test_openai_provider(self):
        class FakeSettings:
            AI_PROVIDER = "openai"
            OPENAI_API_KEY = "sk-test-key"
            ANTHROPIC_API_KEY = ""
            AI_MODEL = ""

        provider = create_provider(FakeSettings())
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o-mini"

    def test_anthropic_custom_model(self):
        class FakeSettings:
            AI_PROVIDER = "anthropic"
            OPENAI_API_KEY = ""
            ANTHROPIC_API_KEY = "sk-ant-test"
            AI_MODEL = "claude-haiku-4-5"

        provider = create_provider(FakeSettings())
        assert isinstance(provider, AnthropicProvider)
        assert provider.model == "claude-haiku-4-5"

    def test_provider_without_key(self):
        class FakeSettings:
            AI_PROVIDER = "openai"
            OPENAI_API_KEY = ""
            ANTHROPIC_API_KEY = ""
            AI_MODEL = ""

        assert create_provider(FakeSettings()) is None


# ---------------------------------------------------------------------------
# Rate Limiting Tests
# ---------------------------------------------------------------------------


class TestRateLimiting:
    @pytest.mark.asyncio
    async def test_rate_limit_blocks_over_limit(self):
        redis = FakeRedis()
        user_id = uuid.uuid4()

        for i in range(3):
            assert await _check_rate_limit(redis, user_id, limit=3), f"Call {i+1} should be allowed"
        assert await _check_rate_limit(redis, user_id, limit=3) is False

    @pytest.mark.asyncio
    async def test_rate_limit_per_user(self):
        redis = FakeRedis()
        user_a = uuid.uuid4()
        user_b = uuid.uuid4()

        await _check_rate_limit(redis, user_a, limit=1)
        assert await _check_rate_limit(redis, user_a, limit=1) is False
        assert await _check_rate_limit(redis, user_b, limit=1) is True

    @pytest.mark.asyncio
    async def test_exhausted_limit_uses_fallback(self):
        redis = FakeRedis()
        user_id = uuid.uuid4()
        provider = MockLLMProvider(ANALYSIS_JSON)

        first = await analyze_task(user_id, "Essay", None, provider, redis, daily_limit=1)
        second = await analyze_task(user_id, "Essay", None, provider, redis, daily_limit=1)

        assert first["is_ai_generated"] is True
        assert second["is_ai_generated"] is False
        assert len(provider.calls) == 1


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParsing:
    def test_plain_json(self):
        assert _parse_json_object('{"steps": ["a"]}') == {"steps": ["a"]}

    def test_markdown_fenced_json(self):
        raw = 'Here you go:\n```json\n{"steps": ["a", "b"]}\n```'
        assert _parse_json_object(raw) == {"steps": ["a", "b"]}

    def test_no_json(self):
        with pytest.raises(ValueError):
            _parse_json_object("I cannot help with that.")


# ---------------------------------------------------------------------------
# Task Analysis
# ---------------------------------------------------------------------------


class TestAnalyzeTask:
    @pytest.mark.asyncio
    async def test_ai_analysis(self):
        provider = MockLLMProvider(ANALYSIS_JSON)
        result = await analyze_task(uuid.uuid4(), "Finish essay", "History 101", provider)

        assert result["category"] == "academic"
        assert result["priority"] == "urgent"
        assert result["estimated_minutes"] == 90
        assert result["subtasks"] == ["Outline", "Draft", "Edit"]
        assert result["is_ai_generated"] is True
        assert "Finish essay" in provider.calls[0][1]

    @pytest.mark.asyncio
    async def test_invalid_values_are_normalized(self):
        provider = MockLLMProvider(json.dumps({
            "category": "hobby",
            "priority": "whenever",
            "estimatedDuration": "soon",
        }))
        result = await analyze_task(uuid.uuid4(), "Paint", None, provider)

        assert result["category"] == "personal"
        assert result["priority"] == "medium"
        assert result["estimated_minutes"] == 30

    @pytest.mark.asyncio
    async def test_fallback_without_provider(self):
        result = await analyze_task(uuid.uuid4(), "Anything", None, None)
        assert result["is_ai_generated"] is False
        assert result["category"] == FALLBACK_ANALYSIS["category"]

    @pytest.mark.asyncio
    async def test_fallback_on_provider_error(self):
        result = await analyze_task(uuid.uuid4(), "Anything", None, FailingProvider())
        assert result["is_ai_generated"] is False
        assert result["estimated_minutes"] == 30


# ---------------------------------------------------------------------------
# Task Grouping
# ---------------------------------------------------------------------------


class TestSuggestTaskGroups:
    @pytest.mark.asyncio
    async def test_needs_two_tasks(self):
        provider = MockLLMProvider()
        result = await suggest_task_groups(uuid.uuid4(), [{"title": "Only one"}], provider)
        assert result == {"groups": [], "is_ai_generated": False}
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_ai_groups(self):
        provider = MockLLMProvider(json.dumps({"groups": [
            {
                "groupName": "Library run",
                "tasks": ["Return books", "Print notes"],
                "reasoning": "Same location",
                "estimatedTotalTime": 40,
            },
            {"tasks": ["Nameless group is dropped"]},
        ]}))
        tasks = [{"title": "Return books"}, {"title": "Print notes", "priority": "low"}]
        result = await suggest_task_groups(uuid.uuid4(), tasks, provider)

        assert result["is_ai_generated"] is True
        assert len(result["groups"]) == 1
        group = result["groups"][0]
        assert group["group_name"] == "Library run"
        assert group["estimated_total_minutes"] == 40

    @pytest.mark.asyncio
    async def test_fallback_on_error(self):
        tasks = [{"title": "A"}, {"title": "B"}]
        result = await suggest_task_groups(uuid.uuid4(), tasks, FailingProvider())
        assert result == {"groups": [], "is_ai_generated": False}


# ---------------------------------------------------------------------------
# Task Breakdown
# ---------------------------------------------------------------------------


class TestBreakDownTask:
    @pytest.mark.asyncio
    async def test_ai_breakdown_capped_at_six(self):
        steps = [f"Step {i}" for i in range(1, 9)]
        provider = MockLLMProvider(json.dumps({"steps": steps}))
        result = await break_down_task(uuid.uuid4(), "Big project", None, provider)

        assert result["is_ai_generated"] is True
        assert result["steps"] == steps[:6]

    @pytest.mark.asyncio
    async def test_empty_ai_breakdown_uses_fallback(self):
        provider = MockLLMProvider(json.dumps({"steps": []}))
        result = await break_down_task(uuid.uuid4(), "Write essay", None, provider)

        assert result["is_ai_generated"] is False
        assert result["steps"] == _fallback_breakdown("Write essay")

    def test_fallback_keywords(self):
        assert _fallback_breakdown("Study for midterm")[0].startswith("Gather all materials and create")
        assert _fallback_breakdown("Code the parser")[0].startswith("Set up development")
        assert _fallback_breakdown("Math homework")[0] == "Read assignment instructions carefully"
        assert _fallback_breakdown("Clean my room")[0] == "Gather all materials and information needed"


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_breakdown_endpoint_falls_back_without_provider(client):
    with patch("focusflow.routers.assistant.assistant_service.create_provider", return_value=None):
        response = await client.post("/assistant/breakdown", json={"title": "Write lab report"})
    assert response.status_code == 200
    data = response.json()
    assert data["is_ai_generated"] is False
    assert data["steps"][0] == "Brainstorm ideas and create a rough outline"


@pytest.mark.asyncio
async def test_analyze_endpoint_with_provider(client):
    provider = MockLLMProvider(ANALYSIS_JSON)
    with patch("focusflow.routers.assistant.assistant_service.create_provider", return_value=provider):
        response = await client.post("/assistant/analyze", json={"title": "Finish essay"})
    assert response.status_code == 200
    data = response.json()
    assert data["category"] == "academic"
    assert data["is_ai_generated"] is True


@pytest.mark.asyncio
async def test_group_endpoint(client):
    with patch("focusflow.routers.assistant.assistant_service.create_provider", return_value=None):
        response = await client.post("/assistant/group", json={
            "tasks": [{"title": "A"}, {"title": "B"}],
        })
    assert response.status_code == 200
    assert response.json() == {"groups": [], "is_ai_generated": False}


@pytest.mark.asyncio
async def test_analyze_endpoint_validation(client):
    response = await client.post("/assistant/analyze", json={"title": ""})
    assert response.status_code == 422
