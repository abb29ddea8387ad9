from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from compliance.extraordinary import ClassifierError, LLMExtraordinaryAnalyzer
from models.schemas import ExtraordinaryCategory
from settings import Settings
from tools.llm_runtime import LLMRuntime, LLMUnavailableError

VERDICT = {
    "isExtraordinary": True,
    "confidence": 0.92,
    "reason": "Severe weather",
    "category": "weather",
    "explanation": "Storms closed the airport",
}


def _anthropic_transport(payload_text: str, seen: list):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"content": [{"type": "text", "text": payload_text}]})

    return httpx.MockTransport(handler)


def _settings(**overrides) -> Settings:
    values = dict(anthropic_api_key="test-key", openai_api_key="", xai_api_key="", anthropic_base_url="https://llm.test/v1")
    values.update(overrides)
    return Settings(**values)


def test_generate_raises_when_provider_not_configured():
    async def _run():
        llm = LLMRuntime(provider="anthropic", settings=_settings(anthropic_api_key=""))
        with pytest.raises(LLMUnavailableError):
            await llm.generate("system", "user")

    asyncio.run(_run())


def test_anthropic_request_shape_and_json_parsing():
    async def _run():
        seen: list = []
        llm = LLMRuntime(provider="anthropic", model="m-1", settings=_settings(), transport=_anthropic_transport(json.dumps(VERDICT), seen))
        data = await llm.generate_json("system prompt", "classify this")
        assert data["category"] == "weather"
        request = seen[0]
        assert str(request.url) == "https://llm.test/v1/messages"
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["anthropic-version"] == "2023-06-01"
        body = json.loads(request.content)
        assert body["model"] == "m-1"
        assert body["system"] == "system prompt"
        assert body["messages"][0]["content"].endswith("Return valid JSON only.")

    asyncio.run(_run())


def test_generate_json_accepts_fenced_output():
    async def _run():
        fenced = "```json\n" + json.dumps(VERDICT) + "\n```"
        llm = LLMRuntime(provider="anthropic", settings=_settings(), transport=_anthropic_transport(fenced, []))
        data = await llm.generate_json("s", "u")
        assert data["isExtraordinary"] is True

    asyncio.run(_run())


def test_openai_chat_completion_path():
    async def _run():
        seen: list = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(VERDICT)}}]})

        llm = LLMRuntime(
            provider="openai",
            settings=_settings(openai_api_key="sk-test", openai_base_url="https://oa.test/v1"),
            transport=httpx.MockTransport(handler),
        )
        data = await llm.generate_json("s", "u", context={"flight": "BA1"})
        assert data["confidence"] == 0.92
        body = json.loads(seen[0].content)
        assert body["response_format"] == {"type": "json_object"}
        assert seen[0].headers["authorization"] == "Bearer sk-test"
        assert "Context JSON" in body["messages"][1]["content"]

    asyncio.run(_run())


def test_llm_analyzer_validates_verdict():
    async def _run():
        llm = LLMRuntime(provider="anthropic", settings=_settings(), transport=_anthropic_transport(json.dumps(VERDICT), []))
        verdict = await LLMExtraordinaryAnalyzer(llm).analyze("Storms", {"flight_number": "LH1"})
        assert verdict.is_extraordinary
        assert verdict.category is ExtraordinaryCategory.WEATHER

    asyncio.run(_run())


def test_llm_analyzer_rejects_invalid_verdict():
    async def _run():
        bad = dict(VERDICT, category="aliens", confidence=3)
        llm = LLMRuntime(provider="anthropic", settings=_settings(), transport=_anthropic_transport(json.dumps(bad), []))
        with pytest.raises(ClassifierError):
            await LLMExtraordinaryAnalyzer(llm).analyze("Storms")

    asyncio.run(_run())


def test_llm_analyzer_wraps_http_errors():
    async def _run():
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "boom"}))
        llm = LLMRuntime(provider="anthropic", settings=_settings(), transport=transport)
        with pytest.raises(ClassifierError):
            await LLMExtraordinaryAnalyzer(llm).analyze("Storms")

    asyncio.run(_run())
