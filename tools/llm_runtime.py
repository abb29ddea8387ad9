from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List

import httpx

from settings import SETTINGS, Settings


class LLMUnavailableError(RuntimeError):
    pass


@dataclass
class LLMResult:
    text: str
    provider: str
    model: str
    raw: Dict[str, Any]


class LLMRuntime:
    """Thin provider-switching client for chat-style completions (Anthropic, OpenAI, xAI)."""

    def __init__(
        self,
        provider: str | None = None,
        model: str | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or SETTINGS
        self.provider = (provider or self.settings.default_llm_provider or "").lower()
        self.model = model or self.settings.default_model
        self._transport = transport

    def available(self) -> bool:
        if self.provider == "anthropic":
            return bool(self.settings.anthropic_api_key)
        if self.provider in {"xai", "grok"}:
            return bool(self.settings.xai_api_key)
        if self.provider == "openai":
            return bool(self.settings.openai_api_key)
        return False

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        context: Dict[str, Any] | None = None,
        response_format: str = "text",
    ) -> LLMResult:
        if not self.available():
            raise LLMUnavailableError(f"LLM provider '{self.provider}' is not configured")
        context = context or {}
        if self.provider == "openai":
            return await self._generate_chat_completion(
                "openai", self.settings.openai_base_url, self.settings.openai_api_key, system_prompt, user_prompt, context, response_format
            )
        if self.provider in {"xai", "grok"}:
            return await self._generate_chat_completion(
                "xai", self.settings.xai_base_url, self.settings.xai_api_key, system_prompt, user_prompt, context, response_format
            )
        return await self._generate_anthropic(system_prompt, user_prompt, context, response_format)

    async def generate_json(self, system_prompt: str, user_prompt: str, context: Dict[str, Any] | None = None) -> Dict[str, Any]:
        result = await self.generate(system_prompt, user_prompt, context=context, response_format="json")
        data = json.loads(_strip_code_fence(result.text))
        if not isinstance(data, dict):
            raise ValueError("llm_json_not_object")
        return data

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.llm_timeout_seconds, transport=self._transport)

    async def _generate_chat_completion(
        self,
        provider: str,
        base_url: str,
        api_key: str,
        system_prompt: str,
        user_prompt: str,
        context: Dict[str, Any],
        response_format: str,
    ) -> LLMResult:
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": self._compose_user_content(user_prompt, context, response_format)},
            ],
            "temperature": 0.1,
        }
        if response_format == "json":
            body["response_format"] = {"type": "json_object"}
        async with self._client() as client:
            resp = await client.post(
                f"{base_url.rstrip('/')}/chat/completions",
                headers={"Authorization": f"Bearer {api_key}"},
                json=body,
            )
            resp.raise_for_status()
            data = resp.json()
        return LLMResult(text=self._extract_chat_completion_text(data), provider=provider, model=self.model, raw=data)

    async def _generate_anthropic(self, system_prompt: str, user_prompt: str, context: Dict[str, Any], response_format: str) -> LLMResult:
        content = self._compose_user_content(user_prompt, context, response_format)
        async with self._client() as client:
            resp = await client.post(
                f"{self.settings.anthropic_base_url.rstrip('/')}/messages",
                headers={
                    "x-api-key": self.settings.anthropic_api_key,
                    "anthropic-version": "2023-06-01",
                    "content-type": "application/json",
                },
                json={
                    "model": self.model,
                    "max_tokens": 500,
                    "temperature": 0.1,
                    "system": system_prompt,
                    "messages": [{"role": "user", "content": content}],
                },
            )
            resp.raise_for_status()
            data = resp.json()
        text_parts: List[str] = []
        for block in data.get("content", []):
            if isinstance(block, dict) and block.get("type") == "text":
                text_parts.append(str(block.get("text", "")))
        return LLMResult(text="\n".join(t for t in text_parts if t).strip(), provider="anthropic", model=self.model, raw=data)

    def _compose_user_content(self, user_prompt: str, context: Dict[str, Any], response_format: str) -> str:
        suffix = "\nReturn valid JSON only." if response_format == "json" else ""
        if not context:
            return f"{user_prompt}{suffix}"
        blob = json.dumps(context, ensure_ascii=True, default=str)[:4000]
        return f"{user_prompt}\n\nContext JSON:\n{blob}{suffix}"

    def _extract_chat_completion_text(self, data: Dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") if isinstance(choices[0], dict) else {}
        content = message.get("content", "") if isinstance(message, dict) else ""
        if isinstance(content, list):
            return "\n".join(str(part.get("text", "")) for part in content if isinstance(part, dict)).strip()
        return str(content or "").strip()


def _strip_code_fence(text: str) -> str:
    # Models sometimes wrap JSON in ```json fences despite instructions.
    clean = (text or "").strip()
    if clean.startswith("```"):
        clean = clean.split("\n", 1)[1] if "\n" in clean else ""
        if clean.rstrip().endswith("```"):
            clean = clean.rstrip()[:-3]
    return clean.strip()
