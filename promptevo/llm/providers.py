from __future__ import annotations
import time
from typing import Optional

from .base import LLMProvider, LLMResponse


class MockProvider(LLMProvider):
    """
    Deterministic mock provider for testing and offline runs.
    Replies in the judge's "[RESULT]" format without touching the network.
    """

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        start = time.time()

        if "###Version A:" in prompt:
            content = "Feedback: Version B is more specific. [RESULT] B"
        else:
            # Longer prompts get a slightly better mocked verdict
            body = prompt.split("###Prompt to evaluate:")[-1]
            score = 4 if len(body) > 300 else 3
            content = f"Feedback: Mocked evaluation. [RESULT] {score}"

        latency = (time.time() - start) * 1000
        return LLMResponse(content=content, latency_ms=latency)

    async def ping(self, timeout: float = 5.0) -> bool:
        return True


class OllamaProvider(LLMProvider):
    """
    Provider for local Ollama instance.
    Defaults to http://localhost:11434
    """

    DEFAULT_BASE_URL = "http://localhost:11434"

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        url = f"{self.base_url}/api/generate"

        payload = {
            "model": self.config.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.config.temperature,
                "num_predict": self.config.max_tokens,
            },
        }

        if system_prompt:
            payload["system"] = system_prompt

        start = time.time()
        async with self._client(self.config.timeout) as client:
            resp = await client.post(url, json=payload)
            resp.raise_for_status()
            data = resp.json()

        # Ollama returns stats
        usage = {
            "prompt_tokens": data.get("prompt_eval_count", 0),
            "completion_tokens": data.get("eval_count", 0),
        }

        latency = (time.time() - start) * 1000
        return LLMResponse(
            content=data.get("response", ""), raw_response=data, usage=usage, latency_ms=latency
        )


class OpenAIProvider(LLMProvider):
    """
    Provider for OpenAI-compatible chat completion APIs.
    Uses config.api_key when set; local servers usually need none.
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        url = f"{self.base_url}/chat/completions"
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

        start = time.time()
        async with self._client(self.config.timeout) as client:
            resp = await client.post(url, json=payload, headers=headers)
            resp.raise_for_status()
            data = resp.json()

        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        usage = data.get("usage", {})

        latency = (time.time() - start) * 1000
        return LLMResponse(content=content, raw_response=data, usage=usage, latency_ms=latency)


class VLLMProvider(OpenAIProvider):
    """vLLM serves the OpenAI wire format; only the default address differs."""

    DEFAULT_BASE_URL = "http://localhost:8000/v1"

