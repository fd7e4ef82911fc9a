from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, Field


class LLMResponse(BaseModel):
    """Standardized response from any LLM provider."""
    content: str
    raw_response: Any = None
    usage: Dict[str, int] = Field(default_factory=dict)  # e.g. {"prompt_tokens": 10, "completion_tokens": 20}
    latency_ms: float = 0.0


class ProviderConfig(BaseModel):
    """Configuration for an LLM provider."""
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str = "prometheus-7b-v2"
    temperature: float = 0.1
    max_tokens: int = 512
    timeout: float = 60.0


class LLMProvider(ABC):
    """Abstract Base Class for LLM Providers."""

    DEFAULT_BASE_URL = "http://localhost:11434"

    def __init__(self, config: ProviderConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        # Tests inject httpx.MockTransport here
        self.transport = transport

    @property
    def base_url(self) -> str:
        return (self.config.base_url or self.DEFAULT_BASE_URL).rstrip("/")

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    @abstractmethod
    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        """
        Generate a text completion.

        Args:
            prompt: The user prompt.
            system_prompt: Optional system instruction.

        Returns:
            LLMResponse object containing content and metadata.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx replies.
            ValueError: If the reply body cannot be decoded.
        """

    async def ping(self, timeout: float = 5.0) -> bool:
        """Check that the endpoint's host answers at all (any HTTP status counts)."""
        parts = urlsplit(self.base_url)
        url = f"{parts.scheme}://{parts.netloc}/"
        try:
            async with self._client(timeout) as client:
                await client.get(url)
            return True
        except httpx.HTTPError:
            return False
