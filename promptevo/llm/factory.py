"""Judge backend lookup: maps an api style name to a provider class."""

from __future__ import annotations
import os
from typing import Callable, Dict, Optional, Type, TypeVar

from .base import LLMProvider, ProviderConfig
from .providers import MockProvider, OllamaProvider, OpenAIProvider, VLLMProvider

N = TypeVar("N", int, float)

# Used when neither a name nor PROMPTEVO_LLM_PROVIDER is given
DEFAULT_API_STYLE = "ollama"

PROVIDERS: Dict[str, Type[LLMProvider]] = {
    "mock": MockProvider,
    "ollama": OllamaProvider,
    "openai": OpenAIProvider,
    "vllm": VLLMProvider,
}


def env_number(name: str, default: N, cast: Callable[[str], N]) -> N:
    """Read a numeric env var; a malformed value raises ValueError naming the variable."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def config_from_env() -> ProviderConfig:
    """Judge endpoint settings from PROMPTEVO_LLM_* (and OPENAI_API_KEY for hosted APIs)."""
    return ProviderConfig(
        api_key=os.environ.get("OPENAI_API_KEY"),
        base_url=os.environ.get("PROMPTEVO_LLM_BASE_URL"),
        model=os.environ.get("PROMPTEVO_LLM_MODEL", "prometheus-7b-v2"),
        temperature=env_number("PROMPTEVO_LLM_TEMPERATURE", 0.1, float),
        max_tokens=env_number("PROMPTEVO_LLM_MAX_TOKENS", 512, int),
        timeout=env_number("PROMPTEVO_LLM_TIMEOUT", 60.0, float),
    )


def resolve_api_style(name: Optional[str] = None) -> str:
    """Normalize an explicit name, else fall back to PROMPTEVO_LLM_PROVIDER."""
    style = name or os.environ.get("PROMPTEVO_LLM_PROVIDER") or DEFAULT_API_STYLE
    return style.strip().lower()


def get_provider(
    name: Optional[str] = None, config: Optional[ProviderConfig] = None
) -> LLMProvider:
    """
    Build the judge backend for an api style.

    Names are case-insensitive. Without a config the PROMPTEVO_LLM_* variables
    are read. An unregistered name raises ValueError listing the known ones.
    """
    style = resolve_api_style(name)
    provider_class = PROVIDERS.get(style)
    if provider_class is None:
        raise ValueError(f"Unknown provider '{style}'. Available: {', '.join(PROVIDERS)}")
    return provider_class(config if config is not None else config_from_env())


def register_provider(name: str, provider_class: type) -> None:
    """Add (or replace) an api style; the class must derive from LLMProvider."""
    if not (isinstance(provider_class, type) and issubclass(provider_class, LLMProvider)):
        raise TypeError(f"{provider_class!r} is not an LLMProvider subclass")
    PROVIDERS[name.strip().lower()] = provider_class
