from .base import LLMProvider, LLMResponse, ProviderConfig
from .factory import PROVIDERS, get_provider, register_provider

__all__ = ["LLMProvider", "LLMResponse", "ProviderConfig", "PROVIDERS", "get_provider", "register_provider"]
