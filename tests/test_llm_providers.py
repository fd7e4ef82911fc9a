"""Tests for LLM providers and factory."""

import asyncio
import json
import os
from unittest.mock import patch

import httpx
import pytest

from promptevo.llm.base import LLMProvider, LLMResponse, ProviderConfig
from promptevo.llm.factory import PROVIDERS, config_from_env, get_provider, register_provider
from promptevo.llm.providers import MockProvider, OllamaProvider, OpenAIProvider, VLLMProvider


@pytest.fixture
def restore_registry():
    saved = dict(PROVIDERS)
    yield
    PROVIDERS.clear()
    PROVIDERS.update(saved)


class TestProviderConfig:
    def test_default_values(self):
        config = ProviderConfig()
        assert config.model == "prometheus-7b-v2"
        assert config.temperature == 0.1
        assert config.max_tokens == 512
        assert config.api_key is None

    def test_custom_values(self):
        config = ProviderConfig(model="llama3", temperature=0.5)
        assert config.model == "llama3"
        assert config.temperature == 0.5

    def test_config_from_env(self):
        env = {
            "PROMPTEVO_LLM_MODEL": "qwen2",
            "PROMPTEVO_LLM_BASE_URL": "http://judge:9000",
            "PROMPTEVO_LLM_MAX_TOKENS": "128",
        }
        with patch.dict(os.environ, env):
            config = config_from_env()
        assert config.model == "qwen2"
        assert config.base_url == "http://judge:9000"
        assert config.max_tokens == 128


class TestMockProvider:
    def test_score_reply(self):
        provider = MockProvider(ProviderConfig())
        response = asyncio.run(provider.generate("###Prompt to evaluate:\nFix the bug"))

        assert isinstance(response, LLMResponse)
        assert response.content.endswith("[RESULT] 3")

    def test_long_prompt_scores_higher(self):
        provider = MockProvider(ProviderConfig())
        response = asyncio.run(provider.generate("###Prompt to evaluate:\n" + "x" * 400))
        assert response.content.endswith("[RESULT] 4")

    def test_compare_reply(self):
        provider = MockProvider(ProviderConfig())
        response = asyncio.run(provider.generate("###Version A:\na\n###Version B:\nb"))
        assert "[RESULT] B" in response.content

    def test_ping(self):
        assert asyncio.run(MockProvider(ProviderConfig()).ping()) is True


class TestOllamaProvider:
    def test_generate_posts_to_api(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"response": "Feedback: ok [RESULT] 4", "prompt_eval_count": 12, "eval_count": 7},
            )

        provider = OllamaProvider(
            ProviderConfig(model="llama3", base_url="http://judge:11434/"),
            transport=httpx.MockTransport(handler),
        )
        response = asyncio.run(provider.generate("Rate this", system_prompt="Be fair"))

        assert seen["url"] == "http://judge:11434/api/generate"
        assert seen["body"]["model"] == "llama3"
        assert seen["body"]["stream"] is False
        assert seen["body"]["system"] == "Be fair"
        assert seen["body"]["options"]["num_predict"] == 512
        assert response.content == "Feedback: ok [RESULT] 4"
        assert response.usage == {"prompt_tokens": 12, "completion_tokens": 7}

    def test_server_error_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
        provider = OllamaProvider(ProviderConfig(), transport=transport)

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(provider.generate("Rate this"))


class TestOpenAIProvider:
    def test_generate_chat_completion(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "choices": [{"message": {"content": "Feedback: good [RESULT] 5"}}],
                    "usage": {"prompt_tokens": 3, "completion_tokens": 4},
                },
            )

        provider = OpenAIProvider(
            ProviderConfig(api_key="sk-test", model="gpt-4o-mini"),
            transport=httpx.MockTransport(handler),
        )
        response = asyncio.run(provider.generate("Rate this", system_prompt="Judge"))

        assert seen["url"] == "https://api.openai.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["messages"] == [
            {"role": "system", "content": "Judge"},
            {"role": "user", "content": "Rate this"},
        ]
        assert response.content == "Feedback: good [RESULT] 5"
        assert response.usage["completion_tokens"] == 4

    def test_no_key_means_no_auth_header(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"choices": [{"message": {"content": "[RESULT] 2"}}]})

        provider = VLLMProvider(ProviderConfig(), transport=httpx.MockTransport(handler))
        response = asyncio.run(provider.generate("Rate this"))

        assert provider.base_url == "http://localhost:8000/v1"
        assert seen["auth"] is None
        assert response.content == "[RESULT] 2"


class TestPing:
    def test_any_status_counts_as_reachable(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            return httpx.Response(404)

        provider = VLLMProvider(
            ProviderConfig(base_url="http://judge:8000/v1"), transport=httpx.MockTransport(handler)
        )
        assert asyncio.run(provider.ping()) is True
        assert seen["url"] == "http://judge:8000/"

    def test_connection_error_is_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        provider = OllamaProvider(ProviderConfig(), transport=httpx.MockTransport(handler))
        assert asyncio.run(provider.ping()) is False


class TestFactory:
    def test_get_mock_provider(self):
        provider = get_provider("mock")
        assert isinstance(provider, MockProvider)

    def test_get_ollama_provider(self):
        provider = get_provider("ollama")
        assert isinstance(provider, OllamaProvider)

    def test_get_vllm_provider(self):
        provider = get_provider("vllm")
        assert isinstance(provider, VLLMProvider)

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_provider("unknown_provider")

    def test_case_insensitive(self):
        assert isinstance(get_provider("MOCK"), MockProvider)
        assert isinstance(get_provider("OpenAI"), OpenAIProvider)

    def test_env_var_default(self):
        with patch.dict(os.environ, {"PROMPTEVO_LLM_PROVIDER": "mock"}):
            provider = get_provider()
            assert isinstance(provider, MockProvider)

    def test_default_api_style(self):
        with patch.dict(os.environ, {"PROMPTEVO_LLM_PROVIDER": ""}):
            assert isinstance(get_provider(), OllamaProvider)

    def test_malformed_number_names_variable(self):
        with patch.dict(os.environ, {"PROMPTEVO_LLM_MAX_TOKENS": "many"}):
            with pytest.raises(ValueError, match="PROMPTEVO_LLM_MAX_TOKENS"):
                config_from_env()

    def test_custom_config(self):
        config = ProviderConfig(model="custom-model", temperature=0.9)
        provider = get_provider("mock", config=config)

        assert provider.config.model == "custom-model"
        assert provider.config.temperature == 0.9


class TestRegisterProvider:
    def test_register_custom_provider(self, restore_registry):
        class CustomProvider(LLMProvider):
            async def generate(self, prompt, system_prompt=None):
                return LLMResponse(content="Custom!")

        register_provider("custom", CustomProvider)
        assert "custom" in PROVIDERS

        provider = get_provider("custom")
        assert isinstance(provider, CustomProvider)

    def test_register_non_provider_raises(self):
        class NotAProvider:
            pass

        with pytest.raises(TypeError):
            register_provider("bad", NotAProvider)

    def test_register_instance_raises(self):
        with pytest.raises(TypeError):
            register_provider("bad", MockProvider(ProviderConfig()))
