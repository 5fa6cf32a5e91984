"""Unit tests for the OpenAI-compatible AI gateway."""

import httpx
import pytest

from codexalpha.core.ai import AIGateway, ProviderConfig, ensure_chat_completions_url
from codexalpha.core.ai.gateway import models_url
from codexalpha.core.errors import AIProviderError, UnsupportedProviderError

pytestmark = pytest.mark.asyncio


def _provider(code: str = "openai", base_url: str = "http://mock-ai/v1") -> ProviderConfig:
    return ProviderConfig(provider_code=code, name="Mock AI", base_url=base_url, api_key="sk-abc", model="gpt-4o")


class TestEnsureChatCompletionsUrl:
    @pytest.mark.parametrize(
        "base_url, expected",
        [
            ("https://api.openai.com/v1", "https://api.openai.com/v1/chat/completions"),
            ("https://api.openai.com/v1/", "https://api.openai.com/v1/chat/completions"),
            ("  https://api.deepseek.com  ", "https://api.deepseek.com/chat/completions"),
            ("https://api.perplexity.ai/chat/completions", "https://api.perplexity.ai/chat/completions"),
            ("https://api.perplexity.ai/chat/completions/", "https://api.perplexity.ai/chat/completions"),
        ],
    )
    async def test_normalizes_base_url(self, base_url, expected):
        assert ensure_chat_completions_url(base_url) == expected

    @pytest.mark.parametrize("base_url", [None, "", "   "])
    async def test_missing_base_url_raises(self, base_url):
        with pytest.raises(AIProviderError):
            ensure_chat_completions_url(base_url)

    async def test_models_url_strips_chat_completions(self):
        assert models_url("https://api.openai.com/v1/chat/completions") == "https://api.openai.com/v1/models"
        assert models_url("https://api.openai.com/v1/") == "https://api.openai.com/v1/models"


class TestComplete:
    async def test_returns_first_choice_and_usage(self, gateway, fake_ai):
        fake_ai.replies.append("Hello coach")

        response = await gateway.complete("be brief", "say hello", _provider())

        assert response.content == "Hello coach"
        assert response.provider == "openai"
        assert response.model == "gpt-4o"
        assert response.usage.prompt_tokens == 100
        assert response.usage.completion_tokens == 50
        assert response.usage.total_tokens == 150

    async def test_sends_openai_wire_format(self, gateway, fake_ai):
        await gateway.complete("system text", "user text", _provider(), max_tokens=256)

        body = fake_ai.requests[0]
        assert body["model"] == "gpt-4o"
        assert body["max_tokens"] == 256
        assert body["messages"] == [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ]
        assert fake_ai.headers[0]["authorization"] == "Bearer sk-abc"

    async def test_omits_max_tokens_when_not_given(self, gateway, fake_ai):
        await gateway.complete("s", "u", _provider())
        assert "max_tokens" not in fake_ai.requests[0]

    async def test_posts_to_chat_completions_endpoint(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            response = await AIGateway(client=client).complete("s", "u", _provider(base_url="http://mock-ai/v1/"))

        assert seen == ["http://mock-ai/v1/chat/completions"]
        assert response.content == "ok"
        assert response.usage.total_tokens == 0

    async def test_non_string_content_becomes_empty(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"choices": [{"message": {"content": None}}]})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            response = await AIGateway(client=client).complete("s", "u", _provider())

        assert response.content == ""

    @pytest.mark.parametrize("code", ["deepseek", "perplexity"])
    async def test_accepts_all_supported_providers(self, gateway, code):
        response = await gateway.complete("s", "u", _provider(code=code))
        assert response.provider == code

    async def test_unsupported_provider_raises(self, gateway, fake_ai):
        with pytest.raises(UnsupportedProviderError) as exc_info:
            await gateway.complete("s", "u", _provider(code="anthropic"))

        assert exc_info.value.status_code == 400
        assert fake_ai.requests == []

    async def test_error_status_raises_with_upstream_status(self, gateway, fake_ai):
        fake_ai.status_code = 429

        with pytest.raises(AIProviderError) as exc_info:
            await gateway.complete("s", "u", _provider())

        assert exc_info.value.details["upstream_status"] == 429
        assert exc_info.value.details["provider"] == "openai"
        assert "429" in exc_info.value.message

    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(AIProviderError) as exc_info:
                await AIGateway(client=client).complete("s", "u", _provider())

        assert "request failed" in exc_info.value.message

    async def test_non_json_body_raises_provider_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>", headers={"Content-Type": "text/html"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(AIProviderError) as exc_info:
                await AIGateway(client=client).complete("s", "u", _provider())

        assert exc_info.value.details == {"provider": "openai"}
        assert exc_info.value.status_code == 502
        assert "<html>gateway</html>" in exc_info.value.message

    @pytest.mark.parametrize("body", [[], {"choices": "oops"}, {"choices": [None]}, {"choices": [{"message": "x"}]}])
    async def test_unexpected_json_shapes(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            gateway = AIGateway(client=client)
            if isinstance(body, list):
                with pytest.raises(AIProviderError):
                    await gateway.complete("s", "u", _provider())
            else:
                assert (await gateway.complete("s", "u", _provider())).content == ""


class TestListModels:
    async def test_returns_sorted_model_ids(self, gateway, fake_ai):
        fake_ai.models = ["gpt-4o-mini", "gpt-4o", "deepseek-chat"]

        models = await gateway.list_models("http://mock-ai/v1", "sk-abc")

        assert models == ["deepseek-chat", "gpt-4o", "gpt-4o-mini"]
        assert fake_ai.headers[0]["authorization"] == "Bearer sk-abc"

    async def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "bad key"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(AIProviderError) as exc_info:
                await AIGateway(client=client).list_models("http://mock-ai/v1", "sk-bad")

        assert exc_info.value.details == {"upstream_status": 401}

    async def test_non_json_body_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(AIProviderError, match="unreadable response"):
                await AIGateway(client=client).list_models("http://mock-ai/v1", "sk-abc")
