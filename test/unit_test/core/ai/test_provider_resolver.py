"""Unit tests for provider resolution and AI usage logging."""

import pytest

from codexalpha.core.ai import ProviderResolver, TokenUsage, UsageContext, log_ai_usage
from codexalpha.core.database.entities.ai_providers import AIProvider
from codexalpha.core.errors import AIProviderNotConfiguredError
from codexalpha.server.core.config import OpenAIConfig

pytestmark = pytest.mark.asyncio


async def _provider(repos, *, name="DeepSeek", code="deepseek", key="sk-deep", active=True, default=False, **kwargs):
    provider = await repos.providers.create(
        AIProvider(
            name=name,
            provider_code=code,
            base_url=kwargs.get("base_url", "http://mock-ai/v1"),
            default_model=kwargs.get("default_model", "deepseek-chat"),
            is_active=active,
            is_default=default,
        )
    )
    if key:
        await repos.providers.store_key(provider.id, key)
    return provider


class TestProviderResolver:
    async def test_explicit_provider_with_model_override(self, repos, openai_config):
        provider = await _provider(repos)
        resolver = ProviderResolver(repos.providers, openai_config)

        config = await resolver.resolve(provider.id, "deepseek-reasoner")

        assert config.provider_id == provider.id
        assert config.provider_code == "deepseek"
        assert config.api_key == "sk-deep"
        assert config.model == "deepseek-reasoner"

    async def test_explicit_provider_uses_default_model(self, repos, openai_config):
        provider = await _provider(repos)
        config = await ProviderResolver(repos.providers, openai_config).get_provider_config(provider.id)
        assert config.model == "deepseek-chat"

    async def test_newest_key_wins(self, repos, openai_config):
        provider = await _provider(repos)
        await repos.providers.store_key(provider.id, "sk-rotated")

        config = await ProviderResolver(repos.providers, openai_config).get_provider_config(provider.id)

        assert config.api_key == "sk-rotated"

    @pytest.mark.parametrize(
        "kwargs",
        [{"active": False}, {"key": None}, {"base_url": None}],
    )
    async def test_unusable_provider_has_no_config(self, repos, openai_config, kwargs):
        provider = await _provider(repos, **kwargs)
        assert await ProviderResolver(repos.providers, openai_config).get_provider_config(provider.id) is None

    async def test_unknown_provider_falls_back_to_first_available(self, repos, openai_config):
        await _provider(repos, name="Perplexity", code="perplexity", key="sk-pplx", default_model="sonar")
        default = await _provider(repos, name="DeepSeek", default=True)

        config = await ProviderResolver(repos.providers, openai_config).resolve("missing-id")

        assert config.provider_id == default.id

    async def test_inactive_provider_falls_back_to_environment(self, repos, openai_config):
        inactive = await _provider(repos, active=False)

        config = await ProviderResolver(repos.providers, openai_config).resolve(inactive.id)

        assert config.provider_id is None
        assert config.provider_code == "openai"
        assert config.api_key == "sk-test"
        assert config.base_url == "http://mock-ai/v1"
        assert config.model == "gpt-4o-mini"

    async def test_nothing_configured_raises(self, repos):
        resolver = ProviderResolver(repos.providers, OpenAIConfig(api_key=None))

        with pytest.raises(AIProviderNotConfiguredError) as exc_info:
            await resolver.resolve()

        assert exc_info.value.status_code == 503


class TestUsageLogging:
    async def test_success_row_with_cost(self, repos):
        context = UsageContext(function_name="generate-codex-section", user_id="user-1", persona_run_id="run-1")

        row = await log_ai_usage(
            repos.usage_logs,
            context,
            model="gpt-4o-mini",
            usage=TokenUsage(prompt_tokens=1_000_000, completion_tokens=0, total_tokens=1_000_000),
            provider_code="openai",
        )

        assert row is not None
        assert row.status == "success"
        assert row.estimated_cost == pytest.approx(0.15)
        assert row.persona_run_id == "run-1"
        assert (await repos.usage_logs.list_between())[0].id == row.id

    async def test_error_row_has_no_tokens(self, repos):
        row = await log_ai_usage(
            repos.usage_logs,
            UsageContext(function_name="generate-codex-section"),
            model="gpt-4o-mini",
            error_message="upstream failure",
        )

        assert row.status == "error"
        assert row.error_message == "upstream failure"
        assert row.total_tokens == 0
        assert row.estimated_cost == 0.0
