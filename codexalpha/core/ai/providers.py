"""
Provider resolution.

Turns a (provider id, model) choice from the prompt catalog into a concrete
``ProviderConfig``, falling back to the first usable provider in the database
and finally to the ``OPENAI_API_KEY`` environment credentials.
"""

from __future__ import annotations

from typing import Optional

from codexalpha.core.database.repositories.ai_providers import AIProviderRepository
from codexalpha.core.errors import AIProviderNotConfiguredError
from codexalpha.core.logging_config import get_logger
from codexalpha.server.core import constant
from codexalpha.server.core.config import OpenAIConfig

from .gateway import ProviderConfig

logger = get_logger(__name__)


class ProviderResolver:
    """Resolve provider configurations from the database with fallbacks."""

    def __init__(self, providers: AIProviderRepository, fallback: OpenAIConfig) -> None:
        self.providers = providers
        self.fallback = fallback

    async def get_provider_config(self, provider_id: str, model: Optional[str] = None) -> Optional[ProviderConfig]:
        """Config for an explicit provider; None unless it is active, has a base URL and an active key."""
        provider = await self.providers.get_by_id(provider_id)
        if provider is None or not provider.is_active or not provider.base_url:
            return None
        key = await self.providers.get_active_key(provider_id)
        if key is None or not key.api_key:
            return None
        return ProviderConfig(
            provider_code=provider.provider_code,
            name=provider.name,
            base_url=provider.base_url,
            api_key=key.api_key,
            model=model or provider.default_model or constant.DEFAULT_AI_MODEL,
            provider_id=provider.id,
        )

    async def get_first_available(self) -> Optional[ProviderConfig]:
        found = await self.providers.first_available()
        if found is None:
            return None
        provider, key = found
        return ProviderConfig(
            provider_code=provider.provider_code,
            name=provider.name,
            base_url=provider.base_url or "",
            api_key=key.api_key,
            model=provider.default_model or constant.DEFAULT_AI_MODEL,
            provider_id=provider.id,
        )

    def get_default(self) -> ProviderConfig:
        """Environment OpenAI credentials.

        Raises:
            AIProviderNotConfiguredError: If ``OPENAI_API_KEY`` is not set.
        """
        if not self.fallback.api_key:
            raise AIProviderNotConfiguredError(
                "No active AI provider is configured and OPENAI_API_KEY is not set"
            )
        return ProviderConfig(
            provider_code="openai",
            name="OpenAI",
            base_url=self.fallback.base_url or constant.DEFAULT_OPENAI_BASE_URL,
            api_key=self.fallback.api_key,
            model=self.fallback.model or constant.DEFAULT_AI_MODEL,
        )

    async def resolve(self, provider_id: Optional[str] = None, model: Optional[str] = None) -> ProviderConfig:
        """Explicit provider, else first available provider, else environment default."""
        if provider_id:
            config = await self.get_provider_config(provider_id, model)
            if config is not None:
                return config
            logger.warning(f"Provider {provider_id} is unavailable, falling back")

        config = await self.get_first_available()
        if config is not None:
            return config
        return self.get_default()
