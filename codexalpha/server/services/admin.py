"""
Admin console services.

User management (roles, blocks, unlimited-run grants), AI provider
management, system settings and the admin activity log. Every mutation is
recorded in ``admin_activity_log``.
"""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import delete

from codexalpha.core.ai import AIGateway, ProviderResolver, UsageContext, log_ai_usage
from codexalpha.core.ai.gateway import SUPPORTED_PROVIDER_CODES
from codexalpha.core.database.base import utc_now
from codexalpha.core.database.entities.admin_activity import AdminActivityLog
from codexalpha.core.database.entities.ai_providers import AIProvider, AIProviderKey
from codexalpha.core.database.entities.system_settings import SystemSetting
from codexalpha.core.database.entities.users import UserBlock, UserUnlimitedRuns
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.database.repositories.users import run_counts_by_user
from codexalpha.core.errors import AIProviderError, NotFoundError, ValidationError
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import AppRole, ProviderTestStatus
from codexalpha.core.models.io.admin import (
    AdminUserRead,
    AIProviderCreate,
    AIProviderRead,
    AIProviderUpdate,
    ProviderTestResult,
)
from codexalpha.server.core.config import OpenAIConfig
from codexalpha.server.core.security import CurrentUser

from .system_settings import SECRET_SETTING_KEYS, SettingsService

logger = get_logger(__name__)

PROVIDER_TEST_SYSTEM_PROMPT = "You are a helpful assistant."
PROVIDER_TEST_PROMPT = "Say 'Hello, the API connection is working!' in exactly one sentence."


class UserAdminService:
    """Roles, blocks and unlimited-run grants."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def list_users(self, query: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[AdminUserRead]:
        profiles = await self.repos.profiles.search(query, limit=limit, offset=offset)
        ids = {p.id for p in profiles}
        roles = await self.repos.roles.roles_for_many(ids)
        blocked = await self.repos.blocks.blocked_ids(ids)
        unlimited = await self.repos.unlimited_runs.granted_ids(ids)
        counts = await run_counts_by_user(self.repos.session, ids)
        return [
            AdminUserRead(
                id=p.id,
                email=p.email,
                full_name=p.full_name,
                display_name=p.display_name,
                batch=p.batch,
                roles=sorted(roles.get(p.id, set())),
                is_blocked=p.id in blocked,
                has_unlimited_runs=p.id in unlimited,
                run_count=counts.get(p.id, 0),
                created_at=p.created_at,
            )
            for p in profiles
        ]

    async def _ensure_user(self, user_id: str) -> None:
        if await self.repos.profiles.get_by_id(user_id) is None:
            raise NotFoundError("User not found")

    async def grant_role(self, user_id: str, role: AppRole, admin: CurrentUser) -> bool:
        await self._ensure_user(user_id)
        granted = await self.repos.roles.grant(user_id, role)
        await self.repos.admin_activity.record(
            admin.id, "grant_role", target_user_id=user_id, details={"role": role.value}
        )
        return granted

    async def revoke_role(self, user_id: str, role: AppRole, admin: CurrentUser) -> bool:
        if user_id == admin.id and role == AppRole.admin:
            raise ValidationError("You cannot remove your own admin role")
        revoked = await self.repos.roles.revoke(user_id, role)
        await self.repos.admin_activity.record(
            admin.id, "revoke_role", target_user_id=user_id, details={"role": role.value}
        )
        return revoked

    async def block(self, user_id: str, reason: Optional[str], admin: CurrentUser) -> bool:
        if user_id == admin.id:
            raise ValidationError("You cannot block yourself")
        await self._ensure_user(user_id)
        if await self.repos.blocks.get_for_user(user_id) is not None:
            return False
        await self.repos.blocks.create(UserBlock(user_id=user_id, reason=reason, blocked_by=admin.id))
        await self.repos.admin_activity.record(
            admin.id, "block_user", target_user_id=user_id, details={"reason": reason}
        )
        logger.info(f"User {user_id} blocked by {admin.id}")
        return True

    async def unblock(self, user_id: str, admin: CurrentUser) -> bool:
        existing = await self.repos.blocks.get_for_user(user_id)
        if existing is None:
            return False
        await self.repos.blocks.delete(existing.id)
        await self.repos.admin_activity.record(admin.id, "unblock_user", target_user_id=user_id)
        return True

    async def grant_unlimited_runs(self, user_id: str, notes: Optional[str], admin: CurrentUser) -> bool:
        await self._ensure_user(user_id)
        if await self.repos.unlimited_runs.get_for_user(user_id) is not None:
            return False
        await self.repos.unlimited_runs.create(UserUnlimitedRuns(user_id=user_id, granted_by=admin.id, notes=notes))
        await self.repos.admin_activity.record(
            admin.id, "grant_unlimited_runs", target_user_id=user_id, details={"notes": notes}
        )
        return True

    async def revoke_unlimited_runs(self, user_id: str, admin: CurrentUser) -> bool:
        existing = await self.repos.unlimited_runs.get_for_user(user_id)
        if existing is None:
            return False
        await self.repos.unlimited_runs.delete(existing.id)
        await self.repos.admin_activity.record(admin.id, "revoke_unlimited_runs", target_user_id=user_id)
        return True

    async def activity_log(self, limit: int = 100, offset: int = 0) -> List[AdminActivityLog]:
        return await self.repos.admin_activity.list(limit=limit, offset=offset)


class ProviderAdminService:
    """AI provider records, their keys, connection tests and model discovery."""

    def __init__(self, repos: SqlRepoBundle, gateway: AIGateway, openai: OpenAIConfig) -> None:
        self.repos = repos
        self.gateway = gateway
        self.resolver = ProviderResolver(repos.providers, openai)

    async def _get(self, provider_id: str) -> AIProvider:
        provider = await self.repos.providers.get_by_id(provider_id)
        if provider is None:
            raise NotFoundError("AI provider not found")
        return provider

    async def read(self, provider: AIProvider) -> AIProviderRead:
        key = await self.repos.providers.get_active_key(provider.id)
        return AIProviderRead.model_validate(provider).model_copy(
            update={
                "has_active_key": key is not None,
                "last_tested_at": key.last_tested_at if key else None,
                "test_status": key.test_status if key else None,
            }
        )

    async def list_providers(self) -> List[AIProviderRead]:
        return [await self.read(p) for p in await self.repos.providers.list_all()]

    @staticmethod
    def _check_code(provider_code: str) -> None:
        if provider_code not in SUPPORTED_PROVIDER_CODES:
            raise ValidationError(f"Unsupported AI provider: {provider_code}")

    async def create(self, data: AIProviderCreate, admin: CurrentUser) -> AIProviderRead:
        self._check_code(data.provider_code)
        provider = await self.repos.providers.create(AIProvider(**data.model_dump(exclude={"api_key"})))
        if provider.is_default:
            await self.repos.providers.clear_default(except_id=provider.id)
            await self.repos.session.commit()
        if data.api_key:
            await self.repos.providers.store_key(provider.id, data.api_key)
        await self.repos.admin_activity.record(
            admin.id, "create_ai_provider", details={"provider_id": provider.id, "name": provider.name}
        )
        return await self.read(provider)

    async def update(self, provider_id: str, data: AIProviderUpdate, admin: CurrentUser) -> AIProviderRead:
        provider = await self._get(provider_id)
        changes = data.model_dump(exclude_unset=True)
        if "provider_code" in changes:
            self._check_code(changes["provider_code"])
        for key, value in changes.items():
            setattr(provider, key, value)
        if changes.get("is_default"):
            await self.repos.providers.clear_default(except_id=provider.id)
        provider = await self.repos.providers.update(provider)
        await self.repos.admin_activity.record(
            admin.id, "update_ai_provider", details={"provider_id": provider_id, "fields": sorted(changes)}
        )
        return await self.read(provider)

    async def delete(self, provider_id: str, admin: CurrentUser) -> None:
        provider = await self._get(provider_id)
        await self.repos.session.execute(delete(AIProviderKey).where(AIProviderKey.provider_id == provider_id))
        await self.repos.providers.delete(provider.id)
        await self.repos.admin_activity.record(
            admin.id, "delete_ai_provider", details={"provider_id": provider_id, "name": provider.name}
        )

    async def store_key(self, provider_id: str, api_key: str, admin: CurrentUser) -> AIProviderRead:
        provider = await self._get(provider_id)
        await self.repos.providers.store_key(provider_id, api_key)
        await self.repos.admin_activity.record(admin.id, "store_ai_provider_key", details={"provider_id": provider_id})
        return await self.read(provider)

    async def test(self, provider_id: str, admin: CurrentUser, model: Optional[str] = None) -> ProviderTestResult:
        """Send a one-sentence prompt and record the outcome on the active key."""
        await self._get(provider_id)
        config = await self.resolver.get_provider_config(provider_id, model)
        if config is None:
            raise ValidationError("Provider is inactive, has no base URL or has no active API key")
        key = await self.repos.providers.get_active_key(provider_id)
        context = UsageContext(function_name="test-ai-provider", user_id=admin.id)
        try:
            response = await self.gateway.complete(PROVIDER_TEST_SYSTEM_PROMPT, PROVIDER_TEST_PROMPT, config)
        except AIProviderError as e:
            logger.warning(f"Provider test failed for {provider_id}: {e.message}")
            await log_ai_usage(
                self.repos.usage_logs,
                context,
                model=config.model,
                provider_code=config.provider_code,
                error_message=e.message,
            )
            result = ProviderTestResult(success=False, message=e.message, model=config.model)
        else:
            await log_ai_usage(
                self.repos.usage_logs,
                context,
                model=response.model,
                usage=response.usage,
                provider_code=response.provider,
            )
            result = ProviderTestResult(
                success=True, message="Connection successful", model=response.model, response=response.content
            )
        if key is not None:
            key.last_tested_at = utc_now()
            key.test_status = (ProviderTestStatus.success if result.success else ProviderTestStatus.failed).value
            self.repos.session.add(key)
            await self.repos.session.commit()
        return result

    async def refresh_models(self, provider_id: str, admin: CurrentUser) -> List[str]:
        """Fetch the provider's model list and store it on the provider."""
        provider = await self._get(provider_id)
        key = await self.repos.providers.get_active_key(provider_id)
        if not provider.base_url or key is None:
            raise ValidationError("Provider needs a base URL and an active API key to list models")
        models = await self.gateway.list_models(provider.base_url, key.api_key)
        provider.available_models = models
        await self.repos.providers.update(provider)
        await self.repos.admin_activity.record(
            admin.id, "refresh_ai_models", details={"provider_id": provider_id, "count": len(models)}
        )
        return models


class SettingsAdminService:
    """Listing and upserting system settings, secrets excluded from listings."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos
        self.settings = SettingsService(repos.settings)

    async def list_settings(self) -> List[SystemSetting]:
        return [s for s in await self.repos.settings.list_all() if s.setting_key not in SECRET_SETTING_KEYS]

    async def get_setting(self, key: str) -> SystemSetting:
        setting = await self.repos.settings.get_by_key(key)
        if setting is None or key in SECRET_SETTING_KEYS:
            raise NotFoundError(f"Setting not found: {key}")
        return setting

    async def upsert(self, key: str, value: Any, admin: CurrentUser) -> SystemSetting:
        await self.settings.set(key, value, updated_by=admin.id)
        await self.repos.admin_activity.record(admin.id, "update_setting", details={"setting_key": key})
        logger.info(f"Setting {key} updated by {admin.id}")
        setting = await self.repos.settings.get_by_key(key)
        if setting is None:
            raise NotFoundError(f"Setting not found: {key}")
        return setting
