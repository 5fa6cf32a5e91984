"""Unit tests for the admin console services."""

import pytest
import pytest_asyncio

from codexalpha.core.database.entities.persona_runs import PersonaRun
from codexalpha.core.errors import NotFoundError, ValidationError
from codexalpha.core.models.domain.enums import AppRole
from codexalpha.core.models.io.admin import AIProviderCreate, AIProviderUpdate
from codexalpha.server.services.admin import (
    PROVIDER_TEST_PROMPT,
    ProviderAdminService,
    SettingsAdminService,
    UserAdminService,
)
from codexalpha.server.services.system_settings import SettingKeys

pytestmark = pytest.mark.asyncio

MOCK_AI_BASE_URL = "http://mock-ai/v1"


@pytest_asyncio.fixture
async def users(repos, user, other_user, admin):
    """Profiles for the two coaches and the admin."""
    for someone in (user, other_user, admin):
        await repos.profiles.get_or_create(someone.id, someone.email)
    await repos.roles.grant(admin.id, AppRole.admin)
    return UserAdminService(repos)


class TestUserAdmin:
    async def test_list_users(self, users, repos, user, other_user):
        await repos.persona_runs.create(PersonaRun(user_id=user.id, title="t"))
        await repos.persona_runs.create(PersonaRun(user_id=user.id, title="u"))
        profile = await repos.profiles.get_by_id(other_user.id)
        profile.full_name = "Sam Someone"
        await repos.profiles.update(profile)

        listed = {u.id: u for u in await users.list_users()}

        assert set(listed) == {"user-1", "user-2", "admin-1"}
        assert listed["user-1"].run_count == 2
        assert listed["admin-1"].roles == ["admin"]
        assert listed["user-2"].display_name == "Sam Someone"
        assert [u.id for u in await users.list_users(query="sam")] == ["user-2"]

    async def test_grant_and_revoke_role(self, users, repos, user, admin):
        assert await users.grant_role(user.id, AppRole.moderator, admin) is True
        assert await users.grant_role(user.id, AppRole.moderator, admin) is False
        assert await repos.roles.roles_for(user.id) == {"moderator"}

        assert await users.revoke_role(user.id, AppRole.moderator, admin) is True
        assert await users.revoke_role(user.id, AppRole.moderator, admin) is False

        actions = [a.action for a in await users.activity_log()]
        assert actions.count("grant_role") == 2
        assert actions.count("revoke_role") == 2

    async def test_grant_role_to_unknown_user(self, users, admin):
        with pytest.raises(NotFoundError):
            await users.grant_role("nobody", AppRole.admin, admin)

    async def test_cannot_remove_own_admin_role(self, users, repos, admin):
        with pytest.raises(ValidationError):
            await users.revoke_role(admin.id, AppRole.admin, admin)
        assert await repos.roles.is_admin(admin.id)

    async def test_block_and_unblock(self, users, repos, user, admin):
        assert await users.block(user.id, "spam", admin) is True
        assert await users.block(user.id, "spam again", admin) is False
        assert await repos.blocks.is_blocked(user.id)

        activity = await users.activity_log()
        assert (activity[0].action, activity[0].target_user_id, activity[0].details) == (
            "block_user",
            user.id,
            {"reason": "spam"},
        )

        assert await users.unblock(user.id, admin) is True
        assert await users.unblock(user.id, admin) is False
        assert not await repos.blocks.is_blocked(user.id)

    async def test_cannot_block_yourself(self, users, admin):
        with pytest.raises(ValidationError):
            await users.block(admin.id, None, admin)

    async def test_unlimited_runs(self, users, repos, user, admin):
        assert await users.grant_unlimited_runs(user.id, "paid cohort", admin) is True
        assert await users.grant_unlimited_runs(user.id, None, admin) is False
        assert (await users.list_users(query="coach@"))[0].has_unlimited_runs is True

        assert await users.revoke_unlimited_runs(user.id, admin) is True
        assert await users.revoke_unlimited_runs(user.id, admin) is False
        assert not await repos.unlimited_runs.has_grant(user.id)


@pytest.fixture
def providers(repos, gateway, openai_config) -> ProviderAdminService:
    return ProviderAdminService(repos, gateway, openai_config)


def _provider(**overrides) -> AIProviderCreate:
    data = {
        "name": "DeepSeek",
        "provider_code": "deepseek",
        "base_url": MOCK_AI_BASE_URL,
        "default_model": "deepseek-chat",
        "api_key": "ds-key-123456",
    }
    data.update(overrides)
    return AIProviderCreate(**data)


class TestProviderAdmin:
    async def test_create_provider(self, providers, repos, admin):
        created = await providers.create(_provider(), admin)

        assert (created.name, created.provider_code, created.has_active_key) == ("DeepSeek", "deepseek", True)
        assert "api_key" not in created.model_dump()
        assert (await repos.admin_activity.list())[0].action == "create_ai_provider"

    async def test_unsupported_provider_code(self, providers, repos, admin):
        with pytest.raises(ValidationError):
            await providers.create(_provider(provider_code="anthropic"), admin)
        assert await providers.list_providers() == []

    async def test_single_default_provider(self, providers, admin):
        first = await providers.create(_provider(name="A", is_default=True), admin)
        second = await providers.create(_provider(name="B", is_default=True), admin)

        defaults = {p.name: p.is_default for p in await providers.list_providers()}
        assert defaults == {"A": False, "B": True}

        await providers.update(first.id, AIProviderUpdate(is_default=True), admin)
        defaults = {p.id: p.is_default for p in await providers.list_providers()}
        assert defaults == {first.id: True, second.id: False}

    async def test_update_rejects_unsupported_code(self, providers, admin):
        created = await providers.create(_provider(), admin)
        with pytest.raises(ValidationError):
            await providers.update(created.id, AIProviderUpdate(provider_code="unknown"), admin)

    async def test_store_key_rotates(self, providers, repos, admin):
        created = await providers.create(_provider(api_key=None), admin)
        assert created.has_active_key is False

        await providers.store_key(created.id, "first-key", admin)
        read = await providers.store_key(created.id, "second-key", admin)

        assert read.has_active_key is True
        assert (await repos.providers.get_active_key(created.id)).api_key == "second-key"

    async def test_delete_provider(self, providers, repos, admin):
        created = await providers.create(_provider(), admin)

        await providers.delete(created.id, admin)

        assert await providers.list_providers() == []
        assert await repos.providers.get_active_key(created.id) is None
        with pytest.raises(NotFoundError):
            await providers.delete(created.id, admin)

    async def test_connection_test_success(self, providers, repos, fake_ai, admin):
        created = await providers.create(_provider(), admin)
        fake_ai.default_reply = "Hello, the API connection is working!"

        result = await providers.test(created.id, admin)

        assert result.success is True
        assert (result.model, result.response) == ("deepseek-chat", "Hello, the API connection is working!")
        assert fake_ai.requests[0]["messages"][1]["content"] == PROVIDER_TEST_PROMPT
        assert fake_ai.headers[0]["authorization"] == "Bearer ds-key-123456"
        key = await repos.providers.get_active_key(created.id)
        assert key.test_status == "success"
        assert key.last_tested_at is not None
        rows = await repos.usage_logs.list_between()
        assert [(r.function_name, r.status) for r in rows] == [("test-ai-provider", "success")]

    async def test_connection_test_failure(self, providers, repos, fake_ai, admin):
        created = await providers.create(_provider(), admin)
        fake_ai.status_code = 401

        result = await providers.test(created.id, admin, model="deepseek-reasoner")

        assert result.success is False
        assert result.model == "deepseek-reasoner"
        assert "upstream failure" in result.message
        assert (await repos.providers.get_active_key(created.id)).test_status == "failed"

    async def test_connection_test_needs_a_key(self, providers, admin):
        created = await providers.create(_provider(api_key=None), admin)
        with pytest.raises(ValidationError):
            await providers.test(created.id, admin)

    async def test_refresh_models(self, providers, repos, fake_ai, admin):
        created = await providers.create(_provider(), admin)
        fake_ai.models = ["deepseek-reasoner", "deepseek-chat"]

        models = await providers.refresh_models(created.id, admin)

        assert models == ["deepseek-chat", "deepseek-reasoner"]
        assert (await repos.providers.get_by_id(created.id)).available_models == models

    async def test_refresh_models_needs_a_key(self, providers, admin):
        created = await providers.create(_provider(api_key=None), admin)
        with pytest.raises(ValidationError):
            await providers.refresh_models(created.id, admin)


class TestSettingsAdmin:
    async def test_secret_settings_are_hidden(self, repos, admin):
        service = SettingsAdminService(repos)
        await service.upsert(SettingKeys.app_name, "LightOS", admin)
        await service.upsert(SettingKeys.resend_api_key, "re_secret", admin)

        assert [s.setting_key for s in await service.list_settings()] == ["app_name"]
        with pytest.raises(NotFoundError):
            await service.get_setting(SettingKeys.resend_api_key)
        assert (await service.get_setting(SettingKeys.app_name)).setting_value == "LightOS"

    async def test_upsert_validates_and_records(self, repos, admin):
        service = SettingsAdminService(repos)

        setting = await service.upsert(SettingKeys.regeneration_cooldown_minutes, 5, admin)

        assert (setting.setting_value, setting.updated_by) == (5, admin.id)
        activity = await repos.admin_activity.list()
        assert activity[0].details == {"setting_key": "regeneration_cooldown_minutes"}
        with pytest.raises(ValidationError):
            await service.upsert(SettingKeys.regeneration_cooldown_minutes, -5, admin)

    async def test_unknown_setting(self, repos):
        with pytest.raises(NotFoundError):
            await SettingsAdminService(repos).get_setting("missing")
