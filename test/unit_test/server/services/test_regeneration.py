"""Unit tests for user-triggered section and codex regeneration."""

import pytest
import pytest_asyncio

from codexalpha.core.errors import ConflictError, NotFoundError, PermissionDeniedError, SectionGenerationError
from codexalpha.server.services.persona_runs import PersonaRunService
from codexalpha.server.services.system_settings import SettingKeys, SettingsService

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def generated_run(generation, repos, user, catalog, fresh_repos):
    """A completed run; returns (run id, Brand Story codex id, its section ids)."""
    run, _ = await PersonaRunService(repos).create_run(user.id, title="Persona", answers={"q1": "answer"})
    await generation.orchestrate_run(run.id)
    check = fresh_repos()
    brand = (await check.codexes.list_for_run(run.id))[0]
    sections = await check.sections.list_for_codex(brand.id)
    return run.id, brand.id, [s.id for s in sections]


class TestRegenerateSection:
    async def test_regenerates_with_run_context(self, generation, generated_run, user, fake_ai, fresh_repos):
        run_id, _, (origin_id, _) = generated_run
        fake_ai.replies.append("A **fresh** origin.")

        section = await generation.regenerate_section(origin_id, user)

        assert section.content == "A fresh origin."
        assert section.status == "completed"
        assert section.regeneration_count == 1
        assert section.last_regenerated_at is not None
        prompt = fake_ai.user_prompts()[-1]
        assert "CONTEXT FROM OTHER CODEXES OF THIS PERSONA:" in prompt
        assert "=== 21 Days Lightathon ===" in prompt

        check = fresh_repos()
        events = await check.analytics.latest()
        regenerated = [e for e in events if e.event_type == "section_regenerated"]
        assert len(regenerated) == 1
        assert regenerated[0].persona_run_id == run_id
        assert regenerated[0].event_metadata == {"section_index": 0, "section_name": "Origin"}
        rows = await check.usage_logs.list_between()
        assert [r.function_name for r in rows].count("regenerate-section") == 1

    async def test_cooldown_blocks_second_regeneration(self, generation, generated_run, repos, user):
        _, _, (origin_id, _) = generated_run
        await SettingsService(repos.settings).set(SettingKeys.regeneration_cooldown_minutes, 30)

        await generation.regenerate_section(origin_id, user)
        with pytest.raises(ConflictError) as exc_info:
            await generation.regenerate_section(origin_id, user)

        assert "minute" in exc_info.value.message
        assert "available_at" in exc_info.value.details

    async def test_no_cooldown_by_default(self, generation, generated_run, user):
        _, _, (origin_id, _) = generated_run

        await generation.regenerate_section(origin_id, user)
        section = await generation.regenerate_section(origin_id, user)

        assert section.regeneration_count == 2

    async def test_other_user_is_rejected(self, generation, generated_run, other_user):
        _, _, (origin_id, _) = generated_run
        with pytest.raises(PermissionDeniedError):
            await generation.regenerate_section(origin_id, other_user)

    async def test_admin_may_regenerate(self, generation, generated_run, admin, fresh_repos):
        _, _, (origin_id, _) = generated_run

        await generation.regenerate_section(origin_id, admin)

        rows = await fresh_repos().usage_logs.list_between()
        assert any(r.function_name == "regenerate-section" and r.user_id == admin.id for r in rows)

    async def test_unknown_section(self, generation, user):
        with pytest.raises(NotFoundError):
            await generation.regenerate_section("missing", user)

    async def test_failure_marks_section_as_error(self, generation, generated_run, user, fake_ai, fresh_repos):
        _, _, (origin_id, _) = generated_run
        fake_ai.status_code = 500

        with pytest.raises(SectionGenerationError):
            await generation.regenerate_section(origin_id, user)

        check = fresh_repos()
        section = await check.sections.get_by_id(origin_id)
        assert section.status == "error"
        assert section.content is None
        assert section.regeneration_count == 1


class TestRegenerateCodex:
    async def test_reset_then_regenerate(self, generation, generated_run, user, fake_ai, fresh_repos):
        run_id, brand_id, section_ids = generated_run

        codex = await generation.reset_codex(brand_id, user)

        assert codex.status == "not_started"
        assert codex.completed_sections == 0
        check = fresh_repos()
        for section_id in section_ids:
            section = await check.sections.get_by_id(section_id)
            assert section.status == "pending"
            assert section.content is None
        events = await check.analytics.latest()
        assert any(e.event_type == "codex_regenerated" and e.codex_id == brand_id for e in events)

        fake_ai.default_reply = "Rewritten."
        requests_before = len(fake_ai.requests)
        await generation.regenerate_codex(brand_id)

        assert len(fake_ai.requests) == requests_before + 2
        check = fresh_repos()
        stored = await check.codexes.get_by_id(brand_id)
        assert stored.status == "ready"
        assert stored.completed_sections == 2
        assert {s.content for s in await check.sections.list_for_codex(brand_id)} == {"Rewritten."}
        assert (await check.persona_runs.get_by_id(run_id)).status == "completed"

    async def test_reset_requires_ownership(self, generation, generated_run, other_user):
        _, brand_id, _ = generated_run
        with pytest.raises(PermissionDeniedError):
            await generation.reset_codex(brand_id, other_user)

    async def test_regenerate_unknown_codex_is_ignored(self, generation, fake_ai):
        await generation.regenerate_codex("missing")
        assert fake_ai.requests == []
