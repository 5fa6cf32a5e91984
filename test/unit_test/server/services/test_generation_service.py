"""Unit tests for codex generation orchestration."""

import pytest

from codexalpha.core.ai.execution import DEFAULT_MERGE_PROMPT
from codexalpha.core.database.entities.ai_providers import AIProvider
from codexalpha.core.database.entities.codex_prompts import CodexAIStep, CodexPromptDependency
from codexalpha.core.database.entities.codexes import CodexSection
from codexalpha.server.core.config import GenerationConfig, OpenAIConfig
from codexalpha.server.services.generation import CodexGenerationService, codex_status_for
from codexalpha.server.services.persona_runs import PersonaRunService
from codexalpha.server.services.system_settings import SettingKeys, SettingsService

pytestmark = pytest.mark.asyncio

ANSWERS = {"q1": {"question": "Who do you coach?", "answer": "First-time founders."}}


async def create_run(repos, user, answers=None):
    return await PersonaRunService(repos).create_run(user.id, title="My Coach Persona", answers=answers or ANSWERS)


def _sections(statuses):
    return [
        CodexSection(codex_id="c", section_index=i, section_name=f"s{i}", status=status)
        for i, status in enumerate(statuses)
    ]


class TestCodexStatusFor:
    @pytest.mark.parametrize(
        "statuses, total, expected",
        [
            (["completed", "completed"], 2, "ready"),
            (["completed", "error"], 2, "ready_with_errors"),
            (["error", "error"], 2, "failed"),
            (["completed"], 2, None),
            (["completed", "pending"], 2, None),
            (["error", "generating"], 2, None),
        ],
    )
    async def test_final_status(self, statuses, total, expected):
        assert codex_status_for(_sections(statuses), total) == expected


class TestOrchestrateRun:
    async def test_generates_every_codex_and_completes_run(
        self, generation, repos, user, catalog, fake_ai, fresh_repos
    ):
        run, _ = await create_run(repos, user)

        await generation.orchestrate_run(run.id)

        check = fresh_repos()
        stored = await check.persona_runs.get_by_id(run.id)
        assert stored.status == "completed"
        assert stored.started_at is not None
        assert stored.completed_at is not None

        codexes = await check.codexes.list_for_run(run.id)
        assert [c.codex_name for c in codexes] == ["Brand Story", "21 Days Lightathon"]
        assert [c.status for c in codexes] == ["ready", "ready"]
        assert [(c.completed_sections, c.total_sections) for c in codexes] == [(2, 2), (1, 1)]

        sections = await check.sections.list_for_codex(codexes[0].id)
        assert [s.section_name for s in sections] == ["Origin", "Mission"]
        assert all(s.content == "Generated section content." for s in sections)
        assert len(fake_ai.requests) == 3

    async def test_prompts_follow_catalog(self, generation, repos, user, catalog, fake_ai):
        await SettingsService(repos.settings).set(SettingKeys.global_ai_persona_prompt, "You are CodeXAlpha.")
        run, _ = await create_run(repos, user)

        await generation.orchestrate_run(run.id)

        first = fake_ai.requests[0]["messages"]
        assert first[0]["content"] == "You are CodeXAlpha.\n\n---\n\nYou write brand stories."
        assert first[1]["content"].startswith("Write the origin story.")
        assert "Q: Who do you coach?\nA: First-time founders." in first[1]["content"]
        assert fake_ai.requests[0]["model"] == "gpt-4o-mini"

    async def test_dependency_and_pricing_context(self, generation, repos, session, user, catalog, fake_ai):
        session.add(
            CodexPromptDependency(codex_prompt_id=catalog.lightathon.id, depends_on_codex_prompt_id=catalog.brand.id)
        )
        catalog.lightathon.use_pricing_brackets = True
        session.add(catalog.lightathon)
        await session.commit()
        run, _ = await create_run(repos, user)

        await generation.orchestrate_run(run.id)

        brand_prompt, _, lightathon_prompt = fake_ai.user_prompts()
        assert "GENERATED CONTENT FROM BRAND STORY" not in brand_prompt
        assert "PRICING BRACKETS" not in brand_prompt
        assert "GENERATED CONTENT FROM BRAND STORY:" in lightathon_prompt
        assert "=== Origin ===\nGenerated section content." in lightathon_prompt
        assert "L2: 22,500 - 56,500" in lightathon_prompt

    async def test_usage_logged_per_call(self, generation, repos, user, catalog, fresh_repos):
        run, _ = await create_run(repos, user)

        await generation.orchestrate_run(run.id)

        rows = await fresh_repos().usage_logs.list_between()
        assert len(rows) == 3
        assert {r.function_name for r in rows} == {"generate-codex-section"}
        assert {r.persona_run_id for r in rows} == {run.id}
        assert {r.user_id for r in rows} == {user.id}
        assert all(r.status == "success" and r.total_tokens == 150 and r.execution_mode == "single" for r in rows)

    async def test_requested_codex_goes_first(self, generation, repos, user, catalog, fake_ai):
        run, codexes = await create_run(repos, user)
        lightathon = next(c for c in codexes if c.codex_name == "21 Days Lightathon")

        await generation.orchestrate_run(run.id, lightathon.id)

        assert fake_ai.requests[0]["messages"][0]["content"] == "You design daily missions."
        assert len(fake_ai.requests) == 3

    async def test_cancelled_run_is_left_alone(self, generation, repos, user, catalog, fake_ai, fresh_repos):
        run, _ = await create_run(repos, user)
        run.is_cancelled = True
        await repos.persona_runs.update(run)

        await generation.orchestrate_run(run.id)

        assert fake_ai.requests == []
        assert (await fresh_repos().persona_runs.get_by_id(run.id)).status == "pending"

    async def test_unknown_run_is_ignored(self, generation, fake_ai):
        await generation.orchestrate_run("missing-run")
        assert fake_ai.requests == []


class TestGenerationFailures:
    async def test_failed_sections_settle_codex_status(self, generation, repos, user, catalog, fake_ai, fresh_repos):
        fake_ai.fail_if = lambda body: "Write the mission." in body["messages"][1]["content"]
        run, _ = await create_run(repos, user)

        await generation.orchestrate_run(run.id)

        check = fresh_repos()
        brand, lightathon = await check.codexes.list_for_run(run.id)
        assert brand.status == "ready_with_errors"
        assert brand.completed_sections == 1
        assert lightathon.status == "ready"
        origin, mission = await check.sections.list_for_codex(brand.id)
        assert origin.status == "completed"
        assert mission.status == "error"
        assert "500" in mission.error_message
        assert (await check.persona_runs.get_by_id(run.id)).status == "completed"

        rows = await check.usage_logs.list_between()
        assert sorted(r.status for r in rows) == ["error", "success", "success"]

    async def test_all_sections_failing_marks_codex_failed(
        self, generation, repos, user, catalog, fake_ai, fresh_repos
    ):
        fake_ai.fail_if = lambda body: body["messages"][0]["content"] == "You write brand stories."
        run, _ = await create_run(repos, user)

        await generation.orchestrate_run(run.id)

        brand, lightathon = await fresh_repos().codexes.list_for_run(run.id)
        assert brand.status == "failed"
        assert brand.completed_sections == 0
        assert lightathon.status == "ready"

    async def test_missing_provider_marks_sections_as_error(
        self, session_factory, gateway, repos, user, catalog, fake_ai, fresh_repos
    ):
        service = CodexGenerationService(
            session_factory,
            gateway,
            generation=GenerationConfig(batch_size=1, batch_delay_seconds=0),
            openai=OpenAIConfig(api_key=None),
        )
        run, _ = await create_run(repos, user)

        await service.orchestrate_run(run.id)

        check = fresh_repos()
        codexes = await check.codexes.list_for_run(run.id)
        assert [c.status for c in codexes] == ["failed", "failed"]
        sections = await check.sections.list_for_codex(codexes[0].id)
        assert all("OPENAI_API_KEY" in s.error_message for s in sections)
        assert fake_ai.requests == []


class TestExecutionPlanResolution:
    async def _provider(self, repos):
        provider = await repos.providers.create(
            AIProvider(
                name="DeepSeek",
                provider_code="deepseek",
                base_url="http://mock-ai/v1",
                default_model="deepseek-chat",
            )
        )
        await repos.providers.store_key(provider.id, "sk-deep")
        return provider

    async def test_codex_provider_is_used(self, generation, repos, session, user, catalog, fake_ai):
        provider = await self._provider(repos)
        catalog.brand.primary_provider_id = provider.id
        catalog.brand.primary_model = "deepseek-reasoner"
        session.add(catalog.brand)
        await session.commit()
        run, _ = await create_run(repos, user)

        await generation.orchestrate_run(run.id)

        assert fake_ai.requests[0]["model"] == "deepseek-reasoner"
        assert fake_ai.headers[0]["authorization"] == "Bearer sk-deep"

    async def test_section_config_overrides_codex_config(self, generation, repos, session, user, catalog, fake_ai):
        origin = catalog.brand_sections[0]
        origin.ai_execution_mode = "single"
        origin.primary_model = "gpt-4o"
        session.add(origin)
        await session.commit()
        run, _ = await create_run(repos, user)

        await generation.orchestrate_run(run.id)

        assert [r["model"] for r in fake_ai.requests] == ["gpt-4o", "gpt-4o-mini", "gpt-4o-mini"]

    async def test_parallel_merge_codex(self, generation, repos, session, user, catalog, fake_ai, fresh_repos):
        provider = await self._provider(repos)
        catalog.brand.ai_execution_mode = "parallel_merge"
        session.add(catalog.brand)
        await repos.prompts.replace_codex_steps(
            catalog.brand.id,
            [
                CodexAIStep(
                    codex_prompt_id=catalog.brand.id, step_order=0, provider_id=provider.id, model_name="deepseek-chat"
                ),
                CodexAIStep(
                    codex_prompt_id=catalog.brand.id,
                    step_order=1,
                    provider_id=provider.id,
                    model_name="deepseek-reasoner",
                ),
            ],
        )
        run, _ = await create_run(repos, user)

        await generation.orchestrate_run(run.id)

        # two generate calls and one merge call per brand section, one call for the Lightathon section
        assert len(fake_ai.requests) == 7
        origin_calls = fake_ai.requests[:3]
        assert sorted(r["model"] for r in origin_calls[:2]) == ["deepseek-chat", "deepseek-reasoner"]
        assert origin_calls[2]["messages"][1]["content"].startswith(DEFAULT_MERGE_PROMPT)

        rows = await fresh_repos().usage_logs.list_between()
        assert sorted(r.execution_mode for r in rows).count("parallel_merge") == 6
