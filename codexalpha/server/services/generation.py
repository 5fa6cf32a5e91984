"""
Codex generation service.

Drives persona runs from "pending" to "completed": codexes are processed in
display order, each section is one AI execution (single, parallel-merge or
sequential-chain), and stale or failed sections are retried by the retry jobs.

Every unit of work opens its own session from the session factory so that
background tasks never share the request session and concurrent retries never
share a session with each other.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from codexalpha.core.ai import (
    AIGateway,
    ExecutionPlan,
    ProviderConfig,
    ProviderResolver,
    ResolvedStep,
    UsageContext,
    execute_plan,
    log_ai_usage,
)
from codexalpha.core.database.base import utc_now
from codexalpha.core.database.entities.codex_prompts import CodexPrompt, CodexSectionPrompt
from codexalpha.core.database.entities.codexes import Codex, CodexSection
from codexalpha.core.database.entities.persona_runs import PersonaRun
from codexalpha.core.database.repositories.bundle import SqlRepoBundle, build_sql_repos_from_session
from codexalpha.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SectionGenerationError,
)
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import (
    AIExecutionMode,
    AIStepType,
    AnalyticsEventType,
    CodexStatus,
    PersonaRunStatus,
    SectionStatus,
)
from codexalpha.core.monitoring import log_codex_generation
from codexalpha.server.core.config import GenerationConfig, NotificationConfig, OpenAIConfig
from codexalpha.server.core.security import CurrentUser

from .notifications import NotificationService
from .prompt_builder import (
    build_dependency_context,
    build_pricing_context,
    build_system_prompt,
    build_user_context,
    build_user_prompt,
    clean_markdown,
    format_codex_content,
    format_run_context,
    word_count_instruction,
)
from .system_settings import SettingsService

logger = get_logger(__name__)

_ACTIVE_SECTION_STATUSES = (SectionStatus.pending.value, SectionStatus.generating.value)


@dataclass
class RetrySummary:
    """Outcome of a retry job."""

    total: int = 0
    retried: int = 0
    failed: int = 0
    persona_run_ids: List[str] = field(default_factory=list)


@dataclass
class _PreparedSection:
    system_prompt: str
    user_prompt: str
    plan: ExecutionPlan
    context: UsageContext


def codex_status_for(sections: List[CodexSection], total_sections: int) -> Optional[str]:
    """Final codex status for its sections, or None while work remains."""
    if len(sections) < total_sections:
        return None
    if any(s.status in _ACTIVE_SECTION_STATUSES for s in sections):
        return None
    completed = sum(1 for s in sections if s.status == SectionStatus.completed.value)
    errors = sum(1 for s in sections if s.status == SectionStatus.error.value)
    if errors and not completed:
        return CodexStatus.failed.value
    if errors:
        return CodexStatus.ready_with_errors.value
    return CodexStatus.ready.value


class CodexGenerationService:
    """Generates, retries and regenerates codex sections.

    Args:
        session_factory: Factory used to open a session per unit of work.
        gateway: AI gateway used for provider calls.
        generation: Batch, age threshold and retry tuning.
        openai: Environment OpenAI credentials used as the last-resort provider.
        notifications: Resend configuration for completion emails.
        public_app_url: Base URL of the web app, used in emails.
        sleep: Awaitable used between retry batches.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        gateway: AIGateway,
        *,
        generation: Optional[GenerationConfig] = None,
        openai: Optional[OpenAIConfig] = None,
        notifications: Optional[NotificationConfig] = None,
        public_app_url: str = "http://localhost:5173",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.session_factory = session_factory
        self.gateway = gateway
        self.generation = generation or GenerationConfig()
        self.openai = openai or OpenAIConfig()
        self.notifications = notifications or NotificationConfig()
        self.public_app_url = public_app_url
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    async def orchestrate_run(self, persona_run_id: str, codex_id: Optional[str] = None) -> None:
        """Generate every unfinished codex of a run in order, then complete the run.

        When ``codex_id`` is given that codex is generated first.
        """
        attempted: Set[str] = set()
        user_id: Optional[str] = None
        while True:
            async with self.session_factory() as session:
                repos = build_sql_repos_from_session(session=session)
                run = await repos.persona_runs.get_by_id(persona_run_id)
                if run is None:
                    logger.warning(f"Persona run {persona_run_id} not found, nothing to orchestrate")
                    return
                if run.is_cancelled:
                    logger.info(f"Persona run {persona_run_id} is cancelled, stopping generation")
                    return
                user_id = run.user_id
                if run.status == PersonaRunStatus.pending.value:
                    run.status = PersonaRunStatus.generating.value
                    run.started_at = run.started_at or utc_now()
                    await repos.persona_runs.update(run)

                codexes = await repos.codexes.list_for_run(persona_run_id)
                finished = CodexStatus.finished()
                remaining = [c for c in codexes if c.status not in finished]
                target: Optional[Codex] = None
                if codex_id:
                    target = next((c for c in remaining if c.id == codex_id), None)
                    codex_id = None
                if target is None:
                    target = next((c for c in remaining if c.id not in attempted), None)

                if not remaining:
                    await self._complete_run(repos, run)
                    return
                if target is None:
                    logger.warning(
                        f"Persona run {persona_run_id} still has {len(remaining)} unfinished codexes, "
                        "leaving them to the retry job"
                    )
                    return
                target_id = target.id

            attempted.add(target_id)
            await self.generate_codex(target_id, user_id=user_id)

    async def generate_codex(self, codex_id: str, *, user_id: Optional[str] = None) -> Optional[str]:
        """Generate the unfinished sections of one codex and settle its status.

        Section rows are created as they are reached. Returns the final codex
        status, or None when work remains (cancelled run, sections in flight).
        """
        started = time.monotonic()
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            codex = await repos.codexes.get_by_id(codex_id)
            if codex is None:
                raise NotFoundError(f"Codex {codex_id} not found")
            persona_run_id = codex.persona_run_id
            section_prompts: List[CodexSectionPrompt] = []
            if codex.codex_prompt_id:
                section_prompts = await repos.prompts.list_sections(codex.codex_prompt_id)
            codex.status = CodexStatus.generating.value
            if section_prompts:
                codex.total_sections = len(section_prompts)
            await repos.codexes.update(codex)
            todo = [(sp.section_index, sp.section_name) for sp in section_prompts]

        for section_index, section_name in todo:
            if await self._is_cancelled(persona_run_id):
                logger.info(f"Persona run {persona_run_id} cancelled, stopping codex {codex_id}")
                break
            section_id = await self._claim_section(codex_id, section_index, section_name)
            if section_id is None:
                continue
            try:
                await self.generate_section(section_id, user_id=user_id)
            except SectionGenerationError as e:
                logger.warning(f"Section {section_index} of codex {codex_id} failed: {e}")

        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            codex = await repos.codexes.get_by_id(codex_id)
            status = await self._settle_codex(repos, codex)

        duration_ms = (time.monotonic() - started) * 1000
        log_codex_generation(persona_run_id, codex_id, status or CodexStatus.generating.value, duration_ms)
        logger.info(f"Codex {codex_id} finished with status {status or 'generating'} in {duration_ms:.0f}ms")
        return status

    async def _claim_section(self, codex_id: str, section_index: int, section_name: str) -> Optional[str]:
        """Section row id to generate, creating the row if needed; None when already completed."""
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            existing = next(
                (s for s in await repos.sections.list_for_codex(codex_id) if s.section_index == section_index),
                None,
            )
            if existing is None:
                existing = await repos.sections.create(
                    CodexSection(
                        codex_id=codex_id,
                        section_index=section_index,
                        section_name=section_name,
                        status=SectionStatus.generating.value,
                    )
                )
            elif existing.status == SectionStatus.completed.value:
                return None
            return existing.id

    async def _is_cancelled(self, persona_run_id: str) -> bool:
        async with self.session_factory() as session:
            run = await build_sql_repos_from_session(session=session).persona_runs.get_by_id(persona_run_id)
            return run is None or run.is_cancelled

    async def _settle_codex(self, repos: SqlRepoBundle, codex: Codex) -> Optional[str]:
        sections = await repos.sections.list_for_codex(codex.id)
        codex.completed_sections = sum(1 for s in sections if s.status == SectionStatus.completed.value)
        status = codex_status_for(sections, codex.total_sections)
        if status is not None:
            codex.status = status
        await repos.codexes.update(codex)
        return status

    async def _complete_run(self, repos: SqlRepoBundle, run: PersonaRun) -> None:
        run.status = PersonaRunStatus.completed.value
        run.completed_at = utc_now()
        await repos.persona_runs.update(run)
        logger.info(f"Persona run {run.id} completed")
        notifier = NotificationService(repos, self.notifications, self.public_app_url)
        result = await notifier.notify_run_completed(run.id)
        logger.debug(f"Completion notification for {run.id}: {result.message}")

    # ------------------------------------------------------------------
    # Section generation
    # ------------------------------------------------------------------

    async def generate_section(
        self,
        section_id: str,
        *,
        user_id: Optional[str] = None,
        function_name: str = "generate-codex-section",
        mark_error: bool = True,
        include_run_context: bool = False,
    ) -> str:
        """Generate one section and store its cleaned content.

        Raises:
            NotFoundError: If the section, its codex or its run no longer exists.
            SectionGenerationError: If prompt assembly or the AI call failed. The
                section is marked as error first unless ``mark_error`` is False.
        """
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            section = await repos.sections.get_by_id(section_id)
            if section is None:
                raise NotFoundError(f"Section {section_id} not found")
            codex = await repos.codexes.get_by_id(section.codex_id)
            run = await repos.persona_runs.get_by_id(codex.persona_run_id) if codex else None
            if codex is None or run is None:
                raise NotFoundError(f"Codex for section {section_id} not found")

            section.status = SectionStatus.generating.value
            section.error_message = None
            await repos.sections.update(section)

            prepared: Optional[_PreparedSection] = None
            try:
                prepared = await self._prepare(
                    repos,
                    run,
                    codex,
                    section,
                    user_id=user_id or run.user_id,
                    function_name=function_name,
                    include_run_context=include_run_context,
                )
                result = await execute_plan(self.gateway, prepared.plan, prepared.system_prompt, prepared.user_prompt)
            except Exception as e:
                message = str(e) or e.__class__.__name__
                await session.rollback()
                if prepared is not None:
                    await log_ai_usage(
                        repos.usage_logs,
                        prepared.context,
                        model=prepared.plan.primary.model,
                        provider_code=prepared.plan.primary.provider_code,
                        error_message=message,
                    )
                if mark_error:
                    section = await repos.sections.get_by_id(section_id)
                    section.status = SectionStatus.error.value
                    section.error_message = message
                    await repos.sections.update(section)
                logger.error(f"Generation failed for section {section_id}: {message}")
                raise SectionGenerationError(message, details={"section_id": section_id}) from e

            for call in result.calls:
                await log_ai_usage(
                    repos.usage_logs,
                    prepared.context,
                    model=call.model,
                    usage=call.usage,
                    provider_code=call.provider,
                )

            section = await repos.sections.get_by_id(section_id)
            section.content = clean_markdown(result.content)
            section.status = SectionStatus.completed.value
            section.error_message = None
            await repos.sections.update(section)
            logger.debug(f"Section {section_id} completed ({len(section.content)} chars)")
            return section.content

    async def _prepare(
        self,
        repos: SqlRepoBundle,
        run: PersonaRun,
        codex: Codex,
        section: CodexSection,
        *,
        user_id: Optional[str],
        function_name: str,
        include_run_context: bool,
    ) -> _PreparedSection:
        codex_prompt = await repos.prompts.get_by_id(codex.codex_prompt_id) if codex.codex_prompt_id else None
        if codex_prompt is None:
            raise NotFoundError(f"Codex prompt for {codex.codex_name} not found")
        section_prompt = await repos.prompts.get_section_by_index(codex_prompt.id, section.section_index)
        if section_prompt is None:
            raise NotFoundError(f"Section prompt {section.section_index} for {codex.codex_name} not found")

        settings = SettingsService(repos.settings)
        system_prompt = build_system_prompt(await settings.global_persona_prompt(), codex_prompt.system_prompt)
        user_context = build_user_context(
            run.answers or {},
            question_ids=await repos.prompts.list_question_ids(codex_prompt.id),
            transcript=run.original_transcript,
            include_transcript=codex_prompt.depends_on_transcript,
        )
        dependency_context = await self._dependency_context(repos, run.id, codex_prompt.id)
        if not dependency_context and include_run_context:
            dependency_context = await self._run_context(repos, run.id, codex.id)
        pricing_context = ""
        if codex_prompt.use_pricing_brackets:
            pricing_context = build_pricing_context(await settings.pricing_brackets())

        user_prompt = build_user_prompt(
            section_prompt.section_prompt,
            word_count=word_count_instruction(codex_prompt, section_prompt),
            user_context=user_context,
            dependency_context=dependency_context,
            pricing_context=pricing_context,
        )
        plan = await self._resolve_plan(repos, settings, codex_prompt, section_prompt)
        context = UsageContext(
            function_name=function_name,
            user_id=user_id,
            persona_run_id=run.id,
            codex_id=codex.id,
            execution_mode=plan.mode.value,
        )
        return _PreparedSection(system_prompt, user_prompt, plan, context)

    async def _dependency_context(self, repos: SqlRepoBundle, persona_run_id: str, codex_prompt_id: str) -> str:
        blocks: List[str] = []
        for dependency in await repos.prompts.list_dependencies(codex_prompt_id):
            codex = await repos.codexes.find_by_prompt(persona_run_id, dependency.depends_on_codex_prompt_id)
            if codex is None:
                continue
            sections = [
                s
                for s in await repos.sections.list_for_codex(codex.id)
                if s.status == SectionStatus.completed.value
            ]
            block = format_codex_content(codex.codex_name, sections)
            if block:
                blocks.append(block)
        return build_dependency_context(blocks)

    async def _run_context(self, repos: SqlRepoBundle, persona_run_id: str, exclude_codex_id: str) -> str:
        finished = (CodexStatus.ready.value, CodexStatus.ready_with_errors.value)
        codexes = [
            c
            for c in await repos.codexes.list_for_run(persona_run_id)
            if c.id != exclude_codex_id and c.status in finished
        ]
        sections = await repos.sections.list_for_codexes([c.id for c in codexes])
        by_codex: Dict[str, List[CodexSection]] = {}
        for s in sections:
            if s.status == SectionStatus.completed.value:
                by_codex.setdefault(s.codex_id, []).append(s)
        context = format_run_context([(c.codex_name, by_codex.get(c.id, [])) for c in codexes])
        if not context:
            return ""
        return f"\n\nCONTEXT FROM OTHER CODEXES OF THIS PERSONA:\n{context}"

    async def _resolve_plan(
        self,
        repos: SqlRepoBundle,
        settings: SettingsService,
        codex_prompt: CodexPrompt,
        section_prompt: CodexSectionPrompt,
    ) -> ExecutionPlan:
        """Section AI config when it has one, else the codex config, else the global default."""
        source = section_prompt if section_prompt.has_own_ai_config else codex_prompt
        mode = AIExecutionMode(source.ai_execution_mode or AIExecutionMode.single.value)
        resolver = ProviderResolver(repos.providers, self.openai)

        provider_id, model = source.primary_provider_id, source.primary_model
        if not provider_id and not model:
            provider_id, model = await settings.default_ai_choice()
        primary = await resolver.resolve(provider_id, model)
        if model and not provider_id:
            primary = replace(primary, model=model)

        steps: List[ResolvedStep] = []
        if mode != AIExecutionMode.single:
            rows = []
            if section_prompt.has_own_ai_config:
                rows = await repos.prompts.list_section_steps(section_prompt.id)
            if not rows:
                rows = await repos.prompts.list_codex_steps(codex_prompt.id)
            for row in rows:
                steps.append(
                    ResolvedStep(
                        provider=await resolver.resolve(row.provider_id, row.model_name),
                        step_type=AIStepType(row.step_type),
                        custom_prompt=row.custom_prompt,
                    )
                )

        merge_provider: Optional[ProviderConfig] = None
        if source.merge_provider_id or source.merge_model:
            merge_provider = await resolver.resolve(source.merge_provider_id, source.merge_model)

        return ExecutionPlan(
            mode=mode,
            primary=primary,
            steps=steps,
            merge_provider=merge_provider,
            merge_prompt=source.merge_instructions,
            max_tokens=codex_prompt.max_tokens,
        )

    # ------------------------------------------------------------------
    # Retry jobs
    # ------------------------------------------------------------------

    async def retry_pending_sections(self, persona_run_id: Optional[str] = None) -> RetrySummary:
        """Retry sections pending too long or stuck generating, in concurrent batches."""
        now = utc_now()
        pending_before = now - timedelta(minutes=self.generation.stale_pending_minutes)
        generating_before = now - timedelta(minutes=self.generation.stuck_generating_minutes)

        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            sections = await repos.sections.find_retryable(pending_before, generating_before)
            codex_runs = await self._codex_run_ids(repos, {s.codex_id for s in sections})
            candidates: List[Tuple[str, int, str]] = [
                (s.id, s.retries, codex_runs[s.codex_id])
                for s in sections
                if s.codex_id in codex_runs and (persona_run_id is None or codex_runs[s.codex_id] == persona_run_id)
            ]

        logger.info(f"Found {len(candidates)} sections to retry")
        summary = await self._retry_in_batches([(section_id, retries) for section_id, retries, _ in candidates])

        affected_runs = {run_id for _, _, run_id in candidates}
        if persona_run_id is not None:
            # A run can hold only finished sections while its codexes still read generating
            affected_runs.add(persona_run_id)
        affected = sorted(affected_runs)
        for run_id in affected:
            await self.reconcile_statuses(run_id)
        summary.persona_run_ids = affected
        return summary

    async def _retry_in_batches(self, candidates: List[Tuple[str, int]]) -> RetrySummary:
        """Retry ``(section_id, retries)`` pairs concurrently, pausing between batches."""
        summary = RetrySummary(total=len(candidates))
        batch_size = max(self.generation.batch_size, 1)
        for start in range(0, len(candidates), batch_size):
            batch = candidates[start : start + batch_size]
            results = await asyncio.gather(*(self._retry_section(section_id, retries) for section_id, retries in batch))
            summary.retried += sum(1 for ok in results if ok)
            summary.failed += sum(1 for ok in results if not ok)
            if start + batch_size < len(candidates):
                await self._sleep(self.generation.batch_delay_seconds)
        return summary

    async def _codex_run_ids(self, repos: SqlRepoBundle, codex_ids: Set[str]) -> Dict[str, str]:
        runs: Dict[str, str] = {}
        for codex_id in codex_ids:
            codex = await repos.codexes.get_by_id(codex_id)
            if codex is not None:
                runs[codex_id] = codex.persona_run_id
        return runs

    async def _retry_section(self, section_id: str, retries: int) -> bool:
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            section = await repos.sections.get_by_id(section_id)
            if section is None:
                return False
            section.status = SectionStatus.generating.value
            section.retries = retries + 1
            section.error_message = None
            await repos.sections.update(section)

        try:
            await self.generate_section(section_id, function_name="retry-pending-sections", mark_error=False)
            return True
        except (SectionGenerationError, NotFoundError) as e:
            async with self.session_factory() as session:
                repos = build_sql_repos_from_session(session=session)
                section = await repos.sections.get_by_id(section_id)
                if section is None:
                    return False
                if retries >= self.generation.max_retries:
                    section.status = SectionStatus.error.value
                    section.error_message = f"Retry failed: {e}"
                else:
                    section.status = SectionStatus.pending.value
                    section.error_message = f"Retry attempt {retries + 1} failed: {e}"
                await repos.sections.update(section)
            return False

    async def retry_error_sections(self, persona_run_id: Optional[str] = None) -> RetrySummary:
        """Reset old error sections to pending and hand them to the pending retry job."""
        created_before = utc_now() - timedelta(minutes=self.generation.stale_pending_minutes)
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            sections = await repos.sections.find_errors(created_before, persona_run_id)
            if not sections:
                logger.info("No error sections found to retry")
                return RetrySummary()
            codex_ids = {s.codex_id for s in sections}
            for section in sections:
                section.status = SectionStatus.pending.value
                section.error_message = None
                session.add(section)
            for codex_id in codex_ids:
                codex = await repos.codexes.get_by_id(codex_id)
                if codex is not None and codex.status == CodexStatus.ready_with_errors.value:
                    codex.status = CodexStatus.generating.value
                    session.add(codex)
            await session.commit()
            logger.info(f"Reset {len(sections)} error sections to pending")

        return await self.retry_pending_sections(persona_run_id)

    async def regenerate_run(self, persona_run_id: str) -> RetrySummary:
        """Retry every pending section of one run right away, then generate whatever is still missing.

        Unlike the retry job there is no age window; this backs the admin
        "regenerate stuck sections" action after the sections were reset.
        """
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            codexes = await repos.codexes.list_for_run(persona_run_id)
            sections = await repos.sections.list_for_codexes([c.id for c in codexes])
            candidates = [(s.id, s.retries) for s in sections if s.status == SectionStatus.pending.value]

        logger.info(f"Regenerating {len(candidates)} pending sections of persona run {persona_run_id}")
        summary = await self._retry_in_batches(candidates)
        await self.reconcile_statuses(persona_run_id)
        summary.persona_run_ids = [persona_run_id]

        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            run = await repos.persona_runs.get_by_id(persona_run_id)
            if run is None or run.is_cancelled or run.status != PersonaRunStatus.generating.value:
                return summary
            codexes = await repos.codexes.list_for_run(persona_run_id)
            rows = Counter(s.codex_id for s in await repos.sections.list_for_codexes([c.id for c in codexes]))
            # Failed retries stay pending for the retry job; only missing rows need generation now
            missing = any(
                c.status == CodexStatus.not_started.value or rows[c.id] < c.total_sections for c in codexes
            )
        if missing:
            await self.orchestrate_run(persona_run_id)
        return summary

    async def reconcile_statuses(self, persona_run_id: str) -> None:
        """Settle codex statuses from their sections and complete the run when all codexes are done."""
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            run = await repos.persona_runs.get_by_id(persona_run_id)
            if run is None:
                return
            codexes = await repos.codexes.list_for_run(persona_run_id)
            for codex in codexes:
                if codex.status == CodexStatus.not_started.value:
                    continue
                await self._settle_codex(repos, codex)

            finished = CodexStatus.finished()
            if (
                codexes
                and all(c.status in finished for c in codexes)
                and run.status == PersonaRunStatus.generating.value
            ):
                await self._complete_run(repos, run)

    # ------------------------------------------------------------------
    # User-triggered regeneration
    # ------------------------------------------------------------------

    async def _load_owned(self, repos: SqlRepoBundle, codex_id: str, user: CurrentUser) -> Tuple[Codex, PersonaRun]:
        codex = await repos.codexes.get_by_id(codex_id)
        if codex is None:
            raise NotFoundError("Codex not found")
        run = await repos.persona_runs.get_by_id(codex.persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        if run.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Unauthorized")
        return codex, run

    async def regenerate_section(self, section_id: str, user: CurrentUser) -> CodexSection:
        """Regenerate one section now, honouring the regeneration cooldown.

        Raises:
            NotFoundError: Unknown section.
            PermissionDeniedError: Caller neither owns the run nor is an admin.
            ConflictError: The section was regenerated within the cooldown.
            SectionGenerationError: The AI call failed; the section is marked as error.
        """
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            section = await repos.sections.get_by_id(section_id)
            if section is None:
                raise NotFoundError("Section not found")
            codex, run = await self._load_owned(repos, section.codex_id, user)

            cooldown = await SettingsService(repos.settings).regeneration_cooldown_minutes()
            if cooldown and section.last_regenerated_at is not None:
                available_at = section.last_regenerated_at + timedelta(minutes=cooldown)
                now = utc_now()
                if available_at > now:
                    wait_minutes = max(int((available_at - now).total_seconds() // 60) + 1, 1)
                    raise ConflictError(
                        f"Section can be regenerated again in {wait_minutes} minute(s)",
                        details={"available_at": available_at.isoformat()},
                    )

            section.status = SectionStatus.generating.value
            section.content = None
            section.error_message = None
            section.regeneration_count = (section.regeneration_count or 0) + 1
            section.last_regenerated_at = utc_now()
            await repos.sections.update(section)
            await repos.analytics.record(
                AnalyticsEventType.section_regenerated.value,
                user_id=user.id,
                persona_run_id=run.id,
                codex_id=codex.id,
                metadata={"section_index": section.section_index, "section_name": section.section_name},
            )
            persona_run_id = run.id

        await self.generate_section(
            section_id, user_id=user.id, function_name="regenerate-section", include_run_context=True
        )
        await self.reconcile_statuses(persona_run_id)
        async with self.session_factory() as session:
            return await build_sql_repos_from_session(session=session).sections.get_by_id(section_id)

    async def reset_codex(self, codex_id: str, user: CurrentUser) -> Codex:
        """Reset a codex and its sections so it can be regenerated."""
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            codex, run = await self._load_owned(repos, codex_id, user)
            for section in await repos.sections.list_for_codex(codex.id):
                section.status = SectionStatus.pending.value
                section.content = None
                section.error_message = None
                section.retries = 0
                session.add(section)
            codex.status = CodexStatus.not_started.value
            codex.completed_sections = 0
            session.add(codex)
            await session.commit()
            await session.refresh(codex)
            await repos.analytics.record(
                AnalyticsEventType.codex_regenerated.value,
                user_id=user.id,
                persona_run_id=run.id,
                codex_id=codex.id,
                metadata={"codex_name": codex.codex_name},
            )
            return codex

    async def regenerate_codex(self, codex_id: str) -> None:
        """Background part of codex regeneration: generate, then reconcile the run."""
        async with self.session_factory() as session:
            codex = await build_sql_repos_from_session(session=session).codexes.get_by_id(codex_id)
            if codex is None:
                return
            persona_run_id = codex.persona_run_id
        await self.generate_codex(codex_id)
        await self.reconcile_statuses(persona_run_id)
