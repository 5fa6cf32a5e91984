"""
Persona run service.

Creation rules (blocked users, one run per non-admin user unless granted
unlimited runs, answer validation), read access for owners and admins, and
administrative run management.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from codexalpha.core.database.entities.codexes import Codex, CodexSection
from codexalpha.core.database.entities.persona_runs import PersonaRun
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import (
    AnalyticsEventType,
    CodexStatus,
    PersonaRunSource,
    PersonaRunStatus,
    SectionStatus,
)
from codexalpha.core.models.io.persona_runs import CodexRead, CodexResyncResult, CodexSectionRead, PersonaRunDetail
from codexalpha.server.core import constant
from codexalpha.server.core.security import CurrentUser

logger = get_logger(__name__)

BLOCKED_MESSAGE = "Your account has been blocked from generating personas. Please contact support."
RUN_LIMIT_MESSAGE = (
    "You have already created a persona run. "
    "Please contact the administrator if you need to create another one."
)


def validate_title(title: Optional[str]) -> str:
    if title is None:
        return constant.DEFAULT_PERSONA_TITLE
    title = title.strip()
    if not title:
        raise ValidationError("Validation error: title must not be empty (in title)")
    if len(title) > constant.MAX_TITLE_LENGTH:
        raise ValidationError(
            f"Validation error: title must be at most {constant.MAX_TITLE_LENGTH} characters (in title)"
        )
    return title


def validate_answers(answers: Any) -> Dict[str, Any]:
    """Accept plain string answers or ``{question, answer, category?}`` objects."""
    if not isinstance(answers, dict):
        raise ValidationError("Validation error: answers must be an object (in answers)")
    limit = constant.MAX_ANSWER_LENGTH
    for key, value in answers.items():
        if isinstance(value, str):
            if len(value) > limit:
                raise ValidationError(f"Validation error: answer exceeds {limit} characters (in answers.{key})")
        elif isinstance(value, dict):
            answer = value.get("answer")
            if not isinstance(value.get("question"), str) or not isinstance(answer, str):
                raise ValidationError(
                    f"Validation error: question and answer must be strings (in answers.{key})"
                )
            if len(answer) > limit:
                raise ValidationError(f"Validation error: answer exceeds {limit} characters (in answers.{key})")
            category = value.get("category")
            if category is not None and not isinstance(category, str):
                raise ValidationError(f"Validation error: category must be a string (in answers.{key})")
        else:
            raise ValidationError(f"Validation error: invalid answer format (in answers.{key})")
    return answers


async def load_codexes(repos: SqlRepoBundle, persona_run_id: str) -> List[CodexRead]:
    """Codexes of a run with their sections, in display order."""
    codexes = await repos.codexes.list_for_run(persona_run_id)
    sections = await repos.sections.list_for_codexes([c.id for c in codexes])
    by_codex: Dict[str, List[CodexSectionRead]] = {}
    for section in sections:
        by_codex.setdefault(section.codex_id, []).append(CodexSectionRead.model_validate(section))
    result = []
    for codex in codexes:
        read = CodexRead.model_validate(codex)
        read.sections = by_codex.get(codex.id, [])
        result.append(read)
    return result


class PersonaRunService:
    """Create, read and manage persona runs."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def ensure_can_create(self, user_id: str, *, is_admin: bool) -> None:
        """Raises PermissionDeniedError for blocked users and exhausted run allowances."""
        if await self.repos.blocks.is_blocked(user_id):
            raise PermissionDeniedError(BLOCKED_MESSAGE)
        if is_admin:
            return
        if await self.repos.persona_runs.count_for_user(user_id) >= 1:
            if not await self.repos.unlimited_runs.has_grant(user_id):
                raise PermissionDeniedError(RUN_LIMIT_MESSAGE)

    async def create_run(
        self,
        user_id: str,
        *,
        title: str,
        answers: Dict[str, Any],
        source_type: PersonaRunSource = PersonaRunSource.questionnaire,
        transcript: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Tuple[PersonaRun, List[Codex]]:
        """Insert a pending run with one not-started codex per active codex prompt.

        Raises:
            ValidationError: If no codex prompt is active.
        """
        prompts = await self.repos.prompts.list_ordered(active_only=True)
        if not prompts:
            raise ValidationError("No active codex prompts found")
        section_counts = await self.repos.prompts.count_active_sections()

        run = await self.repos.persona_runs.create(
            PersonaRun(
                user_id=user_id,
                title=title,
                answers=answers,
                status=PersonaRunStatus.pending.value,
                source_type=source_type.value,
                original_transcript=transcript,
            )
        )
        codexes = [
            Codex(
                persona_run_id=run.id,
                codex_prompt_id=prompt.id,
                codex_name=prompt.codex_name,
                codex_order=prompt.display_order,
                status=CodexStatus.not_started.value,
                total_sections=section_counts.get(prompt.id, 0),
            )
            for prompt in prompts
        ]
        await self.repos.codexes.add_all(codexes)
        await self.repos.analytics.record(
            AnalyticsEventType.persona_run_created.value,
            user_id=created_by or user_id,
            persona_run_id=run.id,
            metadata={"source_type": source_type.value, "codexes_count": len(codexes)},
        )
        logger.info(f"Created persona run {run.id} for user {user_id} with {len(codexes)} codexes")
        return run, codexes

    async def create_from_questionnaire(
        self, user: CurrentUser, *, title: Optional[str], answers: Any
    ) -> Tuple[PersonaRun, List[Codex]]:
        await self.ensure_can_create(user.id, is_admin=user.is_admin)
        return await self.create_run(user.id, title=validate_title(title), answers=validate_answers(answers))

    async def list_for_user(self, user_id: str) -> List[PersonaRun]:
        return await self.repos.persona_runs.list_for_user(user_id)

    async def get_owned(self, persona_run_id: str, user: CurrentUser) -> PersonaRun:
        """The run if the caller owns it or is an admin."""
        run = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        if run.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Unauthorized")
        return run

    async def get_detail(self, persona_run_id: str, user: CurrentUser) -> PersonaRunDetail:
        run = await self.get_owned(persona_run_id, user)
        detail = PersonaRunDetail.model_validate(run, from_attributes=True)
        detail.codexes = await load_codexes(self.repos, run.id)
        return detail

    async def cancel(self, persona_run_id: str, user: CurrentUser) -> PersonaRun:
        run = await self.get_owned(persona_run_id, user)
        run.is_cancelled = True
        return await self.repos.persona_runs.update(run)

    async def delete(self, persona_run_id: str, admin: CurrentUser) -> None:
        run = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        await self.repos.persona_runs.delete_cascade(persona_run_id)
        await self.repos.admin_activity.record(
            admin.id, "delete_persona_run", target_user_id=run.user_id, details={"persona_run_id": persona_run_id}
        )
        logger.info(f"Admin {admin.id} deleted persona run {persona_run_id}")

    async def reset_for_rerun(self, persona_run_id: str, admin: CurrentUser) -> List[Codex]:
        """Drop the run's codexes and recreate them from the active catalog.

        Raises:
            ConflictError: If a Lightathon enrollment references the run's codexes.
        """
        run = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        if any(e.persona_run_id == persona_run_id for e in await self.repos.lightathon.list_for_user(run.user_id)):
            raise ConflictError("Persona run has a Lightathon enrollment and cannot be rerun")
        prompts = await self.repos.prompts.list_ordered(active_only=True)
        if not prompts:
            raise ValidationError("No active codex prompts found")
        section_counts = await self.repos.prompts.count_active_sections()

        await self.repos.codexes.delete_for_run(persona_run_id)
        run.status = PersonaRunStatus.pending.value
        run.is_cancelled = False
        run.started_at = None
        run.completed_at = None
        self.repos.session.add(run)
        codexes = [
            Codex(
                persona_run_id=run.id,
                codex_prompt_id=prompt.id,
                codex_name=prompt.codex_name,
                codex_order=prompt.display_order,
                total_sections=section_counts.get(prompt.id, 0),
            )
            for prompt in prompts
        ]
        await self.repos.codexes.add_all(codexes)
        await self.repos.admin_activity.record(
            admin.id, "full_rerun_persona_run", target_user_id=run.user_id, details={"persona_run_id": run.id}
        )
        return codexes

    async def admin_update(
        self,
        persona_run_id: str,
        admin: CurrentUser,
        *,
        title: Optional[str] = None,
        answers: Optional[Dict[str, Any]] = None,
    ) -> PersonaRun:
        """Correct the title and/or answers of a run; the change is written to the activity log.

        Raises:
            NotFoundError: Unknown run.
            ValidationError: Nothing to update, or the new values are invalid.
        """
        run = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        updated_fields: List[str] = []
        if title is not None:
            run.title = validate_title(title)
            updated_fields.append("title")
        if answers is not None:
            run.answers = validate_answers(answers)
            updated_fields.append("answers")
        if not updated_fields:
            raise ValidationError("Nothing to update: provide title or answers")

        run = await self.repos.persona_runs.update(run)
        await self.repos.admin_activity.record(
            admin.id,
            "update_persona_run",
            target_user_id=run.user_id,
            details={"persona_run_id": run.id, "updated_fields": updated_fields},
        )
        logger.info(f"Admin {admin.id} updated {', '.join(updated_fields)} of persona run {run.id}")
        return run

    async def resync_codexes(self, persona_run_id: str, admin: CurrentUser) -> CodexResyncResult:
        """Bring a run in line with the active catalog without touching finished content.

        Codexes for prompts activated after the run was created are added as not
        started. Codexes that already generated sections get pending rows for
        newly activated section prompts and go back to generating. Codexes that
        never started only get their section count refreshed, since generation
        creates their rows.
        """
        run = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        existing = {c.codex_prompt_id: c for c in await self.repos.codexes.list_for_run(persona_run_id)}
        result = CodexResyncResult(persona_run_id=persona_run_id)

        for prompt in await self.repos.prompts.list_ordered(active_only=True):
            section_prompts = await self.repos.prompts.list_sections(prompt.id)
            if not section_prompts:
                logger.debug(f"Skipping codex prompt {prompt.codex_name}: no active sections")
                continue
            codex = existing.get(prompt.id)
            if codex is None:
                await self.repos.codexes.create(
                    Codex(
                        persona_run_id=run.id,
                        codex_prompt_id=prompt.id,
                        codex_name=prompt.codex_name,
                        codex_order=prompt.display_order,
                        status=CodexStatus.not_started.value,
                        total_sections=len(section_prompts),
                    )
                )
                result.added_codexes += 1
                continue

            if codex.status == CodexStatus.not_started.value:
                if codex.total_sections != len(section_prompts):
                    codex.total_sections = len(section_prompts)
                    await self.repos.codexes.update(codex)
                    result.updated_codexes += 1
                continue

            present = {s.section_index for s in await self.repos.sections.list_for_codex(codex.id)}
            missing = [sp for sp in section_prompts if sp.section_index not in present]
            if not missing:
                continue
            await self.repos.sections.add_all(
                [
                    CodexSection(
                        codex_id=codex.id,
                        section_index=sp.section_index,
                        section_name=sp.section_name,
                        status=SectionStatus.pending.value,
                    )
                    for sp in missing
                ]
            )
            codex.total_sections = len(present) + len(missing)
            codex.status = CodexStatus.generating.value
            await self.repos.codexes.update(codex)
            result.updated_codexes += 1
            result.added_sections += len(missing)

        if result.added_codexes or result.added_sections:
            if run.status == PersonaRunStatus.completed.value:
                run.status = PersonaRunStatus.generating.value
                run.completed_at = None
                await self.repos.persona_runs.update(run)
        await self.repos.admin_activity.record(
            admin.id,
            "resync_codexes",
            target_user_id=run.user_id,
            details=result.model_dump(),
        )
        logger.info(
            f"Resynced persona run {run.id}: {result.added_codexes} codexes added, "
            f"{result.updated_codexes} updated, {result.added_sections} sections added"
        )
        return result

    async def reset_unfinished_sections(self, persona_run_id: str, admin: CurrentUser) -> int:
        """Reset every section that is not completed back to pending, whatever its age.

        Completed sections keep their content. Codexes holding a reset section go
        back to generating and the run is reopened. Returns the reset count.

        Raises:
            NotFoundError: Unknown run.
            ValidationError: The run has no codexes.
        """
        run = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        codexes = await self.repos.codexes.list_for_run(persona_run_id)
        if not codexes:
            raise ValidationError("No codexes found for this persona run")

        sections = await self.repos.sections.list_for_codexes([c.id for c in codexes])
        unfinished = [s for s in sections if s.status != SectionStatus.completed.value]
        for section in unfinished:
            section.status = SectionStatus.pending.value
            section.content = None
            section.error_message = None
            section.retries = 0
            self.repos.session.add(section)
        touched = {s.codex_id for s in unfinished}
        for codex in codexes:
            if codex.id in touched:
                codex.status = CodexStatus.generating.value
                self.repos.session.add(codex)
        run.status = PersonaRunStatus.generating.value
        run.is_cancelled = False
        run.completed_at = None
        self.repos.session.add(run)
        await self.repos.session.commit()

        await self.repos.admin_activity.record(
            admin.id,
            "regenerate_persona_run",
            target_user_id=run.user_id,
            details={"persona_run_id": run.id, "reset_sections": len(unfinished)},
        )
        logger.info(f"Admin {admin.id} reset {len(unfinished)} unfinished sections of persona run {run.id}")
        return len(unfinished)
