"""
Codex prompt catalog administration.

Codex prompts and section prompts are never hard-deleted: existing codexes keep
referring to them, so deletion deactivates. Each update of a codex prompt first
snapshots its current state (prompt fields plus section prompts) into the
prompt history, which can later be restored.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from codexalpha.core.database.entities.codex_prompts import (
    CodexAIStep,
    CodexPrompt,
    CodexPromptHistory,
    CodexSectionAIStep,
    CodexSectionPrompt,
)
from codexalpha.core.database.entities.questionnaire import QuestionnaireCategory, QuestionnaireQuestion
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.errors import NotFoundError, ValidationError
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.io.prompts import (
    AIStepInput,
    AIStepRead,
    CodexPromptCreate,
    CodexPromptDetail,
    CodexPromptUpdate,
    CodexSectionPromptCreate,
    CodexSectionPromptRead,
    CodexSectionPromptUpdate,
    QuestionnaireCategoryInput,
    QuestionnaireCategoryRead,
    QuestionnaireQuestionInput,
    QuestionnaireQuestionRead,
)
from codexalpha.server.core.security import CurrentUser

logger = get_logger(__name__)

PROMPT_FIELDS = (
    "codex_name",
    "system_prompt",
    "display_order",
    "is_active",
    "word_count_min",
    "word_count_max",
    "max_tokens",
    "depends_on_transcript",
    "use_pricing_brackets",
    "ai_execution_mode",
    "primary_provider_id",
    "primary_model",
    "merge_provider_id",
    "merge_model",
    "merge_instructions",
)

SECTION_FIELDS = (
    "section_name",
    "section_index",
    "section_prompt",
    "word_count_target",
    "is_active",
    "ai_execution_mode",
    "primary_provider_id",
    "primary_model",
    "merge_provider_id",
    "merge_model",
    "merge_instructions",
)


def snapshot_of(prompt: CodexPrompt, sections: List[CodexSectionPrompt]) -> Dict[str, Any]:
    """JSON-serialisable state of a codex prompt and its section prompts."""
    return {
        "prompt": {name: getattr(prompt, name) for name in PROMPT_FIELDS},
        "sections": [{"id": s.id, **{name: getattr(s, name) for name in SECTION_FIELDS}} for s in sections],
    }


def _check_word_counts(minimum: Optional[int], maximum: Optional[int]) -> None:
    if minimum is not None and maximum is not None and minimum > maximum:
        raise ValidationError("word_count_min must not exceed word_count_max")


class PromptCatalogService:
    """Admin operations over codex prompts and the questionnaire catalog."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    # Codex prompts

    async def _get_prompt(self, prompt_id: str) -> CodexPrompt:
        prompt = await self.repos.prompts.get_by_id(prompt_id)
        if prompt is None:
            raise NotFoundError("Codex prompt not found")
        return prompt

    async def _get_section(self, section_prompt_id: str) -> CodexSectionPrompt:
        section = await self.repos.prompts.get_section(section_prompt_id)
        if section is None:
            raise NotFoundError("Section prompt not found")
        return section

    async def list_prompts(self, active_only: bool = False) -> List[CodexPrompt]:
        return await self.repos.prompts.list_ordered(active_only=active_only)

    async def detail(self, prompt_id: str) -> CodexPromptDetail:
        prompt = await self._get_prompt(prompt_id)
        prompts = self.repos.prompts
        return CodexPromptDetail.model_validate(prompt).model_copy(
            update={
                "sections": [
                    CodexSectionPromptRead.model_validate(s)
                    for s in await prompts.list_sections(prompt_id, active_only=False)
                ],
                "depends_on": [d.depends_on_codex_prompt_id for d in await prompts.list_dependencies(prompt_id)],
                "question_ids": await prompts.list_question_ids(prompt_id),
                "steps": [AIStepRead.model_validate(s) for s in await prompts.list_codex_steps(prompt_id)],
            }
        )

    async def create_prompt(self, data: CodexPromptCreate, admin: CurrentUser) -> CodexPrompt:
        _check_word_counts(data.word_count_min, data.word_count_max)
        prompt = await self.repos.prompts.create(CodexPrompt(**data.model_dump(mode="json")))
        if prompt.use_pricing_brackets:
            await self.repos.prompts.clear_pricing_flag(except_id=prompt.id)
            await self.repos.session.commit()
        await self.repos.admin_activity.record(
            admin.id, "create_codex_prompt", details={"codex_prompt_id": prompt.id, "codex_name": prompt.codex_name}
        )
        logger.info(f"Codex prompt created: {prompt.codex_name}")
        return prompt

    async def _snapshot(self, prompt: CodexPrompt, admin: CurrentUser, change_description: Optional[str]) -> int:
        sections = await self.repos.prompts.list_sections(prompt.id, active_only=False)
        version = await self.repos.prompts.next_version_number(prompt.id)
        self.repos.session.add(
            CodexPromptHistory(
                codex_prompt_id=prompt.id,
                version_number=version,
                snapshot=snapshot_of(prompt, sections),
                change_description=change_description,
                changed_by=admin.id,
            )
        )
        return version

    async def update_prompt(self, prompt_id: str, data: CodexPromptUpdate, admin: CurrentUser) -> CodexPrompt:
        prompt = await self._get_prompt(prompt_id)
        changes = data.model_dump(mode="json", exclude_unset=True)
        change_description = changes.pop("change_description", None)
        _check_word_counts(
            changes.get("word_count_min", prompt.word_count_min), changes.get("word_count_max", prompt.word_count_max)
        )
        version = await self._snapshot(prompt, admin, change_description)
        for key, value in changes.items():
            setattr(prompt, key, value)
        if changes.get("use_pricing_brackets"):
            await self.repos.prompts.clear_pricing_flag(except_id=prompt.id)
        prompt = await self.repos.prompts.update(prompt)
        await self.repos.admin_activity.record(
            admin.id, "update_codex_prompt", details={"codex_prompt_id": prompt.id, "version_number": version}
        )
        return prompt

    async def deactivate_prompt(self, prompt_id: str, admin: CurrentUser) -> CodexPrompt:
        prompt = await self._get_prompt(prompt_id)
        await self._snapshot(prompt, admin, "Deactivated")
        prompt.is_active = False
        prompt = await self.repos.prompts.update(prompt)
        await self.repos.admin_activity.record(
            admin.id, "deactivate_codex_prompt", details={"codex_prompt_id": prompt_id}
        )
        return prompt

    async def history(self, prompt_id: str) -> List[CodexPromptHistory]:
        await self._get_prompt(prompt_id)
        return await self.repos.prompts.list_history(prompt_id)

    async def restore(self, prompt_id: str, version_number: int, admin: CurrentUser) -> CodexPrompt:
        """Restore a history version; the current state is snapshotted first.

        Sections present in the snapshot get their recorded fields back (and are
        recreated if they no longer exist); sections absent from it are deactivated.
        """
        prompt = await self._get_prompt(prompt_id)
        entry = await self.repos.prompts.get_history_version(prompt_id, version_number)
        if entry is None:
            raise NotFoundError(f"Version {version_number} not found")
        await self._snapshot(prompt, admin, f"Restored from version {version_number}")

        for key, value in (entry.snapshot.get("prompt") or {}).items():
            if key in PROMPT_FIELDS:
                setattr(prompt, key, value)
        if prompt.use_pricing_brackets:
            await self.repos.prompts.clear_pricing_flag(except_id=prompt.id)

        current = {s.id: s for s in await self.repos.prompts.list_sections(prompt_id, active_only=False)}
        restored_ids = set()
        for saved in entry.snapshot.get("sections") or []:
            fields = {k: v for k, v in saved.items() if k in SECTION_FIELDS}
            section = current.get(saved.get("id"))
            if section is None:
                section = CodexSectionPrompt(id=saved.get("id"), codex_prompt_id=prompt_id, **fields)
            else:
                for key, value in fields.items():
                    setattr(section, key, value)
            restored_ids.add(section.id)
            self.repos.session.add(section)
        for section_id, section in current.items():
            if section_id not in restored_ids:
                section.is_active = False
                self.repos.session.add(section)

        prompt = await self.repos.prompts.update(prompt)
        await self.repos.admin_activity.record(
            admin.id,
            "restore_codex_prompt",
            details={"codex_prompt_id": prompt_id, "version_number": version_number},
        )
        logger.info(f"Codex prompt {prompt_id} restored to version {version_number}")
        return prompt

    # Section prompts

    async def add_section(
        self, prompt_id: str, data: CodexSectionPromptCreate, admin: CurrentUser
    ) -> CodexSectionPrompt:
        prompt = await self._get_prompt(prompt_id)
        await self._snapshot(prompt, admin, f"Added section {data.section_name}")
        section = CodexSectionPrompt(codex_prompt_id=prompt_id, **data.model_dump(mode="json"))
        return await self._save(section)

    async def update_section(
        self, section_prompt_id: str, data: CodexSectionPromptUpdate, admin: CurrentUser
    ) -> CodexSectionPrompt:
        section = await self._get_section(section_prompt_id)
        prompt = await self._get_prompt(section.codex_prompt_id)
        await self._snapshot(prompt, admin, f"Updated section {section.section_name}")
        for key, value in data.model_dump(mode="json", exclude_unset=True).items():
            setattr(section, key, value)
        return await self._save(section)

    async def deactivate_section(self, section_prompt_id: str, admin: CurrentUser) -> CodexSectionPrompt:
        section = await self._get_section(section_prompt_id)
        prompt = await self._get_prompt(section.codex_prompt_id)
        await self._snapshot(prompt, admin, f"Deactivated section {section.section_name}")
        section.is_active = False
        return await self._save(section)

    async def _save(self, entity):
        self.repos.session.add(entity)
        await self.repos.session.commit()
        await self.repos.session.refresh(entity)
        return entity

    # Dependencies, question mappings and AI steps

    async def set_dependencies(self, prompt_id: str, depends_on_ids: List[str], admin: CurrentUser) -> List[str]:
        await self._get_prompt(prompt_id)
        ordered = list(dict.fromkeys(depends_on_ids))
        if prompt_id in ordered:
            raise ValidationError("A codex prompt cannot depend on itself")
        for dep_id in ordered:
            await self._get_prompt(dep_id)
        await self.repos.prompts.replace_dependencies(prompt_id, ordered)
        await self.repos.admin_activity.record(
            admin.id, "set_codex_dependencies", details={"codex_prompt_id": prompt_id, "depends_on": ordered}
        )
        return ordered

    async def set_question_mappings(self, prompt_id: str, question_ids: List[str], admin: CurrentUser) -> List[str]:
        await self._get_prompt(prompt_id)
        for question_id in question_ids:
            if await self.repos.questionnaire.get_question(question_id) is None:
                raise ValidationError(f"Unknown question: {question_id}")
        await self.repos.prompts.replace_question_mappings(prompt_id, question_ids)
        await self.repos.admin_activity.record(
            admin.id, "set_question_mappings", details={"codex_prompt_id": prompt_id, "count": len(question_ids)}
        )
        return await self.repos.prompts.list_question_ids(prompt_id)

    async def set_codex_steps(self, prompt_id: str, steps: List[AIStepInput], admin: CurrentUser) -> List[CodexAIStep]:
        await self._get_prompt(prompt_id)
        await self.repos.prompts.replace_codex_steps(
            prompt_id, [CodexAIStep(codex_prompt_id=prompt_id, **s.model_dump(mode="json")) for s in steps]
        )
        await self.repos.admin_activity.record(
            admin.id, "set_codex_ai_steps", details={"codex_prompt_id": prompt_id, "count": len(steps)}
        )
        return await self.repos.prompts.list_codex_steps(prompt_id)

    async def set_section_steps(
        self, section_prompt_id: str, steps: List[AIStepInput], admin: CurrentUser
    ) -> List[CodexSectionAIStep]:
        await self._get_section(section_prompt_id)
        await self.repos.prompts.replace_section_steps(
            section_prompt_id,
            [CodexSectionAIStep(section_prompt_id=section_prompt_id, **s.model_dump(mode="json")) for s in steps],
        )
        await self.repos.admin_activity.record(
            admin.id, "set_section_ai_steps", details={"section_prompt_id": section_prompt_id, "count": len(steps)}
        )
        return await self.repos.prompts.list_section_steps(section_prompt_id)

    # Questionnaire

    async def questionnaire(self, active_only: bool = True) -> List[QuestionnaireCategoryRead]:
        """Categories with their questions, both ordered by display order."""
        categories = await self.repos.questionnaire.list_categories(active_only=active_only)
        questions = await self.repos.questionnaire.list_questions(active_only=active_only)
        by_category: Dict[str, List[QuestionnaireQuestionRead]] = {}
        for question in questions:
            by_category.setdefault(question.category_id, []).append(QuestionnaireQuestionRead.model_validate(question))
        return [
            QuestionnaireCategoryRead.model_validate(c).model_copy(update={"questions": by_category.get(c.id, [])})
            for c in categories
        ]

    async def save_category(
        self, data: QuestionnaireCategoryInput, admin: CurrentUser, category_id: Optional[str] = None
    ) -> QuestionnaireCategory:
        if category_id is None:
            category = QuestionnaireCategory(**data.model_dump())
        else:
            category = await self.repos.questionnaire.get_by_id(category_id)
            if category is None:
                raise NotFoundError("Category not found")
            for key, value in data.model_dump().items():
                setattr(category, key, value)
        category = await self._save(category)
        await self.repos.admin_activity.record(
            admin.id, "save_questionnaire_category", details={"category_id": category.id}
        )
        return category

    async def save_question(
        self, data: QuestionnaireQuestionInput, admin: CurrentUser, question_id: Optional[str] = None
    ) -> QuestionnaireQuestion:
        if await self.repos.questionnaire.get_by_id(data.category_id) is None:
            raise ValidationError("Unknown questionnaire category")
        if question_id is None:
            question = QuestionnaireQuestion(**data.model_dump())
        else:
            question = await self.repos.questionnaire.get_question(question_id)
            if question is None:
                raise NotFoundError("Question not found")
            for key, value in data.model_dump().items():
                setattr(question, key, value)
        question = await self._save(question)
        await self.repos.admin_activity.record(
            admin.id, "save_questionnaire_question", details={"question_id": question.id}
        )
        return question

