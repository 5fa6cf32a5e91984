"""
Codex prompt catalog repositories.

Read side used by generation (active prompts, sections, dependencies, question
mappings, AI steps) and write side used by the admin console.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.codex_prompts import (
    CodexAIStep,
    CodexPrompt,
    CodexPromptDependency,
    CodexPromptHistory,
    CodexQuestionMapping,
    CodexSectionAIStep,
    CodexSectionPrompt,
)
from .base import AsyncBaseRepository


class CodexPromptRepository(AsyncBaseRepository[CodexPrompt]):
    """Repository for codex prompts and their child configuration rows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CodexPrompt)

    async def list_ordered(self, active_only: bool = False) -> List[CodexPrompt]:
        stmt = select(CodexPrompt)
        if active_only:
            stmt = stmt.where(CodexPrompt.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt.order_by(CodexPrompt.display_order, CodexPrompt.codex_name))
        return list(result.scalars().all())

    async def clear_pricing_flag(self, except_id: Optional[str] = None) -> None:
        """Unset ``use_pricing_brackets`` on every prompt but ``except_id``."""
        stmt = update(CodexPrompt).where(CodexPrompt.use_pricing_brackets == True)  # noqa: E712
        if except_id:
            stmt = stmt.where(CodexPrompt.id != except_id)
        await self.session.execute(stmt.values(use_pricing_brackets=False))

    # Sections

    async def list_sections(self, codex_prompt_id: str, active_only: bool = True) -> List[CodexSectionPrompt]:
        stmt = select(CodexSectionPrompt).where(CodexSectionPrompt.codex_prompt_id == codex_prompt_id)
        if active_only:
            stmt = stmt.where(CodexSectionPrompt.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt.order_by(CodexSectionPrompt.section_index))
        return list(result.scalars().all())

    async def count_active_sections(self) -> Dict[str, int]:
        """Active section count per codex prompt id."""
        result = await self.session.execute(
            select(CodexSectionPrompt.codex_prompt_id, func.count(CodexSectionPrompt.id))
            .where(CodexSectionPrompt.is_active == True)  # noqa: E712
            .group_by(CodexSectionPrompt.codex_prompt_id)
        )
        return {prompt_id: count for prompt_id, count in result.all()}

    async def get_section(self, section_prompt_id: str) -> Optional[CodexSectionPrompt]:
        return await self.session.get(CodexSectionPrompt, section_prompt_id)

    async def get_section_by_index(self, codex_prompt_id: str, section_index: int) -> Optional[CodexSectionPrompt]:
        stmt = select(CodexSectionPrompt).where(
            (CodexSectionPrompt.codex_prompt_id == codex_prompt_id)
            & (CodexSectionPrompt.section_index == section_index)
            & (CodexSectionPrompt.is_active == True)  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    # Dependencies and question mappings

    async def list_dependencies(self, codex_prompt_id: str) -> List[CodexPromptDependency]:
        stmt = (
            select(CodexPromptDependency)
            .where(CodexPromptDependency.codex_prompt_id == codex_prompt_id)
            .order_by(CodexPromptDependency.display_order)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_dependencies(self, codex_prompt_id: str, depends_on_ids: List[str]) -> None:
        await self.session.execute(
            delete(CodexPromptDependency).where(CodexPromptDependency.codex_prompt_id == codex_prompt_id)
        )
        for order, dep_id in enumerate(depends_on_ids):
            self.session.add(
                CodexPromptDependency(
                    codex_prompt_id=codex_prompt_id, depends_on_codex_prompt_id=dep_id, display_order=order
                )
            )
        await self.session.commit()

    async def list_question_ids(self, codex_prompt_id: str) -> List[str]:
        result = await self.session.execute(
            select(CodexQuestionMapping.question_id).where(CodexQuestionMapping.codex_prompt_id == codex_prompt_id)
        )
        return list(result.scalars().all())

    async def replace_question_mappings(self, codex_prompt_id: str, question_ids: List[str]) -> None:
        await self.session.execute(
            delete(CodexQuestionMapping).where(CodexQuestionMapping.codex_prompt_id == codex_prompt_id)
        )
        for question_id in dict.fromkeys(question_ids):
            self.session.add(CodexQuestionMapping(codex_prompt_id=codex_prompt_id, question_id=question_id))
        await self.session.commit()

    # AI steps

    async def list_codex_steps(self, codex_prompt_id: str) -> List[CodexAIStep]:
        stmt = (
            select(CodexAIStep)
            .where(CodexAIStep.codex_prompt_id == codex_prompt_id)
            .order_by(CodexAIStep.step_order)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_section_steps(self, section_prompt_id: str) -> List[CodexSectionAIStep]:
        stmt = (
            select(CodexSectionAIStep)
            .where(CodexSectionAIStep.section_prompt_id == section_prompt_id)
            .order_by(CodexSectionAIStep.step_order)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_codex_steps(self, codex_prompt_id: str, steps: List[CodexAIStep]) -> None:
        await self.session.execute(delete(CodexAIStep).where(CodexAIStep.codex_prompt_id == codex_prompt_id))
        self.session.add_all(steps)
        await self.session.commit()

    async def replace_section_steps(self, section_prompt_id: str, steps: List[CodexSectionAIStep]) -> None:
        await self.session.execute(
            delete(CodexSectionAIStep).where(CodexSectionAIStep.section_prompt_id == section_prompt_id)
        )
        self.session.add_all(steps)
        await self.session.commit()

    # History

    async def list_history(self, codex_prompt_id: str) -> List[CodexPromptHistory]:
        stmt = (
            select(CodexPromptHistory)
            .where(CodexPromptHistory.codex_prompt_id == codex_prompt_id)
            .order_by(CodexPromptHistory.version_number.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_history_version(self, codex_prompt_id: str, version_number: int) -> Optional[CodexPromptHistory]:
        stmt = select(CodexPromptHistory).where(
            (CodexPromptHistory.codex_prompt_id == codex_prompt_id)
            & (CodexPromptHistory.version_number == version_number)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def next_version_number(self, codex_prompt_id: str) -> int:
        result = await self.session.execute(
            select(func.max(CodexPromptHistory.version_number)).where(
                CodexPromptHistory.codex_prompt_id == codex_prompt_id
            )
        )
        current = result.scalar_one_or_none()
        return (current or 0) + 1
