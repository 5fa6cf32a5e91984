"""Questionnaire catalog repository."""

from __future__ import annotations

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.questionnaire import QuestionnaireCategory, QuestionnaireQuestion
from .base import AsyncBaseRepository


class QuestionnaireRepository(AsyncBaseRepository[QuestionnaireCategory]):
    """Repository for questionnaire categories and their questions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, QuestionnaireCategory)

    async def list_categories(self, active_only: bool = True) -> List[QuestionnaireCategory]:
        stmt = select(QuestionnaireCategory)
        if active_only:
            stmt = stmt.where(QuestionnaireCategory.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt.order_by(QuestionnaireCategory.display_order))
        return list(result.scalars().all())

    async def list_questions(self, active_only: bool = True) -> List[QuestionnaireQuestion]:
        stmt = select(QuestionnaireQuestion)
        if active_only:
            stmt = stmt.where(QuestionnaireQuestion.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt.order_by(QuestionnaireQuestion.display_order))
        return list(result.scalars().all())

    async def get_question(self, question_id: str):
        return await self.session.get(QuestionnaireQuestion, question_id)
