"""Lightathon repositories."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.lightathon import LightathonDailyProgress, LightathonEnrollment
from .base import AsyncBaseRepository


class LightathonRepository(AsyncBaseRepository[LightathonEnrollment]):
    """Repository for enrollments and their daily progress rows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, LightathonEnrollment)

    async def find_enrollment(self, user_id: str, persona_run_id: str) -> Optional[LightathonEnrollment]:
        stmt = select(LightathonEnrollment).where(
            (LightathonEnrollment.user_id == user_id) & (LightathonEnrollment.persona_run_id == persona_run_id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_user(self, user_id: str) -> List[LightathonEnrollment]:
        stmt = (
            select(LightathonEnrollment)
            .where(LightathonEnrollment.user_id == user_id)
            .order_by(LightathonEnrollment.started_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_enrollments(self, active_only: bool = False) -> List[LightathonEnrollment]:
        stmt = select(LightathonEnrollment)
        if active_only:
            stmt = stmt.where(LightathonEnrollment.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt.order_by(LightathonEnrollment.started_at))
        return list(result.scalars().all())

    async def list_progress(self, enrollment_id: str) -> List[LightathonDailyProgress]:
        stmt = (
            select(LightathonDailyProgress)
            .where(LightathonDailyProgress.enrollment_id == enrollment_id)
            .order_by(LightathonDailyProgress.day_number)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all_progress(self, enrollment_ids: List[str]) -> List[LightathonDailyProgress]:
        if not enrollment_ids:
            return []
        stmt = (
            select(LightathonDailyProgress)
            .where(LightathonDailyProgress.enrollment_id.in_(enrollment_ids))
            .order_by(LightathonDailyProgress.enrollment_id, LightathonDailyProgress.day_number)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_day(self, enrollment_id: str, day_number: int) -> Optional[LightathonDailyProgress]:
        stmt = select(LightathonDailyProgress).where(
            (LightathonDailyProgress.enrollment_id == enrollment_id)
            & (LightathonDailyProgress.day_number == day_number)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
