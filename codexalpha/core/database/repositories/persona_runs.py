"""
Persona run, codex and section repositories.

Data access for the generated side of the model: runs, their codexes and the
sections the orchestrator fills in.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from codexalpha.core.models.domain.enums import SectionStatus

from ..entities.codexes import Codex, CodexSection
from ..entities.lightathon import LightathonDailyProgress, LightathonEnrollment
from ..entities.persona_runs import PersonaRun
from ..entities.shared_links import SharedLink
from .base import AsyncBaseRepository


class PersonaRunRepository(AsyncBaseRepository[PersonaRun]):
    """Repository for persona runs."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PersonaRun)

    async def list_for_user(self, user_id: str) -> List[PersonaRun]:
        stmt = select(PersonaRun).where(PersonaRun.user_id == user_id).order_by(PersonaRun.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_user(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count(PersonaRun.id)).where(PersonaRun.user_id == user_id)
        )
        return int(result.scalar_one())

    async def delete_cascade(self, persona_run_id: str) -> None:
        """Delete a run with its codexes, sections, share links and Lightathon rows."""
        enrollments = LightathonEnrollment.persona_run_id == persona_run_id
        enrollment_ids = select(LightathonEnrollment.id).where(enrollments)
        await self.session.execute(
            delete(LightathonDailyProgress).where(LightathonDailyProgress.enrollment_id.in_(enrollment_ids))
        )
        await self.session.execute(delete(LightathonEnrollment).where(enrollments))
        await self.session.execute(delete(SharedLink).where(SharedLink.persona_run_id == persona_run_id))
        await CodexRepository(self.session).delete_for_run(persona_run_id)
        await self.session.execute(delete(PersonaRun).where(PersonaRun.id == persona_run_id))
        await self.session.commit()


class CodexRepository(AsyncBaseRepository[Codex]):
    """Repository for generated codexes."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Codex)

    async def list_for_run(self, persona_run_id: str) -> List[Codex]:
        """Codexes of a run in generation order."""
        stmt = (
            select(Codex)
            .where(Codex.persona_run_id == persona_run_id)
            .order_by(Codex.codex_order, Codex.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_name(self, persona_run_id: str, fragment: str) -> Optional[Codex]:
        """First codex of the run whose name contains ``fragment`` (case-insensitive)."""
        stmt = (
            select(Codex)
            .where(Codex.persona_run_id == persona_run_id)
            .where(func.lower(Codex.codex_name).like(f"%{fragment.lower()}%"))
            .order_by(Codex.codex_order)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_by_prompt(self, persona_run_id: str, codex_prompt_id: str) -> Optional[Codex]:
        stmt = select(Codex).where(
            (Codex.persona_run_id == persona_run_id) & (Codex.codex_prompt_id == codex_prompt_id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def delete_for_run(self, persona_run_id: str) -> None:
        """Delete every codex of a run and its sections. Does not commit."""
        codex_ids = select(Codex.id).where(Codex.persona_run_id == persona_run_id)
        await self.session.execute(delete(CodexSection).where(CodexSection.codex_id.in_(codex_ids)))
        await self.session.execute(delete(Codex).where(Codex.persona_run_id == persona_run_id))


class CodexSectionRepository(AsyncBaseRepository[CodexSection]):
    """Repository for codex sections."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CodexSection)

    async def list_for_codex(self, codex_id: str) -> List[CodexSection]:
        stmt = select(CodexSection).where(CodexSection.codex_id == codex_id).order_by(CodexSection.section_index)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_codexes(self, codex_ids: List[str]) -> List[CodexSection]:
        if not codex_ids:
            return []
        stmt = (
            select(CodexSection)
            .where(CodexSection.codex_id.in_(codex_ids))
            .order_by(CodexSection.codex_id, CodexSection.section_index)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_retryable(self, pending_before: datetime, generating_before: datetime) -> List[CodexSection]:
        """Sections pending since before ``pending_before`` or stuck generating since ``generating_before``."""
        stmt = (
            select(CodexSection)
            .where(
                ((CodexSection.status == SectionStatus.pending.value) & (CodexSection.created_at < pending_before))
                | (
                    (CodexSection.status == SectionStatus.generating.value)
                    & (CodexSection.updated_at < generating_before)
                )
            )
            .order_by(CodexSection.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_errors(self, created_before: datetime, persona_run_id: Optional[str] = None) -> List[CodexSection]:
        stmt = select(CodexSection).where(
            (CodexSection.status == SectionStatus.error.value) & (CodexSection.created_at < created_before)
        )
        if persona_run_id:
            stmt = stmt.join(Codex, Codex.id == CodexSection.codex_id).where(Codex.persona_run_id == persona_run_id)
        result = await self.session.execute(stmt.order_by(CodexSection.created_at))
        return list(result.scalars().all())
