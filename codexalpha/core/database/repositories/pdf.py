"""PDF template and export repositories."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.pdf import PdfExport, PdfTemplate
from .base import AsyncBaseRepository


class PdfTemplateRepository(AsyncBaseRepository[PdfTemplate]):
    """Repository for PDF templates."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PdfTemplate)

    async def get_active(self) -> Optional[PdfTemplate]:
        stmt = (
            select(PdfTemplate)
            .where(PdfTemplate.is_active == True)  # noqa: E712
            .order_by(PdfTemplate.updated_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()


class PdfExportRepository(AsyncBaseRepository[PdfExport]):
    """Repository for PDF export records."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PdfExport)
