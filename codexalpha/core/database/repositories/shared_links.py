"""
Share link repositories.

Token lookup and the attempt log that backs per-IP rate limiting.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.shared_links import ShareLinkAttempt, SharedLink
from .base import AsyncBaseRepository


class SharedLinkRepository(AsyncBaseRepository[SharedLink]):
    """Repository for share links and their verification attempts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SharedLink)

    async def get_by_token(self, share_token: str) -> Optional[SharedLink]:
        result = await self.session.execute(select(SharedLink).where(SharedLink.share_token == share_token))
        return result.scalar_one_or_none()

    async def list_for_run(self, persona_run_id: str) -> List[SharedLink]:
        stmt = (
            select(SharedLink)
            .where(SharedLink.persona_run_id == persona_run_id)
            .order_by(SharedLink.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_failed_attempts(self, share_token: str, ip_address: str, since: datetime) -> int:
        result = await self.session.execute(
            select(func.count(ShareLinkAttempt.id)).where(
                (ShareLinkAttempt.share_token == share_token)
                & (ShareLinkAttempt.ip_address == ip_address)
                & (ShareLinkAttempt.success == False)  # noqa: E712
                & (ShareLinkAttempt.created_at >= since)
            )
        )
        return int(result.scalar_one())

    async def record_attempt(self, share_token: str, ip_address: str, attempt_type: str, success: bool) -> None:
        self.session.add(
            ShareLinkAttempt(share_token=share_token, ip_address=ip_address, attempt_type=attempt_type, success=success)
        )
        await self.session.commit()
