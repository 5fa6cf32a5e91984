"""Analytics event repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.analytics_events import AnalyticsEvent
from .base import AsyncBaseRepository


class AnalyticsEventRepository(AsyncBaseRepository[AnalyticsEvent]):
    """Repository for analytics events."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AnalyticsEvent)

    async def record(
        self,
        event_type: str,
        *,
        user_id: Optional[str] = None,
        persona_run_id: Optional[str] = None,
        codex_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AnalyticsEvent:
        return await self.create(
            AnalyticsEvent(
                event_type=event_type,
                user_id=user_id,
                persona_run_id=persona_run_id,
                codex_id=codex_id,
                event_metadata=metadata or {},
            )
        )

    async def latest(self, limit: int = 100) -> List[AnalyticsEvent]:
        result = await self.session.execute(
            select(AnalyticsEvent).order_by(AnalyticsEvent.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
