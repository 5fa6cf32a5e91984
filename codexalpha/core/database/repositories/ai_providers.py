"""
AI provider repositories.

Provider and key lookups used by provider resolution and the admin console,
plus the usage log store.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.ai_providers import AIProvider, AIProviderKey
from ..entities.ai_usage_logs import AIUsageLog
from .base import AsyncBaseRepository


class AIProviderRepository(AsyncBaseRepository[AIProvider]):
    """Repository for AI providers and their keys."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AIProvider)

    async def list_all(self) -> List[AIProvider]:
        result = await self.session.execute(select(AIProvider).order_by(AIProvider.name))
        return list(result.scalars().all())

    async def get_active_key(self, provider_id: str) -> Optional[AIProviderKey]:
        stmt = (
            select(AIProviderKey)
            .where((AIProviderKey.provider_id == provider_id) & (AIProviderKey.is_active == True))  # noqa: E712
            .order_by(AIProviderKey.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def first_available(self) -> Optional[Tuple[AIProvider, AIProviderKey]]:
        """First active provider with a base URL and an active key, default provider first."""
        stmt = (
            select(AIProvider, AIProviderKey)
            .join(AIProviderKey, AIProviderKey.provider_id == AIProvider.id)
            .where(AIProvider.is_active == True)  # noqa: E712
            .where(AIProviderKey.is_active == True)  # noqa: E712
            .where(AIProvider.base_url.is_not(None))
            .order_by(AIProvider.is_default.desc(), AIProvider.created_at, AIProviderKey.created_at.desc())
        )
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def store_key(self, provider_id: str, api_key: str) -> AIProviderKey:
        """Store a new active key, deactivating the previous ones."""
        await self.session.execute(
            update(AIProviderKey).where(AIProviderKey.provider_id == provider_id).values(is_active=False)
        )
        key = AIProviderKey(provider_id=provider_id, api_key=api_key, is_active=True)
        self.session.add(key)
        await self.session.commit()
        await self.session.refresh(key)
        return key

    async def clear_default(self, except_id: Optional[str] = None) -> None:
        stmt = update(AIProvider).where(AIProvider.is_default == True)  # noqa: E712
        if except_id:
            stmt = stmt.where(AIProvider.id != except_id)
        await self.session.execute(stmt.values(is_default=False))


class AIUsageLogRepository(AsyncBaseRepository[AIUsageLog]):
    """Repository for AI usage logs."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AIUsageLog)

    async def list_between(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> List[AIUsageLog]:
        stmt = select(AIUsageLog)
        if since is not None:
            stmt = stmt.where(AIUsageLog.created_at >= since)
        if until is not None:
            stmt = stmt.where(AIUsageLog.created_at < until)
        result = await self.session.execute(stmt.order_by(AIUsageLog.created_at.desc()))
        return list(result.scalars().all())
