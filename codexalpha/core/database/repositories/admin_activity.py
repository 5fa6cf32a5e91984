"""Admin activity log repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.admin_activity import AdminActivityLog
from .base import AsyncBaseRepository


class AdminActivityRepository(AsyncBaseRepository[AdminActivityLog]):
    """Repository for the admin audit log."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AdminActivityLog)

    async def record(
        self,
        admin_id: str,
        action: str,
        *,
        target_user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AdminActivityLog:
        return await self.create(
            AdminActivityLog(admin_id=admin_id, action=action, target_user_id=target_user_id, details=details or {})
        )
