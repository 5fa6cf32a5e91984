"""System settings repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.system_settings import SystemSetting
from .base import AsyncBaseRepository


class SystemSettingRepository(AsyncBaseRepository[SystemSetting]):
    """Repository for key/value system settings."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SystemSetting)

    async def get_by_key(self, key: str) -> Optional[SystemSetting]:
        result = await self.session.execute(select(SystemSetting).where(SystemSetting.setting_key == key))
        return result.scalar_one_or_none()

    async def get_values(self, keys: List[str]) -> Dict[str, Any]:
        result = await self.session.execute(select(SystemSetting).where(SystemSetting.setting_key.in_(keys)))
        return {row.setting_key: row.setting_value for row in result.scalars().all()}

    async def list_all(self) -> List[SystemSetting]:
        result = await self.session.execute(select(SystemSetting).order_by(SystemSetting.setting_key))
        return list(result.scalars().all())

    async def upsert(
        self, key: str, value: Any, *, updated_by: Optional[str] = None, description: Optional[str] = None
    ) -> SystemSetting:
        setting = await self.get_by_key(key)
        if setting is None:
            setting = SystemSetting(
                setting_key=key, setting_value=value, updated_by=updated_by, description=description
            )
            return await self.create(setting)
        setting.setting_value = value
        setting.updated_by = updated_by
        setting.updated_at = utc_now()
        if description is not None:
            setting.description = description
        return await self.update(setting)
