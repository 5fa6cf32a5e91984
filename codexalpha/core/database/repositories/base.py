"""
Base repository shared by every aggregate repository.

Write helpers commit immediately. Services that need several writes in one
transaction (creating a run with its codexes, resetting every section of a
codex) stage them with ``session.add`` and commit once.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

EntityType = TypeVar("EntityType", bound=SQLModel)


class AsyncBaseRepository(Generic[EntityType]):
    """CRUD over one SQLModel entity; subclasses add their domain queries."""

    def __init__(self, session: AsyncSession, model: Type[EntityType]) -> None:
        self.session = session
        self.model = model

    async def _persist(self, entity: EntityType) -> EntityType:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def create(self, entity: EntityType) -> EntityType:
        return await self._persist(entity)

    async def update(self, entity: EntityType) -> EntityType:
        return await self._persist(entity)

    async def add_all(self, entities: Iterable[EntityType]) -> None:
        """Persist several new rows in one commit."""
        self.session.add_all(list(entities))
        await self.session.commit()

    async def get_by_id(self, entity_id: str | int) -> Optional[EntityType]:
        return await self.session.get(self.model, entity_id)

    async def delete(self, entity_id: str | int) -> bool:
        """Delete a row by primary key; ``False`` when it does not exist."""
        entity = await self.get_by_id(entity_id)
        if entity is None:
            return False
        await self.session.delete(entity)
        await self.session.commit()
        return True

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[EntityType]:
        """
        List rows, newest first when the entity has ``created_at``.

        Args:
            limit: Maximum number of rows
            offset: Number of rows to skip
            filters: Equality filters by column name; ``None`` values and
                unknown columns are ignored
        """
        stmt = select(self.model)
        for key, value in (filters or {}).items():
            if value is not None and hasattr(self.model, key):
                stmt = stmt.where(getattr(self.model, key) == value)
        if hasattr(self.model, "created_at"):
            stmt = stmt.order_by(self.model.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
