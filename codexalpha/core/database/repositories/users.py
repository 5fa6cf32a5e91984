"""
User repositories.

Data access for profiles, role assignments, blocks and unlimited-run grants.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from codexalpha.core.models.domain.enums import AppRole

from ..entities.persona_runs import PersonaRun
from ..entities.users import EarlySignup, Profile, UserBlock, UserRole, UserUnlimitedRuns
from .base import AsyncBaseRepository


class ProfileRepository(AsyncBaseRepository[Profile]):
    """Repository for user profiles."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Profile)

    async def get_or_create(self, user_id: str, email: Optional[str] = None) -> Profile:
        """Return the profile of ``user_id``, creating it on first sight.

        A missing email is back-filled from the token claim when it becomes known.
        """
        profile = await self.get_by_id(user_id)
        if profile is None:
            return await self.create(Profile(id=user_id, email=email))
        if email and not profile.email:
            profile.email = email
            return await self.update(profile)
        return profile

    async def get_many(self, user_ids: Set[str]) -> Dict[str, Profile]:
        if not user_ids:
            return {}
        result = await self.session.execute(select(Profile).where(Profile.id.in_(user_ids)))
        return {p.id: p for p in result.scalars().all()}

    async def search(self, query: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[Profile]:
        stmt = select(Profile)
        if query:
            pattern = f"%{query.lower()}%"
            stmt = stmt.where(
                func.lower(func.coalesce(Profile.email, "")).like(pattern)
                | func.lower(func.coalesce(Profile.full_name, "")).like(pattern)
            )
        stmt = stmt.order_by(Profile.created_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class UserRoleRepository(AsyncBaseRepository[UserRole]):
    """Repository for role assignments."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserRole)

    async def roles_for(self, user_id: str) -> Set[str]:
        result = await self.session.execute(select(UserRole.role).where(UserRole.user_id == user_id))
        return set(result.scalars().all())

    async def roles_for_many(self, user_ids: Set[str]) -> Dict[str, Set[str]]:
        roles: Dict[str, Set[str]] = {uid: set() for uid in user_ids}
        if not user_ids:
            return roles
        result = await self.session.execute(select(UserRole).where(UserRole.user_id.in_(user_ids)))
        for row in result.scalars().all():
            roles.setdefault(row.user_id, set()).add(row.role)
        return roles

    async def is_admin(self, user_id: str) -> bool:
        return AppRole.admin.value in await self.roles_for(user_id)

    async def grant(self, user_id: str, role: AppRole) -> bool:
        """Grant a role; returns False when the user already holds it."""
        if role.value in await self.roles_for(user_id):
            return False
        await self.create(UserRole(user_id=user_id, role=role.value))
        return True

    async def revoke(self, user_id: str, role: AppRole) -> bool:
        result = await self.session.execute(
            delete(UserRole).where((UserRole.user_id == user_id) & (UserRole.role == role.value))
        )
        await self.session.commit()
        return result.rowcount > 0


class UserBlockRepository(AsyncBaseRepository[UserBlock]):
    """Repository for user blocks."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserBlock)

    async def get_for_user(self, user_id: str) -> Optional[UserBlock]:
        result = await self.session.execute(select(UserBlock).where(UserBlock.user_id == user_id))
        return result.scalar_one_or_none()

    async def is_blocked(self, user_id: str) -> bool:
        return await self.get_for_user(user_id) is not None

    async def blocked_ids(self, user_ids: Set[str]) -> Set[str]:
        if not user_ids:
            return set()
        result = await self.session.execute(select(UserBlock.user_id).where(UserBlock.user_id.in_(user_ids)))
        return set(result.scalars().all())


class UnlimitedRunsRepository(AsyncBaseRepository[UserUnlimitedRuns]):
    """Repository for unlimited-run grants."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserUnlimitedRuns)

    async def get_for_user(self, user_id: str) -> Optional[UserUnlimitedRuns]:
        result = await self.session.execute(select(UserUnlimitedRuns).where(UserUnlimitedRuns.user_id == user_id))
        return result.scalar_one_or_none()

    async def has_grant(self, user_id: str) -> bool:
        return await self.get_for_user(user_id) is not None

    async def granted_ids(self, user_ids: Set[str]) -> Set[str]:
        if not user_ids:
            return set()
        result = await self.session.execute(
            select(UserUnlimitedRuns.user_id).where(UserUnlimitedRuns.user_id.in_(user_ids))
        )
        return set(result.scalars().all())


class EarlySignupRepository(AsyncBaseRepository[EarlySignup]):
    """Repository for coming-soon signups."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, EarlySignup)

    async def get_by_email(self, email: str) -> Optional[EarlySignup]:
        result = await self.session.execute(select(EarlySignup).where(EarlySignup.email == email))
        return result.scalar_one_or_none()


async def run_counts_by_user(session: AsyncSession, user_ids: Set[str]) -> Dict[str, int]:
    """Number of persona runs per user."""
    if not user_ids:
        return {}
    result = await session.execute(
        select(PersonaRun.user_id, func.count(PersonaRun.id))
        .where(PersonaRun.user_id.in_(user_ids))
        .group_by(PersonaRun.user_id)
    )
    return {user_id: count for user_id, count in result.all()}
