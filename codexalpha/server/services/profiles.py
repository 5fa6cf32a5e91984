"""
Profile and early-signup operations.
"""

from __future__ import annotations

from codexalpha.core.database.entities.users import EarlySignup
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.io.admin import EarlySignupCreate, EarlySignupResult, ProfileRead, ProfileUpdate
from codexalpha.server.core.security import CurrentUser

logger = get_logger(__name__)


class ProfileService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def me(self, user: CurrentUser) -> ProfileRead:
        profile = await self.repos.profiles.get_or_create(user.id, user.email)
        read = ProfileRead.model_validate(profile)
        return read.model_copy(update={"display_name": profile.display_name, "roles": sorted(user.roles)})

    async def update(self, user: CurrentUser, changes: ProfileUpdate) -> ProfileRead:
        profile = await self.repos.profiles.get_or_create(user.id, user.email)
        for key, value in changes.model_dump(exclude_unset=True).items():
            setattr(profile, key, value.strip() if isinstance(value, str) else value)
        await self.repos.profiles.update(profile)
        return await self.me(user)

    async def early_signup(self, data: EarlySignupCreate) -> EarlySignupResult:
        """Store a coming-soon signup once per email address."""
        email = data.email.strip().lower()
        if await self.repos.early_signups.get_by_email(email) is not None:
            return EarlySignupResult(success=True, already_registered=True)
        await self.repos.early_signups.create(EarlySignup(email=email, source=data.source))
        logger.info(f"Early signup stored (source={data.source or 'unknown'})")
        return EarlySignupResult(success=True)
