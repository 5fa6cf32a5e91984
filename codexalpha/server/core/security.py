"""
Authentication and authorization dependencies.

Access tokens are issued by the external identity provider and verified here
with the shared JWT secret. The ``sub`` claim is the user id; the profile row
is created the first time a user calls the API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, Optional, Set

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from codexalpha.core.database import get_session
from codexalpha.core.database.repositories.users import ProfileRepository, UserRoleRepository
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import AppRole

from .config import settings

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller."""

    id: str
    email: Optional[str] = None
    roles: Set[str] = field(default_factory=set)

    @property
    def is_admin(self) -> bool:
        return AppRole.admin.value in self.roles


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify and decode an access token.

    Raises:
        jwt.PyJWTError: If the signature, expiry or audience is invalid.
    """
    auth = settings.auth
    options = {"require": ["sub"], "verify_aud": bool(auth.jwt_audience)}
    return jwt.decode(
        token,
        auth.jwt_secret,
        algorithms=[auth.jwt_algorithm],
        audience=auth.jwt_audience or None,
        options=options,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> CurrentUser:
    """Resolve the caller from the bearer token, creating their profile on first sight."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or not credentials.credentials:
        raise credentials_exception
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected access token: {e}")
        raise credentials_exception

    user_id = str(payload["sub"])
    email = payload.get("email")
    await ProfileRepository(session).get_or_create(user_id, email)
    roles = await UserRoleRepository(session).roles_for(user_id)
    return CurrentUser(id=user_id, email=email, roles=roles)


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Reject callers without the admin role."""
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
AdminUserDep = Annotated[CurrentUser, Depends(require_admin)]
