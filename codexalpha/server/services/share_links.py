"""
Password-protected share links.

Links are random 64-hex-character tokens. Optional passwords are stored as
``salthex:hashhex`` PBKDF2-SHA256 digests. Verification is rate limited per
client IP and token, and every attempt is recorded.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import timedelta
from typing import List, Mapping, Optional

from codexalpha.core.database.base import utc_now
from codexalpha.core.database.entities.shared_links import SharedLink
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.errors import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitedError,
)
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import AnalyticsEventType, ShareAttemptType
from codexalpha.core.models.io.persona_runs import SharedPersonaRun
from codexalpha.server.core.config import ShareLinkConfig
from codexalpha.server.core.security import CurrentUser

from .persona_runs import load_codexes

logger = get_logger(__name__)

SALT_BYTES = 16
KEY_BYTES = 32


def hash_password(password: str, iterations: int = 100000) -> str:
    salt = secrets.token_bytes(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations, dklen=KEY_BYTES)
    return f"{salt.hex()}:{digest.hex()}"


def verify_password(password: str, stored: str, iterations: int = 100000) -> bool:
    try:
        salt_hex, hash_hex = stored.split(":", 1)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        logger.warning("Malformed share link password hash")
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations, dklen=KEY_BYTES)
    return hmac.compare_digest(digest.hex(), hash_hex)


def generate_share_token() -> str:
    return secrets.token_hex(32)


def client_ip(headers: Mapping[str, str]) -> str:
    """First ``x-forwarded-for`` entry, else ``x-real-ip``, else "unknown"."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return headers.get("x-real-ip") or "unknown"


class ShareLinkService:
    """Create, verify and manage share links."""

    def __init__(self, repos: SqlRepoBundle, config: ShareLinkConfig) -> None:
        self.repos = repos
        self.config = config

    def share_url(self, token: str) -> str:
        return f"{self.config.public_app_url.rstrip('/')}/share/{token}"

    async def _owned_run_id(self, persona_run_id: str, user: CurrentUser) -> str:
        run = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        if run.user_id != user.id:
            raise PermissionDeniedError("Unauthorized")
        return run.id

    async def create(
        self,
        user: CurrentUser,
        persona_run_id: str,
        *,
        password: Optional[str] = None,
        expires_in_days: Optional[int] = None,
    ) -> SharedLink:
        await self._owned_run_id(persona_run_id, user)
        link = await self.repos.shared_links.create(
            SharedLink(
                persona_run_id=persona_run_id,
                share_token=generate_share_token(),
                password_hash=hash_password(password, self.config.pbkdf2_iterations) if password else None,
                expires_at=utc_now() + timedelta(days=expires_in_days) if expires_in_days else None,
                created_by=user.id,
            )
        )
        await self.repos.analytics.record(
            AnalyticsEventType.share_link_created.value,
            user_id=user.id,
            persona_run_id=persona_run_id,
            metadata={"has_password": bool(password), "expires_in_days": expires_in_days},
        )
        logger.info(f"Share link created for persona run {persona_run_id}")
        return link

    async def list_for_run(self, persona_run_id: str, user: CurrentUser) -> List[SharedLink]:
        await self._owned_run_id(persona_run_id, user)
        return await self.repos.shared_links.list_for_run(persona_run_id)

    async def deactivate(self, link_id: str, user: CurrentUser) -> SharedLink:
        link = await self.repos.shared_links.get_by_id(link_id)
        if link is None:
            raise NotFoundError("Share link not found")
        await self._owned_run_id(link.persona_run_id, user)
        link.is_active = False
        return await self.repos.shared_links.update(link)

    async def authorize(self, token: str, password: Optional[str], ip_address: str) -> SharedLink:
        """Check rate limit, link state and password; records failed attempts.

        Raises:
            RateLimitedError: Too many failed attempts from this IP for this token.
            NotFoundError: Unknown or inactive token.
            PermissionDeniedError: The link has expired.
            AuthenticationError: Password missing or wrong.
        """
        attempts = self.repos.shared_links
        since = utc_now() - timedelta(hours=1)
        if await attempts.count_failed_attempts(token, ip_address, since) >= self.config.max_failed_attempts:
            await attempts.record_attempt(token, ip_address, ShareAttemptType.verification.value, False)
            logger.warning(f"Share link rate limit hit from {ip_address}")
            raise RateLimitedError("Too many attempts. Please try again later.")

        link = await attempts.get_by_token(token)
        if link is None or not link.is_active:
            await attempts.record_attempt(token, ip_address, ShareAttemptType.verification.value, False)
            raise NotFoundError("Invalid or expired share link")

        if link.expires_at is not None and link.expires_at < utc_now():
            await attempts.record_attempt(token, ip_address, ShareAttemptType.verification.value, False)
            raise PermissionDeniedError("Share link has expired")

        if link.password_hash:
            if not password:
                raise AuthenticationError("Password required", details={"requires_password": True})
            if not verify_password(password, link.password_hash, self.config.pbkdf2_iterations):
                await attempts.record_attempt(token, ip_address, ShareAttemptType.password.value, False)
                raise AuthenticationError("Incorrect password")

        attempt_type = ShareAttemptType.password if password else ShareAttemptType.verification
        await attempts.record_attempt(token, ip_address, attempt_type.value, True)
        return link

    async def verify(self, token: str, password: Optional[str], ip_address: str) -> SharedPersonaRun:
        """Open a link: authorize, count the view and return the shared run."""
        link = await self.authorize(token, password, ip_address)
        link.view_count = (link.view_count or 0) + 1
        link = await self.repos.shared_links.update(link)

        run = await self.repos.persona_runs.get_by_id(link.persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        await self.repos.analytics.record(
            AnalyticsEventType.share_link_viewed.value,
            persona_run_id=run.id,
            metadata={"share_link_id": link.id},
        )
        return SharedPersonaRun(
            id=run.id,
            title=run.title,
            created_at=run.created_at,
            codexes=await load_codexes(self.repos, run.id),
        )
