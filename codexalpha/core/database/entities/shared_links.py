"""
Share link entity models.

A share link exposes one persona run read-only through an unguessable token,
optionally protected by a password. Every verification is recorded so failed
attempts can be rate limited per client IP.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, timestamp_field, utc_now


class SharedLink(Base, table=True):
    """Persistent share link. Table: shared_links"""

    __tablename__ = "shared_links"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    persona_run_id: str = Field(foreign_key="persona_runs.id", index=True, max_length=36)
    share_token: str = Field(index=True, unique=True, max_length=64)
    password_hash: Optional[str] = Field(default=None, description="PBKDF2 hash as salthex:hashhex")
    expires_at: Optional[datetime] = timestamp_field(default=None)
    is_active: bool = Field(default=True)
    view_count: int = Field(default=0)
    created_by: str = Field(max_length=64)
    created_at: datetime = timestamp_field(default_factory=utc_now)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def __repr__(self) -> str:
        return f"SharedLink(id={self.id}, persona_run_id={self.persona_run_id}, active={self.is_active})"


class ShareLinkAttempt(Base, table=True):
    """Recorded verification attempt. Table: share_link_attempts"""

    __tablename__ = "share_link_attempts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    share_token: str = Field(index=True, max_length=128)
    ip_address: str = Field(max_length=64)
    attempt_type: str = Field(max_length=16)
    success: bool = Field(default=False)
    created_at: datetime = timestamp_field(default_factory=utc_now, index=True)
