"""
User-related entity models.

Identity lives in the external auth provider; these tables hold what the
application knows about a user: profile details, roles, blocks and the
unlimited-runs grant, plus pre-launch early signups.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base, new_id, timestamp_field, utc_now


class ProfileBase(Base):
    """Base fields for a user profile."""

    email: Optional[str] = Field(default=None, index=True, description="Email claim of the access token")
    full_name: Optional[str] = Field(default=None, description="Display name")
    first_name: Optional[str] = Field(default=None)
    last_name: Optional[str] = Field(default=None)
    batch: Optional[str] = Field(default=None, description="Cohort label used to group the leaderboard")
    photograph_url: Optional[str] = Field(default=None)


class Profile(ProfileBase, table=True):
    """Application profile of an authenticated user.

    The primary key is the ``sub`` claim of the user's access token.

    Table: profiles
    """

    __tablename__ = "profiles"

    id: str = Field(primary_key=True, max_length=64)
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def display_name(self) -> str:
        """Full name, else first + last name, else "Anonymous"."""
        if self.full_name:
            return self.full_name
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return "Anonymous"

    def __repr__(self) -> str:
        return f"Profile(id={self.id}, email={self.email})"


class UserRole(Base, table=True):
    """Role assignment. Table: user_roles"""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=64)
    role: str = Field(max_length=32, description="admin, moderator or user")
    created_at: datetime = timestamp_field(default_factory=utc_now)


class UserBlock(Base, table=True):
    """A blocked user may not create persona runs. Table: user_blocks"""

    __tablename__ = "user_blocks"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(index=True, unique=True, max_length=64)
    reason: Optional[str] = Field(default=None)
    blocked_by: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = timestamp_field(default_factory=utc_now)


class UserUnlimitedRuns(Base, table=True):
    """Grant lifting the one-run limit for a non-admin user. Table: user_unlimited_runs"""

    __tablename__ = "user_unlimited_runs"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(index=True, unique=True, max_length=64)
    granted_by: Optional[str] = Field(default=None, max_length=64)
    notes: Optional[str] = Field(default=None)
    created_at: datetime = timestamp_field(default_factory=utc_now)


class EarlySignup(Base, table=True):
    """Email captured by the public coming-soon page. Table: early_signups"""

    __tablename__ = "early_signups"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    email: str = Field(index=True, unique=True, max_length=320)
    source: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = timestamp_field(default_factory=utc_now)
