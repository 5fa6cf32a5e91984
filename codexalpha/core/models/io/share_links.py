"""
Share link I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .persona_runs import SharedPersonaRun


class ShareLinkCreate(BaseModel):
    """Schema for creating a share link for a persona run."""

    persona_run_id: str = Field(description="Run to share")
    password: Optional[str] = Field(default=None, min_length=1, max_length=100, description="Optional password")
    expires_in_days: Optional[int] = Field(default=None, ge=1, le=365, description="Days until the link expires")


class ShareLinkCreated(BaseModel):
    success: bool = True
    share_token: str
    share_url: str
    expires_at: Optional[datetime] = None


class ShareLinkRead(BaseModel):
    """Schema for reading a share link; the password hash is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    persona_run_id: str
    share_token: str
    has_password: bool
    expires_at: Optional[datetime] = None
    is_active: bool
    view_count: int
    created_at: datetime


class ShareLinkVerify(BaseModel):
    """Schema for opening a share link."""

    share_token: str = Field(min_length=1, max_length=200)
    password: Optional[str] = Field(default=None, min_length=1, max_length=100)


class ShareLinkVerified(BaseModel):
    persona_run: SharedPersonaRun
