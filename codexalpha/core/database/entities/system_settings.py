"""System settings entity model (key/value store edited from the admin console)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, new_id, timestamp_field, utc_now


class SystemSetting(Base, table=True):
    """One setting; the value is any JSON document. Table: system_settings"""

    __tablename__ = "system_settings"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    setting_key: str = Field(index=True, unique=True, max_length=128)
    setting_value: Any = Field(default=None, sa_column=Column(JSON, nullable=True))
    description: Optional[str] = Field(default=None)
    updated_by: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
