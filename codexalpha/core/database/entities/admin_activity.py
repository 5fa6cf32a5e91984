"""Admin activity log entity model."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, new_id, timestamp_field, utc_now


class AdminActivityLog(Base, table=True):
    """Audit trail of admin console mutations. Table: admin_activity_log"""

    __tablename__ = "admin_activity_log"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    admin_id: str = Field(index=True, max_length=64)
    action: str = Field(max_length=64)
    target_user_id: Optional[str] = Field(default=None, max_length=64)
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = timestamp_field(default_factory=utc_now, index=True)
