"""Analytics event entity model."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, new_id, timestamp_field, utc_now


class AnalyticsEvent(Base, table=True):
    """Product analytics event. Table: analytics_events"""

    __tablename__ = "analytics_events"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    event_type: str = Field(index=True, max_length=64)
    user_id: Optional[str] = Field(default=None, max_length=64)
    persona_run_id: Optional[str] = Field(default=None, max_length=36)
    codex_id: Optional[str] = Field(default=None, max_length=36)
    event_metadata: Dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON, nullable=False))
    created_at: datetime = timestamp_field(default_factory=utc_now, index=True)
