"""
AI usage log entity model.

One row per AI call, with token counts and the estimated cost used by the
admin usage dashboard.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, timestamp_field, utc_now


class AIUsageLog(Base, table=True):
    """Persistent AI usage record. Table: ai_usage_logs"""

    __tablename__ = "ai_usage_logs"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: Optional[str] = Field(default=None, index=True, max_length=64)
    function_name: str = Field(max_length=64, description="Operation that made the call")
    model: str = Field(max_length=128)
    provider_code: Optional[str] = Field(default=None, max_length=32)
    execution_mode: Optional[str] = Field(default=None, max_length=32)
    prompt_tokens: int = Field(default=0)
    completion_tokens: int = Field(default=0)
    total_tokens: int = Field(default=0)
    estimated_cost: float = Field(default=0.0)
    persona_run_id: Optional[str] = Field(default=None, index=True, max_length=36)
    codex_id: Optional[str] = Field(default=None, max_length=36)
    parent_run_id: Optional[str] = Field(default=None, max_length=36)
    status: str = Field(default="success", max_length=16)
    error_message: Optional[str] = Field(default=None)
    created_at: datetime = timestamp_field(default_factory=utc_now, index=True)
