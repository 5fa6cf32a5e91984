"""
AI provider entity models.

Providers are OpenAI-compatible chat completion endpoints configured by an
admin. Keys are stored separately so a key can be rotated without touching
the provider row.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, new_id, timestamp_field, utc_now


class AIProviderBase(Base):
    """Base fields for an AI provider."""

    name: str = Field(max_length=128)
    provider_code: str = Field(max_length=32, description="openai, deepseek or perplexity")
    base_url: Optional[str] = Field(default=None, max_length=512)
    default_model: Optional[str] = Field(default=None, max_length=128)
    is_active: bool = Field(default=True)
    is_default: bool = Field(default=False)


class AIProvider(AIProviderBase, table=True):
    """Persistent AI provider. Table: ai_providers"""

    __tablename__ = "ai_providers"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    available_models: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"AIProvider(id={self.id}, code={self.provider_code}, active={self.is_active})"


class AIProviderKey(Base, table=True):
    """API key of a provider; at most one active key per provider. Table: ai_provider_keys"""

    __tablename__ = "ai_provider_keys"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    provider_id: str = Field(foreign_key="ai_providers.id", index=True, max_length=36)
    api_key: str = Field()
    is_active: bool = Field(default=True)
    last_tested_at: Optional[datetime] = timestamp_field(default=None)
    test_status: Optional[str] = Field(default=None, max_length=16)
    created_at: datetime = timestamp_field(default_factory=utc_now)

    @property
    def masked_key(self) -> str:
        if len(self.api_key) <= 8:
            return "****"
        return f"{self.api_key[:4]}...{self.api_key[-4:]}"
