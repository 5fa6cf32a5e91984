"""
Generated codex and section entity models.

A codex is created per active codex prompt when a persona run starts; each of
its sections is generated by one AI call (or one multi-step AI pipeline).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from codexalpha.core.models.domain.enums import CodexStatus, SectionStatus

from ..base import Base, new_id, timestamp_field, utc_now


class CodexBase(Base):
    """Base fields for a generated codex."""

    persona_run_id: str = Field(foreign_key="persona_runs.id", index=True, max_length=36)
    codex_prompt_id: Optional[str] = Field(default=None, foreign_key="codex_prompts.id", max_length=36)
    codex_name: str = Field(max_length=255)
    codex_order: int = Field(default=0, description="Generation and display order within the run")
    status: str = Field(default=CodexStatus.not_started.value, max_length=32)
    total_sections: int = Field(default=0)
    completed_sections: int = Field(default=0)


class Codex(CodexBase, table=True):
    """Persistent codex. Table: codexes"""

    __tablename__ = "codexes"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Codex(id={self.id}, name={self.codex_name}, status={self.status})"


class CodexSectionBase(Base):
    """Base fields for a codex section."""

    codex_id: str = Field(foreign_key="codexes.id", index=True, max_length=36)
    section_index: int = Field(description="Zero-based position within the codex")
    section_name: str = Field(max_length=255)
    content: Optional[str] = Field(default=None)
    status: str = Field(default=SectionStatus.pending.value, max_length=32)
    retries: int = Field(default=0)
    regeneration_count: int = Field(default=0)
    last_regenerated_at: Optional[datetime] = timestamp_field(default=None)
    error_message: Optional[str] = Field(default=None)


class CodexSection(CodexSectionBase, table=True):
    """Persistent codex section. Table: codex_sections"""

    __tablename__ = "codex_sections"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"CodexSection(id={self.id}, index={self.section_index}, status={self.status})"
