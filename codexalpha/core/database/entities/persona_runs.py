"""
Persona run entity model.

A persona run is one user's questionnaire submission (or transcript) and the
batch of codexes generated from it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from codexalpha.core.models.domain.enums import PersonaRunSource, PersonaRunStatus

from ..base import Base, new_id, timestamp_field, utc_now


class PersonaRunBase(Base):
    """Base fields for a persona run."""

    user_id: str = Field(index=True, max_length=64, description="Owner of the run")
    title: str = Field(max_length=200)
    status: str = Field(default=PersonaRunStatus.pending.value, max_length=32)
    source_type: str = Field(default=PersonaRunSource.questionnaire.value, max_length=32)
    original_transcript: Optional[str] = Field(default=None)
    is_cancelled: bool = Field(default=False)
    started_at: Optional[datetime] = timestamp_field(default=None)
    completed_at: Optional[datetime] = timestamp_field(default=None)


class PersonaRun(PersonaRunBase, table=True):
    """Persistent persona run.

    ``answers`` maps a question key to either the raw answer string or an
    object with ``question``, ``answer`` and optional ``category``.

    Table: persona_runs
    """

    __tablename__ = "persona_runs"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    answers: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"PersonaRun(id={self.id}, user_id={self.user_id}, status={self.status})"
