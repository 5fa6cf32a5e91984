"""
Persona run I/O models for API requests and responses.

Runs are returned either as a summary (listing) or with their codexes and
sections (detail view, shared view).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PersonaRunCreate(BaseModel):
    """Schema for creating a persona run from questionnaire answers."""

    title: Optional[str] = Field(default=None, description="Run title, defaults to 'My Coach Persona'")
    answers: Dict[str, Any] = Field(description="Answers keyed by question id")


class TranscriptRunCreate(BaseModel):
    """Schema for creating a persona run from a coaching call transcript."""

    transcript_text: str = Field(min_length=1, description="Plain text transcript")
    target_user_id: Optional[str] = Field(default=None, description="Admins may create a run for another user")


class PersonaRunCreated(BaseModel):
    success: bool = True
    persona_run_id: str
    codexes_count: int = 0


class TranscriptExtraction(BaseModel):
    """What the AI managed to pull out of a transcript."""

    backstory_answers: List[str] = Field(default_factory=list)
    anchor_answers: List[str] = Field(default_factory=list)
    extraction_confidence: str = "low"
    missing_questions: List[int] = Field(default_factory=list)
    notes: str = ""


class TranscriptRunCreated(PersonaRunCreated):
    extraction: TranscriptExtraction


class PersonaRunRead(BaseModel):
    """Schema for reading a persona run summary."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    status: str
    source_type: str
    is_cancelled: bool
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CodexSectionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    codex_id: str
    section_index: int
    section_name: str
    content: Optional[str] = None
    status: str
    retries: int = 0
    regeneration_count: int = 0
    last_regenerated_at: Optional[datetime] = None
    error_message: Optional[str] = None
    updated_at: datetime


class CodexRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    persona_run_id: str
    codex_prompt_id: Optional[str] = None
    codex_name: str
    codex_order: int
    status: str
    total_sections: int
    completed_sections: int
    sections: List[CodexSectionRead] = Field(default_factory=list)


class PersonaRunDetail(PersonaRunRead):
    """A run with its answers, codexes and sections."""

    answers: Dict[str, Any] = Field(default_factory=dict)
    original_transcript: Optional[str] = None
    codexes: List[CodexRead] = Field(default_factory=list)


class SharedPersonaRun(BaseModel):
    """Run content exposed through a verified share link."""

    id: str
    title: str
    created_at: datetime
    codexes: List[CodexRead] = Field(default_factory=list)


class RetryRequest(BaseModel):
    persona_run_id: Optional[str] = None


class RetryResult(BaseModel):
    total: int
    retried: int
    failed: int
    persona_run_ids: List[str] = Field(default_factory=list)


class PersonaRunAdminUpdate(BaseModel):
    """Fields an admin may correct on an existing run."""

    title: Optional[str] = Field(default=None, description="New run title (1-200 characters)")
    answers: Optional[Dict[str, Any]] = Field(default=None, description="Replacement answers keyed by question id")


class CodexResyncResult(BaseModel):
    """What a resync added to a run."""

    persona_run_id: str
    added_codexes: int = 0
    updated_codexes: int = 0
    added_sections: int = 0


class RunRegenerationStarted(BaseModel):
    persona_run_id: str
    reset_sections: int = 0


class TriggerGeneration(BaseModel):
    codex_id: Optional[str] = Field(default=None, description="Codex to generate first")
