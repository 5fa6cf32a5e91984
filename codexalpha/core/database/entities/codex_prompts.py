"""
Codex prompt catalog entity models.

The catalog is managed from the admin console and describes what gets
generated: one codex prompt per codex, ordered section prompts, the AI
configuration used for each, dependencies between codexes, the questionnaire
questions a codex reads, and a version history of every edit.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field

from codexalpha.core.models.domain.enums import AIExecutionMode, AIStepType

from ..base import Base, new_id, timestamp_field, utc_now


class AIConfigFields(Base):
    """AI configuration shared by codex prompts and section prompts."""

    ai_execution_mode: Optional[str] = Field(default=None, max_length=32)
    primary_provider_id: Optional[str] = Field(default=None, max_length=36)
    primary_model: Optional[str] = Field(default=None, max_length=128)
    merge_provider_id: Optional[str] = Field(default=None, max_length=36)
    merge_model: Optional[str] = Field(default=None, max_length=128)
    merge_instructions: Optional[str] = Field(default=None)


class CodexPromptBase(AIConfigFields):
    """Base fields for a codex prompt."""

    codex_name: str = Field(max_length=255)
    system_prompt: str = Field(default="")
    display_order: int = Field(default=0)
    is_active: bool = Field(default=True)
    word_count_min: Optional[int] = Field(default=None)
    word_count_max: Optional[int] = Field(default=None)
    max_tokens: Optional[int] = Field(default=None)
    depends_on_transcript: bool = Field(default=False)
    use_pricing_brackets: bool = Field(default=False)


class CodexPrompt(CodexPromptBase, table=True):
    """Persistent codex prompt. Table: codex_prompts"""

    __tablename__ = "codex_prompts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def execution_mode(self) -> AIExecutionMode:
        return AIExecutionMode(self.ai_execution_mode or AIExecutionMode.single.value)

    def __repr__(self) -> str:
        return f"CodexPrompt(id={self.id}, name={self.codex_name}, active={self.is_active})"


class CodexSectionPromptBase(AIConfigFields):
    """Base fields for a section prompt.

    AI configuration left empty falls back to the owning codex prompt.
    """

    codex_prompt_id: str = Field(foreign_key="codex_prompts.id", index=True, max_length=36)
    section_name: str = Field(max_length=255)
    section_index: int = Field(default=0)
    section_prompt: str = Field(default="")
    word_count_target: Optional[int] = Field(default=None)
    is_active: bool = Field(default=True)


class CodexSectionPrompt(CodexSectionPromptBase, table=True):
    """Persistent section prompt. Table: codex_section_prompts"""

    __tablename__ = "codex_section_prompts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def has_own_ai_config(self) -> bool:
        return bool(self.ai_execution_mode or self.primary_provider_id or self.primary_model)


class CodexPromptDependency(Base, table=True):
    """Codex whose generated content feeds another codex. Table: codex_prompt_dependencies"""

    __tablename__ = "codex_prompt_dependencies"
    __table_args__ = (
        UniqueConstraint("codex_prompt_id", "depends_on_codex_prompt_id", name="uq_codex_prompt_dependency"),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    codex_prompt_id: str = Field(foreign_key="codex_prompts.id", index=True, max_length=36)
    depends_on_codex_prompt_id: str = Field(foreign_key="codex_prompts.id", max_length=36)
    display_order: int = Field(default=0)


class CodexQuestionMapping(Base, table=True):
    """Questionnaire question whose answer a codex reads. Table: codex_question_mappings"""

    __tablename__ = "codex_question_mappings"
    __table_args__ = (UniqueConstraint("codex_prompt_id", "question_id", name="uq_codex_question_mapping"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    codex_prompt_id: str = Field(foreign_key="codex_prompts.id", index=True, max_length=36)
    question_id: str = Field(foreign_key="questionnaire_questions.id", max_length=36)


class AIStepFields(Base):
    step_order: int = Field(default=0)
    step_type: str = Field(default=AIStepType.generate.value, max_length=16)
    provider_id: Optional[str] = Field(default=None, max_length=36)
    model_name: Optional[str] = Field(default=None, max_length=128)
    custom_prompt: Optional[str] = Field(default=None)


class CodexAIStep(AIStepFields, table=True):
    """Codex-level multi-step AI configuration. Table: codex_ai_steps"""

    __tablename__ = "codex_ai_steps"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    codex_prompt_id: str = Field(foreign_key="codex_prompts.id", index=True, max_length=36)


class CodexSectionAIStep(AIStepFields, table=True):
    """Section-level multi-step AI configuration. Table: codex_section_ai_steps"""

    __tablename__ = "codex_section_ai_steps"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    section_prompt_id: str = Field(foreign_key="codex_section_prompts.id", index=True, max_length=36)


class CodexPromptHistory(Base, table=True):
    """Snapshot of a codex prompt and its sections taken before each edit.

    Table: codex_prompts_history
    """

    __tablename__ = "codex_prompts_history"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    codex_prompt_id: str = Field(foreign_key="codex_prompts.id", index=True, max_length=36)
    version_number: int = Field(default=1)
    snapshot: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    change_description: Optional[str] = Field(default=None)
    changed_by: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = timestamp_field(default_factory=utc_now)
