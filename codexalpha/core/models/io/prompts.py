"""
Codex prompt catalog and questionnaire I/O models.

Admin-facing schemas for codex prompts, section prompts, dependencies,
question mappings, AI steps and prompt history, plus the questionnaire
catalog served to the public questionnaire form.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from codexalpha.core.models.domain.enums import AIExecutionMode, AIStepType, OptimizationTarget


class AIConfigInput(BaseModel):
    ai_execution_mode: Optional[AIExecutionMode] = Field(None, description="single, parallel_merge or sequential_chain")
    primary_provider_id: Optional[str] = None
    primary_model: Optional[str] = None
    merge_provider_id: Optional[str] = None
    merge_model: Optional[str] = None
    merge_instructions: Optional[str] = None


class CodexPromptCreate(AIConfigInput):
    """Schema for creating a codex prompt."""

    codex_name: str = Field(min_length=1, max_length=255)
    system_prompt: str = ""
    display_order: int = 0
    is_active: bool = True
    word_count_min: Optional[int] = Field(None, ge=0)
    word_count_max: Optional[int] = Field(None, ge=0)
    max_tokens: Optional[int] = Field(None, gt=0)
    depends_on_transcript: bool = False
    use_pricing_brackets: bool = False


class CodexPromptUpdate(AIConfigInput):
    """Schema for updating a codex prompt.

    Only provided fields are changed. The previous state is kept in the
    prompt history under ``change_description``.
    """

    codex_name: Optional[str] = Field(None, min_length=1, max_length=255)
    system_prompt: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
    word_count_min: Optional[int] = Field(None, ge=0)
    word_count_max: Optional[int] = Field(None, ge=0)
    max_tokens: Optional[int] = Field(None, gt=0)
    depends_on_transcript: Optional[bool] = None
    use_pricing_brackets: Optional[bool] = None
    change_description: Optional[str] = Field(None, max_length=500)


class CodexPromptRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    codex_name: str
    system_prompt: str
    display_order: int
    is_active: bool
    word_count_min: Optional[int] = None
    word_count_max: Optional[int] = None
    max_tokens: Optional[int] = None
    depends_on_transcript: bool
    use_pricing_brackets: bool
    ai_execution_mode: Optional[str] = None
    primary_provider_id: Optional[str] = None
    primary_model: Optional[str] = None
    merge_provider_id: Optional[str] = None
    merge_model: Optional[str] = None
    merge_instructions: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CodexSectionPromptCreate(AIConfigInput):
    section_name: str = Field(min_length=1, max_length=255)
    section_index: int = Field(0, ge=0)
    section_prompt: str = ""
    word_count_target: Optional[int] = Field(None, gt=0)
    is_active: bool = True


class CodexSectionPromptUpdate(AIConfigInput):
    section_name: Optional[str] = Field(None, min_length=1, max_length=255)
    section_index: Optional[int] = Field(None, ge=0)
    section_prompt: Optional[str] = None
    word_count_target: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class CodexSectionPromptRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    codex_prompt_id: str
    section_name: str
    section_index: int
    section_prompt: str
    word_count_target: Optional[int] = None
    is_active: bool
    ai_execution_mode: Optional[str] = None
    primary_provider_id: Optional[str] = None
    primary_model: Optional[str] = None
    merge_provider_id: Optional[str] = None
    merge_model: Optional[str] = None
    merge_instructions: Optional[str] = None


class CodexPromptDetail(CodexPromptRead):
    """A codex prompt with everything that configures it."""

    sections: List[CodexSectionPromptRead] = Field(default_factory=list)
    depends_on: List[str] = Field(default_factory=list, description="Codex prompt ids, in context order")
    question_ids: List[str] = Field(default_factory=list)
    steps: List["AIStepRead"] = Field(default_factory=list)


class DependenciesUpdate(BaseModel):
    depends_on_ids: List[str] = Field(default_factory=list, description="Ordered codex prompt ids")


class QuestionMappingsUpdate(BaseModel):
    question_ids: List[str] = Field(default_factory=list)


class AIStepInput(BaseModel):
    step_order: int = Field(0, ge=0)
    step_type: AIStepType = AIStepType.generate
    provider_id: Optional[str] = None
    model_name: Optional[str] = None
    custom_prompt: Optional[str] = None


class AIStepsUpdate(BaseModel):
    steps: List[AIStepInput] = Field(default_factory=list)


class AIStepRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    step_order: int
    step_type: str
    provider_id: Optional[str] = None
    model_name: Optional[str] = None
    custom_prompt: Optional[str] = None


class PromptHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    codex_prompt_id: str
    version_number: int
    snapshot: Dict[str, Any]
    change_description: Optional[str] = None
    changed_by: Optional[str] = None
    created_at: datetime


class QuestionnaireCategoryInput(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    display_order: int = 0
    is_active: bool = True


class QuestionnaireQuestionInput(BaseModel):
    category_id: str
    question_text: str = Field(min_length=1)
    helper_text: Optional[str] = None
    display_order: int = 0
    is_required: bool = True
    is_active: bool = True


class QuestionnaireQuestionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    category_id: str
    question_text: str
    helper_text: Optional[str] = None
    display_order: int
    is_required: bool
    is_active: bool


class QuestionnaireCategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    display_order: int
    is_active: bool
    questions: List[QuestionnaireQuestionRead] = Field(default_factory=list)


CodexPromptDetail.model_rebuild()


class TextOptimizeRequest(BaseModel):
    """Schema for asking the AI to rewrite a piece of admin prompt text."""

    text: str = Field(min_length=1, description="The text to improve")
    type: OptimizationTarget = Field(description="question, prompt, system_prompt, section_prompt or merge_prompt")


class TextOptimizeResult(BaseModel):
    success: bool = True
    optimized_text: str
