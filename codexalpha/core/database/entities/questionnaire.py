"""Questionnaire catalog entity models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, timestamp_field, utc_now


class QuestionnaireCategory(Base, table=True):
    """Group of questions shown together. Table: questionnaire_categories"""

    __tablename__ = "questionnaire_categories"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None)
    display_order: int = Field(default=0)
    is_active: bool = Field(default=True)
    created_at: datetime = timestamp_field(default_factory=utc_now)


class QuestionnaireQuestion(Base, table=True):
    """A question; its id is the key of the answer in ``persona_runs.answers``.

    Table: questionnaire_questions
    """

    __tablename__ = "questionnaire_questions"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    category_id: str = Field(foreign_key="questionnaire_categories.id", index=True, max_length=36)
    question_text: str = Field()
    helper_text: Optional[str] = Field(default=None)
    display_order: int = Field(default=0)
    is_required: bool = Field(default=True)
    is_active: bool = Field(default=True)
    created_at: datetime = timestamp_field(default_factory=utc_now)
