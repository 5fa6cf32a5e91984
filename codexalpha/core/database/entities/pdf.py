"""
PDF template and export entity models.

The active template controls the look of every exported PDF; exports are
recorded for the admin dashboard.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, new_id, timestamp_field, utc_now


class PdfTemplateBase(Base):
    """Base fields for a PDF template."""

    name: str = Field(default="Default", max_length=128)
    is_active: bool = Field(default=True)
    company_name: Optional[str] = Field(default=None, max_length=255)
    header_text: Optional[str] = Field(default=None)
    footer_text: Optional[str] = Field(default=None)
    show_header: bool = Field(default=True)
    show_footer: bool = Field(default=True)
    show_page_numbers: bool = Field(default=True)
    show_cover_page: bool = Field(default=True)
    show_toc: bool = Field(default=True)
    margin_top: float = Field(default=20.0, description="Millimetres")
    margin_bottom: float = Field(default=20.0, description="Millimetres")
    margin_left: float = Field(default=20.0, description="Millimetres")
    margin_right: float = Field(default=20.0, description="Millimetres")
    title_font_size: float = Field(default=24.0)
    heading_font_size: float = Field(default=16.0)
    body_font_size: float = Field(default=11.0)


class PdfTemplate(PdfTemplateBase, table=True):
    """Persistent PDF template. Colours are ``[r, g, b]`` lists with 0-255 ints.

    Table: pdf_templates
    """

    __tablename__ = "pdf_templates"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    primary_color: List[int] = Field(default_factory=lambda: [37, 99, 235], sa_column=Column(JSON, nullable=False))
    heading_color: List[int] = Field(default_factory=lambda: [17, 24, 39], sa_column=Column(JSON, nullable=False))
    text_color: List[int] = Field(default_factory=lambda: [55, 65, 81], sa_column=Column(JSON, nullable=False))
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})


class PdfExport(Base, table=True):
    """Record of a generated PDF or ZIP. Table: pdf_exports"""

    __tablename__ = "pdf_exports"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: Optional[str] = Field(default=None, max_length=64)
    persona_run_id: str = Field(index=True, max_length=36)
    codex_id: Optional[str] = Field(default=None, max_length=36)
    export_type: str = Field(max_length=16, description="codex, master or zip")
    file_name: str = Field(max_length=255)
    created_at: datetime = timestamp_field(default_factory=utc_now)
