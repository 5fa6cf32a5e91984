"""
Admin console, profile and settings I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from codexalpha.core.models.domain.enums import AppRole


class AdminUserRead(BaseModel):
    """A user as listed in the admin console."""

    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    display_name: str
    batch: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    is_blocked: bool = False
    has_unlimited_runs: bool = False
    run_count: int = 0
    created_at: datetime


class RoleChange(BaseModel):
    role: AppRole


class BlockRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class UnlimitedRunsGrant(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class AdminActionResult(BaseModel):
    success: bool = True
    changed: bool = Field(description="False when the user was already in the requested state")


class AdminActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    admin_id: str
    action: str
    target_user_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class AIProviderCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    provider_code: str = Field(description="openai, deepseek or perplexity")
    base_url: Optional[str] = Field(None, max_length=512)
    default_model: Optional[str] = Field(None, max_length=128)
    is_active: bool = True
    is_default: bool = False
    api_key: Optional[str] = Field(None, description="Stored as the provider's active key")


class AIProviderUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    provider_code: Optional[str] = None
    base_url: Optional[str] = Field(None, max_length=512)
    default_model: Optional[str] = Field(None, max_length=128)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    available_models: Optional[List[str]] = None


class AIProviderRead(BaseModel):
    """Provider as shown to admins. Keys are never returned."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    provider_code: str
    base_url: Optional[str] = None
    default_model: Optional[str] = None
    is_active: bool
    is_default: bool
    available_models: List[str] = Field(default_factory=list)
    has_active_key: bool = False
    last_tested_at: Optional[datetime] = None
    test_status: Optional[str] = None
    created_at: datetime


class ProviderKeyInput(BaseModel):
    api_key: str = Field(min_length=1)


class ProviderTestResult(BaseModel):
    success: bool
    message: str
    model: Optional[str] = None
    response: Optional[str] = None


class SettingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    setting_key: str
    setting_value: Any = None
    description: Optional[str] = None
    updated_by: Optional[str] = None
    updated_at: datetime


class SettingUpsert(BaseModel):
    value: Any = Field(description="Any JSON value; well-known keys are validated")


class PdfTemplateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_active: bool
    company_name: Optional[str] = None
    header_text: Optional[str] = None
    footer_text: Optional[str] = None
    show_header: bool
    show_footer: bool
    show_page_numbers: bool
    show_cover_page: bool
    show_toc: bool
    margin_top: float
    margin_bottom: float
    margin_left: float
    margin_right: float
    title_font_size: float
    heading_font_size: float
    body_font_size: float
    primary_color: List[int]
    heading_color: List[int]
    text_color: List[int]


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    batch: Optional[str] = None
    photograph_url: Optional[str] = None
    display_name: str
    roles: List[str] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    batch: Optional[str] = Field(None, max_length=255)
    photograph_url: Optional[str] = Field(None, max_length=2048)


class EarlySignupCreate(BaseModel):
    email: str = Field(max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    source: Optional[str] = Field(None, max_length=64)


class EarlySignupResult(BaseModel):
    success: bool
    already_registered: bool = False
