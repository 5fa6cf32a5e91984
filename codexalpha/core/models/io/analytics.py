"""
Analytics and AI usage I/O models for the admin dashboard.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalyticsEventCreate(BaseModel):
    """Schema for recording an analytics event from the client."""

    event_type: str = Field(min_length=1, max_length=64, description="Event name, e.g. codex_viewed")
    persona_run_id: Optional[str] = None
    codex_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AnalyticsEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_type: str
    user_id: Optional[str] = None
    persona_run_id: Optional[str] = None
    codex_id: Optional[str] = None
    event_metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class GenerationMetrics(BaseModel):
    total_runs: int
    completed_runs: int
    avg_completion_ms: Optional[float] = Field(None, description="Mean started_at to completed_at, milliseconds")
    avg_completion_minutes: Optional[float] = None


class CodexStats(BaseModel):
    codex_name: str
    total: int = 0
    completed: int = 0
    generating: int = 0
    failed: int = 0


class RegenerationStats(BaseModel):
    total_regenerations: int
    sections_regenerated: int
    avg_regenerations_per_section: float


class ShareStats(BaseModel):
    total_links: int
    active_links: int
    total_views: int
    with_password: int


class UserGrowthPoint(BaseModel):
    date: str
    count: int


class AnalyticsOverview(BaseModel):
    """Everything the admin analytics page shows."""

    generation: GenerationMetrics
    codex_stats: List[CodexStats]
    event_counts: Dict[str, int]
    regeneration: RegenerationStats
    sharing: ShareStats
    user_growth: List[UserGrowthPoint]


class UsageBucket(BaseModel):
    key: str
    calls: int = 0
    total_tokens: int = 0
    estimated_cost: float = 0.0


class UsageSummary(BaseModel):
    total_calls: int
    successful_calls: int
    failed_calls: int
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    estimated_cost: float
    by_model: List[UsageBucket]
    by_function: List[UsageBucket]
    by_provider: List[UsageBucket]
