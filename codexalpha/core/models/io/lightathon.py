"""
Lightathon I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LightathonStart(BaseModel):
    """Schema for an admin starting a Lightathon for a user's run."""

    user_id: str
    persona_run_id: str


class LightathonDayComplete(BaseModel):
    reflection: str = Field(min_length=1, description="What the participant did and learned today")


class LightathonDayRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    enrollment_id: str
    day_number: int
    status: str
    mission_title: str
    mission_content: str
    user_reflection: Optional[str] = None
    unlocked_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class LightathonEnrollmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    persona_run_id: str
    codex_id: str
    is_active: bool
    started_by: Optional[str] = None
    started_at: datetime


class LightathonEnrollmentDetail(LightathonEnrollmentRead):
    days: List[LightathonDayRead] = Field(default_factory=list)


class LightathonUnlockResult(BaseModel):
    unlocked_count: int
    skipped_count: int
    total_enrollments: int


class LeaderboardEntry(BaseModel):
    user_id: str
    display_name: str
    batch: str
    photograph_url: Optional[str] = None
    days_completed: int
    current_streak: int
    longest_streak: int


class LeaderboardBatch(BaseModel):
    batch: str
    entries: List[LeaderboardEntry]
