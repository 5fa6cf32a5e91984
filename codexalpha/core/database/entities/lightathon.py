"""
Lightathon entity models.

An enrollment ties a user to the "21 Days Lightathon" codex of one of their
persona runs; each of the 21 days is a progress row moving from locked to
unlocked to completed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from codexalpha.core.models.domain.enums import LightathonDayStatus

from ..base import Base, new_id, timestamp_field, utc_now


class LightathonEnrollment(Base, table=True):
    """Persistent enrollment. Table: lightathon_enrollments"""

    __tablename__ = "lightathon_enrollments"
    __table_args__ = (UniqueConstraint("user_id", "persona_run_id", name="uq_lightathon_user_run"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=64)
    persona_run_id: str = Field(foreign_key="persona_runs.id", max_length=36)
    codex_id: str = Field(foreign_key="codexes.id", max_length=36)
    is_active: bool = Field(default=True)
    started_by: Optional[str] = Field(default=None, max_length=64)
    started_at: datetime = timestamp_field(default_factory=utc_now)
    created_at: datetime = timestamp_field(default_factory=utc_now)


class LightathonDailyProgress(Base, table=True):
    """One day of an enrollment. Table: lightathon_daily_progress"""

    __tablename__ = "lightathon_daily_progress"
    __table_args__ = (UniqueConstraint("enrollment_id", "day_number", name="uq_lightathon_enrollment_day"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    enrollment_id: str = Field(foreign_key="lightathon_enrollments.id", index=True, max_length=36)
    day_number: int = Field()
    status: str = Field(default=LightathonDayStatus.locked.value, max_length=16)
    mission_title: str = Field(max_length=255)
    mission_content: str = Field(default="")
    user_reflection: Optional[str] = Field(default=None)
    unlocked_at: Optional[datetime] = timestamp_field(default=None)
    completed_at: Optional[datetime] = timestamp_field(default=None)
    created_at: datetime = timestamp_field(default_factory=utc_now)
    updated_at: datetime = timestamp_field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
