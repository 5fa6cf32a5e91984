"""
21 Days Lightathon.

An admin enrolls a user against one of their persona runs; the run's
"21 Days Lightathon" codex is split into daily missions. Days unlock one at a
time through the daily unlock job and are completed with a reflection.
"""

from __future__ import annotations

import re
from typing import Dict, List, Sequence, Tuple

from codexalpha.core.database.base import utc_now
from codexalpha.core.database.entities.codexes import CodexSection
from codexalpha.core.database.entities.lightathon import LightathonDailyProgress, LightathonEnrollment
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import AnalyticsEventType, LightathonDayStatus, SectionStatus
from codexalpha.core.models.io.lightathon import (
    LeaderboardBatch,
    LeaderboardEntry,
    LightathonDayRead,
    LightathonEnrollmentDetail,
    LightathonUnlockResult,
)
from codexalpha.server.core import constant
from codexalpha.server.core.security import CurrentUser

logger = get_logger(__name__)

UNASSIGNED_BATCH = "Unassigned"


def _day_pattern(day: int) -> re.Pattern:
    return re.compile(
        rf"(?:^|\n)(?:#+\s*)?Day\s*{day}[:\s-]([\s\S]*?)(?=(?:\n(?:#+\s*)?Day\s*\d|\Z))",
        re.IGNORECASE,
    )


def extract_mission(day: int, sections: Sequence[CodexSection]) -> Tuple[str, str]:
    """(title, content) of a day's mission from the completed codex sections."""
    for section in sections:
        match = _day_pattern(day).search(section.content or "")
        if match:
            content = match.group(1).strip()
            first_line = content.split("\n", 1)[0] if content else ""
            title = f"Day {day}: {first_line[:100]}" if first_line else f"Day {day} Mission"
            if content:
                return title, content
    if day - 1 < len(sections):
        section = sections[day - 1]
        if section.content:
            return f"Day {day}: {section.section_name or 'Mission'}", section.content
    return f"Day {day} Mission", f"Complete your Day {day} Lightathon exercise."


def streaks(completed_days: Sequence[int]) -> Tuple[int, int]:
    """(current, longest) streak of consecutive completed days.

    The current streak counts back from the highest completed day.
    """
    days = sorted(set(completed_days))
    if not days:
        return 0, 0
    longest = run = 1
    for prev, day in zip(days, days[1:]):
        run = run + 1 if day == prev + 1 else 1
        longest = max(longest, run)
    current = 1
    for idx in range(len(days) - 1, 0, -1):
        if days[idx] - 1 != days[idx - 1]:
            break
        current += 1
    return current, longest


class LightathonService:
    """Enrollment lifecycle, daily progress and the leaderboard."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def start(self, user_id: str, persona_run_id: str, admin: CurrentUser) -> LightathonEnrollment:
        """Enroll a user: 21 progress rows, day 1 unlocked now.

        Raises:
            ValidationError: The user is already enrolled for this run.
            NotFoundError: The run has no "21 Days Lightathon" codex.
        """
        if await self.repos.lightathon.find_enrollment(user_id, persona_run_id) is not None:
            raise ValidationError("User already enrolled in Lightathon for this persona run")
        run = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None or run.user_id != user_id:
            raise NotFoundError("Persona run not found for this user")
        codex = await self.repos.codexes.find_by_name(persona_run_id, constant.LIGHTATHON_CODEX_MARKER)
        if codex is None:
            raise NotFoundError("21 Days Lightathon codex not found for this persona run")

        sections = [
            s
            for s in await self.repos.sections.list_for_codex(codex.id)
            if s.status == SectionStatus.completed.value and s.content
        ]
        enrollment = await self.repos.lightathon.create(
            LightathonEnrollment(user_id=user_id, persona_run_id=persona_run_id, codex_id=codex.id, started_by=admin.id)
        )
        now = utc_now()
        days = []
        for day in range(1, constant.LIGHTATHON_TOTAL_DAYS + 1):
            title, content = extract_mission(day, sections)
            days.append(
                LightathonDailyProgress(
                    enrollment_id=enrollment.id,
                    day_number=day,
                    mission_title=title,
                    mission_content=content,
                    status=LightathonDayStatus.unlocked.value if day == 1 else LightathonDayStatus.locked.value,
                    unlocked_at=now if day == 1 else None,
                )
            )
        await self.repos.lightathon.add_all(days)
        await self.repos.admin_activity.record(
            admin.id, "start_lightathon", target_user_id=user_id, details={"persona_run_id": persona_run_id}
        )
        logger.info(f"Lightathon started for user {user_id} on run {persona_run_id}")
        return enrollment

    async def unlock_next_days(self) -> LightathonUnlockResult:
        """Unlock the next day of every active enrollment that has no open day."""
        enrollments = await self.repos.lightathon.list_enrollments(active_only=True)
        unlocked = skipped = 0
        for enrollment in enrollments:
            progress = await self.repos.lightathon.list_progress(enrollment.id)
            if any(p.status == LightathonDayStatus.unlocked.value for p in progress):
                skipped += 1
                continue
            completed = [p.day_number for p in progress if p.status == LightathonDayStatus.completed.value]
            next_day = max(completed) + 1 if completed else 1
            if next_day > constant.LIGHTATHON_TOTAL_DAYS:
                enrollment.is_active = False
                await self.repos.lightathon.update(enrollment)
                skipped += 1
                continue
            row = next((p for p in progress if p.day_number == next_day), None)
            if row is None:
                skipped += 1
                continue
            row.status = LightathonDayStatus.unlocked.value
            row.unlocked_at = utc_now()
            self.repos.session.add(row)
            await self.repos.session.commit()
            unlocked += 1
        logger.info(f"Lightathon unlock: {unlocked} unlocked, {skipped} skipped of {len(enrollments)}")
        return LightathonUnlockResult(
            unlocked_count=unlocked, skipped_count=skipped, total_enrollments=len(enrollments)
        )

    async def detail(self, enrollment: LightathonEnrollment) -> LightathonEnrollmentDetail:
        progress = await self.repos.lightathon.list_progress(enrollment.id)
        result = LightathonEnrollmentDetail.model_validate(enrollment)
        return result.model_copy(update={"days": [LightathonDayRead.model_validate(p) for p in progress]})

    async def my_enrollments(self, user: CurrentUser) -> List[LightathonEnrollmentDetail]:
        return [await self.detail(e) for e in await self.repos.lightathon.list_for_user(user.id)]

    async def complete_day(self, enrollment_id: str, day_number: int, reflection: str, user: CurrentUser):
        """Complete an unlocked day of the caller's own enrollment."""
        enrollment = await self.repos.lightathon.get_by_id(enrollment_id)
        if enrollment is None:
            raise NotFoundError("Enrollment not found")
        if enrollment.user_id != user.id:
            raise PermissionDeniedError("Unauthorized")
        reflection = (reflection or "").strip()
        if not reflection:
            raise ValidationError("A reflection is required to complete the day")
        day = await self.repos.lightathon.get_day(enrollment_id, day_number)
        if day is None:
            raise NotFoundError("Day not found")
        if day.status != LightathonDayStatus.unlocked.value:
            raise ValidationError(f"Day {day_number} is {day.status} and cannot be completed")
        day.status = LightathonDayStatus.completed.value
        day.user_reflection = reflection
        day.completed_at = utc_now()
        self.repos.session.add(day)
        await self.repos.session.commit()
        await self.repos.session.refresh(day)
        await self.repos.analytics.record(
            AnalyticsEventType.lightathon_day_completed.value,
            user_id=user.id,
            persona_run_id=enrollment.persona_run_id,
            codex_id=enrollment.codex_id,
            metadata={"day_number": day_number},
        )
        return day

    async def leaderboard(self) -> List[LeaderboardBatch]:
        enrollments = await self.repos.lightathon.list_enrollments()
        progress = await self.repos.lightathon.list_all_progress([e.id for e in enrollments])
        completed_by_user: Dict[str, List[int]] = {}
        owner = {e.id: e.user_id for e in enrollments}
        for e in enrollments:
            completed_by_user.setdefault(e.user_id, [])
        for p in progress:
            if p.status == LightathonDayStatus.completed.value:
                completed_by_user[owner[p.enrollment_id]].append(p.day_number)

        profiles = await self.repos.profiles.get_many(set(completed_by_user))
        batches: Dict[str, List[LeaderboardEntry]] = {}
        for user_id, days in completed_by_user.items():
            profile = profiles.get(user_id)
            current, longest = streaks(days)
            batch = (profile.batch if profile and profile.batch else None) or UNASSIGNED_BATCH
            batches.setdefault(batch, []).append(
                LeaderboardEntry(
                    user_id=user_id,
                    display_name=profile.display_name if profile else "Anonymous",
                    batch=batch,
                    photograph_url=profile.photograph_url if profile else None,
                    days_completed=len(set(days)),
                    current_streak=current,
                    longest_streak=longest,
                )
            )
        return [
            LeaderboardBatch(
                batch=name,
                entries=sorted(entries, key=lambda e: (-e.days_completed, -e.current_streak, -e.longest_streak)),
            )
            for name, entries in sorted(batches.items())
        ]

    async def list_enrollments(self) -> List[LightathonEnrollmentDetail]:
        return [await self.detail(e) for e in await self.repos.lightathon.list_enrollments()]

    async def deactivate(self, enrollment_id: str, admin: CurrentUser) -> LightathonEnrollment:
        enrollment = await self.repos.lightathon.get_by_id(enrollment_id)
        if enrollment is None:
            raise NotFoundError("Enrollment not found")
        enrollment.is_active = False
        enrollment = await self.repos.lightathon.update(enrollment)
        await self.repos.admin_activity.record(
            admin.id,
            "deactivate_lightathon",
            target_user_id=enrollment.user_id,
            details={"enrollment_id": enrollment_id},
        )
        return enrollment

