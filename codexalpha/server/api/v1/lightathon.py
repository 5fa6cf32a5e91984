"""
Lightathon API Endpoints.

The 21 day Lightathon turns the "21 Days Lightathon" codex of a persona run
into one mission per day. Admins enroll users and a daily job unlocks the next
day once the previous one is completed; participants complete days with a
reflection and compete on a leaderboard grouped by batch.
"""

from typing import List

from fastapi import APIRouter, Path, status

from codexalpha.core.models.io.lightathon import (
    LeaderboardBatch,
    LightathonDayComplete,
    LightathonDayRead,
    LightathonEnrollmentDetail,
    LightathonEnrollmentRead,
    LightathonStart,
    LightathonUnlockResult,
)
from codexalpha.server.core import constant
from codexalpha.server.core.security import AdminUserDep, CurrentUserDep
from codexalpha.server.services.deps import LightathonDep

router = APIRouter(tags=["lightathon"])


@router.get(
    "/me",
    response_model=List[LightathonEnrollmentDetail],
    summary="My Lightathon",
    description="The caller's Lightathon enrollments with all 21 days.",
    response_description="Enrollments with their days.",
)
async def my_lightathon(user: CurrentUserDep, lightathon: LightathonDep) -> List[LightathonEnrollmentDetail]:
    """
    Get the caller's Lightathon enrollments.

    Locked days still show their mission title; the mission content is only
    meant to be shown once the day is unlocked.
    """
    return await lightathon.my_enrollments(user)


@router.post(
    "/enrollments/{enrollment_id}/days/{day_number}/complete",
    response_model=LightathonDayRead,
    summary="Complete Day",
    description="Complete an unlocked day of the caller's enrollment with a reflection.",
    response_description="The completed day.",
    responses={
        400: {"description": "Empty reflection or day not unlocked"},
        403: {"description": "Enrollment belongs to another user"},
        404: {"description": "Enrollment or day not found"},
    },
)
async def complete_day(
    enrollment_id: str,
    body: LightathonDayComplete,
    user: CurrentUserDep,
    lightathon: LightathonDep,
    day_number: int = Path(ge=1, le=constant.LIGHTATHON_TOTAL_DAYS),
) -> LightathonDayRead:
    """
    Complete a day.

    - **day_number**: 1 to 21.
    - **reflection**: What the participant did and learned.

    The next day is unlocked by the daily unlock job, not immediately.
    """
    day = await lightathon.complete_day(enrollment_id, day_number, body.reflection, user)
    return LightathonDayRead.model_validate(day)


@router.get(
    "/leaderboard",
    response_model=List[LeaderboardBatch],
    summary="Leaderboard",
    description="Participants ranked by days completed, grouped by batch.",
    response_description="One entry list per batch.",
)
async def leaderboard(user: CurrentUserDep, lightathon: LightathonDep) -> List[LeaderboardBatch]:
    """
    Get the Lightathon leaderboard.

    Ties on days completed are broken by current streak, then by longest streak.
    """
    return await lightathon.leaderboard()


@router.post(
    "/enrollments",
    response_model=LightathonEnrollmentDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Start Lightathon",
    description="Enroll a user with one of their persona runs (admin only).",
    response_description="The new enrollment with 21 days, day 1 unlocked.",
    responses={
        400: {"description": "User already enrolled"},
        403: {"description": "Admin access required"},
        404: {"description": "Run or Lightathon codex not found"},
    },
)
async def start_lightathon(
    body: LightathonStart, admin: AdminUserDep, lightathon: LightathonDep
) -> LightathonEnrollmentDetail:
    """
    Start a Lightathon for a user.

    - **user_id**: The participant.
    - **persona_run_id**: A run of that user containing the "21 Days Lightathon" codex.
    """
    enrollment = await lightathon.start(body.user_id, body.persona_run_id, admin)
    return await lightathon.detail(enrollment)


@router.get(
    "/enrollments",
    response_model=List[LightathonEnrollmentDetail],
    summary="List Enrollments",
    description="Every Lightathon enrollment with its days (admin only).",
    response_description="Enrollments with their days.",
)
async def list_enrollments(admin: AdminUserDep, lightathon: LightathonDep) -> List[LightathonEnrollmentDetail]:
    """
    List all enrollments.
    """
    return await lightathon.list_enrollments()


@router.post(
    "/enrollments/{enrollment_id}/deactivate",
    response_model=LightathonEnrollmentRead,
    summary="Deactivate Enrollment",
    description="Stop a Lightathon enrollment; no further days are unlocked (admin only).",
    response_description="The deactivated enrollment.",
    responses={404: {"description": "Enrollment not found"}},
)
async def deactivate_enrollment(
    enrollment_id: str, admin: AdminUserDep, lightathon: LightathonDep
) -> LightathonEnrollmentRead:
    """
    Deactivate an enrollment.
    """
    return LightathonEnrollmentRead.model_validate(await lightathon.deactivate(enrollment_id, admin))


@router.post(
    "/unlock",
    response_model=LightathonUnlockResult,
    summary="Unlock Next Days",
    description="Daily job: unlock the next day of every active enrollment whose current day is completed.",
    response_description="How many enrollments advanced.",
)
async def unlock_next_days(admin: AdminUserDep, lightathon: LightathonDep) -> LightathonUnlockResult:
    """
    Unlock the next Lightathon day.

    Enrollments whose last unlocked day is not completed yet are skipped.
    """
    return await lightathon.unlock_next_days()
