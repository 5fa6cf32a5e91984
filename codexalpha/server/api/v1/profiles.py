"""
Profile API Endpoints.
"""

from fastapi import APIRouter

from codexalpha.core.models.io.admin import ProfileRead, ProfileUpdate
from codexalpha.server.core.security import CurrentUserDep
from codexalpha.server.services.deps import ProfilesDep

router = APIRouter(tags=["profiles"])


@router.get(
    "/me",
    response_model=ProfileRead,
    summary="Get My Profile",
    description="The caller's profile with their roles.",
    response_description="The profile.",
)
async def get_my_profile(user: CurrentUserDep, profiles: ProfilesDep) -> ProfileRead:
    """
    Get the caller's profile.

    The profile is created on the first authenticated request.
    """
    return await profiles.me(user)


@router.patch(
    "/me",
    response_model=ProfileRead,
    summary="Update My Profile",
    description="Update names, batch and photograph of the caller's profile.",
    response_description="The updated profile.",
)
async def update_my_profile(changes: ProfileUpdate, user: CurrentUserDep, profiles: ProfilesDep) -> ProfileRead:
    """
    Update the caller's profile.

    Only the fields present in the body are changed.

    - **full_name**, **first_name**, **last_name**: Names; the display name prefers the full name.
    - **batch**: Cohort label used by the Lightathon leaderboard.
    - **photograph_url**: Public URL of the profile photo.
    """
    return await profiles.update(user, changes)
