"""
Public API Endpoints.

Endpoints that need no access token: branding for the web app shell, the
questionnaire shown before sign-in, and the coming-soon signup form.
"""

from typing import List

from fastapi import APIRouter, status

from codexalpha.core.models.io.admin import EarlySignupCreate, EarlySignupResult
from codexalpha.core.models.io.prompts import QuestionnaireCategoryRead
from codexalpha.server.services.deps import ProfilesDep, PromptCatalogDep, SettingsDep
from codexalpha.server.services.system_settings import Branding

router = APIRouter(tags=["public"])


@router.get(
    "/branding",
    response_model=Branding,
    summary="Get Branding",
    description="App name, logo URL and tagline configured by admins.",
    response_description="Branding values, with the default app name when unset.",
)
async def get_branding(app_settings: SettingsDep) -> Branding:
    """
    Get branding.
    """
    return await app_settings.branding()


@router.get(
    "/questionnaire",
    response_model=List[QuestionnaireCategoryRead],
    summary="Get Questionnaire",
    description="Active questionnaire categories with their active questions, in display order.",
    response_description="Categories with questions.",
)
async def get_questionnaire(catalog: PromptCatalogDep) -> List[QuestionnaireCategoryRead]:
    """
    Get the questionnaire.

    Answers are submitted keyed by question id when creating a persona run.
    """
    return await catalog.questionnaire(active_only=True)


@router.post(
    "/early-signups",
    response_model=EarlySignupResult,
    status_code=status.HTTP_201_CREATED,
    summary="Early Signup",
    description="Register an email address on the coming-soon list.",
    response_description="Whether the address was already registered.",
    responses={422: {"description": "Invalid email address"}},
)
async def early_signup(signup: EarlySignupCreate, profiles: ProfilesDep) -> EarlySignupResult:
    """
    Register for early access.

    - **email**: Email address; stored lower-cased, once.
    - **source**: Optional marketing source label.
    """
    return await profiles.early_signup(signup)
