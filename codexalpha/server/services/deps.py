"""
Service Dependencies.

Provides request-scoped service instances for API endpoints. Services that
only touch the database share the request session through a repository
bundle; generation work runs in the background and gets the session factory
instead.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from codexalpha.core.ai import AIGateway
from codexalpha.core.database import get_session, get_session_factory
from codexalpha.core.database.repositories.bundle import SqlRepoBundle, build_sql_repos_from_session
from codexalpha.server.core.config import settings

from .admin import ProviderAdminService, SettingsAdminService, UserAdminService
from .analytics import AnalyticsService
from .generation import CodexGenerationService
from .lightathon import LightathonService
from .pdf_export import PdfExportService
from .persona_runs import PersonaRunService
from .prompt_catalog import PromptCatalogService
from .profiles import ProfileService
from .share_links import ShareLinkService
from .system_settings import SettingsService
from .text_optimizer import TextOptimizerService
from .transcript import TranscriptService


@lru_cache
def get_ai_gateway() -> AIGateway:
    """Process-wide AI gateway."""
    return AIGateway(timeout=settings.openai.request_timeout)


def get_repos(session: AsyncSession = Depends(get_session)) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


ReposDep = Annotated[SqlRepoBundle, Depends(get_repos)]
GatewayDep = Annotated[AIGateway, Depends(get_ai_gateway)]


def get_generation_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    gateway: AIGateway = Depends(get_ai_gateway),
) -> CodexGenerationService:
    return CodexGenerationService(
        session_factory,
        gateway,
        generation=settings.generation,
        openai=settings.openai,
        notifications=settings.notifications,
        public_app_url=settings.share_links.public_app_url,
    )


def get_persona_run_service(repos: ReposDep) -> PersonaRunService:
    return PersonaRunService(repos)


def get_transcript_service(repos: ReposDep, gateway: GatewayDep) -> TranscriptService:
    return TranscriptService(repos, gateway, settings.openai)


def get_share_link_service(repos: ReposDep) -> ShareLinkService:
    return ShareLinkService(repos, settings.share_links)


def get_pdf_export_service(repos: ReposDep) -> PdfExportService:
    return PdfExportService(repos)


def get_lightathon_service(repos: ReposDep) -> LightathonService:
    return LightathonService(repos)


def get_analytics_service(repos: ReposDep) -> AnalyticsService:
    return AnalyticsService(repos)


def get_prompt_catalog_service(repos: ReposDep) -> PromptCatalogService:
    return PromptCatalogService(repos)


def get_user_admin_service(repos: ReposDep) -> UserAdminService:
    return UserAdminService(repos)


def get_provider_admin_service(repos: ReposDep, gateway: GatewayDep) -> ProviderAdminService:
    return ProviderAdminService(repos, gateway, settings.openai)


def get_settings_admin_service(repos: ReposDep) -> SettingsAdminService:
    return SettingsAdminService(repos)


def get_profile_service(repos: ReposDep) -> ProfileService:
    return ProfileService(repos)


def get_settings_service(repos: ReposDep) -> SettingsService:
    return SettingsService(repos.settings)


def get_text_optimizer_service(repos: ReposDep, gateway: GatewayDep) -> TextOptimizerService:
    return TextOptimizerService(repos, gateway, settings.openai)


GenerationDep = Annotated[CodexGenerationService, Depends(get_generation_service)]
PersonaRunsDep = Annotated[PersonaRunService, Depends(get_persona_run_service)]
TranscriptDep = Annotated[TranscriptService, Depends(get_transcript_service)]
ShareLinksDep = Annotated[ShareLinkService, Depends(get_share_link_service)]
PdfExportDep = Annotated[PdfExportService, Depends(get_pdf_export_service)]
LightathonDep = Annotated[LightathonService, Depends(get_lightathon_service)]
AnalyticsDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
PromptCatalogDep = Annotated[PromptCatalogService, Depends(get_prompt_catalog_service)]
UserAdminDep = Annotated[UserAdminService, Depends(get_user_admin_service)]
ProviderAdminDep = Annotated[ProviderAdminService, Depends(get_provider_admin_service)]
SettingsAdminDep = Annotated[SettingsAdminService, Depends(get_settings_admin_service)]
SettingsDep = Annotated[SettingsService, Depends(get_settings_service)]
ProfilesDep = Annotated[ProfileService, Depends(get_profile_service)]
TextOptimizerDep = Annotated[TextOptimizerService, Depends(get_text_optimizer_service)]
