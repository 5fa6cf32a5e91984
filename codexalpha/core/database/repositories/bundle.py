"""
Repository bundle for dependency injection.

This module provides a convenience bundle of all repository instances
sharing one session, for services and API endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from .admin_activity import AdminActivityRepository
from .ai_providers import AIProviderRepository, AIUsageLogRepository
from .analytics_events import AnalyticsEventRepository
from .codex_prompts import CodexPromptRepository
from .lightathon import LightathonRepository
from .pdf import PdfExportRepository, PdfTemplateRepository
from .persona_runs import CodexRepository, CodexSectionRepository, PersonaRunRepository
from .questionnaire import QuestionnaireRepository
from .shared_links import SharedLinkRepository
from .system_settings import SystemSettingRepository
from .users import (
    EarlySignupRepository,
    ProfileRepository,
    UnlimitedRunsRepository,
    UserBlockRepository,
    UserRoleRepository,
)


@dataclass(frozen=True)
class SqlRepoBundle:
    """Convenience bundle of all SQL repositories for dependency injection."""

    session: AsyncSession
    profiles: ProfileRepository
    roles: UserRoleRepository
    blocks: UserBlockRepository
    unlimited_runs: UnlimitedRunsRepository
    early_signups: EarlySignupRepository
    persona_runs: PersonaRunRepository
    codexes: CodexRepository
    sections: CodexSectionRepository
    prompts: CodexPromptRepository
    providers: AIProviderRepository
    usage_logs: AIUsageLogRepository
    analytics: AnalyticsEventRepository
    shared_links: SharedLinkRepository
    settings: SystemSettingRepository
    pdf_templates: PdfTemplateRepository
    pdf_exports: PdfExportRepository
    lightathon: LightathonRepository
    questionnaire: QuestionnaireRepository
    admin_activity: AdminActivityRepository


def build_sql_repos_from_session(*, session: AsyncSession) -> SqlRepoBundle:
    """Build a SqlRepoBundle from an existing session.

    Args:
        session: Existing async session

    Returns:
        Bundle containing all repository instances
    """
    return SqlRepoBundle(
        session=session,
        profiles=ProfileRepository(session),
        roles=UserRoleRepository(session),
        blocks=UserBlockRepository(session),
        unlimited_runs=UnlimitedRunsRepository(session),
        early_signups=EarlySignupRepository(session),
        persona_runs=PersonaRunRepository(session),
        codexes=CodexRepository(session),
        sections=CodexSectionRepository(session),
        prompts=CodexPromptRepository(session),
        providers=AIProviderRepository(session),
        usage_logs=AIUsageLogRepository(session),
        analytics=AnalyticsEventRepository(session),
        shared_links=SharedLinkRepository(session),
        settings=SystemSettingRepository(session),
        pdf_templates=PdfTemplateRepository(session),
        pdf_exports=PdfExportRepository(session),
        lightathon=LightathonRepository(session),
        questionnaire=QuestionnaireRepository(session),
        admin_activity=AdminActivityRepository(session),
    )
