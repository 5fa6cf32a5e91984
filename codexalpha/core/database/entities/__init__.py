"""
Database entity models.

This package contains all database entity models organized by business domain
and table relationships. Each module represents either:

1. A single database table and its related logic
2. A business domain that spans multiple related tables

Modules:
- users: Profiles, roles, blocks, unlimited-run grants, early signups
- persona_runs: Questionnaire/transcript submissions
- codexes: Generated codexes and their sections
- codex_prompts: Admin-managed prompt catalog and its history
- ai_providers: AI provider endpoints and keys
- ai_usage_logs: Token and cost accounting
- analytics_events: Product analytics events
- shared_links: Share links and verification attempts
- system_settings: Key/value configuration
- pdf: PDF templates and export records
- lightathon: Lightathon enrollments and daily progress
- questionnaire: Questionnaire categories and questions
- admin_activity: Admin audit log
"""

from . import (
    admin_activity,
    ai_providers,
    ai_usage_logs,
    analytics_events,
    codex_prompts,
    codexes,
    lightathon,
    pdf,
    persona_runs,
    questionnaire,
    shared_links,
    system_settings,
    users,
)
from .admin_activity import AdminActivityLog
from .ai_providers import AIProvider, AIProviderKey
from .ai_usage_logs import AIUsageLog
from .analytics_events import AnalyticsEvent
from .codex_prompts import (
    CodexAIStep,
    CodexPrompt,
    CodexPromptDependency,
    CodexPromptHistory,
    CodexQuestionMapping,
    CodexSectionAIStep,
    CodexSectionPrompt,
)
from .codexes import Codex, CodexSection
from .lightathon import LightathonDailyProgress, LightathonEnrollment
from .pdf import PdfExport, PdfTemplate
from .persona_runs import PersonaRun
from .questionnaire import QuestionnaireCategory, QuestionnaireQuestion
from .shared_links import ShareLinkAttempt, SharedLink
from .system_settings import SystemSetting
from .users import EarlySignup, Profile, UserBlock, UserRole, UserUnlimitedRuns

__all__ = [
    "AIProvider",
    "AIProviderKey",
    "AIUsageLog",
    "AdminActivityLog",
    "AnalyticsEvent",
    "Codex",
    "CodexAIStep",
    "CodexPrompt",
    "CodexPromptDependency",
    "CodexPromptHistory",
    "CodexQuestionMapping",
    "CodexSection",
    "CodexSectionAIStep",
    "CodexSectionPrompt",
    "EarlySignup",
    "LightathonDailyProgress",
    "LightathonEnrollment",
    "PdfExport",
    "PdfTemplate",
    "PersonaRun",
    "Profile",
    "QuestionnaireCategory",
    "QuestionnaireQuestion",
    "ShareLinkAttempt",
    "SharedLink",
    "SystemSetting",
    "UserBlock",
    "UserRole",
    "UserUnlimitedRuns",
    "admin_activity",
    "ai_providers",
    "ai_usage_logs",
    "analytics_events",
    "codex_prompts",
    "codexes",
    "lightathon",
    "pdf",
    "persona_runs",
    "questionnaire",
    "shared_links",
    "system_settings",
    "users",
]
