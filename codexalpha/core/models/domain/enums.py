"""Domain enums for CodeXAlpha entities.

Statuses are stored as plain strings in the database; the enums keep the
allowed values in one place.
"""

from __future__ import annotations

from enum import Enum


class AppRole(str, Enum):
    """Roles a user can hold."""

    admin = "admin"
    moderator = "moderator"
    user = "user"


class PersonaRunStatus(str, Enum):
    """Lifecycle of a persona run."""

    pending = "pending"
    generating = "generating"
    completed = "completed"


class PersonaRunSource(str, Enum):
    """Where the answers of a persona run came from."""

    questionnaire = "questionnaire"
    transcript = "transcript"


class CodexStatus(str, Enum):
    """Lifecycle of a generated codex."""

    not_started = "not_started"
    generating = "generating"
    ready = "ready"
    ready_with_errors = "ready_with_errors"
    failed = "failed"

    @classmethod
    def finished(cls) -> frozenset["CodexStatus"]:
        """Statuses after which the orchestrator no longer touches a codex."""
        return frozenset({cls.ready, cls.ready_with_errors, cls.failed})


class SectionStatus(str, Enum):
    """Lifecycle of a single codex section."""

    pending = "pending"
    generating = "generating"
    completed = "completed"
    error = "error"


class AIExecutionMode(str, Enum):
    """How the AI calls for one section are performed."""

    single = "single"
    parallel_merge = "parallel_merge"
    sequential_chain = "sequential_chain"


class AIStepType(str, Enum):
    generate = "generate"
    merge = "merge"


class UsageStatus(str, Enum):
    success = "success"
    error = "error"


class ShareAttemptType(str, Enum):
    """Kind of a recorded share link verification attempt."""

    verification = "verification"
    password = "password"


class LightathonDayStatus(str, Enum):
    locked = "locked"
    unlocked = "unlocked"
    completed = "completed"


class ProviderTestStatus(str, Enum):
    success = "success"
    failed = "failed"


class OptimizationTarget(str, Enum):
    """Kinds of admin text the AI rewriter knows how to improve."""

    question = "question"
    prompt = "prompt"
    system_prompt = "system_prompt"
    section_prompt = "section_prompt"
    merge_prompt = "merge_prompt"


class AnalyticsEventType(str, Enum):
    """Analytics event names written by the backend."""

    persona_run_created = "persona_run_created"
    section_regenerated = "section_regenerated"
    codex_regenerated = "codex_regenerated"
    share_link_created = "share_link_created"
    share_link_viewed = "share_link_viewed"
    pdf_exported = "pdf_exported"
    lightathon_day_completed = "lightathon_day_completed"
