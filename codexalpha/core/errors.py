"""Domain error taxonomy.

Every error raised by services carries the HTTP status it maps to, so API
endpoints can let them propagate and the registered exception handler turns
them into JSON responses.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CodexAlphaError(Exception):
    """Base error for CodeXAlpha domain failures."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details: Dict[str, Any] = details or {}


class ValidationError(CodexAlphaError):
    status_code = 400


class AuthenticationError(CodexAlphaError):
    status_code = 401


class PermissionDeniedError(CodexAlphaError):
    status_code = 403


class NotFoundError(CodexAlphaError):
    status_code = 404


class ConflictError(CodexAlphaError):
    status_code = 409


class RateLimitedError(CodexAlphaError):
    status_code = 429


class AIProviderError(CodexAlphaError):
    """Raised when an AI provider call fails or returns an unusable response."""

    status_code = 502


class AIProviderNotConfiguredError(AIProviderError):
    """No provider with an active key is available and no fallback key is set."""

    status_code = 503


class UnsupportedProviderError(AIProviderError):
    status_code = 400


class SectionGenerationError(CodexAlphaError):
    """A codex section could not be generated; the section row carries the message."""

    status_code = 502
