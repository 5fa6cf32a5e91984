"""
Monitoring and Tracing Configuration Module.

Integrates CodeXAlpha with Logfire. Once initialized, database queries, outgoing
HTTP calls (AI providers, Resend) and API endpoints are traced automatically,
and the helpers below add domain events on top:

- ``log_codex_generation`` when a codex reaches its final status
- ``log_llm_call`` for every AI provider call with token and cost metrics
- ``log_api_request`` from the request middleware
- ``log_error`` from the exception handlers

The helpers are safe to call when Logfire is disabled or not configured: they
fall back to debug logging and never raise.
"""

import logging
import os
from typing import Any, Optional

from fastapi import FastAPI

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


# Logfire configuration from environment
LOGFIRE_ENABLED = _env_flag("LOGFIRE_ENABLED", "false")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_PROJECT_NAME = os.getenv("LOGFIRE_PROJECT_NAME", "codexalpha")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "codexalpha-server")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.0.0")

# Feature flags
LOGFIRE_TRACE_SQLALCHEMY = _env_flag("LOGFIRE_TRACE_SQLALCHEMY", "true")
LOGFIRE_TRACE_HTTPX = _env_flag("LOGFIRE_TRACE_HTTPX", "true")
LOGFIRE_TRACE_FASTAPI = _env_flag("LOGFIRE_TRACE_FASTAPI", "true")


def _instrument(logfire: Any, app: FastAPI | None) -> None:
    targets = [
        ("SQLAlchemy", LOGFIRE_TRACE_SQLALCHEMY, logfire.instrument_sqlalchemy, {}),
        ("HTTPX", LOGFIRE_TRACE_HTTPX, logfire.instrument_httpx, {}),
        ("FastAPI", LOGFIRE_TRACE_FASTAPI, logfire.instrument_fastapi, {"app": app}),
    ]
    for name, enabled, instrument, kwargs in targets:
        if not enabled:
            continue
        if name == "FastAPI" and app is None:
            logger.debug("FastAPI app instance not provided, skipping FastAPI instrumentation")
            continue
        try:
            instrument(**kwargs)
            logger.info(f"Logfire: {name} instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument {name}: {e}")


def initialize_logfire(app: FastAPI | None = None) -> None:
    """
    Initialize Logfire for monitoring and tracing.

    Nothing happens unless ``LOGFIRE_ENABLED`` is set and a ``LOGFIRE_TOKEN``
    is available. Each instrumentation can be switched off through its
    ``LOGFIRE_TRACE_*`` flag; a failing one is reported and skipped.

    Args:
        app: FastAPI application instance for FastAPI instrumentation (optional).
    """
    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return

    if not LOGFIRE_TOKEN:
        logger.warning("Logfire is enabled but LOGFIRE_TOKEN is not set, generation traces will not be exported.")
        return

    try:
        import logfire

        logfire.configure(
            token=LOGFIRE_TOKEN,
            service_name=LOGFIRE_SERVICE_NAME,
            service_version=LOGFIRE_SERVICE_VERSION,
            environment=LOGFIRE_ENVIRONMENT,
        )
        _instrument(logfire, app)
        logger.info(
            f"Logfire monitoring initialized: project={LOGFIRE_PROJECT_NAME}, "
            f"environment={LOGFIRE_ENVIRONMENT}, service={LOGFIRE_SERVICE_NAME}"
        )
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)


def _emit(level: str, message: str, **attributes: Any) -> None:
    try:
        import logfire

        getattr(logfire, level)(message, **attributes)
    except Exception:
        logger.debug(f"Could not send to Logfire: {message}")


def log_codex_generation(persona_run_id: str, codex_id: str, status: str, duration_ms: float) -> None:
    """
    Record that a codex finished generating.

    Args:
        persona_run_id: The owning persona run
        codex_id: The codex that finished
        status: Final codex status (ready, ready_with_errors, failed)
        duration_ms: Wall time spent generating the codex
    """
    _emit(
        "info",
        "Codex generation finished",
        persona_run_id=persona_run_id,
        codex_id=codex_id,
        status=status,
        duration_ms=duration_ms,
    )


def log_llm_call(model: str, tokens_used: int, cost_usd: Optional[float] = None) -> None:
    """Record one AI provider call with its token usage and estimated cost."""
    _emit("info", "LLM call completed", model=model, tokens_used=tokens_used, cost_usd=cost_usd)


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    _emit("info", "API request completed", method=method, path=path, status_code=status_code, duration_ms=duration_ms)


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Record an error with its context.

    Args:
        error_type: Exception class name, e.g. ``AIProviderError``
        error_message: Error message
        context: Extra attributes such as the request path or error ID
    """
    _emit("error", f"{error_type}: {error_message}", **(context or {}))
