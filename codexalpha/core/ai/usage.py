"""
AI usage logging.

Every AI call made by the platform is recorded with token counts and an
estimated cost. Logging must never break the operation that made the call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from codexalpha.core.database.entities.ai_usage_logs import AIUsageLog
from codexalpha.core.database.repositories.ai_providers import AIUsageLogRepository
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import UsageStatus
from codexalpha.core.monitoring import log_llm_call

from .gateway import TokenUsage
from .pricing import estimate_cost

logger = get_logger(__name__)


@dataclass
class UsageContext:
    """Who and what an AI call was made for."""

    function_name: str
    user_id: Optional[str] = None
    persona_run_id: Optional[str] = None
    codex_id: Optional[str] = None
    parent_run_id: Optional[str] = None
    execution_mode: Optional[str] = None


async def log_ai_usage(
    repo: AIUsageLogRepository,
    context: UsageContext,
    *,
    model: str,
    usage: Optional[TokenUsage] = None,
    provider_code: Optional[str] = None,
    error_message: Optional[str] = None,
) -> Optional[AIUsageLog]:
    """Write one usage row; returns None when the write failed."""
    usage = usage or TokenUsage()
    cost = estimate_cost(model, usage.prompt_tokens, usage.completion_tokens)
    row = AIUsageLog(
        user_id=context.user_id,
        function_name=context.function_name,
        model=model,
        provider_code=provider_code,
        execution_mode=context.execution_mode,
        prompt_tokens=usage.prompt_tokens,
        completion_tokens=usage.completion_tokens,
        total_tokens=usage.total_tokens,
        estimated_cost=cost,
        persona_run_id=context.persona_run_id,
        codex_id=context.codex_id,
        parent_run_id=context.parent_run_id,
        status=UsageStatus.error.value if error_message else UsageStatus.success.value,
        error_message=error_message,
    )
    log_llm_call(model=model, tokens_used=usage.total_tokens, cost_usd=cost)
    try:
        return await repo.create(row)
    except Exception as e:
        logger.error(f"Failed to record AI usage for {context.function_name}: {e}", exc_info=True)
        await repo.session.rollback()
        return None
