"""
AI rewriting of admin prompt text.

The prompt editor can ask the default AI provider to tighten a questionnaire
question or one of the codex prompts before saving it.
"""

from __future__ import annotations

from typing import Dict

from codexalpha.core.ai import AIGateway, ProviderResolver, UsageContext, log_ai_usage
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.errors import AIProviderError, ValidationError
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import OptimizationTarget
from codexalpha.server.core.config import OpenAIConfig
from codexalpha.server.core.security import CurrentUser

from .system_settings import SettingsService

logger = get_logger(__name__)

OPTIMIZE_MAX_TOKENS = 2000

_PROMPT_GOALS = (
    "- Clear and specific in its instructions\n"
    "- Well-structured with clear expectations\n"
    "- Effective at guiding the AI to produce quality output\n"
    "- Free of ambiguity"
)

OPTIMIZATION_PROMPTS: Dict[OptimizationTarget, str] = {
    OptimizationTarget.question: (
        "You are an expert at writing clear, concise, and effective questionnaire questions.\n"
        "Your task is to optimize the given question to be more:\n"
        "- Clear and unambiguous\n"
        "- Concise without losing meaning\n"
        "- Professional and engaging\n"
        "- Focused on extracting valuable information\n\n"
        "Return ONLY the optimized question text, nothing else."
    ),
    OptimizationTarget.prompt: (
        "You are an expert at writing effective AI prompts.\n"
        f"Your task is to optimize the given prompt to be more:\n{_PROMPT_GOALS}\n\n"
        "Return ONLY the optimized prompt text, nothing else."
    ),
    OptimizationTarget.system_prompt: (
        "You are an expert at writing effective AI prompts.\n"
        f"Your task is to optimize the given prompt to be more:\n{_PROMPT_GOALS}\n\n"
        "Return ONLY the optimized prompt text, nothing else."
    ),
    OptimizationTarget.section_prompt: (
        "You are an expert at writing effective AI section prompts for document generation.\n"
        "Your task is to optimize the given section prompt to be more:\n"
        "- Clear about what content should be generated\n"
        "- Specific about tone, style, and format\n"
        "- Structured to produce coherent, well-organized output\n"
        "- Effective at leveraging provided context\n\n"
        "Return ONLY the optimized section prompt text, nothing else."
    ),
    OptimizationTarget.merge_prompt: (
        "You are an expert at writing effective merge prompts for combining AI outputs.\n"
        "Your task is to optimize the given merge prompt to be more:\n"
        "- Clear about how to combine multiple inputs\n"
        "- Specific about maintaining consistency\n"
        "- Effective at producing a unified, coherent output\n\n"
        "Return ONLY the optimized merge prompt text, nothing else."
    ),
}


class TextOptimizerService:
    """Rewrite admin text with the default AI provider."""

    def __init__(self, repos: SqlRepoBundle, gateway: AIGateway, openai: OpenAIConfig) -> None:
        self.repos = repos
        self.gateway = gateway
        self.openai = openai

    async def optimize(self, text: str, target: OptimizationTarget, admin: CurrentUser) -> str:
        """Return the rewritten text, stripped.

        Raises:
            ValidationError: Blank text.
            AIProviderNotConfiguredError: No provider and no environment key.
            AIProviderError: The provider call failed or returned nothing.
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError("Missing text to optimize")
        provider_id, model = await SettingsService(self.repos.settings).default_ai_choice()
        provider = await ProviderResolver(self.repos.providers, self.openai).resolve(provider_id, model)
        context = UsageContext(function_name="optimize-text", user_id=admin.id)
        try:
            response = await self.gateway.complete(
                OPTIMIZATION_PROMPTS[target],
                f"Optimize this {target.value}:\n\n{text}",
                provider,
                max_tokens=OPTIMIZE_MAX_TOKENS,
            )
        except AIProviderError as e:
            await log_ai_usage(
                self.repos.usage_logs,
                context,
                model=provider.model,
                provider_code=provider.provider_code,
                error_message=e.message,
            )
            raise
        await log_ai_usage(
            self.repos.usage_logs,
            context,
            model=response.model,
            usage=response.usage,
            provider_code=response.provider,
        )

        optimized = response.content.strip()
        if not optimized:
            raise AIProviderError("AI provider returned no optimized text", details={"provider": response.provider})
        logger.info(f"Optimized {target.value} using {response.provider}/{response.model}")
        return optimized
