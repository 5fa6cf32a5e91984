"""
AI integration layer.

- gateway: HTTP client for OpenAI-compatible chat completion providers
- providers: provider/key resolution with fallbacks
- execution: single, parallel-merge and sequential-chain execution modes
- pricing / usage: cost estimation and usage logging
"""

from .execution import ExecutionPlan, ExecutionResult, ResolvedStep, execute_plan
from .gateway import AIGateway, AIResponse, ProviderConfig, TokenUsage, ensure_chat_completions_url
from .providers import ProviderResolver
from .usage import UsageContext, log_ai_usage

__all__ = [
    "AIGateway",
    "AIResponse",
    "ExecutionPlan",
    "ExecutionResult",
    "ProviderConfig",
    "ProviderResolver",
    "ResolvedStep",
    "TokenUsage",
    "UsageContext",
    "ensure_chat_completions_url",
    "execute_plan",
    "log_ai_usage",
]
