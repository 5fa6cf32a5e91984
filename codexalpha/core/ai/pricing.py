"""Per-model token pricing used to estimate AI usage cost."""

from __future__ import annotations

from typing import Dict, Tuple

# USD per 1M tokens as (input, output)
PRICING: Dict[str, Tuple[float, float]] = {
    # OpenAI
    "gpt-4o": (2.5, 10.0),
    "gpt-4o-mini": (0.15, 0.6),
    "gpt-4-turbo": (10.0, 30.0),
    "o1": (15.0, 60.0),
    "o1-mini": (3.0, 12.0),
    "gpt-5-2025-08-07": (3.0, 15.0),
    "gpt-5-mini-2025-08-07": (0.3, 1.2),
    "gpt-5-nano-2025-08-07": (0.1, 0.4),
    "gpt-4.1-2025-04-14": (2.5, 10.0),
    "gpt-4.1-mini-2025-04-14": (0.15, 0.6),
    "o3-2025-04-16": (10.0, 40.0),
    "o4-mini-2025-04-16": (1.1, 4.4),
    # Anthropic
    "claude-sonnet-4-20250514": (3.0, 15.0),
    "claude-3-5-sonnet-20241022": (3.0, 15.0),
    "claude-3-5-haiku-20241022": (0.8, 4.0),
    "claude-3-opus-20240229": (15.0, 75.0),
    # Google
    "gemini-2.0-flash": (0.075, 0.3),
    "gemini-1.5-pro": (1.25, 5.0),
    "gemini-1.5-flash": (0.075, 0.3),
    # DeepSeek
    "deepseek-chat": (0.14, 0.28),
    "deepseek-reasoner": (0.55, 2.19),
    # Perplexity
    "sonar": (1.0, 1.0),
    "sonar-pro": (3.0, 15.0),
    "sonar-reasoning": (1.0, 5.0),
}


def estimate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Estimated USD cost of one call; unknown models cost nothing."""
    price = PRICING.get(model)
    if price is None:
        return 0.0
    input_price, output_price = price
    return (prompt_tokens / 1_000_000) * input_price + (completion_tokens / 1_000_000) * output_price
