"""
AI execution modes.

A section is produced in one of three ways:

- ``single``: one call to the primary provider.
- ``parallel_merge``: every generate step runs concurrently on the same
  prompt, then a merge call synthesizes their answers.
- ``sequential_chain``: each step receives the previous step's output and
  refines it according to its own custom prompt.

All calls made are returned so the caller can log usage for each of them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from codexalpha.core.models.domain.enums import AIExecutionMode, AIStepType

from .gateway import AIGateway, AIResponse, ProviderConfig

DEFAULT_MERGE_PROMPT = "Synthesize the following AI-generated responses into a single, cohesive, comprehensive answer."
DEFAULT_CHAIN_PROMPT = "Review and improve the previous output while following the original instructions."


@dataclass(frozen=True)
class ResolvedStep:
    provider: ProviderConfig
    step_type: AIStepType = AIStepType.generate
    custom_prompt: Optional[str] = None


@dataclass
class ExecutionPlan:
    """Fully resolved AI configuration for one section."""

    mode: AIExecutionMode
    primary: ProviderConfig
    steps: List[ResolvedStep] = field(default_factory=list)
    merge_provider: Optional[ProviderConfig] = None
    merge_prompt: Optional[str] = None
    max_tokens: Optional[int] = None


@dataclass
class ExecutionResult:
    content: str
    calls: List[AIResponse] = field(default_factory=list)


def _with_custom_prompt(user_prompt: str, custom_prompt: Optional[str]) -> str:
    if not custom_prompt:
        return user_prompt
    return f"{user_prompt}\n\nADDITIONAL INSTRUCTIONS:\n{custom_prompt}"


def build_merge_prompt(merge_prompt: str, user_prompt: str, responses: Sequence[AIResponse]) -> str:
    parts = [merge_prompt, "", "ORIGINAL TASK:", user_prompt, ""]
    for i, response in enumerate(responses, start=1):
        parts.append(f"=== RESPONSE {i} ({response.provider}/{response.model}) ===")
        parts.append(response.content)
        parts.append("")
    return "\n".join(parts).rstrip()


def build_chain_prompt(custom_prompt: Optional[str], user_prompt: str, previous: str) -> str:
    return (
        f"{custom_prompt or DEFAULT_CHAIN_PROMPT}\n\n"
        f"ORIGINAL INSTRUCTIONS:\n{user_prompt}\n\n"
        f"PREVIOUS OUTPUT:\n{previous}"
    )


async def execute_single(
    gateway: AIGateway, plan: ExecutionPlan, system_prompt: str, user_prompt: str
) -> ExecutionResult:
    response = await gateway.complete(system_prompt, user_prompt, plan.primary, plan.max_tokens)
    return ExecutionResult(content=response.content, calls=[response])


async def execute_parallel_merge(
    gateway: AIGateway, plan: ExecutionPlan, system_prompt: str, user_prompt: str
) -> ExecutionResult:
    generate_steps = [s for s in plan.steps if s.step_type == AIStepType.generate]
    merge_steps = [s for s in plan.steps if s.step_type == AIStepType.merge]
    if not generate_steps:
        generate_steps = [ResolvedStep(provider=plan.primary)]

    responses = list(
        await asyncio.gather(
            *(
                gateway.complete(
                    system_prompt, _with_custom_prompt(user_prompt, step.custom_prompt), step.provider, plan.max_tokens
                )
                for step in generate_steps
            )
        )
    )
    if len(responses) == 1:
        return ExecutionResult(content=responses[0].content, calls=responses)

    merge_provider = merge_steps[0].provider if merge_steps else (plan.merge_provider or plan.primary)
    merge_instructions = (merge_steps[0].custom_prompt if merge_steps else None) or plan.merge_prompt
    merged = await gateway.complete(
        system_prompt,
        build_merge_prompt(merge_instructions or DEFAULT_MERGE_PROMPT, user_prompt, responses),
        merge_provider,
        plan.max_tokens,
    )
    return ExecutionResult(content=merged.content, calls=[*responses, merged])


async def execute_sequential_chain(
    gateway: AIGateway, plan: ExecutionPlan, system_prompt: str, user_prompt: str
) -> ExecutionResult:
    steps = plan.steps or [ResolvedStep(provider=plan.primary)]
    calls: List[AIResponse] = []
    previous: Optional[str] = None
    for step in steps:
        if previous is None:
            prompt = _with_custom_prompt(user_prompt, step.custom_prompt)
        else:
            prompt = build_chain_prompt(step.custom_prompt, user_prompt, previous)
        response = await gateway.complete(system_prompt, prompt, step.provider, plan.max_tokens)
        calls.append(response)
        previous = response.content
    return ExecutionResult(content=previous or "", calls=calls)


async def execute_plan(
    gateway: AIGateway, plan: ExecutionPlan, system_prompt: str, user_prompt: str
) -> ExecutionResult:
    """Run ``plan`` in its execution mode."""
    if plan.mode == AIExecutionMode.parallel_merge:
        return await execute_parallel_merge(gateway, plan, system_prompt, user_prompt)
    if plan.mode == AIExecutionMode.sequential_chain:
        return await execute_sequential_chain(gateway, plan, system_prompt, user_prompt)
    return await execute_single(gateway, plan, system_prompt, user_prompt)
