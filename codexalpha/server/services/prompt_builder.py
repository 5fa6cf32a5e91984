"""
Prompt assembly for section generation.

Pure functions that turn catalog rows, questionnaire answers and previously
generated codexes into the system and user prompts sent to the AI provider,
and clean the provider's output back into plain prose.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from codexalpha.core.database.entities.codex_prompts import CodexPrompt, CodexSectionPrompt
from codexalpha.core.database.entities.codexes import CodexSection

from .system_settings import PricingBrackets

CLOSING_INSTRUCTION = (
    "Generate the content for this section following the instructions above. "
    "Write in clean human language without markdown, bullets, or formatting characters."
)


def build_system_prompt(global_persona_prompt: Optional[str], codex_system_prompt: Optional[str]) -> str:
    """Global persona prompt and codex system prompt joined by a rule line; blank parts are skipped."""
    parts = [p for p in (global_persona_prompt, codex_system_prompt) if p and p.strip()]
    return "\n\n---\n\n".join(parts)


def word_count_instruction(codex_prompt: CodexPrompt, section_prompt: Optional[CodexSectionPrompt]) -> str:
    if section_prompt is not None and section_prompt.word_count_target:
        return f"\n\nTarget length: approximately {section_prompt.word_count_target} words."
    if codex_prompt.word_count_min and codex_prompt.word_count_max:
        return f"\n\nTarget length: between {codex_prompt.word_count_min} and {codex_prompt.word_count_max} words."
    if codex_prompt.word_count_min:
        return f"\n\nTarget length: at least {codex_prompt.word_count_min} words."
    if codex_prompt.word_count_max:
        return f"\n\nTarget length: at most {codex_prompt.word_count_max} words."
    return ""


def _answer_parts(key: str, value: Any) -> Optional[Tuple[str, str]]:
    if isinstance(value, str):
        return (key, value) if value.strip() else None
    if isinstance(value, Mapping):
        answer = value.get("answer")
        if not isinstance(answer, str) or not answer.strip():
            return None
        return (str(value.get("question") or key), answer)
    return None


def format_user_answers(answers: Mapping[str, Any], question_ids: Optional[Sequence[str]] = None) -> str:
    """Render questionnaire answers as Q/A pairs.

    When ``question_ids`` is given only those answers are included, unless
    none of them were answered, in which case every answer is used.
    """
    items = list(answers.items())
    if question_ids:
        wanted = set(question_ids)
        filtered = [(k, v) for k, v in items if k in wanted]
        if filtered:
            items = filtered

    lines: List[str] = []
    for key, value in items:
        parts = _answer_parts(key, value)
        if parts is None:
            continue
        question, answer = parts
        lines.append(f"Q: {question}\nA: {answer.strip()}")
    if not lines:
        return ""
    return "USER'S QUESTIONNAIRE ANSWERS:\n\n" + "\n\n".join(lines)


def build_user_context(
    answers: Mapping[str, Any],
    *,
    question_ids: Optional[Sequence[str]] = None,
    transcript: Optional[str] = None,
    include_transcript: bool = False,
) -> str:
    context = format_user_answers(answers, question_ids)
    if include_transcript and transcript:
        context = f"{context}\n\nORIGINAL COACHING CALL TRANSCRIPT:\n{transcript}".lstrip()
    return context


def format_codex_content(codex_name: str, sections: Iterable[CodexSection]) -> Optional[str]:
    """Completed sections of one codex as a dependency block, or None when nothing is completed."""
    completed = [s for s in sections if s.content]
    if not completed:
        return None
    content = f"GENERATED CONTENT FROM {codex_name.upper()}:\n\n"
    for section in completed:
        content += f"=== {section.section_name} ===\n{section.content}\n\n"
    return content


def build_dependency_context(blocks: Sequence[str]) -> str:
    if not blocks:
        return ""
    return "\n\nCONTEXT FROM PREVIOUSLY GENERATED CODEXES:\n\n" + "\n".join(blocks)


def build_pricing_context(brackets: PricingBrackets) -> str:
    return (
        "\n\nPRICING BRACKETS (INR). Use exactly these ranges when recommending the offer ladder:\n"
        f"L1: {brackets.L1.min:,} - {brackets.L1.max:,}\n"
        f"L2: {brackets.L2.min:,} - {brackets.L2.max:,}\n"
        f"L3: {brackets.L3.min:,} - {brackets.L3.max:,}"
    )


def build_user_prompt(
    section_prompt: str,
    *,
    word_count: str = "",
    user_context: str = "",
    dependency_context: str = "",
    pricing_context: str = "",
) -> str:
    context = f"{user_context}{dependency_context}{pricing_context}"
    return f"{section_prompt}{word_count}\n\n{context}\n\n{CLOSING_INSTRUCTION}"


_MARKDOWN_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\*\*(.+?)\*\*", re.DOTALL), r"\1"),
    (re.compile(r"__(.+?)__", re.DOTALL), r"\1"),
    (re.compile(r"(?<![\*\w])\*(?!\s)(.+?)(?<!\s)\*(?!\*)"), r"\1"),
    (re.compile(r"(?<!\w)_(?!\s)(.+?)(?<!\s)_(?!\w)"), r"\1"),
    (re.compile(r"^\s{0,3}#{1,6}\s*", re.MULTILINE), ""),
    (re.compile(r"^\s*[-*+•]\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*\d+[.)]\s+", re.MULTILINE), ""),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"\n{3,}"), "\n\n"),
]


def clean_markdown(text: str) -> str:
    """Strip bold, italics, headers, list markers, inline code and links."""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def count_answers(answers: Dict[str, Any]) -> int:
    """Number of non-empty answers."""
    return sum(1 for k, v in answers.items() if _answer_parts(k, v) is not None)


def format_run_context(codexes: Sequence[Tuple[str, Sequence[CodexSection]]]) -> str:
    """Completed content of other codexes of the run, used when regenerating a section."""
    context = ""
    for codex_name, sections in codexes:
        completed = [s for s in sections if s.content]
        if not completed:
            continue
        context += f"\n=== {codex_name} ===\n"
        for section in completed:
            context += f"\n--- {section.section_name} ---\n{section.content}\n"
    return context
