"""
Transcript ingestion.

A coaching call transcript is turned into questionnaire-style answers by one
AI extraction call, then fed into the normal persona run creation path.
"""

from __future__ import annotations

import json
import re
from typing import Dict, List, Tuple

from pydantic import ValidationError as PydanticValidationError

from codexalpha.core.ai import AIGateway, ProviderResolver, UsageContext, log_ai_usage
from codexalpha.core.database.entities.codexes import Codex
from codexalpha.core.database.entities.persona_runs import PersonaRun
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.errors import AIProviderError, PermissionDeniedError, ValidationError
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import PersonaRunSource
from codexalpha.core.models.io.persona_runs import TranscriptExtraction
from codexalpha.server.core import constant
from codexalpha.server.core.config import OpenAIConfig
from codexalpha.server.core.security import CurrentUser

from .persona_runs import PersonaRunService
from .system_settings import SettingsService

logger = get_logger(__name__)

MAX_MISSING_QUESTIONS = 8

EXTRACTION_SYSTEM_PROMPT = """You are an expert at analyzing conversation transcripts and extracting specific information.

Analyze the following transcript and extract answers to these 13 questions:

BACKSTORY QUESTIONS (10):
1. Tell me about your early life. Where did you grow up? What values shaped you?
2. What did your parents or mentors do and how did they influence your career?
3. What was your education and first career choice?
4. What were your turning points? (career, finance, family, life lessons)
5. When and how did you get exposed to your current niche or skill?
6. What failures or setbacks pushed you toward coaching or teaching?
7. What is the real reason you started this business?
8. Who was your inspiration or role model in this space?
9. What was your first win in this industry?
10. When did you feel 'Yes, I can teach this'?

ANCHOR QUESTIONS (3):
11. What topics or problems do people naturally come to you for help with?
12. What excites you the most to teach or guide others about?
13. Who do you feel most called to help? (describe in one or two lines)

Return ONLY a JSON object with this exact structure:
{
  "backstory_answers": ["answer1", "answer2", ..., "answer10"],
  "anchor_answers": ["answer11", "answer12", "answer13"],
  "extraction_confidence": "high|medium|low",
  "missing_questions": [list of question numbers where information wasn't found],
  "notes": "Any important observations about the transcript quality"
}

IMPORTANT RULES:
- If information for a specific question is not found in the transcript, write "Information not found in transcript" for that answer.
- Extract as much relevant detail as possible from the conversation.
- Be thorough and capture the person's story, struggles, and motivations.
- If the transcript contains multiple speakers, focus on extracting the coach/business owner's responses.
- Ensure all answers are detailed and substantial (at least 2-3 sentences each when information is available)."""  # noqa: E501

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_extraction(content: str) -> TranscriptExtraction:
    """Parse the first ``{...}`` block of the AI reply.

    Raises:
        AIProviderError: If no JSON object can be parsed from the reply.
    """
    match = _JSON_OBJECT.search(content or "")
    if match is None:
        raise AIProviderError("Failed to extract JSON from AI response")
    try:
        return TranscriptExtraction.model_validate(json.loads(match.group(0)))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise AIProviderError(f"Failed to parse AI extraction: {e}") from e


def extraction_to_answers(extraction: TranscriptExtraction) -> Dict[str, str]:
    answers: Dict[str, str] = {}
    for idx, answer in enumerate(extraction.backstory_answers, start=1):
        answers[f"backstory_{idx}"] = answer
    for idx, answer in enumerate(extraction.anchor_answers, start=1):
        answers[f"anchor_{idx}"] = answer
    return answers


class TranscriptService:
    """Create persona runs from coaching call transcripts."""

    def __init__(self, repos: SqlRepoBundle, gateway: AIGateway, openai: OpenAIConfig) -> None:
        self.repos = repos
        self.gateway = gateway
        self.openai = openai

    async def extract(self, transcript: str, *, user_id: str) -> TranscriptExtraction:
        provider_id, model = await SettingsService(self.repos.settings).default_ai_choice()
        provider = await ProviderResolver(self.repos.providers, self.openai).resolve(provider_id, model)
        context = UsageContext(function_name="process-transcript", user_id=user_id)
        try:
            response = await self.gateway.complete(EXTRACTION_SYSTEM_PROMPT, f"TRANSCRIPT:\n\n{transcript}", provider)
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
        return parse_extraction(response.content)

    async def create_run(
        self, user: CurrentUser, transcript: str, target_user_id: str | None = None
    ) -> Tuple[PersonaRun, List[Codex], TranscriptExtraction]:
        """Extract answers and create a transcript-sourced run.

        Raises:
            PermissionDeniedError: A non-admin targeted another user.
            ValidationError: Empty transcript, or more than eight questions unanswered.
        """
        transcript = (transcript or "").strip()
        if not transcript:
            raise ValidationError("transcript_text is required")
        owner_id = target_user_id or user.id
        if owner_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Only admins can upload transcripts for other users")

        runs = PersonaRunService(self.repos)
        await runs.ensure_can_create(owner_id, is_admin=user.is_admin)

        logger.info(f"Processing transcript for user {owner_id} ({len(transcript)} characters)")
        extraction = await self.extract(transcript, user_id=user.id)
        if len(extraction.missing_questions) > MAX_MISSING_QUESTIONS:
            raise ValidationError(
                "Transcript quality too low",
                details={
                    "message": "Could not extract enough information from the transcript. "
                    "Please ensure the transcript is complete and covers the necessary topics.",
                    "extraction_result": extraction.model_dump(),
                },
            )

        if owner_id != user.id:
            await self.repos.profiles.get_or_create(owner_id)
        run, codexes = await runs.create_run(
            owner_id,
            title=constant.TRANSCRIPT_PERSONA_TITLE,
            answers=extraction_to_answers(extraction),
            source_type=PersonaRunSource.transcript,
            transcript=transcript,
            created_by=user.id,
        )
        return run, codexes, extraction
