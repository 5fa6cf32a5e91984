"""
Codex API Endpoints.

Regeneration of single sections or whole codexes and the per-codex PDF export.
"""

from fastapi import APIRouter, BackgroundTasks, Response, status

from codexalpha.core.models.io.persona_runs import CodexRead, CodexSectionRead
from codexalpha.server.core.security import CurrentUserDep
from codexalpha.server.services.deps import GenerationDep, PdfExportDep

from .persona_runs import file_response

router = APIRouter(tags=["codexes"])


@router.post(
    "/sections/{section_id}/regenerate",
    response_model=CodexSectionRead,
    summary="Regenerate Section",
    description="Regenerate one section now using the run's answers and the other codexes as context.",
    response_description="The regenerated section.",
    responses={
        403: {"description": "Run belongs to another user"},
        404: {"description": "Section not found"},
        409: {"description": "Regeneration cooldown still running"},
        502: {"description": "AI provider failure"},
    },
)
async def regenerate_section(section_id: str, user: CurrentUserDep, generation: GenerationDep) -> CodexSectionRead:
    """
    Regenerate a section.

    The call waits for the AI response. A cooldown configured by admins limits
    how often the same section can be regenerated; on conflict the response
    carries `available_at`.

    - **section_id**: The section identifier.
    """
    section = await generation.regenerate_section(section_id, user)
    return CodexSectionRead.model_validate(section)


@router.post(
    "/{codex_id}/regenerate",
    response_model=CodexRead,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Regenerate Codex",
    description="Reset every section of a codex and generate it again in the background.",
    response_description="The reset codex.",
    responses={
        403: {"description": "Run belongs to another user"},
        404: {"description": "Codex not found"},
    },
)
async def regenerate_codex(
    codex_id: str, user: CurrentUserDep, generation: GenerationDep, background_tasks: BackgroundTasks
) -> CodexRead:
    """
    Regenerate a whole codex.

    - **codex_id**: The codex identifier.
    """
    codex = await generation.reset_codex(codex_id, user)
    background_tasks.add_task(generation.regenerate_codex, codex.id)
    return CodexRead.model_validate(codex)


@router.get(
    "/{codex_id}/pdf",
    summary="Download Codex PDF",
    description="Render a codex with the active PDF template.",
    response_description="application/pdf",
    responses={
        200: {"content": {"application/pdf": {}}},
        403: {"description": "Run belongs to another user"},
        404: {"description": "Codex not found"},
    },
)
async def download_codex_pdf(codex_id: str, user: CurrentUserDep, exports: PdfExportDep) -> Response:
    """
    Download one codex as PDF.
    """
    return file_response(await exports.codex_pdf(codex_id, user))
