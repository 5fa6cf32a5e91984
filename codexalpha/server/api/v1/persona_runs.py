"""
Persona Runs API Endpoints.

This module provides the interface for creating persona runs from
questionnaire answers or call transcripts, following their generation, and
managing them afterwards (cancel, retry, admin edits, resync, regenerate, full
rerun, delete, exports).

Generation runs in the background: creating a run returns immediately with
the run id and the client polls the run detail for codex and section status.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, BackgroundTasks, Response, status

from codexalpha.core.errors import PermissionDeniedError
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.io.persona_runs import (
    CodexResyncResult,
    PersonaRunAdminUpdate,
    PersonaRunCreate,
    PersonaRunCreated,
    PersonaRunDetail,
    PersonaRunRead,
    RetryRequest,
    RetryResult,
    RunRegenerationStarted,
    TranscriptRunCreate,
    TranscriptRunCreated,
    TriggerGeneration,
)
from codexalpha.server.core.security import AdminUserDep, CurrentUserDep
from codexalpha.server.services.deps import (
    GenerationDep,
    PdfExportDep,
    PersonaRunsDep,
    TranscriptDep,
)
from codexalpha.server.services.pdf_export import ExportedFile

logger = get_logger(__name__)
router = APIRouter(tags=["persona-runs"])


def file_response(exported: ExportedFile) -> Response:
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.file_name}"'},
    )


@router.post(
    "",
    response_model=PersonaRunCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create Persona Run",
    description="Create a persona run from questionnaire answers and start generating its codexes.",
    response_description="The new run id and the number of codexes scheduled.",
    responses={
        201: {"description": "Run created, generation scheduled"},
        400: {"description": "Invalid title or answers, or no active codex prompts"},
        403: {"description": "User blocked or run limit reached"},
    },
)
async def create_persona_run(
    run_in: PersonaRunCreate,
    user: CurrentUserDep,
    runs: PersonaRunsDep,
    generation: GenerationDep,
    background_tasks: BackgroundTasks,
) -> PersonaRunCreated:
    """
    Create a persona run.

    One codex is created per active codex prompt; sections are generated in
    the background in codex order.

    - **title**: Optional run title (1-200 characters), defaults to "My Coach Persona".
    - **answers**: Answers keyed by question id. Values are strings or
      `{question, answer, category}` objects, each answer at most 50 000 characters.

    Non-admin users may create one run unless an admin granted them unlimited runs.
    """
    run, codexes = await runs.create_from_questionnaire(user, title=run_in.title, answers=run_in.answers)
    background_tasks.add_task(generation.orchestrate_run, run.id)
    return PersonaRunCreated(persona_run_id=run.id, codexes_count=len(codexes))


@router.post(
    "/transcript",
    response_model=TranscriptRunCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create Persona Run From Transcript",
    description="Extract questionnaire answers from a call transcript with AI and create a run from them.",
    response_description="The new run id and what the AI extracted.",
    responses={
        201: {"description": "Run created, generation scheduled"},
        400: {"description": "Empty transcript or transcript quality too low"},
        403: {"description": "Not allowed to create a run for this user"},
        502: {"description": "AI provider failure"},
    },
)
async def create_persona_run_from_transcript(
    run_in: TranscriptRunCreate,
    user: CurrentUserDep,
    transcripts: TranscriptDep,
    generation: GenerationDep,
    background_tasks: BackgroundTasks,
) -> TranscriptRunCreated:
    """
    Create a persona run from a transcript.

    The AI extracts 10 backstory answers and 3 anchor answers. When more than
    8 questions could not be answered the transcript is rejected.

    - **transcript_text**: The plain text transcript.
    - **target_user_id**: Admins only; create the run on behalf of another user.
    """
    run, codexes, extraction = await transcripts.create_run(user, run_in.transcript_text, run_in.target_user_id)
    background_tasks.add_task(generation.orchestrate_run, run.id)
    return TranscriptRunCreated(persona_run_id=run.id, codexes_count=len(codexes), extraction=extraction)


@router.get(
    "",
    response_model=List[PersonaRunRead],
    summary="List My Persona Runs",
    description="Retrieve the caller's persona runs, newest first.",
    response_description="A list of persona run summaries.",
)
async def list_persona_runs(user: CurrentUserDep, runs: PersonaRunsDep) -> List[PersonaRunRead]:
    """
    List the caller's persona runs.

    Use the detail endpoint to get codexes and sections.
    """
    return [PersonaRunRead.model_validate(r) for r in await runs.list_for_user(user.id)]


@router.get(
    "/{persona_run_id}",
    response_model=PersonaRunDetail,
    summary="Get Persona Run",
    description="Retrieve a persona run with its answers, codexes and sections.",
    response_description="The persona run detail.",
    responses={
        403: {"description": "Run belongs to another user"},
        404: {"description": "Run not found"},
    },
)
async def get_persona_run(persona_run_id: str, user: CurrentUserDep, runs: PersonaRunsDep) -> PersonaRunDetail:
    """
    Get a persona run.

    Available to the owner and to admins.

    - **persona_run_id**: The run identifier.
    """
    return await runs.get_detail(persona_run_id, user)


@router.post(
    "/{persona_run_id}/cancel",
    response_model=PersonaRunRead,
    summary="Cancel Persona Run",
    description="Stop further generation of a persona run.",
    response_description="The updated persona run.",
    responses={
        403: {"description": "Run belongs to another user"},
        404: {"description": "Run not found"},
    },
)
async def cancel_persona_run(persona_run_id: str, user: CurrentUserDep, runs: PersonaRunsDep) -> PersonaRunRead:
    """
    Cancel a persona run.

    The section being generated finishes; no further sections are started.
    """
    return PersonaRunRead.model_validate(await runs.cancel(persona_run_id, user))


@router.post(
    "/{persona_run_id}/generate",
    response_model=PersonaRunRead,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Trigger Generation",
    description="Resume generation of a run, optionally starting with a given codex.",
    response_description="The persona run; generation continues in the background.",
    responses={
        403: {"description": "Run belongs to another user"},
        404: {"description": "Run not found"},
    },
)
async def trigger_generation(
    persona_run_id: str,
    trigger: TriggerGeneration,
    user: CurrentUserDep,
    runs: PersonaRunsDep,
    generation: GenerationDep,
    background_tasks: BackgroundTasks,
) -> PersonaRunRead:
    """
    Trigger generation.

    Codexes already finished are skipped.

    - **codex_id**: Optional codex to generate first.
    """
    run = await runs.get_owned(persona_run_id, user)
    background_tasks.add_task(generation.orchestrate_run, run.id, trigger.codex_id)
    return PersonaRunRead.model_validate(run)


@router.post(
    "/retry-pending",
    response_model=RetryResult,
    summary="Retry Pending Sections",
    description="Retry sections left pending or stuck in generating (scheduled job, admin only).",
    response_description="How many sections were retried and how many failed again.",
    responses={403: {"description": "Admin access required"}},
)
async def retry_pending_sections(
    request: RetryRequest, admin: AdminUserDep, generation: GenerationDep
) -> RetryResult:
    """
    Retry pending sections.

    Sections pending for more than 5 minutes or generating without progress for
    10 minutes are retried in batches of 5.

    - **persona_run_id**: Optional; restrict the retry to one run.
    """
    summary = await generation.retry_pending_sections(request.persona_run_id)
    return RetryResult(**asdict(summary))


@router.post(
    "/retry-errors",
    response_model=RetryResult,
    summary="Retry Failed Sections",
    description="Reset failed sections to pending and retry them.",
    response_description="How many sections were retried and how many failed again.",
    responses={
        403: {"description": "Not the owner of the run, or no run given and not an admin"},
        404: {"description": "Run not found"},
    },
)
async def retry_error_sections(
    request: RetryRequest, user: CurrentUserDep, runs: PersonaRunsDep, generation: GenerationDep
) -> RetryResult:
    """
    Retry failed sections.

    Owners may retry their own run; retrying across all runs requires admin access.

    - **persona_run_id**: The run to retry; omit (admins only) for every run.
    """
    if request.persona_run_id:
        await runs.get_owned(request.persona_run_id, user)
    elif not user.is_admin:
        raise PermissionDeniedError("Admin access required")
    summary = await generation.retry_error_sections(request.persona_run_id)
    return RetryResult(**asdict(summary))


@router.post(
    "/{persona_run_id}/rerun",
    response_model=PersonaRunCreated,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Full Rerun",
    description="Delete the run's codexes, recreate them from the active catalog and generate again (admin only).",
    response_description="The run id and the number of recreated codexes.",
    responses={
        403: {"description": "Admin access required"},
        404: {"description": "Run not found"},
        409: {"description": "Run has a Lightathon enrollment"},
    },
)
async def rerun_persona_run(
    persona_run_id: str,
    admin: AdminUserDep,
    runs: PersonaRunsDep,
    generation: GenerationDep,
    background_tasks: BackgroundTasks,
) -> PersonaRunCreated:
    """
    Full rerun of a persona run.

    Answers are kept; every codex is regenerated from scratch.
    """
    codexes = await runs.reset_for_rerun(persona_run_id, admin)
    background_tasks.add_task(generation.orchestrate_run, persona_run_id)
    return PersonaRunCreated(persona_run_id=persona_run_id, codexes_count=len(codexes))


@router.patch(
    "/{persona_run_id}",
    response_model=PersonaRunDetail,
    summary="Update Persona Run",
    description="Correct the title or answers of a persona run (admin only).",
    response_description="The updated persona run detail.",
    responses={
        400: {"description": "Nothing to update, or invalid title or answers"},
        403: {"description": "Admin access required"},
        404: {"description": "Run not found"},
    },
)
async def update_persona_run(
    persona_run_id: str, update: PersonaRunAdminUpdate, admin: AdminUserDep, runs: PersonaRunsDep
) -> PersonaRunDetail:
    """
    Update a persona run.

    Generated codexes are not touched; use regenerate or rerun afterwards.

    - **title**: Optional new title.
    - **answers**: Optional replacement answers, validated like on creation.
    """
    run = await runs.admin_update(persona_run_id, admin, title=update.title, answers=update.answers)
    return await runs.get_detail(run.id, admin)


@router.post(
    "/{persona_run_id}/resync",
    response_model=CodexResyncResult,
    summary="Resync Codexes",
    description="Add codexes and sections activated in the catalog since the run was created (admin only).",
    response_description="How many codexes and sections were added.",
    responses={
        403: {"description": "Admin access required"},
        404: {"description": "Run not found"},
    },
)
async def resync_codexes(
    persona_run_id: str,
    admin: AdminUserDep,
    runs: PersonaRunsDep,
    generation: GenerationDep,
    background_tasks: BackgroundTasks,
) -> CodexResyncResult:
    """
    Resync a run with the active catalog.

    Finished codexes keep their content. When anything was added, generation
    resumes in the background.
    """
    result = await runs.resync_codexes(persona_run_id, admin)
    if result.added_codexes or result.added_sections:
        background_tasks.add_task(generation.orchestrate_run, persona_run_id)
    return result


@router.post(
    "/{persona_run_id}/regenerate",
    response_model=RunRegenerationStarted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Regenerate Stuck Sections",
    description="Reset every unfinished section of the run and retry it now (admin only).",
    response_description="How many sections were reset; generation continues in the background.",
    responses={
        400: {"description": "Run has no codexes"},
        403: {"description": "Admin access required"},
        404: {"description": "Run not found"},
    },
)
async def regenerate_persona_run(
    persona_run_id: str,
    admin: AdminUserDep,
    runs: PersonaRunsDep,
    generation: GenerationDep,
    background_tasks: BackgroundTasks,
) -> RunRegenerationStarted:
    """
    Regenerate the stuck and failed sections of a run.

    Completed sections are kept. Unlike the retry job, sections are retried
    regardless of how long they have been pending.
    """
    reset = await runs.reset_unfinished_sections(persona_run_id, admin)
    background_tasks.add_task(generation.regenerate_run, persona_run_id)
    return RunRegenerationStarted(persona_run_id=persona_run_id, reset_sections=reset)


@router.delete(
    "/{persona_run_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Persona Run",
    description="Delete a persona run with its codexes, share links and Lightathon data (admin only).",
    responses={
        403: {"description": "Admin access required"},
        404: {"description": "Run not found"},
    },
)
async def delete_persona_run(persona_run_id: str, admin: AdminUserDep, runs: PersonaRunsDep) -> Response:
    """
    Delete a persona run.

    - **persona_run_id**: The run identifier.
    """
    await runs.delete(persona_run_id, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{persona_run_id}/pdf",
    summary="Download Master PDF",
    description="Every ready codex of the run in one PDF with a cover and table of contents.",
    response_description="application/pdf",
    responses={
        200: {"content": {"application/pdf": {}}},
        400: {"description": "No completed codexes to export"},
        403: {"description": "Run belongs to another user"},
    },
)
async def download_master_pdf(persona_run_id: str, user: CurrentUserDep, exports: PdfExportDep) -> Response:
    """
    Download the master PDF of a run.
    """
    return file_response(await exports.master_pdf(persona_run_id, user))


@router.get(
    "/{persona_run_id}/zip",
    summary="Download All Codexes",
    description="A ZIP archive with one PDF per ready codex.",
    response_description="application/zip",
    responses={
        200: {"content": {"application/zip": {}}},
        400: {"description": "No completed codexes to export"},
        403: {"description": "Run belongs to another user"},
    },
)
async def download_zip(persona_run_id: str, user: CurrentUserDep, exports: PdfExportDep) -> Response:
    """
    Download every ready codex as a ZIP of PDFs.
    """
    return file_response(await exports.zip_archive(persona_run_id, user))
