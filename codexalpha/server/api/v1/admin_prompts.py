"""
Admin Prompt Catalog Endpoints.

Codex prompts define which codexes a persona run produces, their sections,
the AI provider and model used for each, dependencies between codexes, which
questionnaire answers each codex sees and optional multi-step AI chains.
Every prompt change is versioned and can be restored.

The questionnaire catalog (categories and questions) is managed here too, and
any prompt or question text can be rewritten by the default AI provider.
"""

from typing import List

from fastapi import APIRouter, Query, status

from codexalpha.core.models.io.prompts import (
    AIStepRead,
    AIStepsUpdate,
    CodexPromptCreate,
    CodexPromptDetail,
    CodexPromptRead,
    CodexPromptUpdate,
    CodexSectionPromptCreate,
    CodexSectionPromptRead,
    CodexSectionPromptUpdate,
    DependenciesUpdate,
    PromptHistoryRead,
    QuestionMappingsUpdate,
    QuestionnaireCategoryInput,
    QuestionnaireCategoryRead,
    QuestionnaireQuestionInput,
    QuestionnaireQuestionRead,
    TextOptimizeRequest,
    TextOptimizeResult,
)
from codexalpha.server.core.security import AdminUserDep
from codexalpha.server.services.deps import PromptCatalogDep, TextOptimizerDep

router = APIRouter(tags=["admin-prompts"])


@router.get(
    "/codex-prompts",
    response_model=List[CodexPromptRead],
    summary="List Codex Prompts",
    description="Codex prompts in display order.",
)
async def list_codex_prompts(
    admin: AdminUserDep,
    catalog: PromptCatalogDep,
    active_only: bool = Query(default=False, description="Only active prompts"),
) -> List[CodexPromptRead]:
    """
    List codex prompts.
    """
    return [CodexPromptRead.model_validate(p) for p in await catalog.list_prompts(active_only=active_only)]


@router.post(
    "/codex-prompts",
    response_model=CodexPromptRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Codex Prompt",
    responses={400: {"description": "Invalid word count range"}},
)
async def create_codex_prompt(
    data: CodexPromptCreate, admin: AdminUserDep, catalog: PromptCatalogDep
) -> CodexPromptRead:
    """
    Create a codex prompt.

    - **codex_name**: Name shown to users; also used to find the Lightathon codex.
    - **system_prompt**: System message for every section of this codex.
    - **display_order**: Generation and display order.
    - **use_pricing_brackets**: At most one prompt carries this flag.
    - **ai_execution_mode**: `single`, `single_with_review`, `multi_step` or `multi_step_with_review`.
    """
    return CodexPromptRead.model_validate(await catalog.create_prompt(data, admin))


@router.get(
    "/codex-prompts/{prompt_id}",
    response_model=CodexPromptDetail,
    summary="Get Codex Prompt",
    description="A codex prompt with sections, dependencies, question mappings and AI steps.",
    responses={404: {"description": "Codex prompt not found"}},
)
async def get_codex_prompt(prompt_id: str, admin: AdminUserDep, catalog: PromptCatalogDep) -> CodexPromptDetail:
    """
    Get a codex prompt.
    """
    return await catalog.detail(prompt_id)


@router.patch(
    "/codex-prompts/{prompt_id}",
    response_model=CodexPromptRead,
    summary="Update Codex Prompt",
    description="Update a codex prompt; the previous state is saved as a history version.",
    responses={
        400: {"description": "Invalid word count range"},
        404: {"description": "Codex prompt not found"},
    },
)
async def update_codex_prompt(
    prompt_id: str, data: CodexPromptUpdate, admin: AdminUserDep, catalog: PromptCatalogDep
) -> CodexPromptRead:
    """
    Update a codex prompt.

    - **change_description**: Optional note stored with the history version.
    """
    return CodexPromptRead.model_validate(await catalog.update_prompt(prompt_id, data, admin))


@router.delete(
    "/codex-prompts/{prompt_id}",
    response_model=CodexPromptRead,
    summary="Deactivate Codex Prompt",
    description="Deactivate a codex prompt. Existing codexes are kept; new runs no longer include it.",
    responses={404: {"description": "Codex prompt not found"}},
)
async def deactivate_codex_prompt(
    prompt_id: str, admin: AdminUserDep, catalog: PromptCatalogDep
) -> CodexPromptRead:
    """
    Deactivate a codex prompt.
    """
    return CodexPromptRead.model_validate(await catalog.deactivate_prompt(prompt_id, admin))


@router.get(
    "/codex-prompts/{prompt_id}/history",
    response_model=List[PromptHistoryRead],
    summary="Prompt History",
    description="Saved versions of a codex prompt, newest first.",
    responses={404: {"description": "Codex prompt not found"}},
)
async def codex_prompt_history(
    prompt_id: str, admin: AdminUserDep, catalog: PromptCatalogDep
) -> List[PromptHistoryRead]:
    """
    List history versions.
    """
    return [PromptHistoryRead.model_validate(h) for h in await catalog.history(prompt_id)]


@router.post(
    "/codex-prompts/{prompt_id}/history/{version_number}/restore",
    response_model=CodexPromptRead,
    summary="Restore Prompt Version",
    description="Restore a codex prompt and its sections to a saved version.",
    responses={404: {"description": "Codex prompt or version not found"}},
)
async def restore_codex_prompt(
    prompt_id: str, version_number: int, admin: AdminUserDep, catalog: PromptCatalogDep
) -> CodexPromptRead:
    """
    Restore a history version.

    The current state is saved as a new version first, so a restore can be undone.
    """
    return CodexPromptRead.model_validate(await catalog.restore(prompt_id, version_number, admin))


@router.post(
    "/codex-prompts/{prompt_id}/sections",
    response_model=CodexSectionPromptRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Section Prompt",
    responses={404: {"description": "Codex prompt not found"}},
)
async def add_section_prompt(
    prompt_id: str, data: CodexSectionPromptCreate, admin: AdminUserDep, catalog: PromptCatalogDep
) -> CodexSectionPromptRead:
    """
    Add a section to a codex prompt.

    - **section_name**: Section title.
    - **section_prompt**: Instructions for this section.
    - **section_index**: Position within the codex.
    """
    return CodexSectionPromptRead.model_validate(await catalog.add_section(prompt_id, data, admin))


@router.patch(
    "/section-prompts/{section_prompt_id}",
    response_model=CodexSectionPromptRead,
    summary="Update Section Prompt",
    responses={404: {"description": "Section prompt not found"}},
)
async def update_section_prompt(
    section_prompt_id: str, data: CodexSectionPromptUpdate, admin: AdminUserDep, catalog: PromptCatalogDep
) -> CodexSectionPromptRead:
    """
    Update a section prompt.
    """
    return CodexSectionPromptRead.model_validate(await catalog.update_section(section_prompt_id, data, admin))


@router.delete(
    "/section-prompts/{section_prompt_id}",
    response_model=CodexSectionPromptRead,
    summary="Deactivate Section Prompt",
    responses={404: {"description": "Section prompt not found"}},
)
async def deactivate_section_prompt(
    section_prompt_id: str, admin: AdminUserDep, catalog: PromptCatalogDep
) -> CodexSectionPromptRead:
    """
    Deactivate a section prompt.
    """
    return CodexSectionPromptRead.model_validate(await catalog.deactivate_section(section_prompt_id, admin))


@router.put(
    "/codex-prompts/{prompt_id}/dependencies",
    response_model=List[str],
    summary="Set Dependencies",
    description="Replace the codexes whose content is given as context to this one.",
    responses={
        400: {"description": "Self dependency"},
        404: {"description": "Codex prompt not found"},
    },
)
async def set_dependencies(
    prompt_id: str, data: DependenciesUpdate, admin: AdminUserDep, catalog: PromptCatalogDep
) -> List[str]:
    """
    Set codex dependencies.

    - **depends_on_ids**: Codex prompt ids, in the order their content is given to the AI.
    """
    return await catalog.set_dependencies(prompt_id, data.depends_on_ids, admin)


@router.put(
    "/codex-prompts/{prompt_id}/questions",
    response_model=List[str],
    summary="Set Question Mappings",
    description="Restrict the questionnaire answers this codex sees. An empty list means all answers.",
    responses={
        400: {"description": "Unknown question"},
        404: {"description": "Codex prompt not found"},
    },
)
async def set_question_mappings(
    prompt_id: str, data: QuestionMappingsUpdate, admin: AdminUserDep, catalog: PromptCatalogDep
) -> List[str]:
    """
    Set question mappings.
    """
    return await catalog.set_question_mappings(prompt_id, data.question_ids, admin)


@router.put(
    "/codex-prompts/{prompt_id}/steps",
    response_model=List[AIStepRead],
    summary="Set Codex AI Steps",
    description="Replace the multi-step AI chain used by every section of this codex.",
    responses={404: {"description": "Codex prompt not found"}},
)
async def set_codex_steps(
    prompt_id: str, data: AIStepsUpdate, admin: AdminUserDep, catalog: PromptCatalogDep
) -> List[AIStepRead]:
    """
    Set codex AI steps.

    Each step may use its own provider and model and sees the previous step's output.
    """
    return [AIStepRead.model_validate(s) for s in await catalog.set_codex_steps(prompt_id, data.steps, admin)]


@router.put(
    "/section-prompts/{section_prompt_id}/steps",
    response_model=List[AIStepRead],
    summary="Set Section AI Steps",
    description="Replace the multi-step AI chain of one section; overrides the codex chain.",
    responses={404: {"description": "Section prompt not found"}},
)
async def set_section_steps(
    section_prompt_id: str, data: AIStepsUpdate, admin: AdminUserDep, catalog: PromptCatalogDep
) -> List[AIStepRead]:
    """
    Set section AI steps.
    """
    steps = await catalog.set_section_steps(section_prompt_id, data.steps, admin)
    return [AIStepRead.model_validate(s) for s in steps]


@router.get(
    "/questionnaire",
    response_model=List[QuestionnaireCategoryRead],
    summary="Questionnaire Catalog",
    description="All categories and questions, including inactive ones.",
)
async def questionnaire_catalog(admin: AdminUserDep, catalog: PromptCatalogDep) -> List[QuestionnaireCategoryRead]:
    """
    Get the full questionnaire catalog.
    """
    return await catalog.questionnaire(active_only=False)


@router.post(
    "/questionnaire/categories",
    response_model=QuestionnaireCategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Category",
)
async def create_category(
    data: QuestionnaireCategoryInput, admin: AdminUserDep, catalog: PromptCatalogDep
) -> QuestionnaireCategoryRead:
    """
    Create a questionnaire category.
    """
    return QuestionnaireCategoryRead.model_validate(await catalog.save_category(data, admin))


@router.put(
    "/questionnaire/categories/{category_id}",
    response_model=QuestionnaireCategoryRead,
    summary="Update Category",
    responses={404: {"description": "Category not found"}},
)
async def update_category(
    category_id: str, data: QuestionnaireCategoryInput, admin: AdminUserDep, catalog: PromptCatalogDep
) -> QuestionnaireCategoryRead:
    """
    Update a questionnaire category.
    """
    return QuestionnaireCategoryRead.model_validate(await catalog.save_category(data, admin, category_id))


@router.post(
    "/questionnaire/questions",
    response_model=QuestionnaireQuestionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Question",
    responses={400: {"description": "Unknown category"}},
)
async def create_question(
    data: QuestionnaireQuestionInput, admin: AdminUserDep, catalog: PromptCatalogDep
) -> QuestionnaireQuestionRead:
    """
    Create a questionnaire question.
    """
    return QuestionnaireQuestionRead.model_validate(await catalog.save_question(data, admin))


@router.put(
    "/questionnaire/questions/{question_id}",
    response_model=QuestionnaireQuestionRead,
    summary="Update Question",
    responses={
        400: {"description": "Unknown category"},
        404: {"description": "Question not found"},
    },
)
async def update_question(
    question_id: str, data: QuestionnaireQuestionInput, admin: AdminUserDep, catalog: PromptCatalogDep
) -> QuestionnaireQuestionRead:
    """
    Update a questionnaire question.
    """
    return QuestionnaireQuestionRead.model_validate(await catalog.save_question(data, admin, question_id))


@router.post(
    "/optimize-text",
    response_model=TextOptimizeResult,
    summary="Optimize Text",
    description="Rewrite a question or prompt with the default AI provider.",
    response_description="The rewritten text; nothing is saved.",
    responses={
        400: {"description": "Blank text"},
        502: {"description": "AI provider failure"},
        503: {"description": "No AI provider configured"},
    },
)
async def optimize_text(
    data: TextOptimizeRequest, admin: AdminUserDep, optimizer: TextOptimizerDep
) -> TextOptimizeResult:
    """
    Optimize admin text.

    - **text**: The text to rewrite.
    - **type**: `question`, `prompt`, `system_prompt`, `section_prompt` or `merge_prompt`.
    """
    return TextOptimizeResult(optimized_text=await optimizer.optimize(data.text, data.type, admin))
