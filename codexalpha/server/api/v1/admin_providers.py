"""
Admin AI Provider Endpoints.

Manage the OpenAI-compatible providers codex prompts can be routed to, store
their API keys, test connections and refresh their model lists. API keys are
write-only: responses only say whether an active key exists.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from codexalpha.core.models.io.admin import (
    AIProviderCreate,
    AIProviderRead,
    AIProviderUpdate,
    ProviderKeyInput,
    ProviderTestResult,
)
from codexalpha.server.core.security import AdminUserDep
from codexalpha.server.services.deps import ProviderAdminDep

router = APIRouter(tags=["admin-providers"])


@router.get(
    "",
    response_model=List[AIProviderRead],
    summary="List AI Providers",
    description="All configured AI providers with key status.",
)
async def list_providers(admin: AdminUserDep, providers: ProviderAdminDep) -> List[AIProviderRead]:
    """
    List AI providers.
    """
    return await providers.list_providers()


@router.post(
    "",
    response_model=AIProviderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create AI Provider",
    description="Register an AI provider, optionally with its API key.",
    responses={400: {"description": "Unsupported provider code"}},
)
async def create_provider(data: AIProviderCreate, admin: AdminUserDep, providers: ProviderAdminDep) -> AIProviderRead:
    """
    Create an AI provider.

    - **provider_code**: `openai`, `deepseek` or `perplexity`.
    - **base_url**: OpenAI-compatible API root, e.g. `https://api.deepseek.com/v1`.
    - **is_default**: Makes this the only default provider.
    - **api_key**: Optional; stored as the provider's active key.
    """
    return await providers.create(data, admin)


@router.patch(
    "/{provider_id}",
    response_model=AIProviderRead,
    summary="Update AI Provider",
    responses={
        400: {"description": "Unsupported provider code"},
        404: {"description": "Provider not found"},
    },
)
async def update_provider(
    provider_id: str, data: AIProviderUpdate, admin: AdminUserDep, providers: ProviderAdminDep
) -> AIProviderRead:
    """
    Update an AI provider. Only fields present in the body are changed.
    """
    return await providers.update(provider_id, data, admin)


@router.delete(
    "/{provider_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete AI Provider",
    responses={404: {"description": "Provider not found"}},
)
async def delete_provider(provider_id: str, admin: AdminUserDep, providers: ProviderAdminDep) -> Response:
    """
    Delete an AI provider and its keys.

    Codex prompts pointing at the provider fall back to the default provider.
    """
    await providers.delete(provider_id, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{provider_id}/key",
    response_model=AIProviderRead,
    summary="Store API Key",
    description="Store a new active API key; previous keys are deactivated.",
    responses={404: {"description": "Provider not found"}},
)
async def store_provider_key(
    provider_id: str, key_in: ProviderKeyInput, admin: AdminUserDep, providers: ProviderAdminDep
) -> AIProviderRead:
    """
    Store an API key.
    """
    return await providers.store_key(provider_id, key_in.api_key, admin)


@router.post(
    "/{provider_id}/test",
    response_model=ProviderTestResult,
    summary="Test AI Provider",
    description="Send a one-sentence prompt through the provider and record the outcome on its key.",
    responses={
        400: {"description": "Provider inactive or missing base URL or key"},
        404: {"description": "Provider not found"},
    },
)
async def test_provider(
    provider_id: str,
    admin: AdminUserDep,
    providers: ProviderAdminDep,
    model: Optional[str] = Query(default=None, description="Model to test, defaults to the provider default"),
) -> ProviderTestResult:
    """
    Test a provider connection.

    A failing provider is reported with `success: false`, not as an HTTP error.
    """
    return await providers.test(provider_id, admin, model)


@router.post(
    "/{provider_id}/models/refresh",
    response_model=List[str],
    summary="Refresh Models",
    description="Fetch the provider's model list and store it.",
    responses={
        400: {"description": "Provider missing base URL or key"},
        404: {"description": "Provider not found"},
        502: {"description": "Provider request failed"},
    },
)
async def refresh_models(provider_id: str, admin: AdminUserDep, providers: ProviderAdminDep) -> List[str]:
    """
    Refresh the available models of a provider.
    """
    return await providers.refresh_models(provider_id, admin)
