"""
AI gateway.

A thin client for OpenAI-compatible chat completion endpoints. Every provider
the platform supports (OpenAI, DeepSeek, Perplexity) speaks the same wire
format, so one HTTP call shape serves them all; the gateway only routes on the
provider code to reject providers it cannot talk to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from codexalpha.core.errors import AIProviderError, UnsupportedProviderError
from codexalpha.core.logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_PROVIDER_CODES = frozenset({"openai", "deepseek", "perplexity"})


@dataclass(frozen=True)
class ProviderConfig:
    """Everything needed to call one provider with one model."""

    provider_code: str
    name: str
    base_url: str
    api_key: str = field(repr=False)
    model: str
    provider_id: Optional[str] = None


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class AIResponse:
    """Normalized chat completion result."""

    content: str
    usage: TokenUsage
    provider: str
    model: str


def ensure_chat_completions_url(base_url: Optional[str]) -> str:
    """Return the chat completions endpoint for a provider base URL.

    Trailing slashes are stripped and ``/chat/completions`` appended unless
    the URL already points at it.

    Raises:
        AIProviderError: If the base URL is empty.
    """
    safe_base = (base_url or "").strip()
    if not safe_base:
        raise AIProviderError("AI provider base URL is missing")
    url = safe_base.rstrip("/")
    if url.endswith("/chat/completions"):
        return url
    return f"{url}/chat/completions"


def models_url(base_url: str) -> str:
    url = base_url.strip().rstrip("/")
    if url.endswith("/chat/completions"):
        url = url[: -len("/chat/completions")]
    return f"{url}/models"


def _json_object(response: httpx.Response, message: str, details: Dict[str, Any]) -> Dict[str, Any]:
    """Decode a provider reply that must be a JSON object (proxies may answer 200 with an HTML page)."""
    try:
        data = response.json()
    except ValueError as e:
        raise AIProviderError(f"{message}: {response.text[:200]}", details=details) from e
    if not isinstance(data, dict):
        raise AIProviderError(f"{message}: expected a JSON object", details=details)
    return data


class AIGateway:
    """Async client for OpenAI-compatible providers.

    Args:
        client: Optional shared ``httpx.AsyncClient``; one is created per call
            when omitted.
        timeout: Request timeout in seconds for calls made with an owned client.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 120.0) -> None:
        self._client = client
        self._timeout = timeout

    async def _post(self, url: str, *, headers: Dict[str, str], json: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, headers=headers, json=json)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(url, headers=headers, json=json)

    async def _get(self, url: str, *, headers: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers=headers)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, headers=headers)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        provider: ProviderConfig,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        """Send one system + user prompt pair and return the first choice.

        Raises:
            UnsupportedProviderError: If the provider code is not supported.
            AIProviderError: On transport failure or a non-2xx response.
        """
        if provider.provider_code not in SUPPORTED_PROVIDER_CODES:
            raise UnsupportedProviderError(f"Unsupported AI provider: {provider.provider_code}")

        url = ensure_chat_completions_url(provider.base_url)
        payload: Dict[str, Any] = {
            "model": provider.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        logger.debug(f"Calling {provider.provider_code} model={provider.model}")
        try:
            response = await self._post(
                url,
                headers={"Authorization": f"Bearer {provider.api_key}", "Content-Type": "application/json"},
                json=payload,
            )
        except httpx.HTTPError as e:
            raise AIProviderError(
                f"{provider.name} request failed: {e}", details={"provider": provider.provider_code}
            ) from e

        if response.status_code >= 400:
            raise AIProviderError(
                f"{provider.name} returned {response.status_code}: {response.text[:500]}",
                details={"provider": provider.provider_code, "upstream_status": response.status_code},
            )

        details = {"provider": provider.provider_code}
        data = _json_object(response, f"{provider.name} returned an unreadable response", details)
        choices = data.get("choices") or [{}]
        first = choices[0] if isinstance(choices, list) and isinstance(choices[0], dict) else {}
        message = first.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        usage = data.get("usage") if isinstance(data.get("usage"), dict) else {}
        return AIResponse(
            content=content if isinstance(content, str) else "",
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens") or 0,
                completion_tokens=usage.get("completion_tokens") or 0,
                total_tokens=usage.get("total_tokens") or 0,
            ),
            provider=provider.provider_code,
            model=provider.model,
        )

    async def list_models(self, base_url: str, api_key: str) -> List[str]:
        """Model ids advertised by the provider's ``/models`` endpoint."""
        try:
            response = await self._get(models_url(base_url), headers={"Authorization": f"Bearer {api_key}"})
        except httpx.HTTPError as e:
            raise AIProviderError(f"Model listing failed: {e}") from e
        if response.status_code >= 400:
            raise AIProviderError(
                f"Model listing returned {response.status_code}",
                details={"upstream_status": response.status_code},
            )
        data = _json_object(response, "Model listing returned an unreadable response", {})
        models = data.get("data") if isinstance(data.get("data"), list) else []
        return sorted(m["id"] for m in models if isinstance(m, dict) and m.get("id"))
