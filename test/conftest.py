"""Session-wide test setup: test environment variables and the offline HTTP guard."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from dotenv import load_dotenv

# Must run before any codexalpha import so the settings pick up the test values
TEST_ROOT = Path(__file__).resolve().parent
load_dotenv(TEST_ROOT / ".env", override=False)
load_dotenv(TEST_ROOT / ".env.example", override=False)

# Fake AI providers and Resend live on mock-* hosts; the app itself on localhost/testserver
OFFLINE_HOSTS = ("localhost", "127.0.0.1", "0.0.0.0", "testserver")


def _is_offline(url: httpx.URL) -> bool:
    host = url.host or ""
    return host.startswith("mock") or host in OFFLINE_HOSTS


@pytest.fixture(autouse=True)
def _offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    """Fail any test that would reach a real AI provider or mail service."""
    sync_send = httpx.Client.send
    async_send = httpx.AsyncClient.send

    def guarded_send(self, request: httpx.Request, *args, **kwargs):
        if not _is_offline(request.url):
            raise RuntimeError(f"External HTTP blocked in tests: {request.url}")
        return sync_send(self, request, *args, **kwargs)

    async def guarded_async_send(self, request: httpx.Request, *args, **kwargs):
        if not _is_offline(request.url):
            raise RuntimeError(f"External HTTP blocked in tests: {request.url}")
        return await async_send(self, request, *args, **kwargs)

    monkeypatch.setattr(httpx.Client, "send", guarded_send)
    monkeypatch.setattr(httpx.AsyncClient, "send", guarded_async_send)
