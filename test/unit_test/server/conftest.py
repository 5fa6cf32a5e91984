from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable, Dict, Optional
from unittest.mock import patch

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from codexalpha.core.database.repositories.users import UserRoleRepository
from codexalpha.core.models.domain.enums import AppRole
from codexalpha.server.core.config import settings

TokenFactory = Callable[..., Dict[str, str]]


def make_token(user_id: str, email: Optional[str] = None, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Sign an access token the way the identity provider does."""
    auth = settings.auth
    payload = {"sub": user_id, "exp": datetime.now(timezone.utc) + expires_in}
    if auth.jwt_audience:
        payload["aud"] = auth.jwt_audience
    if email:
        payload["email"] = email
    return jwt.encode(payload, auth.jwt_secret, algorithm=auth.jwt_algorithm)


@pytest.fixture
def auth_headers() -> TokenFactory:
    def _headers(user_id: str = "user-1", email: Optional[str] = "coach@example.com") -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id, email)}"}

    return _headers


@pytest_asyncio.fixture
async def admin_headers(session: AsyncSession, auth_headers: TokenFactory) -> Dict[str, str]:
    """Headers of "admin-1", who holds the admin role."""
    await UserRoleRepository(session).grant("admin-1", AppRole.admin)
    return auth_headers("admin-1", "admin@example.com")


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    session_factory, gateway, openai_config, monkeypatch: pytest.MonkeyPatch
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from codexalpha.core.database import get_session, get_session_factory
    from codexalpha.server.main import app
    from codexalpha.server.services.deps import get_ai_gateway

    # AI calls go to the fake provider, retries never pause, passwords hash fast
    monkeypatch.setattr(settings, "openai_api_key", openai_config.api_key)
    monkeypatch.setattr(settings, "openai_base_url", openai_config.base_url)
    monkeypatch.setattr(settings, "retry_batch_size", 1)
    monkeypatch.setattr(settings, "retry_batch_delay", 0.0)
    monkeypatch.setattr(settings, "share_pbkdf2_iterations", 1000)
    monkeypatch.setattr(settings, "resend_api_key", None)

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_ai_gateway] = lambda: gateway

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("codexalpha.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()
