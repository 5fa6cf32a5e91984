import json
import os
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Use in-memory SQLite for the module-level engine; tests get their own database file
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from codexalpha.core.ai import AIGateway  # noqa: E402
from codexalpha.core.database import create_all, create_sessionmaker  # noqa: E402
from codexalpha.core.database.entities.codex_prompts import CodexPrompt, CodexSectionPrompt  # noqa: E402
from codexalpha.core.database.repositories.bundle import SqlRepoBundle, build_sql_repos_from_session  # noqa: E402
from codexalpha.server.core.config import GenerationConfig, NotificationConfig, OpenAIConfig  # noqa: E402
from codexalpha.server.core.security import CurrentUser  # noqa: E402
from codexalpha.server.services.generation import CodexGenerationService  # noqa: E402

MOCK_AI_BASE_URL = "http://mock-ai/v1"


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """A fresh SQLite database file per test, with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'codexalpha-test.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(test_engine)


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def repos(session: AsyncSession) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


@pytest.fixture
def user() -> CurrentUser:
    return CurrentUser(id="user-1", email="coach@example.com")


@pytest.fixture
def other_user() -> CurrentUser:
    return CurrentUser(id="user-2", email="someone@example.com")


@pytest.fixture
def admin() -> CurrentUser:
    return CurrentUser(id="admin-1", email="admin@example.com", roles={"admin"})


# ---------------------------------------------------------------------------
# Fake OpenAI-compatible provider
# ---------------------------------------------------------------------------


@dataclass
class FakeAIProvider:
    """Answers chat completion and model listing requests like an OpenAI-compatible API.

    Replies are taken from ``replies`` in order, then ``default_reply``. A
    request matching ``fail_if`` (or any request while ``status_code`` is an
    error) gets an error response.
    """

    default_reply: str = "Generated **section** content."
    replies: List[str] = field(default_factory=list)
    status_code: int = 200
    fail_if: Optional[Callable[[Dict[str, Any]], bool]] = None
    models: List[str] = field(default_factory=lambda: ["gpt-4o", "gpt-4o-mini"])
    requests: List[Dict[str, Any]] = field(default_factory=list)
    headers: List[Dict[str, str]] = field(default_factory=list)

    def user_prompts(self) -> List[str]:
        return [r["messages"][1]["content"] for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.headers.append(dict(request.headers))
        if request.method == "GET" and request.url.path.endswith("/models"):
            return httpx.Response(200, json={"data": [{"id": m} for m in self.models]})

        body = json.loads(request.content)
        self.requests.append(body)
        if self.status_code >= 400 or (self.fail_if is not None and self.fail_if(body)):
            return httpx.Response(self.status_code if self.status_code >= 400 else 500, text="upstream failure")
        content = self.replies.pop(0) if self.replies else self.default_reply
        return httpx.Response(
            200,
            json={
                "model": body["model"],
                "choices": [{"message": {"role": "assistant", "content": content}}],
                "usage": {"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": 150},
            },
        )


@pytest.fixture
def fake_ai() -> FakeAIProvider:
    return FakeAIProvider()


@pytest_asyncio.fixture
async def gateway(fake_ai: FakeAIProvider) -> AsyncGenerator[AIGateway, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_ai.handler)) as client:
        yield AIGateway(client=client)


@pytest.fixture
def openai_config() -> OpenAIConfig:
    return OpenAIConfig(api_key="sk-test", base_url=MOCK_AI_BASE_URL, model="gpt-4o-mini")


@pytest.fixture
def generation(session_factory, gateway: AIGateway, openai_config: OpenAIConfig) -> CodexGenerationService:
    """Generation service with sequential retries and no pause between batches."""

    async def no_sleep(_: float) -> None:
        return None

    return CodexGenerationService(
        session_factory,
        gateway,
        generation=GenerationConfig(batch_size=1, batch_delay_seconds=0),
        openai=openai_config,
        notifications=NotificationConfig(resend_api_key=None),
        public_app_url="http://localhost:5173",
        sleep=no_sleep,
    )


# ---------------------------------------------------------------------------
# Catalog seeding
# ---------------------------------------------------------------------------


@dataclass
class SeededCatalog:
    brand: CodexPrompt
    lightathon: CodexPrompt
    brand_sections: List[CodexSectionPrompt]
    lightathon_sections: List[CodexSectionPrompt]


@pytest_asyncio.fixture
async def catalog(session: AsyncSession) -> SeededCatalog:
    """Two active codex prompts: "Brand Story" (2 sections) and "21 Days Lightathon" (1 section)."""
    brand = CodexPrompt(codex_name="Brand Story", system_prompt="You write brand stories.", display_order=1)
    lightathon = CodexPrompt(
        codex_name="21 Days Lightathon", system_prompt="You design daily missions.", display_order=2
    )
    session.add_all([brand, lightathon])
    await session.commit()

    brand_sections = [
        CodexSectionPrompt(
            codex_prompt_id=brand.id, section_name="Origin", section_index=0, section_prompt="Write the origin story."
        ),
        CodexSectionPrompt(
            codex_prompt_id=brand.id, section_name="Mission", section_index=1, section_prompt="Write the mission."
        ),
    ]
    lightathon_sections = [
        CodexSectionPrompt(
            codex_prompt_id=lightathon.id,
            section_name="Missions",
            section_index=0,
            section_prompt="Write 21 daily missions.",
        )
    ]
    session.add_all([*brand_sections, *lightathon_sections])
    await session.commit()
    for entity in (brand, lightathon, *brand_sections, *lightathon_sections):
        await session.refresh(entity)
    return SeededCatalog(brand, lightathon, brand_sections, lightathon_sections)


@pytest_asyncio.fixture
async def fresh_repos(session_factory) -> AsyncGenerator[Callable[[], SqlRepoBundle], None]:
    """Open repository bundles on new sessions, to read what other sessions committed."""
    sessions: List[AsyncSession] = []

    def _open() -> SqlRepoBundle:
        new_session = session_factory()
        sessions.append(new_session)
        return build_sql_repos_from_session(session=new_session)

    yield _open
    for opened in sessions:
        await opened.close()
