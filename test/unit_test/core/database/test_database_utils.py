"""Unit tests for engine and session factory helpers."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import DateTime, inspect

from codexalpha.core.database import create_all, create_engine, create_sessionmaker
from codexalpha.core.database import entities  # noqa: F401
from codexalpha.core.database.base import Base, as_naive_utc, new_id, utc_now
from codexalpha.core.database.entities.shared_links import SharedLink
from codexalpha.core.database.utils import normalize_database_url


@pytest.mark.parametrize(
    "url",
    [
        "postgres://user:pw@db:5432/codexalpha",
        "postgresql://user:pw@db:5432/codexalpha",
        "postgresql+psycopg2://user:pw@db:5432/codexalpha",
    ],
)
async def test_postgres_urls_use_asyncpg(url):
    engine = create_engine(url)
    try:
        assert engine.url.drivername == "postgresql+asyncpg"
        assert engine.url.database == "codexalpha"
    finally:
        await engine.dispose()


async def test_create_all_builds_every_table(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'schema.db'}")
    try:
        await create_all(engine)
        async with engine.connect() as conn:
            tables = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
    finally:
        await engine.dispose()

    assert {
        "profiles",
        "persona_runs",
        "codexes",
        "codex_sections",
        "codex_prompts",
        "shared_links",
        "system_settings",
        "lightathon_enrollments",
        "ai_usage_logs",
    } <= tables


def test_sessions_keep_objects_after_commit():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    assert create_sessionmaker(engine).kw["expire_on_commit"] is False


def test_ids_and_timestamps():
    assert new_id() != new_id()
    assert len(new_id()) == 36
    assert utc_now().tzinfo is None


def test_non_postgres_urls_are_untouched():
    assert normalize_database_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"
    assert normalize_database_url("postgresql+asyncpg://db/x") == "postgresql+asyncpg://db/x"


def test_timestamp_columns_are_naive_datetime():
    timestamp_columns = [
        column
        for table in Base.metadata.tables.values()
        for column in table.columns
        if column.name.endswith("_at")
    ]

    assert timestamp_columns
    for column in timestamp_columns:
        assert type(column.type) is DateTime, column
        assert column.type.timezone is False, column


async def test_timestamps_round_trip(session_factory):
    expires = utc_now() + timedelta(days=7)
    async with session_factory() as session:
        link = SharedLink(persona_run_id="run-1", created_by="user-1", share_token="t" * 64, expires_at=expires)
        session.add(link)
        await session.commit()
        link_id = link.id

    async with session_factory() as session:
        stored = await session.get(SharedLink, link_id)

    assert stored.expires_at == expires
    assert stored.expires_at.tzinfo is None
    assert stored.created_at.tzinfo is None
    assert stored.expires_at > utc_now()


def test_as_naive_utc():
    aware = datetime(2026, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))

    assert as_naive_utc(aware) == datetime(2026, 1, 1, 10, 0)
    assert as_naive_utc(datetime(2026, 1, 1, 10, 0)) == datetime(2026, 1, 1, 10, 0)
    assert as_naive_utc(None) is None
