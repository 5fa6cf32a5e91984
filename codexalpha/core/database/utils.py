"""
Engine and session-factory helpers.

PostgreSQL (asyncpg) runs in production, in-memory SQLite (aiosqlite) in the
tests; both go through these helpers so the rest of the code never builds an
engine by hand.
"""

from __future__ import annotations

import re

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .base import Base

# postgres://, postgresql:// and postgresql+<driver>:// all end up on asyncpg
_POSTGRES_URL = re.compile(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://")


def normalize_database_url(db_url: str) -> str:
    """Rewrite any PostgreSQL URL flavour (as handed out by hosting providers) to the asyncpg driver."""
    return _POSTGRES_URL.sub("postgresql+asyncpg://", db_url, count=1)


def create_engine(db_url: str) -> AsyncEngine:
    url = normalize_database_url(db_url)
    if url.startswith("sqlite"):
        return create_async_engine(url)
    # Pooled connections are checked before use
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory used by requests and background generation alike.

    Objects stay loaded after commit, since services keep working with a run or
    section after persisting its status.
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create every table from the entity metadata (tests and ``CODEXALPHA_CREATE_TABLES``)."""
    from . import entities  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
