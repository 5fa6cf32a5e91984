"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from codexalpha.core.logging_config import get_logger
from codexalpha.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker

logger = get_logger(__name__)

# Create global engine and session factory
engine = create_engine(settings.database.url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Dependency returning the session factory used by background work.

    Background generation outlives the request, so it opens its own sessions
    instead of reusing the request-scoped one.
    """
    return async_session_maker


async def init_db() -> None:
    """
    Initialize the database.

    In production, Alembic migrations handle all DDL and this only verifies
    connectivity. With ``CODEXALPHA_CREATE_TABLES`` set, missing tables are
    created from the ORM metadata (local development).
    """
    if settings.database.create_tables_on_startup:
        logger.info("Creating missing tables from ORM metadata")
        await create_all(engine)
        return
    async with engine.connect():
        logger.debug("Database connection verified")
