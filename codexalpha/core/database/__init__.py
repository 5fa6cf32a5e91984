"""
Database layer for CodeXAlpha.

- entities/: one SQLModel module per aggregate (persona runs and codexes, the
  codex prompt catalog, sharing, Lightathon, users, settings, analytics)
- repositories/: async data access per aggregate, bundled by ``build_repos``
- session.py: the process-wide engine, request sessions and ``init_db``
- utils.py: engine/session-factory construction shared with the tests
"""

from .base import Base, new_id, utc_now
from .session import async_session_maker, engine, get_session, get_session_factory, init_db
from .utils import create_all, create_engine, create_sessionmaker, normalize_database_url

__all__ = [
    "Base",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "get_session_factory",
    "init_db",
    "new_id",
    "normalize_database_url",
    "utc_now",
]
