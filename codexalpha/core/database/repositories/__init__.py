"""
Repository layer.

Async repositories per business domain, and a bundle that wires them all to
one session.
"""

from .base import AsyncBaseRepository
from .bundle import SqlRepoBundle, build_sql_repos_from_session

__all__ = [
    "AsyncBaseRepository",
    "SqlRepoBundle",
    "build_sql_repos_from_session",
]
