"""
Engine and schema helpers for the mall database.

PostgreSQL always goes through asyncpg; SQLite (local development and tests)
goes through aiosqlite. An in-memory SQLite database lives in a single shared
connection so every session sees the same tables.
"""

from __future__ import annotations

import re
from typing import Any, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from .base import Base

_POSTGRES_SCHEME = re.compile(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://")


def normalize_url(db_url: str) -> str:
    """Rewrite ``postgres://``, ``postgresql://`` and ``postgresql+<driver>://`` to asyncpg."""
    return _POSTGRES_SCHEME.sub("postgresql+asyncpg://", db_url, count=1)


def is_memory_sqlite(db_url: str) -> bool:
    if not db_url.startswith("sqlite"):
        return False
    path = db_url.split("://", 1)[-1].lstrip("/")
    return path in ("", ":memory:")


def create_engine(db_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for ``db_url``.

    Args:
        db_url: Database URL from settings (any Postgres scheme or sqlite+aiosqlite)
        echo: Log emitted SQL

    Returns:
        Configured AsyncEngine instance
    """
    url = normalize_url(db_url)
    options: Dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if is_memory_sqlite(url):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory whose objects stay readable after commit."""
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create every mall table that does not exist yet.

    Used by tests and by development start-up; deployed databases are
    migrated with Alembic.
    """
    from . import entities  # noqa: F401  registers every table on the metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all(engine: AsyncEngine) -> None:
    from . import entities  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
