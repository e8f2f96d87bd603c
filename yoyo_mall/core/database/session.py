"""
Process-wide engine and session factory built from ``settings.database``.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker

logger = get_logger(__name__)

engine = create_engine(settings.database)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed afterwards."""
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the database.

    Creates missing tables in development. In other environments Alembic
    migrations own the schema and this function only logs.
    """
    if settings.is_development:
        await create_all(engine)
        logger.info("Database tables ensured (development)")
    else:
        logger.info("Skipping create_all outside development; run 'alembic upgrade head'")
