from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.utils import create_all, create_engine, create_sessionmaker


@pytest_asyncio.fixture(name="test_engine")
async def test_engine_fixture():
    """A fresh in-memory mall database per test."""
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(test_engine)() as session:
        yield session
