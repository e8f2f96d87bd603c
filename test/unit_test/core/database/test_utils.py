"""Unit tests for database engine helpers."""

import pytest
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.pool import StaticPool

from yoyo_mall.core.database.utils import (
    create_all,
    create_engine,
    create_sessionmaker,
    drop_all,
    is_memory_sqlite,
    normalize_url,
)


class TestNormalizeUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "postgres://u:p@db:5432/mall",
            "postgresql://u:p@db:5432/mall",
            "postgresql+psycopg2://u:p@db:5432/mall",
            "postgresql+asyncpg://u:p@db:5432/mall",
        ],
    )
    def test_postgres_variants_use_asyncpg(self, url):
        assert normalize_url(url) == "postgresql+asyncpg://u:p@db:5432/mall"

    def test_other_drivers_untouched(self):
        assert normalize_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"


@pytest.mark.asyncio
async def test_create_all_creates_every_table():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    assert isinstance(engine, AsyncEngine)
    try:
        await create_all(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    finally:
        await engine.dispose()

    assert {
        "users",
        "user_profiles",
        "addresses",
        "login_records",
        "categories",
        "brands",
        "products",
        "product_images",
        "product_variants",
        "inventory",
        "reviews",
        "wishlist_items",
        "cart_items",
        "coupons",
        "orders",
        "order_items",
        "payments",
        "shipments",
    } <= tables


def test_sessionmaker_keeps_objects_after_commit():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    factory = create_sessionmaker(engine)

    assert factory.class_ is AsyncSession
    assert factory.kw["expire_on_commit"] is False


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite+aiosqlite:///:memory:", True),
        ("sqlite+aiosqlite://", True),
        ("sqlite+aiosqlite:///./mall.db", False),
        ("postgresql+asyncpg://u:p@db:5432/mall", False),
    ],
)
def test_is_memory_sqlite(url, expected):
    assert is_memory_sqlite(url) is expected


def test_memory_sqlite_shares_one_connection():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    assert isinstance(engine.pool, StaticPool)


def test_file_sqlite_uses_regular_pool():
    engine = create_engine("sqlite+aiosqlite:///./mall.db")
    assert not isinstance(engine.pool, StaticPool)


@pytest.mark.asyncio
async def test_drop_all_removes_tables():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    try:
        await create_all(engine)
        await drop_all(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    finally:
        await engine.dispose()

    assert tables == []
