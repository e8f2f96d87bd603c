"""
Stock transitions.

An order reserves stock when it is placed, commits it when payment succeeds
and releases it when payment fails or the order is cancelled. A refund puts
committed stock back. None of these functions commit the session; the
caller owns the transaction.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.base import utc_now
from yoyo_mall.core.database.entities.catalog import Inventory
from yoyo_mall.core.database.entities.orders import OrderItem
from yoyo_mall.core.database.repositories.catalog import InventoryRepository
from yoyo_mall.core.logging_config import get_logger

logger = get_logger(__name__)

StockLine = Tuple[str, int]  # (product_id, quantity)


def stock_lines(items: Iterable[OrderItem]) -> list[StockLine]:
    return [(item.product_id, item.quantity) for item in items]


async def _apply(session: AsyncSession, lines: Iterable[StockLine], op: str) -> None:
    repo = InventoryRepository(session)
    for product_id, quantity in lines:
        row: Inventory | None = await repo.get_by_product(product_id)
        if row is None:
            continue
        if op == "reserve":
            row.reserved_quantity += quantity
        elif op == "release":
            row.reserved_quantity = max(row.reserved_quantity - quantity, 0)
        elif op == "commit":
            row.quantity = max(row.quantity - quantity, 0)
            row.reserved_quantity = max(row.reserved_quantity - quantity, 0)
        elif op == "restock":
            row.quantity += quantity
        else:
            raise ValueError(f"Unknown stock operation: {op}")
        row.updated_at = utc_now()
        session.add(row)
    await session.flush()
    logger.debug(f"Stock {op} applied")


async def reserve(session: AsyncSession, lines: Iterable[StockLine]) -> None:
    await _apply(session, lines, "reserve")


async def release(session: AsyncSession, lines: Iterable[StockLine]) -> None:
    await _apply(session, lines, "release")


async def commit(session: AsyncSession, lines: Iterable[StockLine]) -> None:
    await _apply(session, lines, "commit")


async def restock(session: AsyncSession, lines: Iterable[StockLine]) -> None:
    await _apply(session, lines, "restock")
