"""
Repository contract and the shared SQL implementation.

Every mall repository wraps one ``AsyncSession`` and one SQLModel table. The
concrete repositories in this package subclass ``SqlRepository`` and add the
queries their business area needs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from ..base import utc_now

EntityType = TypeVar("EntityType", bound=SQLModel)


class AsyncBaseRepository(ABC, Generic[EntityType]):
    """CRUD contract for one table."""

    def __init__(self, session: AsyncSession, model: Type[EntityType]) -> None:
        self.session = session
        self.model = model

    @abstractmethod
    async def create(self, entity: EntityType) -> EntityType:
        """Persist ``entity`` and return it with generated fields filled in."""

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[EntityType]:
        """Row with primary key ``entity_id``, or None."""

    @abstractmethod
    async def update(self, entity: EntityType) -> EntityType:
        """Persist changes made to a loaded ``entity``."""

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """Delete by primary key; False when nothing matched."""

    @abstractmethod
    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[EntityType]:
        """Rows matching the equality ``filters``, optionally windowed."""


class SqlRepository(AsyncBaseRepository[EntityType]):
    """CRUD implementation shared by the concrete repositories.

    ``create``, ``update`` and ``delete`` commit immediately. Multi-row
    workflows (checkout, payment webhooks) use ``add`` and commit once.
    """

    async def create(self, entity: EntityType) -> EntityType:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def add(self, entity: EntityType) -> EntityType:
        """Stage an entity and flush it without committing."""
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def get_by_id(self, entity_id: str) -> Optional[EntityType]:
        return await self.session.get(self.model, entity_id)

    async def update(self, entity: EntityType) -> EntityType:
        if hasattr(entity, "updated_at"):
            entity.updated_at = utc_now()
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity_id: str) -> bool:
        entity = await self.get_by_id(entity_id)
        if entity is None:
            return False
        await self.session.delete(entity)
        await self.session.commit()
        return True

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[EntityType]:
        stmt = select(self.model)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, self.model, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, self.model, filters)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def paginate(self, stmt, page: int, limit: int) -> Tuple[List[EntityType], int]:
        """Run ``stmt`` for one page and return ``(rows, total)``.

        ``stmt`` must select the repository entity only; ordering is kept.
        """
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = int((await self.session.execute(count_stmt)).scalar_one())
        paged = QueryBuilder.apply_pagination(stmt, limit, (page - 1) * limit)
        result = await self.session.execute(paged)
        return list(result.scalars().all()), total

    async def get_many(self, ids: Sequence[str]) -> Dict[str, EntityType]:
        """Fetch several rows by primary key, keyed by id."""
        if not ids:
            return {}
        result = await self.session.execute(select(self.model).where(self.model.id.in_(set(ids))))
        return {row.id: row for row in result.scalars().all()}


class QueryBuilder:
    """Helpers that narrow, window and order select statements."""

    @staticmethod
    def apply_filters(stmt, model: Type[EntityType], filters: Dict[str, Any]):
        """``column == value`` for each filter; None values and unknown columns are skipped."""
        for key, value in filters.items():
            if value is not None and hasattr(model, key):
                stmt = stmt.where(getattr(model, key) == value)
        return stmt

    @staticmethod
    def apply_pagination(stmt, limit: Optional[int], offset: Optional[int]):
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt

    @staticmethod
    def apply_sorting(stmt, column, sort_order: str = "desc"):
        """Order by ``column`` ascending or descending."""
        return stmt.order_by(column.asc() if sort_order == "asc" else column.desc())
