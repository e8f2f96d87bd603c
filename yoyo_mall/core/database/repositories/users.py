"""
User repositories.

Data access for accounts, profiles, saved addresses and login records.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.users import Address, LoginRecord, User, UserProfile
from .base import QueryBuilder, SqlRepository


class UserRepository(SqlRepository[User]):
    """Repository for user accounts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Look a user up by email (stored lower-cased)."""
        result = await self.session.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalars().first()

    async def search(
        self,
        page: int,
        limit: int,
        search: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        stmt = select(User)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        stmt = QueryBuilder.apply_filters(stmt, User, {"role": role})
        stmt = stmt.order_by(User.created_at.desc())
        return await self.paginate(stmt, page, limit)


class UserProfileRepository(SqlRepository[UserProfile]):
    """Repository for the one-to-one profile row."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserProfile)

    async def get_by_user(self, user_id: str) -> Optional[UserProfile]:
        result = await self.session.execute(select(UserProfile).where(UserProfile.user_id == user_id))
        return result.scalars().first()

    async def upsert(self, user_id: str, **fields) -> UserProfile:
        """Create the profile or update the given fields, without committing."""
        profile = await self.get_by_user(user_id)
        if profile is None:
            profile = UserProfile(user_id=user_id)
        for key, value in fields.items():
            setattr(profile, key, value)
        profile.updated_at = utc_now()
        return await self.add(profile)


class AddressRepository(SqlRepository[Address]):
    """Repository for saved addresses. All lookups are owner scoped."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Address)

    async def list_for_user(self, user_id: str) -> List[Address]:
        stmt = (
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_for_user(self, address_id: str, user_id: str) -> Optional[Address]:
        stmt = select(Address).where(Address.id == address_id, Address.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def clear_default(self, user_id: str, keep_id: Optional[str] = None) -> None:
        """Unset ``is_default`` on every address of the user except ``keep_id``."""
        stmt = update(Address).where(Address.user_id == user_id, Address.is_default.is_(True))
        if keep_id is not None:
            stmt = stmt.where(Address.id != keep_id)
        await self.session.execute(stmt.values(is_default=False))


class LoginRecordRepository(SqlRepository[LoginRecord]):
    """Repository for the sign-in audit trail."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, LoginRecord)

    async def recent_for_user(self, user_id: str, limit: int = 20) -> List[LoginRecord]:
        stmt = (
            select(LoginRecord)
            .where(LoginRecord.user_id == user_id)
            .order_by(LoginRecord.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
