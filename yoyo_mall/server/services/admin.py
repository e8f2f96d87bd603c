"""
Admin console operations: admin bootstrap, user management and the
dashboard summary.
"""

from __future__ import annotations

from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.entities.orders import OrderStatus
from yoyo_mall.core.database.entities.users import User, UserProfile, UserRole
from yoyo_mall.core.database.repositories.catalog import InventoryRepository, ProductRepository
from yoyo_mall.core.database.repositories.orders import OrderRepository
from yoyo_mall.core.database.repositories.users import UserRepository
from yoyo_mall.core.exceptions import NotFoundError, PermissionDeniedError, ValidationFailedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.admin import AdminUserUpdate, CreateAdminRequest, DashboardStats, RecentOrder

from .accounts import split_name
from .security import hash_password

logger = get_logger(__name__)

RECENT_ORDERS = 5


def status_counts_template() -> Dict[str, int]:
    return {status.value: 0 for status in OrderStatus}


class AdminService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)

    async def create_admin(self, payload: CreateAdminRequest) -> User:
        """Promote an existing account to ADMIN or create a new ADMIN.

        Raises:
            ValidationFailedError: ``PASSWORD_REQUIRED`` when the account
                does not exist yet and no password was given
        """
        existing = await self.users.get_by_email(payload.email)
        if existing is not None:
            if existing.role == UserRole.CUSTOMER.value:
                existing.role = UserRole.ADMIN.value
            if payload.name and not existing.name:
                existing.name = payload.name
            logger.info(f"Promoted {existing.email} to {existing.role}")
            return await self.users.update(existing)

        if not payload.password:
            raise ValidationFailedError("Password is required for a new admin", code="PASSWORD_REQUIRED")
        user = User(
            email=payload.email.lower(),
            name=payload.name,
            password_hash=hash_password(payload.password),
            role=UserRole.ADMIN.value,
            email_verified=True,
        )
        await self.users.add(user)
        first, last = split_name(payload.name)
        self.session.add(UserProfile(user_id=user.id, first_name=first, last_name=last))
        await self.session.commit()
        await self.session.refresh(user)
        logger.info(f"Created admin {user.email}")
        return user

    async def update_user(self, actor: User, user_id: str, payload: AdminUserUpdate) -> User:
        """Change another account's role or active flag.

        Only a SUPER_ADMIN may grant SUPER_ADMIN, and nobody may demote or
        deactivate themselves.
        """
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")

        if user.id == actor.id:
            demoting = payload.role is not None and payload.role.value != actor.role
            deactivating = payload.is_active is False
            if demoting or deactivating:
                raise ValidationFailedError("You cannot change your own role or status", code="CANNOT_MODIFY_SELF")

        super_actor = actor.role == UserRole.SUPER_ADMIN.value
        if user.role == UserRole.SUPER_ADMIN.value and not super_actor:
            if payload.role is not None or payload.is_active is not None:
                raise PermissionDeniedError("Only a super admin can modify a super admin", code="FORBIDDEN")
        if payload.role is not None:
            if payload.role == UserRole.SUPER_ADMIN and not super_actor:
                raise PermissionDeniedError("Only a super admin can grant super admin", code="FORBIDDEN")
            user.role = payload.role.value
        if payload.is_active is not None:
            user.is_active = payload.is_active

        logger.info(f"Admin {actor.id} updated user {user.id}: role={user.role} active={user.is_active}")
        return await self.users.update(user)

    async def dashboard(self) -> DashboardStats:
        orders = OrderRepository(self.session)
        by_status = status_counts_template()
        by_status.update(await orders.count_by_status())
        recent = await orders.recent(RECENT_ORDERS)
        return DashboardStats(
            total_users=await self.users.count(),
            total_products=await ProductRepository(self.session).count(),
            total_orders=sum(by_status.values()),
            revenue=await orders.revenue(),
            orders_by_status=by_status,
            low_stock_products=await InventoryRepository(self.session).low_stock_count(),
            recent_orders=[RecentOrder.model_validate(order) for order in recent],
        )
