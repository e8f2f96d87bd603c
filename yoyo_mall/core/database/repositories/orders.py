"""
Checkout repositories.

Data access for cart lines, coupons, orders, order items, payments and
shipments.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.orders import (
    CartItem,
    Coupon,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentStatus,
    Shipment,
)
from ..entities.users import User
from .base import QueryBuilder, SqlRepository

ORDER_SORT_COLUMNS = {
    "createdAt": Order.created_at,
    "totalAmount": Order.total_amount,
    "status": Order.status,
}

# Orders that do not count towards revenue
UNPAID_STATUSES = (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value)


class CartRepository(SqlRepository[CartItem]):
    """Repository for cart lines."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CartItem)

    async def list_for_user(self, user_id: str) -> List[CartItem]:
        stmt = select(CartItem).where(CartItem.user_id == user_id).order_by(CartItem.created_at.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_for_user(self, item_id: str, user_id: str) -> Optional[CartItem]:
        stmt = select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
        return (await self.session.execute(stmt)).scalars().first()

    async def find_line(self, user_id: str, product_id: str, variant_id: Optional[str]) -> Optional[CartItem]:
        stmt = select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
        if variant_id is None:
            stmt = stmt.where(CartItem.variant_id.is_(None))
        else:
            stmt = stmt.where(CartItem.variant_id == variant_id)
        return (await self.session.execute(stmt)).scalars().first()

    async def clear(self, user_id: str, commit: bool = True) -> None:
        await self.session.execute(delete(CartItem).where(CartItem.user_id == user_id))
        if commit:
            await self.session.commit()


class CouponRepository(SqlRepository[Coupon]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Coupon)

    async def get_by_code(self, code: str) -> Optional[Coupon]:
        result = await self.session.execute(select(Coupon).where(Coupon.code == code.strip().upper()))
        return result.scalars().first()


class OrderRepository(SqlRepository[Order]):
    """Repository for orders and the rows attached to them."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Order)

    async def get_by_number(self, order_number: str) -> Optional[Order]:
        result = await self.session.execute(select(Order).where(Order.order_number == order_number))
        return result.scalars().first()

    async def get_for_user(self, order_id: str, user_id: str) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id, Order.user_id == user_id)
        return (await self.session.execute(stmt)).scalars().first()

    async def search(
        self,
        page: int,
        limit: int,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Tuple[List[Order], int]:
        """Paginate orders, optionally for one user.

        ``search`` matches the order number or the customer's email.
        """
        stmt = select(Order)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.join(User, User.id == Order.user_id).where(
                or_(Order.order_number.ilike(pattern), User.email.ilike(pattern))
            )
        stmt = QueryBuilder.apply_filters(stmt, Order, {"user_id": user_id, "status": status})
        column = ORDER_SORT_COLUMNS.get(sort_by, Order.created_at)
        stmt = QueryBuilder.apply_sorting(stmt, column, sort_order)
        return await self.paginate(stmt, page, limit)

    async def items_for(self, order_ids: Sequence[str]) -> Dict[str, List[OrderItem]]:
        items: Dict[str, List[OrderItem]] = defaultdict(list)
        if not order_ids:
            return items
        stmt = select(OrderItem).where(OrderItem.order_id.in_(set(order_ids)))
        for item in (await self.session.execute(stmt)).scalars().all():
            items[item.order_id].append(item)
        return items

    async def payments_for(self, order_ids: Sequence[str]) -> Dict[str, List[Payment]]:
        payments: Dict[str, List[Payment]] = defaultdict(list)
        if not order_ids:
            return payments
        stmt = select(Payment).where(Payment.order_id.in_(set(order_ids))).order_by(Payment.created_at.asc())
        for payment in (await self.session.execute(stmt)).scalars().all():
            payments[payment.order_id].append(payment)
        return payments

    async def shipments_for(self, order_ids: Sequence[str]) -> Dict[str, List[Shipment]]:
        shipments: Dict[str, List[Shipment]] = defaultdict(list)
        if not order_ids:
            return shipments
        stmt = select(Shipment).where(Shipment.order_id.in_(set(order_ids)))
        for shipment in (await self.session.execute(stmt)).scalars().all():
            shipments[shipment.order_id].append(shipment)
        return shipments

    async def count_by_status(self) -> Dict[str, int]:
        stmt = select(Order.status, func.count()).group_by(Order.status)
        return {status: int(count) for status, count in (await self.session.execute(stmt)).all()}

    async def revenue(self) -> Decimal:
        stmt = select(func.coalesce(func.sum(Order.total_amount), 0)).where(Order.status.not_in(UNPAID_STATUSES))
        total = (await self.session.execute(stmt)).scalar_one()
        return Decimal(str(total)).quantize(Decimal("0.01"))

    async def recent(self, limit: int = 5) -> List[Order]:
        result = await self.session.execute(select(Order).order_by(Order.created_at.desc()).limit(limit))
        return list(result.scalars().all())


class PaymentRepository(SqlRepository[Payment]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Payment)

    async def find_reusable(self, order_id: str, provider: str = "stripe") -> Optional[Payment]:
        """A pending or processing payment that already has a gateway id."""
        stmt = (
            select(Payment)
            .where(
                Payment.order_id == order_id,
                Payment.provider == provider,
                Payment.provider_transaction_id.is_not(None),
                Payment.status.in_((PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value)),
            )
            .order_by(Payment.created_at.desc())
        )
        return (await self.session.execute(stmt)).scalars().first()

    async def list_by_transaction(self, transaction_id: str) -> List[Payment]:
        stmt = select(Payment).where(Payment.provider_transaction_id == transaction_id)
        return list((await self.session.execute(stmt)).scalars().all())
