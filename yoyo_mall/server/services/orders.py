"""
Order placement and order views.

Checkout validates every line against the live catalog, prices the order,
then writes the order, its items, the stock reservations, the coupon usage
and the cart clean-up in one transaction.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.base import utc_now
from yoyo_mall.core.database.entities.catalog import ProductStatus
from yoyo_mall.core.database.entities.orders import Order, OrderItem, OrderStatus
from yoyo_mall.core.database.entities.users import User
from yoyo_mall.core.database.repositories.catalog import ProductRepository
from yoyo_mall.core.database.repositories.orders import CartRepository, CouponRepository, OrderRepository
from yoyo_mall.core.database.repositories.users import AddressRepository
from yoyo_mall.core.exceptions import NotFoundError, ValidationFailedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.orders import (
    OrderCreate,
    OrderItemRead,
    OrderRead,
    OrderUpdate,
    PaymentRead,
    ShipmentRead,
)
from yoyo_mall.core.models.io.users import AddressRead

from . import inventory as stock
from .carts import unit_price
from .catalog import ensure_stock
from .pricing import calculate_totals, generate_order_number, prices_match, to_money, validate_coupon
from .security import is_admin

logger = get_logger(__name__)

VALID_STATUSES = frozenset(status.value for status in OrderStatus)


class OrderService:
    """Checkout and order queries for one request."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.orders = OrderRepository(session)
        self.products = ProductRepository(session)
        self.addresses = AddressRepository(session)
        self.coupons = CouponRepository(session)
        self.carts = CartRepository(session)

    async def _priced_lines(self, payload: OrderCreate) -> Tuple[List[OrderItem], Decimal, Set[str]]:
        lines: List[OrderItem] = []
        tracked: Set[str] = set()
        # stock is tracked per product, across variants
        requested_totals: Dict[str, int] = {}
        subtotal = Decimal("0")
        images = await self.products.images_for([i.product_id for i in payload.items], per_product=1)
        inventory = await self.products.inventory_for([i.product_id for i in payload.items])

        for requested in payload.items:
            product = await self.products.get_by_id(requested.product_id)
            if product is None or product.status != ProductStatus.PUBLISHED.value:
                raise ValidationFailedError(
                    "Product is not available",
                    code="PRODUCT_NOT_AVAILABLE",
                    details={"productId": requested.product_id},
                )
            variant = None
            if requested.variant_id:
                variant = await self.products.get_variant(requested.variant_id)
                if variant is None or not variant.is_active or variant.product_id != product.id:
                    raise NotFoundError(
                        "Product variant not found",
                        code="VARIANT_NOT_FOUND",
                        details={"variantId": requested.variant_id},
                    )

            price = to_money(unit_price(product, variant))
            if not prices_match(price, requested.unit_price):
                raise ValidationFailedError(
                    "Product price has changed",
                    code="PRICE_MISMATCH",
                    details={
                        "productId": product.id,
                        "expectedPrice": float(price),
                        "submittedPrice": float(requested.unit_price),
                    },
                )
            earlier = requested_totals.get(product.id, 0)
            requested_totals[product.id] = earlier + requested.quantity
            ensure_stock(product, inventory.get(product.id), earlier + requested.quantity, earlier or None)
            if product.track_inventory:
                tracked.add(product.id)

            line_total = to_money(price * requested.quantity)
            subtotal += line_total
            first_image = images.get(product.id, [])
            lines.append(
                OrderItem(
                    order_id="",
                    product_id=product.id,
                    variant_id=variant.id if variant else None,
                    quantity=requested.quantity,
                    unit_price=price,
                    total_price=line_total,
                    product_snapshot={
                        "name": product.name,
                        "sku": product.sku,
                        "slug": product.slug,
                        "image": first_image[0].url if first_image else None,
                        "variant": {"id": variant.id, "name": variant.name, "attributes": variant.attributes}
                        if variant
                        else None,
                    },
                )
            )
        return lines, subtotal, tracked

    async def create_order(self, user: User, payload: OrderCreate) -> Order:
        """Validate, price and persist an order.

        Raises:
            NotFoundError: ``ADDRESS_NOT_FOUND`` / ``BILLING_ADDRESS_NOT_FOUND``
            ValidationFailedError: ``PRODUCT_NOT_AVAILABLE``, ``PRICE_MISMATCH``,
                ``INSUFFICIENT_STOCK`` or ``INVALID_COUPON``
        """
        shipping = await self.addresses.get_for_user(payload.shipping_address_id, user.id)
        if shipping is None:
            raise NotFoundError("Shipping address not found", code="ADDRESS_NOT_FOUND")
        billing_id = shipping.id
        if payload.billing_address_id:
            billing = await self.addresses.get_for_user(payload.billing_address_id, user.id)
            if billing is None:
                raise NotFoundError("Billing address not found", code="BILLING_ADDRESS_NOT_FOUND")
            billing_id = billing.id

        lines, subtotal, tracked = await self._priced_lines(payload)

        coupon = None
        if payload.coupon_code:
            coupon = validate_coupon(await self.coupons.get_by_code(payload.coupon_code), subtotal)
        totals = calculate_totals(subtotal, coupon)

        order = Order(
            order_number=generate_order_number(),
            user_id=user.id,
            status=OrderStatus.PENDING.value,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            shipping_amount=totals.shipping_amount,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
            currency="USD",
            shipping_address_id=shipping.id,
            billing_address_id=billing_id,
            coupon_id=coupon.id if coupon else None,
            payment_method=payload.payment_method.value,
            notes=payload.notes,
        )
        try:
            self.session.add(order)
            await self.session.flush()
            for line in lines:
                line.order_id = order.id
                self.session.add(line)
            await stock.reserve(self.session, stock.stock_lines(line for line in lines if line.product_id in tracked))
            if coupon is not None:
                coupon.usage_count += 1
                self.session.add(coupon)
            await self.carts.clear(user.id, commit=False)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.error(f"Order creation failed for user {user.id}", exc_info=True)
            raise
        await self.session.refresh(order)
        logger.info(f"Order {order.order_number} created for user {user.id}: total={order.total_amount}")
        return order

    async def build_views(self, orders: Sequence[Order]) -> List[OrderRead]:
        ids = [o.id for o in orders]
        items = await self.orders.items_for(ids)
        payments = await self.orders.payments_for(ids)
        shipments = await self.orders.shipments_for(ids)
        address_ids = [a for o in orders for a in (o.shipping_address_id, o.billing_address_id) if a]
        addresses = await self.addresses.get_many(address_ids)

        def address(address_id: Optional[str]) -> Optional[AddressRead]:
            row = addresses.get(address_id) if address_id else None
            return AddressRead.model_validate(row) if row is not None else None

        return [
            OrderRead.model_validate(
                {
                    **order.model_dump(),
                    "items": [OrderItemRead.model_validate(i) for i in items.get(order.id, [])],
                    "payments": [PaymentRead.model_validate(p) for p in payments.get(order.id, [])],
                    "shipments": [ShipmentRead.model_validate(s) for s in shipments.get(order.id, [])],
                    "shipping_address": address(order.shipping_address_id),
                    "billing_address": address(order.billing_address_id),
                }
            )
            for order in orders
        ]

    async def get_visible(self, order_id: str, user: User) -> Order:
        """An order the user may read: their own, or any for admins."""
        order = await self.orders.get_by_id(order_id)
        if order is None or (order.user_id != user.id and not is_admin(user.role)):
            raise NotFoundError("Order not found", code="ORDER_NOT_FOUND")
        return order

    async def admin_update(self, order_id: str, payload: OrderUpdate) -> Order:
        """Change status and/or notes.

        Cancelling an unpaid (PENDING) order releases its reservations.
        """
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found", code="ORDER_NOT_FOUND")
        if payload.status is not None and payload.status not in VALID_STATUSES:
            raise ValidationFailedError(
                "Invalid order status",
                code="INVALID_STATUS",
                details={"allowed": sorted(VALID_STATUSES)},
            )

        if payload.status is not None and payload.status != order.status:
            if payload.status == OrderStatus.CANCELLED.value and order.status == OrderStatus.PENDING.value:
                items = (await self.orders.items_for([order.id])).get(order.id, [])
                await stock.release(self.session, stock.stock_lines(items))
            logger.info(f"Order {order.order_number} status {order.status} -> {payload.status}")
            order.status = payload.status
        if payload.notes is not None:
            order.notes = payload.notes
        order.updated_at = utc_now()
        return await self.orders.update(order)

